#!/usr/bin/env python
"""
Minimal RFC 5545 codec for a single VEVENT.

The wire text is written and read line by line rather than through a
full iCalendar object model, so that the exact output is under our
control.  Use CalendarEvent.icalendar_instance when a proper object
model is needed.
"""
import re
from datetime import date
from datetime import datetime
from datetime import timezone
from typing import List

from eventdav.event import CalendarEvent
from eventdav.event import DateLike


utc_tz = timezone.utc

PRODID = "-//eventdav//Event Calendar//EN"
DEFAULT_SUMMARY = "Untitled Event"

_FRACTION_RE = re.compile(r"\.(\d+)")


def escape_text(value) -> str:
    """
    Escape a TEXT value (RFC 5545 section 3.3.11).

    The backslash has to be escaped first, otherwise the backslashes
    added for ; , and newline would be doubled.
    """
    text = str(value) if value else ""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def unescape_text(value: str) -> str:
    """
    Reverse of escape_text, applied in the order \\n , ; \\\\.

    This is not an exact inverse: an escaped backslash followed by a
    literal "n" (wire text ``\\\\n``) comes back as a backslash and a
    newline.
    """
    return (
        value.replace("\\n", "\n")
        .replace("\\,", ",")
        .replace("\\;", ";")
        .replace("\\\\", "\\")
    )


def _six_digit_fraction(match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def _to_datetime(value: DateLike) -> datetime:
    """coerce strings, dates and datetimes to an aware UTC datetime"""
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            ## date-only ISO string, midnight UTC
            value = date.fromisoformat(text)
        else:
            if text.endswith("Z") or text.endswith("z"):
                text = text[:-1] + "+00:00"
            ## fromisoformat before 3.11 takes 3 or 6 fraction digits only
            text = _FRACTION_RE.sub(_six_digit_fraction, text)
            value = datetime.fromisoformat(text)
    if isinstance(value, datetime):
        ## naive timestamps are taken to be localtime
        return value.astimezone(utc_tz)
    return datetime(value.year, value.month, value.day, tzinfo=utc_tz)


def format_datetime(value: DateLike) -> str:
    """Render an instant as a UTC DATE-TIME, ``YYYYMMDDTHHMMSSZ``"""
    return _to_datetime(value).strftime("%Y%m%dT%H%M%SZ")


def parse_datetime(value: str) -> str:
    """
    ``YYYYMMDD`` -> ``YYYY-MM-DD``, ``YYYYMMDDTHHMMSSZ`` -> ``YYYY-MM-DDTHH:MM:SSZ``.

    Only UTC values are understood; anything after the seconds is dropped.
    """
    if len(value) == 8:
        return "%s-%s-%s" % (value[0:4], value[4:6], value[6:8])
    return "%s-%s-%sT%s:%s:%sZ" % (
        value[0:4],
        value[4:6],
        value[6:8],
        value[9:11],
        value[11:13],
        value[13:15],
    )


def generate_ical_data(event: CalendarEvent) -> str:
    """
    Serialize an event to a VCALENDAR with one VEVENT.

    Fields are written in a fixed order; optional fields that are unset
    (or empty) are left out completely.  ORGANIZER is escaped, URL and
    RRULE are written verbatim.
    """
    now = datetime.now(utc_tz)
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:%s" % PRODID,
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        "UID:%s" % event.uid,
        "DTSTAMP:%s" % format_datetime(now),
        "CREATED:%s" % format_datetime(event.created_at or now),
        "LAST-MODIFIED:%s" % format_datetime(event.updated_at or now),
        "SUMMARY:%s" % escape_text(event.title or DEFAULT_SUMMARY),
    ]

    if event.description:
        lines.append("DESCRIPTION:%s" % escape_text(event.description))
    if event.location:
        lines.append("LOCATION:%s" % escape_text(event.location))
    if event.dtstart:
        lines.append("DTSTART:%s" % format_datetime(event.dtstart))
    if event.dtend:
        lines.append("DTEND:%s" % format_datetime(event.dtend))
    if event.organizer:
        lines.append("ORGANIZER:%s" % escape_text(event.organizer))
    if event.categories:
        lines.append(
            "CATEGORIES:%s" % ",".join(escape_text(cat) for cat in event.categories)
        )
    if event.registration_url:
        lines.append("URL:%s" % event.registration_url)
    if event.rrule:
        lines.append("RRULE:%s" % event.rrule)

    lines += ["STATUS:CONFIRMED", "TRANSP:OPAQUE", "END:VEVENT", "END:VCALENDAR"]
    return "\r\n".join(lines)


def _unfold(text: str) -> List[str]:
    lines: List[str] = []
    for line in text.replace("\r\n", "\n").split("\n"):
        if line[:1] in (" ", "\t") and lines:
            lines[-1] += line[1:]
        else:
            lines.append(line)
    return lines


def parse_ical_data(data: str) -> CalendarEvent:
    """
    Parse iCalendar text into a CalendarEvent.

    Each line is split on the first colon only, so values like
    ``URL:https://example.com`` survive.  Properties carrying parameters
    (``DTSTART;TZID=...``) and unknown properties are ignored.  Only the
    first URL line is used.
    """
    event = CalendarEvent()
    for line in _unfold(data):
        key, _, value = line.partition(":")

        if key == "UID":
            event.uid = value
        elif key == "SUMMARY":
            event.title = unescape_text(value)
        elif key == "DESCRIPTION":
            event.description = unescape_text(value)
        elif key == "LOCATION":
            event.location = unescape_text(value)
        elif key == "DTSTART":
            event.dtstart = parse_datetime(value)
        elif key == "DTEND":
            event.dtend = parse_datetime(value)
        elif key == "CREATED":
            event.created_at = parse_datetime(value)
        elif key == "LAST-MODIFIED":
            event.updated_at = parse_datetime(value)
        elif key == "ORGANIZER":
            event.organizer = unescape_text(value)
        elif key == "CATEGORIES":
            event.categories = [unescape_text(cat.strip()) for cat in value.split(",")]
        elif key == "URL":
            if not event.registration_url:
                event.registration_url = value
        elif key == "RRULE":
            event.rrule = value

    return event
