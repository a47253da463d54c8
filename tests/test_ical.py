#!/usr/bin/env python
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest

from eventdav.event import CalendarEvent
from eventdav.lib.ical import escape_text
from eventdav.lib.ical import format_datetime
from eventdav.lib.ical import generate_ical_data
from eventdav.lib.ical import parse_datetime
from eventdav.lib.ical import parse_ical_data
from eventdav.lib.ical import unescape_text

utc = timezone.utc

ev = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Example Corp.//CalDAV Client//EN",
        "BEGIN:VEVENT",
        "UID:19970901T130000Z-123403@example.com",
        "DTSTAMP:19970901T130000Z",
        "DTSTART:19971102",
        "DTEND:19971103T120000Z",
        "SUMMARY:Our Blissful Anniversary",
        "DESCRIPTION:Dinner\\, then a walk\\nBring a coat",
        "LOCATION:Kitchen\\; upstairs",
        "CATEGORIES:ANNIVERSARY, PERSONAL ,SPECIAL OCCASION",
        "URL:https://example.com/first?a=b",
        "URL:https://example.com/second",
        "RRULE:FREQ=YEARLY",
        "X-UNKNOWN:whatever",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
)


class TestEscaping:
    def test_escape_text(self):
        assert escape_text("a\\b;c,d\ne") == "a\\\\b\\;c\\,d\\ne"

    def test_escape_backslash_first(self):
        ## the backslash added for ; must not be doubled
        assert escape_text(";") == "\\;"
        assert escape_text("\\;") == "\\\\\\;"

    def test_escape_empty_and_non_string(self):
        assert escape_text(None) == ""
        assert escape_text("") == ""
        assert escape_text(42) == "42"

    def test_unescape_text(self):
        assert unescape_text("a\\\\b\\;c\\,d\\ne") == "a\\b;c,d\ne"

    @pytest.mark.parametrize(
        "text",
        ["plain", "Hello, world; again", "two\nlines", "c:\\temp", "", "ÆØÅ, æøå"],
    )
    def test_unescape_reverses_escape(self, text):
        assert unescape_text(escape_text(text)) == text

    def test_escaped_backslash_before_n_is_not_reversed(self):
        ## known asymmetry: \n is unescaped before \\, so a literal
        ## backslash followed by "n" comes back as backslash + newline
        assert escape_text("\\n") == "\\\\n"
        assert unescape_text(escape_text("\\n")) == "\\\n"


class TestDateTimes:
    def test_format_datetime(self):
        ts = datetime(2025, 7, 15, 14, 30, 0, 123456, tzinfo=utc)
        assert format_datetime(ts) == "20250715T143000Z"

    def test_format_datetime_converts_to_utc(self):
        ts = datetime(2025, 7, 15, 16, 30, tzinfo=timezone(timedelta(hours=2)))
        assert format_datetime(ts) == "20250715T143000Z"

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2025-07-15T14:30:00Z", "20250715T143000Z"),
            ("2025-07-15T14:30:00.000Z", "20250715T143000Z"),
            ("2025-07-15T14:30:00.5Z", "20250715T143000Z"),
            ("2025-07-15T14:30:59.99Z", "20250715T143059Z"),
            ("2025-07-15T14:30:00.1234567Z", "20250715T143000Z"),
            ("2025-07-15T16:30:00.25+02:00", "20250715T143000Z"),
            ("2025-07-15T16:30:00+02:00", "20250715T143000Z"),
            ("2025-07-15", "20250715T000000Z"),
        ],
    )
    def test_format_datetime_strings(self, value, expected):
        assert format_datetime(value) == expected

    def test_format_date(self):
        assert format_datetime(date(2025, 7, 15)) == "20250715T000000Z"

    def test_parse_datetime(self):
        assert parse_datetime("20250715") == "2025-07-15"
        assert parse_datetime("20250715T143000Z") == "2025-07-15T14:30:00Z"

    @pytest.mark.parametrize(
        "ts",
        [
            datetime(2025, 7, 15, 14, 30, 0, tzinfo=utc),
            datetime(1999, 12, 31, 23, 59, 59, 999999, tzinfo=utc),
            datetime(2024, 2, 29, 0, 0, 1, tzinfo=utc),
        ],
    )
    def test_format_then_parse(self, ts):
        assert parse_datetime(format_datetime(ts)) == ts.strftime("%Y-%m-%dT%H:%M:%SZ")


class TestGenerate:
    def test_uid_only(self):
        data = generate_ical_data(CalendarEvent(uid="abc@example.com"))
        lines = data.split("\r\n")
        assert "\n" not in data.replace("\r\n", "")
        assert lines[:7] == [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "PRODID:-//eventdav//Event Calendar//EN",
            "CALSCALE:GREGORIAN",
            "METHOD:PUBLISH",
            "BEGIN:VEVENT",
            "UID:abc@example.com",
        ]
        assert [x.split(":")[0] for x in lines[7:]] == [
            "DTSTAMP",
            "CREATED",
            "LAST-MODIFIED",
            "SUMMARY",
            "STATUS",
            "TRANSP",
            "END",
            "END",
        ]
        assert "SUMMARY:Untitled Event" in lines
        assert lines[-4:] == [
            "STATUS:CONFIRMED",
            "TRANSP:OPAQUE",
            "END:VEVENT",
            "END:VCALENDAR",
        ]

    def test_all_fields(self):
        event = CalendarEvent(
            uid="full",
            title="Meet, greet; eat",
            description="line one\nline two",
            location="Room 1, floor 2",
            dtstart="2025-07-15T14:30:00Z",
            dtend=datetime(2025, 7, 15, 16, 0, tzinfo=utc),
            created_at="2025-07-01T08:00:00Z",
            updated_at="2025-07-02T09:00:00Z",
            organizer="mailto:boss@example.com;cn=Boss",
            categories=["music", "a,b"],
            registration_url="https://example.com/reg?x=1,2",
            rrule="FREQ=WEEKLY;COUNT=3",
        )
        lines = generate_ical_data(event).split("\r\n")
        body = lines[lines.index("UID:full") + 2 :]
        assert body == [
            "CREATED:20250701T080000Z",
            "LAST-MODIFIED:20250702T090000Z",
            "SUMMARY:Meet\\, greet\\; eat",
            "DESCRIPTION:line one\\nline two",
            "LOCATION:Room 1\\, floor 2",
            "DTSTART:20250715T143000Z",
            "DTEND:20250715T160000Z",
            "ORGANIZER:mailto:boss@example.com\\;cn=Boss",
            "CATEGORIES:music,a\\,b",
            "URL:https://example.com/reg?x=1,2",
            "RRULE:FREQ=WEEKLY;COUNT=3",
            "STATUS:CONFIRMED",
            "TRANSP:OPAQUE",
            "END:VEVENT",
            "END:VCALENDAR",
        ]

    def test_empty_values_are_left_out(self):
        data = generate_ical_data(
            CalendarEvent(uid="x", description="", location="", categories=[])
        )
        assert "DESCRIPTION" not in data
        assert "LOCATION" not in data
        assert "CATEGORIES" not in data

    def test_icalendar_accepts_output(self):
        event = CalendarEvent(
            uid="valid@example.com",
            title="Checked, by icalendar",
            dtstart="2025-07-15T14:30:00Z",
            dtend="2025-07-15T15:30:00Z",
            categories=["one", "two"],
        )
        cal = event.icalendar_instance
        vevent = cal.walk("VEVENT")[0]
        assert str(vevent["UID"]) == "valid@example.com"
        assert str(vevent["SUMMARY"]) == "Checked, by icalendar"
        assert vevent.decoded("DTSTART") == datetime(2025, 7, 15, 14, 30, tzinfo=utc)

    def test_to_ical(self):
        event = CalendarEvent(uid="short")
        assert "UID:short" in event.to_ical()


class TestParse:
    def test_parse(self):
        event = parse_ical_data(ev)
        assert event.uid == "19970901T130000Z-123403@example.com"
        assert event.title == "Our Blissful Anniversary"
        assert event.description == "Dinner, then a walk\nBring a coat"
        assert event.location == "Kitchen; upstairs"
        assert event.dtstart == "1997-11-02"
        assert event.dtend == "1997-11-03T12:00:00Z"
        assert event.categories == ["ANNIVERSARY", "PERSONAL", "SPECIAL OCCASION"]
        assert event.rrule == "FREQ=YEARLY"
        assert event.created_at is None
        assert event.organizer is None

    def test_first_url_wins_and_keeps_colons(self):
        event = parse_ical_data(ev)
        assert event.registration_url == "https://example.com/first?a=b"

    def test_lf_line_endings(self):
        event = parse_ical_data(ev.replace("\r\n", "\n"))
        assert event.uid == "19970901T130000Z-123403@example.com"
        assert event.rrule == "FREQ=YEARLY"

    def test_folded_lines(self):
        data = "BEGIN:VEVENT\r\nSUMMARY:A very long\r\n  title\r\nEND:VEVENT"
        assert parse_ical_data(data).title == "A very long title"

    def test_properties_with_parameters_are_ignored(self):
        event = parse_ical_data("BEGIN:VEVENT\nDTSTART;TZID=Europe/Oslo:20250715T143000\nEND:VEVENT")
        assert event.dtstart is None

    def test_categories_split_on_every_comma(self):
        event = parse_ical_data("BEGIN:VEVENT\nCATEGORIES:a\\,b,c\nEND:VEVENT")
        assert event.categories == ["a\\", "b", "c"]

    def test_round_trip_uid_only(self):
        event = parse_ical_data(generate_ical_data(CalendarEvent(uid="only-uid")))
        assert event.uid == "only-uid"
        assert event.title == "Untitled Event"
        for name in (
            "description",
            "location",
            "dtstart",
            "dtend",
            "organizer",
            "categories",
            "registration_url",
            "rrule",
            "caldav_etag",
            "caldav_url",
        ):
            assert getattr(event, name) is None, name

    def test_round_trip_all_fields(self):
        original = CalendarEvent(
            uid="rt",
            title="Meet, greet; eat",
            description="line one\nline two",
            location="Room 1, floor 2",
            dtstart="2025-07-15T14:30:00Z",
            dtend="2025-07-15T16:00:00Z",
            created_at="2025-07-01T08:00:00Z",
            updated_at="2025-07-02T09:00:00Z",
            organizer="mailto:boss@example.com",
            categories=["music", "art"],
            registration_url="https://example.com/reg",
            rrule="FREQ=WEEKLY;COUNT=3",
        )
        assert parse_ical_data(generate_ical_data(original)) == original
