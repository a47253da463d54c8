"""
Value types passed between the codec, the XML layer and the clients.

None of these outlive a single client call except as a return value
owned by the caller.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Union

## An instant or a date as accepted by the iCal generator.  Strings are
## ISO-8601 ("2025-07-15T14:30:00Z", "2025-07-15").
DateLike = Union[str, datetime, date]


@dataclass
class CalendarEvent:
    """
    One calendar event (or series master).

    uid is the persistence identity; every other field is optional and
    stays None when it is absent on the wire.  caldav_etag and caldav_url
    are only set on events fetched from (or just written to) the server.
    """

    uid: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    dtstart: Optional[DateLike] = None
    dtend: Optional[DateLike] = None
    created_at: Optional[DateLike] = None
    updated_at: Optional[DateLike] = None
    organizer: Optional[str] = None
    categories: Optional[List[str]] = None
    registration_url: Optional[str] = None
    rrule: Optional[str] = None
    caldav_etag: Optional[str] = None
    caldav_url: Optional[str] = None

    def to_ical(self) -> str:
        from eventdav.lib.ical import generate_ical_data

        return generate_ical_data(self)

    @property
    def icalendar_instance(self):
        """
        The event as an ``icalendar.Calendar``, built from the wire text
        this library would send.  Changes to it are not reflected back.
        """
        import icalendar

        return icalendar.Calendar.from_ical(self.to_ical())


@dataclass
class EventFilters:
    """Time-range filter for calendar-query; either bound may be left out."""

    start: Optional[DateLike] = None
    end: Optional[DateLike] = None


class ChangeStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class Change:
    """
    One item in a sync-collection delta.

    The sync-collection REPORT does not tell a new resource from a
    changed one, so the parser reports everything that isn't deleted
    as MODIFIED.  ADDED exists for callers that diff against their own
    state.
    """

    href: str
    etag: Optional[str] = None
    status: ChangeStatus = ChangeStatus.MODIFIED


@dataclass
class SyncResult:
    """
    Outcome of one sync-collection call.  skipped is set when the server
    does not support the REPORT.  etag is kept for callers that compare
    result shapes; no code path here fills it in, it is always None.
    """

    success: bool
    sync_token: Optional[str] = None
    changes: List[Change] = field(default_factory=list)
    error: Optional[str] = None
    skipped: bool = False
    etag: Optional[str] = None
