"""
Pure functions for building WebDAV/CalDAV XML request bodies.

All functions in this module are pure - they take data in and return XML out,
with no side effects or I/O.
"""
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional

from eventdav.elements import cdav
from eventdav.elements import dav
from eventdav.elements.base import BaseElement
from eventdav.event import DateLike
from eventdav.event import EventFilters
from eventdav.lib.ical import format_datetime

## Open ends of a time-range filter are filled in with these
TIME_RANGE_FLOOR = "19700101T000000Z"
TIME_RANGE_CEILING = "20991231T235959Z"


def build_propfind_body(props: Optional[List[str]] = None) -> bytes:
    """
    Build PROPFIND request body XML.

    Args:
        props: List of property names to retrieve.  Unknown names are
               left out.

    Returns:
        UTF-8 encoded XML bytes
    """
    prop_elements: List[BaseElement] = []
    for prop_name in props or []:
        prop_element = _prop_name_to_element(prop_name)
        if prop_element is not None:
            prop_elements.append(prop_element)
    propfind = dav.Propfind() + (dav.Prop() + prop_elements)
    return propfind.tostring()


def build_calendar_query_body(
    filters: Optional[EventFilters] = None,
    formatter: Callable[[DateLike], str] = format_datetime,
) -> bytes:
    """
    Build calendar-query REPORT request body for VEVENTs.

    A time-range filter is only added when the filters have a start or
    an end; a missing bound becomes TIME_RANGE_FLOOR / TIME_RANGE_CEILING.

    Args:
        filters: Optional time range
        formatter: Renders a bound as an iCalendar UTC date-time

    Returns:
        UTF-8 encoded XML bytes
    """
    prop = dav.Prop() + [dav.GetEtag(), cdav.CalendarData()]

    vevent = cdav.CompFilter("VEVENT")
    if filters is not None and (filters.start or filters.end):
        start = formatter(filters.start) if filters.start else TIME_RANGE_FLOOR
        end = formatter(filters.end) if filters.end else TIME_RANGE_CEILING
        vevent += cdav.TimeRange(start, end)

    vcalendar = cdav.CompFilter("VCALENDAR") + vevent
    root = cdav.CalendarQuery() + [prop, cdav.Filter() + vcalendar]
    return root.tostring()


def build_sync_collection_body(sync_token: Optional[str] = None) -> bytes:
    """
    Build sync-collection REPORT request body (RFC 6578).

    Args:
        sync_token: Token from the previous sync.  Without one, an empty
                    sync-token element asks for an initial sync.

    Returns:
        UTF-8 encoded XML bytes
    """
    sync_collection = dav.SyncCollection() + [
        dav.SyncToken(sync_token or None),
        dav.SyncLevel("1"),
        dav.Prop() + dav.GetEtag(),
    ]
    return sync_collection.tostring()


def _prop_name_to_element(name: str) -> Optional[BaseElement]:
    """
    Convert property name string to element object.

    Args:
        name: Property name (case-insensitive, _ and - are equivalent)

    Returns:
        BaseElement instance or None if unknown property
    """
    props: Dict[str, type] = {
        "displayname": dav.DisplayName,
        "getetag": dav.GetEtag,
        "getcontenttype": dav.GetContentType,
        "sync-token": dav.SyncToken,
        "calendar-data": cdav.CalendarData,
    }
    cls = props.get(name.lower().replace("_", "-"))
    if cls is None:
        return None
    return cls()
