"""
Calendar protocol operations combining request building and response parsing.

This class provides a high-level interface to the calendar operations while
remaining completely I/O-free.  The clients in eventdav.client and
eventdav.async_client execute the requests and feed the responses back.
"""

import logging
import uuid
from dataclasses import replace
from typing import List, Optional, Tuple

from eventdav.event import CalendarEvent, EventFilters, SyncResult
from eventdav.lib import error
from eventdav.lib.error import errmsg
from eventdav.lib.ical import format_datetime, generate_ical_data, parse_ical_data

from .types import DAVMethod, DAVRequest, DAVResponse
from .xml_builders import (
    build_calendar_query_body,
    build_propfind_body,
    build_sync_collection_body,
)
from .xml_parsers import (
    extract_hrefs_from_propfind,
    parse_calendar_query_response,
    parse_sync_collection_response,
    parse_sync_token_response,
)

log = logging.getLogger("eventdav")

XML_CONTENT_TYPE = "application/xml"
ICAL_CONTENT_TYPE = "text/calendar"

## Status codes meaning "this server doesn't do that REPORT"
QUERY_FALLBACK_STATUSES = (405, 501)
SYNC_UNSUPPORTED_STATUSES = (403, 405, 501)

LIST_PROPS = ["getcontenttype", "getetag", "displayname"]


class CalendarProtocol:
    """
    Sans-I/O protocol handler for one calendar collection.

    Builds requests and interprets responses without doing any I/O.
    The ``*_request`` methods return DAVRequest objects, the matching
    ``parse_*`` methods turn a DAVResponse into a result or raise a
    DAVError subclass.

    Example:
        protocol = CalendarProtocol("https://cal.example.com", "/cal/")
        request = protocol.get_event_request("abc")
        response = io.execute(request)
        event = protocol.parse_get_event(response, "abc")
    """

    def __init__(self, base_url: str, calendar_path: str, uid_domain: str) -> None:
        """
        Args:
            base_url: Scheme and host of the server, no trailing slash
            calendar_path: Path of the calendar collection, with slashes
                on both ends
            uid_domain: Right hand side of generated UIDs
        """
        self.base_url = base_url
        self.calendar_path = calendar_path
        self.uid_domain = uid_domain

    @property
    def collection_url(self) -> str:
        return f"{self.base_url}{self.calendar_path}"

    def event_url(self, uid: str) -> str:
        return f"{self.base_url}{self.calendar_path}{uid}.ics"

    def generate_uid(self) -> str:
        return f"{uuid.uuid1()}@{self.uid_domain}"

    @staticmethod
    def uid_from_href(href: str) -> Optional[str]:
        """``/cal/abc.ics`` -> ``abc``"""
        name = href.rstrip("/").split("/")[-1]
        if name.endswith(".ics"):
            name = name[: -len(".ics")]
        return name or None

    def _xml_request(
        self, method: DAVMethod, body: bytes, depth: int
    ) -> DAVRequest:
        return DAVRequest(
            method=method,
            url=self.collection_url,
            headers={"Content-Type": XML_CONTENT_TYPE, "Depth": str(depth)},
            body=body,
        )

    # =========================================================================
    # Single event operations
    # =========================================================================

    def create_event_request(self, event: CalendarEvent) -> Tuple[str, DAVRequest]:
        """
        Build the PUT for a new event.  A UID is generated if the event
        has none.

        Returns:
            (uid, request)
        """
        uid = event.uid or self.generate_uid()
        data = generate_ical_data(replace(event, uid=uid))
        request = DAVRequest(
            method=DAVMethod.PUT,
            url=self.event_url(uid),
            headers={"Content-Type": ICAL_CONTENT_TYPE, "If-None-Match": "*"},
            body=data.encode("utf-8"),
        )
        return uid, request

    def parse_create_event(self, response: DAVResponse, uid: str) -> Optional[str]:
        """
        Returns:
            The ETag of the new resource, if the server sent one

        Raises:
            AlreadyExistsError: 412, there is already an event with this UID
            PutError: any other non-2xx status
        """
        if response.status == 412:
            raise error.AlreadyExistsError(
                self.event_url(uid), f"Calendar event with UID {uid} already exists"
            )
        if not response.ok:
            raise error.PutError(
                self.event_url(uid),
                f"Failed to create calendar event: {response.reason}",
            )
        return response.header("ETag") or None

    def update_event_request(self, uid: str, event: CalendarEvent) -> DAVRequest:
        """PUT the event; conditional on event.caldav_etag if it is set."""
        data = generate_ical_data(replace(event, uid=uid))
        headers = {"Content-Type": ICAL_CONTENT_TYPE}
        if event.caldav_etag:
            headers["If-Match"] = event.caldav_etag
        return DAVRequest(
            method=DAVMethod.PUT,
            url=self.event_url(uid),
            headers=headers,
            body=data.encode("utf-8"),
        )

    def parse_update_event(
        self, response: DAVResponse, uid: str, local_etag: Optional[str] = None
    ) -> Optional[str]:
        """
        Returns:
            The new ETag, if the server sent one

        Raises:
            ConflictError: 412, someone else changed the event.  Carries
                local_etag and the ETag from the response.
            PutError: any other non-2xx status
        """
        if response.status == 412:
            raise error.ConflictError(
                self.event_url(uid),
                local_etag=local_etag,
                remote_etag=response.header("ETag") or None,
            )
        if not response.ok:
            raise error.PutError(
                self.event_url(uid),
                f"Failed to update calendar event: {response.reason}",
            )
        return response.header("ETag") or None

    def delete_event_request(self, uid: str) -> DAVRequest:
        return DAVRequest(method=DAVMethod.DELETE, url=self.event_url(uid))

    def parse_delete_event(self, response: DAVResponse, uid: str) -> None:
        """A 404 is fine - the event is gone either way."""
        if not response.ok and response.status != 404:
            raise error.DeleteError(
                self.event_url(uid),
                f"Failed to delete calendar event: {response.reason}",
            )

    def get_event_request(self, uid: str) -> DAVRequest:
        return DAVRequest(method=DAVMethod.GET, url=self.event_url(uid))

    def parse_get_event(
        self, response: DAVResponse, uid: str
    ) -> Optional[CalendarEvent]:
        """
        Returns:
            The event with caldav_etag and caldav_url set, or None on 404
        """
        if response.status == 404:
            return None
        if not response.ok:
            raise error.ResponseError(
                self.event_url(uid),
                f"Failed to get calendar event: {response.reason}",
            )
        event = parse_ical_data(response.text)
        etag = response.header("ETag")
        if etag:
            event.caldav_etag = etag
        event.caldav_url = self.event_url(uid)
        return event

    def etag_request(self, uid: str) -> DAVRequest:
        return DAVRequest(method=DAVMethod.HEAD, url=self.event_url(uid))

    def parse_etag(self, response: DAVResponse) -> Optional[str]:
        if not response.ok:
            return None
        return response.header("ETag")

    # =========================================================================
    # Collection operations
    # =========================================================================

    def list_events_request(self) -> DAVRequest:
        return self._xml_request(
            DAVMethod.PROPFIND, build_propfind_body(LIST_PROPS), depth=1
        )

    def parse_list_events(self, response: DAVResponse) -> List[str]:
        """
        Returns:
            hrefs of the .ics resources in the collection, in document order
        """
        if not response.ok:
            raise error.PropfindError(
                self.collection_url,
                f"Failed to list calendar events: {response.reason}",
            )
        return extract_hrefs_from_propfind(response.body)

    def query_events_request(self, filters: Optional[EventFilters] = None) -> DAVRequest:
        return self._xml_request(
            DAVMethod.REPORT,
            build_calendar_query_body(filters, format_datetime),
            depth=1,
        )

    def query_needs_fallback(self, response: DAVResponse) -> bool:
        """True if the server does not support calendar-query"""
        return response.status in QUERY_FALLBACK_STATUSES

    def parse_query_events(self, response: DAVResponse) -> List[CalendarEvent]:
        if not response.ok:
            raise error.ReportError(
                self.collection_url, f"CalDAV REPORT failed: {response.reason}"
            )
        return parse_calendar_query_response(response.body, self.base_url)

    def sync_token_request(self) -> DAVRequest:
        return self._xml_request(
            DAVMethod.PROPFIND, build_propfind_body(["sync-token"]), depth=0
        )

    def parse_sync_token(self, response: DAVResponse) -> Optional[str]:
        if not response.ok:
            log.debug("sync-token PROPFIND got %s" % errmsg(response))
            return None
        return parse_sync_token_response(response.body)

    def sync_collection_request(self, sync_token: Optional[str] = None) -> DAVRequest:
        return self._xml_request(
            DAVMethod.REPORT, build_sync_collection_body(sync_token), depth=0
        )

    def parse_sync_collection(self, response: DAVResponse) -> SyncResult:
        """Never raises; failures are reported in the SyncResult."""
        if response.status in SYNC_UNSUPPORTED_STATUSES:
            log.info(
                "sync-collection not supported by %s (%s)"
                % (self.collection_url, errmsg(response))
            )
            return SyncResult(
                success=False,
                skipped=True,
                error="sync-collection not supported by server",
            )
        if not response.ok:
            return SyncResult(success=False, error=f"Sync failed: {response.reason}")
        return parse_sync_collection_response(response.body)
