"""
Asynchronous client for a single CalDAV calendar collection.

Same operations and semantics as eventdav.client.CalendarClient.  The
per-operation deadlines are enforced here with asyncio.wait_for: the
in-flight request is cancelled when the deadline passes, and the timer
is gone once the request finishes either way.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from eventdav.client import _pick
from eventdav.config import (
    DEFAULT_BASE_URL,
    DEFAULT_CALENDAR_PATH,
    DEFAULT_LIST_TIMEOUT,
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_SYNC_TIMEOUT,
    DEFAULT_UID_DOMAIN,
    ClientConfig,
)
from eventdav.event import CalendarEvent, EventFilters, SyncResult
from eventdav.io import AsyncIO, AsyncIOProtocol
from eventdav.lib import error
from eventdav.protocol import CalendarProtocol, DAVRequest, DAVResponse

log = logging.getLogger("eventdav")

TIMEOUT_ERRORS = (error.RequestTimeoutError, asyncio.TimeoutError, TimeoutError)


class AsyncCalendarClient:
    """
    Async variant of CalendarClient.

    Example:
        async with AsyncCalendarClient("https://cal.example.com") as client:
            result = await client.sync_collection(token)
            for change in result.changes:
                ...
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        calendar_path: Optional[str] = None,
        list_timeout: Optional[float] = None,
        query_timeout: Optional[float] = None,
        sync_timeout: Optional[float] = None,
        io: Optional[AsyncIOProtocol] = None,
    ) -> None:
        config = config or ClientConfig()
        self.base_url = _pick(base_url, config.base_url, DEFAULT_BASE_URL)
        self.calendar_path = _pick(
            calendar_path, config.calendar_path, DEFAULT_CALENDAR_PATH
        )
        self.list_timeout = _pick(list_timeout, config.list_timeout, DEFAULT_LIST_TIMEOUT)
        self.query_timeout = _pick(
            query_timeout, config.query_timeout, DEFAULT_QUERY_TIMEOUT
        )
        self.sync_timeout = _pick(sync_timeout, config.sync_timeout, DEFAULT_SYNC_TIMEOUT)

        self.protocol = CalendarProtocol(
            base_url=self.base_url,
            calendar_path=self.calendar_path,
            uid_domain=_pick(config.uid_domain, DEFAULT_UID_DOMAIN),
        )
        self.io = io if io is not None else AsyncIO()

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.io.close()

    async def __aenter__(self) -> "AsyncCalendarClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def _execute(
        self, request: DAVRequest, timeout: Optional[float] = None
    ) -> DAVResponse:
        if timeout is None:
            return await self.io.execute(request)
        return await asyncio.wait_for(self.io.execute(request), timeout)

    # CRUD

    async def create_event(self, event: CalendarEvent) -> str:
        """Store a new event, see CalendarClient.create_event"""
        uid, _ = await self.create_event_with_etag(event)
        return uid

    async def create_event_with_etag(
        self, event: CalendarEvent
    ) -> Tuple[str, Optional[str]]:
        uid, request = self.protocol.create_event_request(event)
        response = await self._execute(request)
        etag = self.protocol.parse_create_event(response, uid)
        log.debug("created event %s, etag %s" % (uid, etag))
        return uid, etag

    async def update_event(self, uid: str, event: CalendarEvent) -> Optional[str]:
        """Overwrite the event, see CalendarClient.update_event"""
        request = self.protocol.update_event_request(uid, event)
        response = await self._execute(request)
        return self.protocol.parse_update_event(response, uid, event.caldav_etag)

    async def delete_event(self, uid: str) -> None:
        response = await self._execute(self.protocol.delete_event_request(uid))
        self.protocol.parse_delete_event(response, uid)

    async def get_event(self, uid: str) -> Optional[CalendarEvent]:
        response = await self._execute(self.protocol.get_event_request(uid))
        return self.protocol.parse_get_event(response, uid)

    async def get_etag(self, uid: str) -> Optional[str]:
        response = await self._execute(self.protocol.etag_request(uid))
        return self.protocol.parse_etag(response)

    # List / Query

    async def list_events(self) -> List[CalendarEvent]:
        """
        All events in the collection.  The GETs are done one after the
        other, in href order; failing ones are skipped.
        """
        try:
            response = await self._execute(
                self.protocol.list_events_request(), timeout=self.list_timeout
            )
        except TIMEOUT_ERRORS:
            log.warning(
                "listing %s timed out after %ss"
                % (self.protocol.collection_url, self.list_timeout)
            )
            return []

        events = []
        for href in self.protocol.parse_list_events(response):
            uid = self.protocol.uid_from_href(href)
            if not uid:
                continue
            try:
                event = await self.get_event(uid)
            except error.DAVError as e:
                log.warning("skipping %s: %s" % (href, e))
                continue
            if event:
                events.append(event)
        return events

    async def query_events(
        self, filters: Optional[EventFilters] = None
    ) -> List[CalendarEvent]:
        """calendar-query REPORT, falling back to list_events on 405/501"""
        try:
            response = await self._execute(
                self.protocol.query_events_request(filters), timeout=self.query_timeout
            )
        except TIMEOUT_ERRORS:
            log.warning(
                "calendar-query on %s timed out after %ss"
                % (self.protocol.collection_url, self.query_timeout)
            )
            return []

        if self.protocol.query_needs_fallback(response):
            log.info(
                "calendar-query not supported (%i), falling back to listing"
                % response.status
            )
            return await self.list_events()
        return self.protocol.parse_query_events(response)

    # Sync (RFC 6578)

    async def get_sync_token(self) -> Optional[str]:
        response = await self._execute(self.protocol.sync_token_request())
        return self.protocol.parse_sync_token(response)

    async def sync_collection(self, sync_token: Optional[str] = None) -> SyncResult:
        """Changes since sync_token.  Never raises, see CalendarClient.sync_collection"""
        try:
            response = await self._execute(
                self.protocol.sync_collection_request(sync_token),
                timeout=self.sync_timeout,
            )
        except TIMEOUT_ERRORS:
            return SyncResult(success=False, error="Sync timeout")
        except error.DAVError as e:
            return SyncResult(success=False, error=e.reason)
        except Exception as e:
            log.error("sync-collection failed", exc_info=True)
            return SyncResult(success=False, error=str(e))
        return self.protocol.parse_sync_collection(response)
