"""
Synchronous client for a single CalDAV calendar collection.

The client is stateless apart from the configuration captured at
construction time; every method is one request/response exchange (or,
for list_events, one PROPFIND plus one GET per event).  Nothing is
retried.
"""

import logging
from typing import List, Optional, Tuple

from eventdav.config import (
    DEFAULT_BASE_URL,
    DEFAULT_CALENDAR_PATH,
    DEFAULT_LIST_TIMEOUT,
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_SYNC_TIMEOUT,
    DEFAULT_UID_DOMAIN,
    ClientConfig,
    read_config,
)
from eventdav.event import CalendarEvent, EventFilters, SyncResult
from eventdav.io import SyncIO, SyncIOProtocol
from eventdav.lib import error
from eventdav.protocol import CalendarProtocol, DAVRequest, DAVResponse

log = logging.getLogger("eventdav")

TIMEOUT_ERRORS = (error.RequestTimeoutError, TimeoutError)


def _pick(*values):
    """first value that is not None"""
    for value in values:
        if value is not None:
            return value
    return None


class CalendarClient:
    """
    CRUD, listing, querying and RFC 6578 sync against one calendar
    collection.

    Example:
        with CalendarClient("https://cal.example.com") as client:
            uid = client.create_event(CalendarEvent(title="Standup"))
            event = client.get_event(uid)
            event.title = "Daily standup"
            client.update_event(uid, event)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        calendar_path: Optional[str] = None,
        list_timeout: Optional[float] = None,
        query_timeout: Optional[float] = None,
        sync_timeout: Optional[float] = None,
        io: Optional[SyncIOProtocol] = None,
    ) -> None:
        """
        Args:
            base_url: Server URL, like ``http://xandikos:8000``
            config: Settings used where no explicit argument is given
            calendar_path: Path of the collection, like ``/user/calendars/calendar/``
            list_timeout, query_timeout, sync_timeout: Deadlines in
                seconds for list_events, query_events and sync_collection
            io: Transport; defaults to a requests based SyncIO
        """
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
        self.io = io if io is not None else SyncIO()

    def close(self) -> None:
        """Close the HTTP session."""
        self.io.close()

    def __enter__(self) -> "CalendarClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _execute(
        self, request: DAVRequest, timeout: Optional[float] = None
    ) -> DAVResponse:
        if timeout is None:
            return self.io.execute(request)
        return self.io.execute(request, timeout=timeout)

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_event(self, event: CalendarEvent) -> str:
        """
        Store a new event.  Fails if there already is an event with
        the same UID.

        Returns:
            The UID (generated if the event had none)

        Raises:
            AlreadyExistsError, PutError
        """
        return self.create_event_with_etag(event)[0]

    def create_event_with_etag(
        self, event: CalendarEvent
    ) -> Tuple[str, Optional[str]]:
        """
        Like create_event.

        Returns:
            (uid, etag); etag is None if the server didn't send one
        """
        uid, request = self.protocol.create_event_request(event)
        response = self._execute(request)
        etag = self.protocol.parse_create_event(response, uid)
        log.debug("created event %s, etag %s" % (uid, etag))
        return uid, etag

    def update_event(self, uid: str, event: CalendarEvent) -> Optional[str]:
        """
        Overwrite the event.  If event.caldav_etag is set, the update is
        conditional (If-Match) and fails if the event was changed on the
        server in the meantime.

        Returns:
            The new ETag, or None

        Raises:
            ConflictError: the ETag didn't match
            PutError: any other failure
        """
        request = self.protocol.update_event_request(uid, event)
        response = self._execute(request)
        return self.protocol.parse_update_event(response, uid, event.caldav_etag)

    def delete_event(self, uid: str) -> None:
        """Delete the event.  Deleting a non-existing event is not an error."""
        response = self._execute(self.protocol.delete_event_request(uid))
        self.protocol.parse_delete_event(response, uid)

    def get_event(self, uid: str) -> Optional[CalendarEvent]:
        """
        Returns:
            The event, with caldav_etag and caldav_url, or None if it
            doesn't exist
        """
        response = self._execute(self.protocol.get_event_request(uid))
        return self.protocol.parse_get_event(response, uid)

    def get_etag(self, uid: str) -> Optional[str]:
        """The current ETag of an event (HEAD), or None"""
        response = self._execute(self.protocol.etag_request(uid))
        return self.protocol.parse_etag(response)

    # =========================================================================
    # List / Query
    # =========================================================================

    def list_events(self) -> List[CalendarEvent]:
        """
        All events in the collection: a PROPFIND for the hrefs, then a
        GET for each event, one at a time.  Events that can't be fetched
        are skipped.

        Returns:
            The events, or an empty list if the PROPFIND timed out
        """
        try:
            response = self._execute(
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
                event = self.get_event(uid)
            except error.DAVError as e:
                log.warning("skipping %s: %s" % (href, e))
                continue
            if event:
                events.append(event)
        return events

    def query_events(self, filters: Optional[EventFilters] = None) -> List[CalendarEvent]:
        """
        Search with a calendar-query REPORT, optionally limited to a
        time range.  Falls back to list_events (without filtering) if
        the server doesn't support the REPORT.

        Returns:
            The events, or an empty list if the REPORT timed out

        Raises:
            ReportError: the server refused the REPORT
        """
        try:
            response = self._execute(
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
            return self.list_events()
        return self.protocol.parse_query_events(response)

    # =========================================================================
    # Sync (RFC 6578)
    # =========================================================================

    def get_sync_token(self) -> Optional[str]:
        """The collection's current sync-token, or None"""
        response = self._execute(self.protocol.sync_token_request())
        return self.protocol.parse_sync_token(response)

    def sync_collection(self, sync_token: Optional[str] = None) -> SyncResult:
        """
        Changes since sync_token (everything, without a token).

        Never raises.  When the server can't do sync-collection, the
        result has skipped=True; the caller should fall back to a full
        listing.  Storing the returned sync_token is up to the caller.
        """
        try:
            response = self._execute(
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


def get_client(
    config_file: Optional[str] = None,
    environment: bool = True,
    **kwargs,
) -> CalendarClient:
    """
    This function will yield a CalendarClient object.  It will not try
    to connect.  It will read configuration from various sources,
    dependent on the parameters given, in this order:

    * Keyword arguments, passed on to CalendarClient
    * Environment variables prepended with ``EVENTDAV_``, like
      ``EVENTDAV_BASE_URL`` or ``EVENTDAV_SYNC_TIMEOUT``
    * The JSON configuration file (see eventdav.config.read_config)
    """
    config = read_config(config_file) or ClientConfig()
    if environment:
        config = config.merged(ClientConfig.from_env())
    return CalendarClient(config=config, **kwargs)
