"""
Synchronous I/O implementation using the requests library.
"""

import logging
import socket
import threading
import time
from typing import Optional

import requests

from eventdav.lib import error
from eventdav.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger("eventdav")

CHUNK_SIZE = 8192


def _abort(response: requests.Response, fired: threading.Event) -> None:
    """
    Shut down the socket under a streaming response, so that a read
    blocked on it in another thread returns at once.
    """
    fired.set()
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        ## already closed by the peer
        log.debug("could not shut down socket: %s" % e)


class SyncIO:
    """
    Synchronous I/O shell using the requests library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.

    The timeout given to execute() is a deadline for the whole
    exchange, body included: the body is streamed and the connection
    is cut when the deadline passes.

    Example:
        io = SyncIO()
        request = protocol.list_events_request()
        response = io.execute(request, timeout=3.0)
        hrefs = protocol.parse_list_events(response)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = 30.0,
    ):
        """
        Initialize the sync I/O handler.

        Args:
            session: Existing requests Session to use (creates new if None)
            timeout: Default deadline in seconds for a request
        """
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout

    def execute(
        self, request: DAVRequest, timeout: Optional[float] = None
    ) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Args:
            request: The request to execute
            timeout: Overrides the default deadline for this request

        Returns:
            DAVResponse with status, headers, and body

        Raises:
            RequestTimeoutError: no complete response within the timeout
            TransportError: any other failure to get a response
        """
        if timeout is None:
            timeout = self.timeout
        deadline = None if timeout is None else time.monotonic() + timeout
        log.debug("%s %s" % (request.method.value, request.url))

        try:
            response = self.session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
                timeout=timeout,
                stream=True,
            )
        except requests.exceptions.Timeout as e:
            raise error.RequestTimeoutError(request.url, str(e)) from e
        except requests.exceptions.RequestException as e:
            raise error.TransportError(request.url, str(e)) from e

        try:
            body = self._read_body(response, request.url, deadline)
        finally:
            response.close()

        log.debug("server responded with %i %s" % (response.status_code, response.reason))
        return DAVResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=body,
            reason_phrase=response.reason,
        )

    def _read_body(
        self, response: requests.Response, url: str, deadline: Optional[float]
    ) -> bytes:
        if deadline is None:
            try:
                return response.content
            except requests.exceptions.RequestException as e:
                raise error.TransportError(url, str(e)) from e

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise error.RequestTimeoutError(url)

        fired = threading.Event()
        watchdog = threading.Timer(remaining, _abort, (response, fired))
        watchdog.daemon = True
        watchdog.start()

        chunks = []
        try:
            for chunk in response.iter_content(CHUNK_SIZE):
                chunks.append(chunk)
                if time.monotonic() >= deadline:
                    raise error.RequestTimeoutError(url)
        except requests.exceptions.RequestException as e:
            if fired.is_set():
                raise error.RequestTimeoutError(url) from e
            raise error.TransportError(url, str(e)) from e
        finally:
            watchdog.cancel()

        ## a close-delimited body cut by the watchdog ends without an error
        if fired.is_set():
            raise error.RequestTimeoutError(url)
        return b"".join(chunks)

    def close(self) -> None:
        """Close the session if we created it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self) -> "SyncIO":
        """Context manager entry."""
        return self

    def __exit__(self, *args) -> None:
        """Context manager exit."""
        self.close()
