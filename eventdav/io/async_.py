"""
aiohttp transport for AsyncCalendarClient.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from eventdav.lib import error
from eventdav.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger("eventdav")


class AsyncIO:
    """
    Sends DAVRequest objects with an aiohttp ClientSession.

    The session is created lazily on the first request, since
    aiohttp wants it created inside a running event loop.  Per-operation
    deadlines are the client's business; ``timeout`` here is only the
    backstop for requests the client does not put a deadline on.

        async with AsyncIO() as io:
            response = await io.execute(protocol.get_event_request(uid))
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
    ):
        ## a session handed in is left open by close()
        self._session = session
        self._owns_session = session is None
        self._client_timeout = aiohttp.ClientTimeout(total=timeout)

    def _session_for_request(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._client_timeout)
            self._owns_session = True
        return self._session

    async def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Raises:
            RequestTimeoutError: the session timeout passed
            TransportError: connection refused, reset, bad URL, ...
        """
        session = self._session_for_request()
        log.debug("%s %s" % (request.method.value, request.url))

        try:
            async with session.request(
                request.method.value,
                request.url,
                headers=request.headers,
                data=request.body,
            ) as http_response:
                body = await http_response.read()
        except asyncio.TimeoutError as e:
            raise error.RequestTimeoutError(request.url) from e
        except aiohttp.ClientError as e:
            raise error.TransportError(request.url, str(e)) from e

        log.debug(
            "%s %s -> %i %s"
            % (
                request.method.value,
                request.url,
                http_response.status,
                http_response.reason,
            )
        )
        return DAVResponse(
            status=http_response.status,
            headers=dict(http_response.headers),
            body=body,
            reason_phrase=http_response.reason,
        )

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "AsyncIO":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
