"""
Abstract I/O protocol definition.

This module defines the interface that all I/O implementations must follow.
"""

from typing import Optional, Protocol, runtime_checkable

from eventdav.protocol.types import DAVRequest, DAVResponse


@runtime_checkable
class SyncIOProtocol(Protocol):
    """
    Protocol defining the synchronous I/O interface.

    Implementations must provide a way to execute DAVRequest objects
    and return DAVResponse objects synchronously.  A request that does
    not complete within ``timeout`` seconds must raise
    eventdav.lib.error.RequestTimeoutError; other failures to get a
    response should raise eventdav.lib.error.TransportError.
    """

    def execute(
        self, request: DAVRequest, timeout: Optional[float] = None
    ) -> DAVResponse:
        """
        Execute a request and return the response.

        Args:
            request: The DAVRequest to execute
            timeout: Deadline in seconds for this request only

        Returns:
            DAVResponse with status, headers, and body
        """
        ...

    def close(self) -> None:
        """Close any resources (e.g., HTTP session)."""
        ...


@runtime_checkable
class AsyncIOProtocol(Protocol):
    """
    Protocol defining the asynchronous I/O interface.

    The async client enforces its per-operation deadlines itself by
    cancelling the ``execute`` coroutine, so implementations need to be
    cancellation safe.
    """

    async def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a request and return the response.

        Args:
            request: The DAVRequest to execute

        Returns:
            DAVResponse with status, headers, and body
        """
        ...

    async def close(self) -> None:
        """Close any resources (e.g., HTTP session)."""
        ...
