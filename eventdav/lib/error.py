#!/usr/bin/env python
import logging
import os
from typing import Optional

## Environmental variables prepended with "PYTHON_EVENTDAV" are used for debug purposes,
## environmental variables prepended with "EVENTDAV_" are for connection parameters
## one of DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_EVENTDAV_DEBUGMODE", "PRODUCTION")

log = logging.getLogger("eventdav")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)


def errmsg(r) -> str:
    """Utility for formatting an error response to an error string"""
    return "%s %s" % (r.status, r.reason)


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class PropfindError(DAVError):
    pass


class ReportError(DAVError):
    pass


class PutError(DAVError):
    pass


class DeleteError(DAVError):
    pass


class ResponseError(DAVError):
    pass


class AlreadyExistsError(PutError):
    """
    A PUT with ``If-None-Match: *`` was refused with 412; there is
    already a resource at the url.
    """

    pass


class ConflictError(PutError):
    """
    The server refused a conditional update (412 Precondition Failed).

    local_etag is the ETag the client sent in If-Match, remote_etag is
    the ETag the server reported for its current version (if any).
    The conflict is never resolved by the library.
    """

    reason = "Event was modified by another process. Refresh and try again."

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        local_etag: Optional[str] = None,
        remote_etag: Optional[str] = None,
    ) -> None:
        super(ConflictError, self).__init__(url, reason)
        self.local_etag = local_etag
        self.remote_etag = remote_etag


class TransportError(DAVError):
    """The request never got a HTTP response (connection refused, reset, ...)"""

    pass


class RequestTimeoutError(TransportError):
    """The per-request deadline passed before a response arrived"""

    reason = "request timed out"
