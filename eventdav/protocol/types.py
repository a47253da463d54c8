"""
Core protocol types for the sans-I/O calendar client.

These dataclasses represent HTTP requests and responses at the protocol level,
independent of any I/O implementation, plus the normalized form of a
WebDAV multistatus document.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class DAVMethod(Enum):
    """HTTP methods used against the calendar collection."""

    GET = "GET"
    HEAD = "HEAD"
    PUT = "PUT"
    DELETE = "DELETE"
    PROPFIND = "PROPFIND"
    REPORT = "REPORT"


@dataclass(frozen=True)
class DAVRequest:
    """
    Represents an HTTP request to be made.

    This is a pure data structure with no I/O. It describes what request
    should be made, but does not make it.

    Attributes:
        method: HTTP method (GET, PUT, PROPFIND, etc.)
        url: Full URL for the request
        headers: HTTP headers as dict
        body: Request body as bytes (optional)
    """

    method: DAVMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


@dataclass(frozen=True)
class DAVResponse:
    """
    Represents an HTTP response received.

    Attributes:
        status: HTTP status code
        headers: HTTP headers as dict
        body: Response body as bytes
        reason_phrase: Status text as sent by the server, if known
    """

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason_phrase: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True if status indicates success (2xx)."""
        return 200 <= self.status < 300

    @property
    def reason(self) -> str:
        """The server's status text, or a standard phrase for the status code."""
        if self.reason_phrase:
            return self.reason_phrase
        reasons = {
            200: "OK",
            201: "Created",
            204: "No Content",
            207: "Multi-Status",
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            405: "Method Not Allowed",
            409: "Conflict",
            412: "Precondition Failed",
            415: "Unsupported Media Type",
            500: "Internal Server Error",
            501: "Not Implemented",
            502: "Bad Gateway",
            503: "Service Unavailable",
        }
        return reasons.get(self.status, "Unknown")

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup"""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Outcome of a parse step: either a value or an error message.

    Used inside the XML layer so that a malformed server response never
    surfaces as an exception.
    """

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult[T]":
        return cls(error=error)


@dataclass
class PropStat:
    """
    One DAV:propstat.  props holds one dict per DAV:prop element, keyed
    by the local name of each property (namespace dropped).
    """

    status: str = ""
    props: List[Dict[str, Optional[str]]] = field(default_factory=list)


@dataclass
class ResponseEntry:
    """One DAV:response of a multistatus document."""

    href: Optional[str] = None
    status: Optional[str] = None
    propstats: List[PropStat] = field(default_factory=list)


@dataclass
class Multistatus:
    """
    A 207 Multi-Status body, normalized.

    responses, propstats and props are always lists, regardless of how
    many elements the document had.
    """

    responses: List[ResponseEntry] = field(default_factory=list)
    sync_token: Optional[str] = None
