"""
Sans-I/O calendar protocol implementation.

This module provides protocol-level operations without any I/O.
It builds requests and parses responses as pure data transformations.

The protocol layer is organized into:
- types: Core data structures (DAVRequest, DAVResponse, ParseResult, Multistatus)
- xml_builders: Pure functions to build XML request bodies
- xml_parsers: Pure functions to parse XML response bodies
- operations: CalendarProtocol class combining builders and parsers

Example usage:

    from eventdav.protocol import CalendarProtocol

    protocol = CalendarProtocol(
        base_url="https://cal.example.com",
        calendar_path="/calendars/user/work/",
        uid_domain="example.com",
    )

    # Build a request (no I/O)
    request = protocol.list_events_request()

    # Execute via your preferred I/O (sync, async, or mock)
    response = your_http_client.execute(request)

    # Parse response (no I/O)
    hrefs = protocol.parse_list_events(response)
"""

from .types import (
    DAVMethod,
    DAVRequest,
    DAVResponse,
    Multistatus,
    ParseResult,
    PropStat,
    ResponseEntry,
)
from .xml_builders import (
    TIME_RANGE_CEILING,
    TIME_RANGE_FLOOR,
    build_calendar_query_body,
    build_propfind_body,
    build_sync_collection_body,
)
from .xml_parsers import (
    extract_hrefs_from_propfind,
    parse_calendar_query_response,
    parse_multistatus,
    parse_sync_collection_response,
    parse_sync_token_response,
)
from .operations import CalendarProtocol

__all__ = [
    # Request/Response
    "DAVMethod",
    "DAVRequest",
    "DAVResponse",
    # Parse results
    "Multistatus",
    "ParseResult",
    "PropStat",
    "ResponseEntry",
    # XML Builders
    "TIME_RANGE_CEILING",
    "TIME_RANGE_FLOOR",
    "build_calendar_query_body",
    "build_propfind_body",
    "build_sync_collection_body",
    # XML Parsers
    "extract_hrefs_from_propfind",
    "parse_calendar_query_response",
    "parse_multistatus",
    "parse_sync_collection_response",
    "parse_sync_token_response",
    # Protocol
    "CalendarProtocol",
]
