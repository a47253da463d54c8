"""
Pure functions for parsing WebDAV multistatus responses.

All functions in this module are pure - they take XML in and return
structured data out, with no side effects or I/O.  Elements are matched
on their local name, so ``D:href``, ``d:href`` and ``href`` are all the
same thing.  Nothing in here raises on a bad response body; failures
come back as empty results or as a failed SyncResult.
"""

import logging
import re
from typing import List, Optional, Union

from lxml import etree
from lxml.etree import _Element

from eventdav.event import CalendarEvent, Change, ChangeStatus, SyncResult
from eventdav.lib.ical import parse_ical_data

from .types import Multistatus, ParseResult, PropStat, ResponseEntry

log = logging.getLogger("eventdav")

_HREF_RE = re.compile(r"<(?:[\w.-]+:)?href>([^<]+\.ics)</(?:[\w.-]+:)?href>")

Body = Union[str, bytes]


def _localname(elem: _Element) -> Optional[str]:
    ## comments and processing instructions have a non-string tag
    if not isinstance(elem.tag, str):
        return None
    return etree.QName(elem).localname


def _text(elem: _Element) -> str:
    return "".join(elem.itertext()).strip()


def _parse_document(body: Body) -> ParseResult[_Element]:
    """Parse the raw body into an lxml tree"""
    if isinstance(body, str):
        body = body.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        tree = etree.fromstring(body, parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        return ParseResult.failure("malformed XML: %s" % e)
    if tree is None:
        return ParseResult.failure("empty document")
    return ParseResult.success(tree)


def _strip_to_multistatus(tree: _Element) -> Optional[_Element]:
    """
    Find the multistatus element.

    The general format is:
        <xml><multistatus>
            <response>...</response>
            <response>...</response>
        </multistatus></xml>

    but the xml wrapper is usually missing.
    """
    if _localname(tree) == "multistatus":
        return tree
    if _localname(tree) == "xml" and len(tree) > 0 and _localname(tree[0]) == "multistatus":
        return tree[0]
    return None


def _parse_propstat(elem: _Element) -> PropStat:
    propstat = PropStat()
    for child in elem:
        name = _localname(child)
        if name == "status":
            propstat.status = _text(child)
        elif name == "prop":
            propstat.props.append({_localname(p): _text(p) for p in child if _localname(p)})
    return propstat


def _parse_response(elem: _Element) -> ResponseEntry:
    entry = ResponseEntry()
    for child in elem:
        name = _localname(child)
        if name == "href":
            entry.href = _text(child)
        elif name == "status":
            entry.status = _text(child)
        elif name == "propstat":
            entry.propstats.append(_parse_propstat(child))
    return entry


def _to_multistatus(tree: _Element) -> ParseResult[Multistatus]:
    root = _strip_to_multistatus(tree)
    if root is None:
        return ParseResult.failure("no multistatus root element")

    result = Multistatus()
    for child in root:
        name = _localname(child)
        if name == "response":
            result.responses.append(_parse_response(child))
        elif name == "sync-token":
            result.sync_token = _text(child) or None
    return ParseResult.success(result)


def parse_multistatus(body: Body) -> ParseResult[Multistatus]:
    """
    Parse a 207 Multi-Status body into the normalized Multistatus tree.

    Returns:
        ParseResult holding the Multistatus, or the reason it could not
        be parsed
    """
    document = _parse_document(body)
    if not document.ok:
        return ParseResult.failure(document.error)
    return _to_multistatus(document.value)


def extract_hrefs_from_propfind(body: Body) -> List[str]:
    """
    Collect the hrefs of all ``.ics`` resources in a PROPFIND response,
    in document order.

    If the body is not well-formed XML, the hrefs are scraped with a
    regular expression instead.
    """
    document = _parse_document(body)
    if not document.ok:
        log.debug("PROPFIND body is not XML (%s), scanning for hrefs" % document.error)
        text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
        return [href.strip() for href in _HREF_RE.findall(text)]

    multistatus = _to_multistatus(document.value)
    if not multistatus.ok:
        return []
    return [
        r.href for r in multistatus.value.responses if r.href and r.href.endswith(".ics")
    ]


def parse_calendar_query_response(body: Body, base_url: str) -> List[CalendarEvent]:
    """
    Decode the events in a calendar-query REPORT response.

    Only propstats with a 200 status are used.  Each event gets the
    sibling getetag as caldav_etag and base_url + href as caldav_url.

    Returns:
        List of events, or an empty list if the body can't be parsed
    """
    multistatus = parse_multistatus(body)
    if not multistatus.ok:
        log.warning("could not parse calendar-query response: %s" % multistatus.error)
        return []

    events: List[CalendarEvent] = []
    for response in multistatus.value.responses:
        for propstat in response.propstats:
            if "200" not in propstat.status:
                continue
            for prop in propstat.props:
                calendar_data = prop.get("calendar-data")
                if not calendar_data:
                    continue
                event = parse_ical_data(calendar_data)
                if prop.get("getetag"):
                    event.caldav_etag = prop["getetag"]
                if response.href:
                    event.caldav_url = "%s%s" % (base_url, response.href)
                events.append(event)
    return events


def parse_sync_collection_response(body: Body) -> SyncResult:
    """
    Parse a sync-collection REPORT response.

    A response is DELETED when its status (or any of its propstats) is
    404, otherwise MODIFIED; the protocol has no way to tell a new
    resource from a changed one.  Resources not ending in ``.ics`` are
    skipped.
    """
    if not body.strip():
        return SyncResult(success=False, error="Invalid sync response")

    document = _parse_document(body)
    if not document.ok:
        log.warning("could not parse sync-collection response: %s" % document.error)
        return SyncResult(success=False, error="Failed to parse sync response")

    multistatus = _to_multistatus(document.value)
    if not multistatus.ok:
        return SyncResult(success=False, error="Invalid sync response")

    changes: List[Change] = []
    for response in multistatus.value.responses:
        if not response.href or not response.href.endswith(".ics"):
            continue

        status = ChangeStatus.MODIFIED
        etag: Optional[str] = None
        if response.status and "404" in response.status:
            status = ChangeStatus.DELETED

        for propstat in response.propstats:
            if "404" in propstat.status:
                status = ChangeStatus.DELETED
            elif "200" in propstat.status:
                for prop in propstat.props:
                    etag = prop.get("getetag") or etag

        if status == ChangeStatus.DELETED:
            etag = None
        changes.append(Change(href=response.href, etag=etag, status=status))

    return SyncResult(
        success=True,
        sync_token=multistatus.value.sync_token,
        changes=changes,
    )


def parse_sync_token_response(body: Body) -> Optional[str]:
    """
    Find the DAV:sync-token property in a Depth 0 PROPFIND response.

    Returns:
        The first non-empty sync-token, or None
    """
    multistatus = parse_multistatus(body)
    if not multistatus.ok:
        log.debug("could not parse sync-token response: %s" % multistatus.error)
        return None

    for response in multistatus.value.responses:
        for propstat in response.propstats:
            for prop in propstat.props:
                if prop.get("sync-token"):
                    return prop["sync-token"]
    return None
