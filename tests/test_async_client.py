#!/usr/bin/env python
"""
Unit tests for AsyncCalendarClient.

Rule: None of the tests in this file should initiate any internet
communication. We use AsyncMock to emulate server communication.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from eventdav import AsyncCalendarClient, CalendarEvent, EventFilters
from eventdav.lib import error
from eventdav.protocol import DAVMethod, DAVResponse

from .test_client import (
    PROPFIND_RESPONSE,
    QUERY_RESPONSE,
    SYNC_RESPONSE,
    SYNC_TOKEN_RESPONSE,
    ical_response,
)


def make_client(*responses, **kwargs):
    io = MagicMock()
    io.execute = AsyncMock(side_effect=list(responses))
    io.close = AsyncMock()
    return AsyncCalendarClient(
        base_url="http://cal.example.com", calendar_path="/cal/", io=io, **kwargs
    )


def sent(client, n=0):
    return client.io.execute.call_args_list[n][0][0]


class SlowIO:
    """Answers every request after a delay, and records cancellations"""

    def __init__(self, delay):
        self.delay = delay
        self.cancelled = 0

    async def execute(self, request):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return DAVResponse(status=207, body=SYNC_RESPONSE)

    async def close(self):
        pass


class TestAsyncCalendarClient:
    @pytest.mark.asyncio
    async def test_context_manager(self):
        client = make_client()
        async with client as c:
            assert c is client
        client.io.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_and_get(self):
        client = make_client(
            DAVResponse(status=201, headers={"ETag": '"e1"'}),
            ical_response("abc", etag='"e1"'),
        )
        assert await client.create_event_with_etag(CalendarEvent(uid="abc")) == (
            "abc",
            '"e1"',
        )
        event = await client.get_event("abc")
        assert event.uid == "abc"
        assert event.caldav_etag == '"e1"'
        assert sent(client, 0).headers["If-None-Match"] == "*"
        assert sent(client, 1).method == DAVMethod.GET

    @pytest.mark.asyncio
    async def test_create_already_exists(self):
        client = make_client(DAVResponse(status=412))
        with pytest.raises(error.AlreadyExistsError):
            await client.create_event(CalendarEvent(uid="abc"))

    @pytest.mark.asyncio
    async def test_update_conflict(self):
        client = make_client(DAVResponse(status=412, headers={"etag": '"theirs"'}))
        with pytest.raises(error.ConflictError) as excinfo:
            await client.update_event("abc", CalendarEvent(caldav_etag='"ours"'))
        assert excinfo.value.local_etag == '"ours"'
        assert excinfo.value.remote_etag == '"theirs"'
        assert sent(client).headers["If-Match"] == '"ours"'

    @pytest.mark.asyncio
    async def test_delete_and_etag(self):
        client = make_client(
            DAVResponse(status=404), DAVResponse(status=200, headers={"ETag": '"x"'})
        )
        await client.delete_event("gone")
        assert await client.get_etag("abc") == '"x"'

    @pytest.mark.asyncio
    async def test_list_events(self):
        client = make_client(
            DAVResponse(status=207, body=PROPFIND_RESPONSE),
            ical_response("a"),
            DAVResponse(status=500),
            ical_response("c"),
        )
        events = await client.list_events()
        assert [e.uid for e in events] == ["a", "c"]
        assert sent(client).headers["Depth"] == "1"

    @pytest.mark.asyncio
    async def test_query_events(self):
        client = make_client(DAVResponse(status=207, body=QUERY_RESPONSE))
        events = await client.query_events(EventFilters(end="2025-08-01"))
        assert [e.uid for e in events] == ["q"]
        assert b'end="20250801T000000Z"' in sent(client).body
        assert b'start="19700101T000000Z"' in sent(client).body

    @pytest.mark.asyncio
    async def test_query_events_fallback(self):
        client = make_client(
            DAVResponse(status=501),
            DAVResponse(status=207, body=PROPFIND_RESPONSE),
            ical_response("a"),
            ical_response("b"),
            ical_response("c"),
        )
        events = await client.query_events()
        assert len(events) == 3
        assert sent(client, 1).method == DAVMethod.PROPFIND

    @pytest.mark.asyncio
    async def test_query_events_failure(self):
        client = make_client(DAVResponse(status=400))
        with pytest.raises(error.ReportError):
            await client.query_events()

    @pytest.mark.asyncio
    async def test_sync(self):
        client = make_client(
            DAVResponse(status=207, body=SYNC_TOKEN_RESPONSE),
            DAVResponse(status=207, body=SYNC_RESPONSE),
        )
        token = await client.get_sync_token()
        result = await client.sync_collection(token)
        assert token == "token-1"
        assert result.success
        assert result.sync_token == "token-2"
        assert [c.status for c in result.changes] == ["modified", "deleted"]

    @pytest.mark.asyncio
    async def test_sync_unsupported(self):
        result = await make_client(DAVResponse(status=405)).sync_collection("t")
        assert result.skipped
        assert not result.success

    @pytest.mark.asyncio
    async def test_sync_never_raises(self):
        client = make_client(
            error.TransportError("http://x", "connection refused"),
            ValueError("bad"),
        )
        assert (await client.sync_collection()).error == "connection refused"
        assert (await client.sync_collection()).error == "bad"


class TestAsyncTimeouts:
    @pytest.mark.asyncio
    async def test_list_events_timeout(self):
        io = SlowIO(delay=10)
        client = AsyncCalendarClient(io=io, list_timeout=0.01)
        assert await client.list_events() == []
        assert io.cancelled == 1

    @pytest.mark.asyncio
    async def test_query_events_timeout(self):
        io = SlowIO(delay=10)
        client = AsyncCalendarClient(io=io, query_timeout=0.01)
        assert await client.query_events() == []
        assert io.cancelled == 1

    @pytest.mark.asyncio
    async def test_sync_timeout(self):
        io = SlowIO(delay=10)
        client = AsyncCalendarClient(io=io, sync_timeout=0.01)
        result = await client.sync_collection("t")
        assert not result.success
        assert result.error == "Sync timeout"
        assert io.cancelled == 1

    @pytest.mark.asyncio
    async def test_fast_response_within_deadline(self):
        io = SlowIO(delay=0)
        client = AsyncCalendarClient(io=io, sync_timeout=5)
        result = await client.sync_collection("t")
        assert result.success
        assert io.cancelled == 0

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        client = make_client(error.RequestTimeoutError("http://x"))
        assert (await client.sync_collection()).error == "Sync timeout"
