"""
Unit tests for RetryStream buffering.
"""

import asyncio
from unittest.mock import Mock

import pytest

from retry_request.models.enums import RequestState
from retry_request.models.events import DataEvent, ResponseEvent
from retry_request.retry.stream import RetryStream
from retry_request.transport.exceptions import TransportError


def make_stream(maxsize: int = 2) -> RetryStream:
    request = Mock()
    request.state = RequestState.REPLAYING
    request.attempts = 1
    return RetryStream(request, maxsize=maxsize)


@pytest.mark.asyncio
async def test_feed_waits_while_full():
    stream = make_stream(maxsize=2)
    await stream.feed(DataEvent(b"1"))
    await stream.feed(DataEvent(b"2"))

    blocked = asyncio.create_task(stream.feed(DataEvent(b"3")))
    await asyncio.sleep(0.01)
    assert not blocked.done()
    assert stream.pending == 2

    assert await stream.__anext__() == DataEvent(b"1")
    await asyncio.wait_for(blocked, timeout=1)
    assert stream.pending == 2


@pytest.mark.asyncio
async def test_close_releases_waiting_feed():
    stream = make_stream(maxsize=1)
    await stream.feed(DataEvent(b"kept"))
    blocked = asyncio.create_task(stream.feed(DataEvent(b"dropped")))
    await asyncio.sleep(0)

    stream.feed_eof()
    await asyncio.wait_for(blocked, timeout=1)

    assert [event async for event in stream] == [DataEvent(b"kept")]


@pytest.mark.asyncio
async def test_error_raised_after_buffered_events():
    stream = make_stream(maxsize=4)
    await stream.feed(ResponseEvent("resp"))
    await stream.feed(DataEvent(b"partial"))
    stream.feed_error(TransportError("reset"))

    seen = []
    with pytest.raises(TransportError):
        async for event in stream:
            seen.append(event)

    assert seen == [ResponseEvent("resp"), DataEvent(b"partial")]
    assert stream.response == "resp"


@pytest.mark.asyncio
async def test_feed_after_close_is_ignored():
    stream = make_stream()
    stream.feed_eof()
    await stream.feed(DataEvent(b"late"))

    assert stream.pending == 0
    assert [event async for event in stream] == []


def test_maxsize_must_be_positive():
    with pytest.raises(ValueError):
        make_stream(maxsize=0)


def test_maxsize_defaults_to_settings():
    request = Mock()
    assert RetryStream(request).maxsize == 64
