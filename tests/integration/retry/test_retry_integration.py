"""
Integration tests for the retry flow over the default httpx requester.

A scripted httpx.MockTransport plays the upstream server, so the whole
path (options -> httpx -> predicate -> backoff -> output) is exercised
without a network.
"""

import asyncio

import httpx
import pytest

from retry_request import (
    HttpxRequester,
    RetryConfig,
    TransportError,
    fetch,
    retry_request,
    retry_stream,
)


def scripted_upstream(responses: list[tuple[int, bytes]]):
    """Return (client, hits) where the client answers with responses in order."""
    hits: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        hits.append(request)
        status, body = responses[len(hits) - 1]
        return httpx.Response(status, content=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), hits


def config_for(client: httpx.AsyncClient, **overrides) -> RetryConfig:
    overrides.setdefault("backoff", lambda attempt: 0)
    return RetryConfig(requester=HttpxRequester(client=client), **overrides)


@pytest.mark.asyncio
async def test_fetch_recovers_from_unavailable():
    client, hits = scripted_upstream([(503, b"busy"), (503, b"busy"), (200, b'{"ok": true}')])

    async with client:
        result = await fetch({"url": "https://api.example.com/status"}, config_for(client))

    assert len(hits) == 3
    assert result.response.status_code == 200
    assert result.response.json() == {"ok": True}
    assert result.body == b'{"ok": true}'
    assert result.attempts == 3


@pytest.mark.asyncio
async def test_stream_hides_failed_attempts():
    client, hits = scripted_upstream([(500, b"stack trace"), (429, b"slow down"), (200, b"payload")])

    async with client:
        stream = retry_stream("https://api.example.com/export", config_for(client))
        body = await stream.read()

    assert body == b"payload"
    assert stream.response.status_code == 200
    assert len(hits) == 3


@pytest.mark.asyncio
async def test_redirect_is_not_retried():
    client, hits = scripted_upstream([(302, b""), (200, b"unused")])

    async with client:
        result = await fetch("https://api.example.com/old", config_for(client))

    assert result.response.status_code == 302
    assert len(hits) == 1


@pytest.mark.asyncio
async def test_callback_receives_transport_error_once():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    async with client:
        with pytest.raises(TransportError):
            await fetch("https://down.example.com/", config_for(client, retries=3))

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_callback_mode_end_to_end():
    client, hits = scripted_upstream([(502, b"bad gateway"), (204, b"")])
    done = asyncio.get_running_loop().create_future()

    async with client:
        retry_request(
            {"method": "DELETE", "url": "https://api.example.com/items/7"},
            config_for(client),
            lambda error, response, body: done.set_result((error, response, body)),
        )
        error, response, body = await done

    assert error is None
    assert response.status_code == 204
    assert body == b""
    assert [h.method for h in hits] == ["DELETE", "DELETE"]
