"""Shared test fixtures and configuration for all tests.

Provides scripted requesters so the retry state machine can be exercised
without a network, plus small async helpers.
"""

import asyncio
from typing import Any, Callable

import pytest

from retry_request.models.events import CompleteEvent, DataEvent, ResponseEvent
from retry_request.retry.retry_config import RetryConfig
from retry_request.transport.base_requester import BaseRequester


class FakeResponse:
    """Minimal response object carrying a status code."""

    def __init__(self, status_code: int, attempt: int = 1):
        self.status_code = status_code
        self.attempt = attempt

    def __repr__(self) -> str:
        return f"FakeResponse({self.status_code}, attempt={self.attempt})"


class ScriptedRequester(BaseRequester):
    """Requester replaying one scripted outcome per attempt.

    Script entries:
        503                         -> status 503, body b"body-<attempt>"
        (200, [b"a", b"b"])         -> status 200 streamed as two chunks
        (200, [b"a", exc])          -> status 200, transport error mid-body
        TransportError("...")       -> transport error before any response
    """

    def __init__(self, script: list[Any]):
        self.script = list(script)
        self.calls = 0
        self.options_seen: list[Any] = []
        self.closed_streams = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def _next(self, options: Any) -> Any:
        self.calls += 1
        self.options_seen.append(options)
        outcome = self.script.pop(0)
        if isinstance(outcome, int):
            return outcome, [f"body-{self.calls}".encode()]
        return outcome

    def _enter(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)

    async def request(self, options: Any) -> tuple[FakeResponse, bytes]:
        outcome = self._next(options)
        attempt = self.calls
        self._enter()
        try:
            await asyncio.sleep(0)
            if isinstance(outcome, BaseException):
                raise outcome
            status, chunks = outcome
            for chunk in chunks:
                if isinstance(chunk, BaseException):
                    raise chunk
            return FakeResponse(status, attempt), b"".join(chunks)
        finally:
            self.in_flight -= 1

    async def stream(self, options: Any):
        outcome = self._next(options)
        attempt = self.calls
        self._enter()
        try:
            await asyncio.sleep(0)
            if isinstance(outcome, BaseException):
                raise outcome
            status, chunks = outcome
            response = FakeResponse(status, attempt)
            yield ResponseEvent(response)
            received = []
            for chunk in chunks:
                await asyncio.sleep(0)
                if isinstance(chunk, BaseException):
                    raise chunk
                received.append(chunk)
                yield DataEvent(chunk)
            yield CompleteEvent(response, b"".join(received))
        finally:
            self.in_flight -= 1
            self.closed_streams += 1


class HangingRequester(BaseRequester):
    """Requester whose attempts never produce anything until cancelled."""

    def __init__(self):
        self.calls = 0
        self.started = False
        self.cancelled = False

    async def _hang(self) -> None:
        self.calls += 1
        self.started = True
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise

    async def request(self, options: Any):
        await self._hang()

    async def stream(self, options: Any):
        await self._hang()
        yield DataEvent(b"never")


def instant_backoff(attempt: int) -> int:
    return 0


@pytest.fixture
def scripted_requester() -> Callable[[list[Any]], ScriptedRequester]:
    """Factory fixture for ScriptedRequester.

    Usage:
        def test_something(scripted_requester):
            requester = scripted_requester([503, 200])
    """
    return ScriptedRequester


@pytest.fixture
def hanging_requester() -> HangingRequester:
    return HangingRequester()


@pytest.fixture
def make_config() -> Callable[..., RetryConfig]:
    """Factory fixture building a RetryConfig without real backoff delays."""

    def _create(requester: BaseRequester, **overrides: Any) -> RetryConfig:
        overrides.setdefault("backoff", instant_backoff)
        return RetryConfig(requester=requester, **overrides)

    return _create


@pytest.fixture
def wait_until():
    """Poll a condition on the running loop, failing after a timeout."""

    async def _wait(condition: Callable[[], bool], timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not condition():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.001)

    return _wait


@pytest.fixture
def buffered_result():
    """Collect the callback of a buffered request into an awaitable future."""

    def _create():
        future = asyncio.get_running_loop().create_future()
        calls = []

        def callback(error, response, body):
            calls.append((error, response, body))
            if not future.done():
                future.set_result((error, response, body))

        return callback, future, calls

    return _create
