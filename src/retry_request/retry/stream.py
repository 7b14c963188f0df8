"""
Externally visible output of a streaming request.

A RetryStream exists before any attempt has finished. Consumers iterate it
like a single response: only the terminal attempt's events are ever fed in,
so retried attempts are invisible.

The stream holds at most ``maxsize`` unread events. ``feed`` waits while
it is full, so a slow consumer slows the transport down instead of the
body piling up in memory.
"""

import asyncio
from collections import deque
from typing import TYPE_CHECKING, Any, Optional

import structlog

from retry_request.config import settings
from retry_request.models.enums import RequestState
from retry_request.models.events import AttemptEvent, DataEvent, ResponseEvent

if TYPE_CHECKING:
    from retry_request.retry.engine import RetryRequest

logger = structlog.get_logger(__name__)

_EOF = object()


class _Failure:
    def __init__(self, error: BaseException):
        self.error = error


class RetryStream:
    """
    Async-iterable output of one logical request.

    Yields ResponseEvent, DataEvent and CompleteEvent of the terminal
    attempt in their original order. A transport error is raised from
    iteration once the events before it have been read. After ``abort()``
    iteration stops without a terminal event; events fed before the abort
    are still yielded.

    Usage:
        async with retry_stream({"url": url}) as stream:
            async for event in stream:
                ...
    """

    def __init__(self, request: "RetryRequest", maxsize: Optional[int] = None):
        self._request = request
        self.maxsize = settings.STREAM_BUFFER_EVENTS if maxsize is None else maxsize
        if self.maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self._buffer: deque = deque()
        self._readable = asyncio.Event()
        self._writable = asyncio.Event()
        self._writable.set()
        self._terminal: Any = None
        self._finished = False
        self.response: Optional[Any] = None

    @property
    def attempts(self) -> int:
        return self._request.attempts

    @property
    def state(self) -> RequestState:
        return self._request.state

    @property
    def closed(self) -> bool:
        return self._terminal is not None

    @property
    def pending(self) -> int:
        """Events fed but not yet read."""
        return len(self._buffer)

    # Producer side, driven by RetryRequest and AttemptCache

    async def feed(self, event: AttemptEvent) -> None:
        """Queue an event, waiting while the consumer is maxsize events behind."""
        while len(self._buffer) >= self.maxsize and not self.closed:
            self._writable.clear()
            await self._writable.wait()
        if self.closed:
            return
        if isinstance(event, ResponseEvent):
            self.response = event.response
        self._buffer.append(event)
        self._readable.set()

    def feed_error(self, error: BaseException) -> None:
        self._close(_Failure(error))

    def feed_eof(self) -> None:
        self._close(_EOF)

    def _close(self, terminal: Any) -> None:
        if self.closed:
            return
        self._terminal = terminal
        self._readable.set()
        self._writable.set()

    # Consumer side

    def abort(self) -> None:
        """Cancel in-flight work and suppress any further events."""
        self._request.abort()

    def __aiter__(self) -> "RetryStream":
        return self

    async def __anext__(self) -> AttemptEvent:
        if self._finished:
            raise StopAsyncIteration
        while not self._buffer and self._terminal is None:
            self._readable.clear()
            await self._readable.wait()
        if self._buffer:
            event = self._buffer.popleft()
            self._writable.set()
            return event
        self._finished = True
        if isinstance(self._terminal, _Failure):
            raise self._terminal.error
        raise StopAsyncIteration

    async def read(self) -> bytes:
        """Consume the stream and return the terminal attempt's body."""
        chunks = []
        async for event in self:
            if isinstance(event, DataEvent):
                chunks.append(event.chunk)
        return b"".join(chunks)

    async def __aenter__(self) -> "RetryStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self._request.state.is_terminal:
            logger.debug("Stream context exited early, aborting request")
            self.abort()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"state={self.state.value}, attempts={self.attempts}, "
            f"pending={self.pending}, closed={self.closed})"
        )
