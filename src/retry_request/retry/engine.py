"""
Retry state machine for a single logical request.

RetryRequest drives one attempt at a time through a requester, asks the
retry predicate about every response, waits out an exponential backoff
between attempts and finally hands exactly one attempt's outcome to the
caller.

Entry points (the calling convention is chosen by the function, never by
the shape of the arguments):
    retry_request(options, config, callback)  # callback(error, response, body)
    retry_stream(options, config)             # -> RetryStream, returned at once
    await fetch(options, config)              # -> RetryResult, raises on transport error

Transport errors are terminal and never retried. Running out of retries is
not an error: the last response is delivered as an ordinary result.

Known limitations:
    - After abort() nothing terminal is delivered: no callback, no
      completion or error on the stream.
    - No per-attempt timeout is enforced here. A hung attempt stalls the
      request unless the requester times out on its own (HttpxRequester
      does, via its httpx client timeout).
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

import structlog

from retry_request.config import settings
from retry_request.models.enums import RequestMode, RequestState
from retry_request.models.events import ResponseEvent
from retry_request.models.result import RetryResult
from retry_request.monitoring.metrics import (
    attempts_total,
    backoff_seconds,
    outcomes_total,
    retries_total,
)
from retry_request.retry.cache import AttemptCache
from retry_request.retry.retry_config import RetryConfig
from retry_request.retry.stream import RetryStream

logger = structlog.get_logger(__name__)

Callback = Callable[[Optional[BaseException], Any, Any], None]


@asynccontextmanager
async def _closing(events: AsyncIterator) -> AsyncIterator[AsyncIterator]:
    """Close an attempt's event iterator on exit, if it can be closed."""
    try:
        yield events
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()


class RetryRequest:
    """
    Retry orchestrator for one logical request.

    A RetryRequest is started exactly once, in either buffered or
    streaming mode. At most one attempt is in flight at any time; the next
    one is only started by the backoff timer.

    Attributes:
        options: Opaque request options, handed to the requester verbatim
        config: Retry policy (never mutated)
        state: Current RequestState
        attempts: Attempts started so far
        mode: RequestMode chosen by the entry point
    """

    def __init__(self, options: Any, config: Optional[RetryConfig] = None):
        self.options = options
        self.config = config if config is not None else RetryConfig.from_settings()
        self.state = RequestState.IDLE
        self.attempts = 0
        self.mode: Optional[RequestMode] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._callback: Optional[Callback] = None
        self._output: Optional[RetryStream] = None
        self._cache: Optional[AttemptCache] = None
        self._attempt_task: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._started_at: Optional[float] = None
        self._exhausted = False

    @property
    def elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return int((time.monotonic() - self._started_at) * 1000)

    @property
    def backoff_pending(self) -> bool:
        return self._timer is not None

    def start_buffered(self, callback: Callback) -> "RetryRequest":
        """Start in buffered mode; callback(error, response, body) runs once."""
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._begin(RequestMode.BUFFERED)
        self._callback = callback
        self._start_attempt()
        return self

    def start_streaming(self) -> RetryStream:
        """Start in streaming mode and return the output immediately."""
        self._begin(RequestMode.STREAMING)
        self._output = RetryStream(self)
        self._start_attempt()
        return self._output

    def abort(self) -> None:
        """
        Cancel the request.

        Cancels a pending backoff timer, releases the current cache and
        cancels the in-flight attempt. Nothing terminal is delivered
        afterwards. A no-op once the request has finished.
        """
        if self.state.is_terminal:
            return
        previous = self.state
        self.state = RequestState.ABORTED

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._release_cache()
        if self._attempt_task is not None and not self._attempt_task.done():
            self._attempt_task.cancel()
        if self._output is not None:
            self._output.feed_eof()

        self._record_outcome("aborted")
        logger.info(
            "Request aborted",
            previous_state=previous.value,
            attempts=self.attempts,
        )

    def _begin(self, mode: RequestMode) -> None:
        if self.state is not RequestState.IDLE:
            raise RuntimeError("RetryRequest can only be started once")
        self._loop = asyncio.get_running_loop()
        self.mode = mode
        self._started_at = time.monotonic()

    def _start_attempt(self) -> None:
        self._timer = None
        self.attempts += 1
        self.state = RequestState.ATTEMPTING

        if settings.METRICS_ENABLED:
            attempts_total.labels(mode=self.mode.value).inc()
        logger.debug("Starting attempt", attempt=self.attempts, mode=self.mode.value)

        if self.mode is RequestMode.STREAMING:
            self._cache = AttemptCache(self.attempts)
            coro = self._run_streaming_attempt(self._cache)
        else:
            coro = self._run_buffered_attempt()
        self._attempt_task = self._loop.create_task(coro)
        self._attempt_task.add_done_callback(self._on_attempt_done)

    def _on_attempt_done(self, task: asyncio.Task) -> None:
        # Only a raising callback can get here; every other error is delivered
        if task.cancelled() or task.exception() is None:
            return
        error = task.exception()
        logger.error(
            "Unhandled exception in request callback",
            attempt=self.attempts,
            error_type=type(error).__name__,
        )
        self._loop.call_exception_handler({
            "message": "Unhandled exception in retry_request callback",
            "exception": error,
            "task": task,
        })

    async def _run_buffered_attempt(self) -> None:
        try:
            response, body = await self.config.requester.request(self.options)
            retry = self._evaluate(response)
        except Exception as e:
            self._fail(e)
            return

        if self.state is RequestState.ABORTED:
            return
        if retry:
            self._schedule_retry(response)
            return

        self.state = RequestState.COMPLETED
        self._record_outcome("exhausted" if self._exhausted else "success")
        logger.info(
            "Request completed",
            attempts=self.attempts,
            status_code=getattr(response, "status_code", None),
            elapsed_ms=self.elapsed_ms,
        )
        self._callback(None, response, body)

    async def _run_streaming_attempt(self, cache: AttemptCache) -> None:
        retry_response = None
        try:
            events = self.config.requester.stream(self.options)
            async with _closing(events):
                async for event in events:
                    await cache.append(event)
                    if isinstance(event, ResponseEvent) and not cache.forwarding:
                        if self._evaluate(event.response):
                            # Leaving the block closes the attempt's stream
                            retry_response = event.response
                            break
                        if self.state is RequestState.ABORTED:
                            return
                        await self._replay(cache)
        except Exception as e:
            self._fail(e)
            return

        if self.state is RequestState.ABORTED:
            return
        if retry_response is not None:
            self._schedule_retry(retry_response)
            return

        if not cache.forwarding:
            # Stream ended without a response event
            await self._replay(cache)
        self.state = RequestState.COMPLETED
        self._release_cache()
        self._record_outcome("exhausted" if self._exhausted else "success")
        logger.info("Stream completed", attempts=self.attempts, elapsed_ms=self.elapsed_ms)
        self._output.feed_eof()

    def _evaluate(self, response: Any) -> bool:
        """Return True if another attempt should be made for this response."""
        if not self.config.should_retry(response):
            return False
        if self.attempts <= self.config.retries:
            return True
        self._exhausted = True
        logger.warning(
            "Retry budget exhausted, delivering last response",
            attempts=self.attempts,
            retries=self.config.retries,
            status_code=getattr(response, "status_code", None),
        )
        return False

    def _schedule_retry(self, response: Any) -> None:
        self._release_cache()
        delay_ms = self.config.backoff(self.attempts)
        self.state = RequestState.BACKOFF

        if settings.METRICS_ENABLED:
            retries_total.labels(mode=self.mode.value).inc()
            backoff_seconds.observe(delay_ms / 1000)
        logger.info(
            "Retryable response, scheduling next attempt",
            attempt=self.attempts,
            retries=self.config.retries,
            status_code=getattr(response, "status_code", None),
            delay_ms=delay_ms,
        )
        self._timer = self._loop.call_later(delay_ms / 1000, self._start_attempt)

    async def _replay(self, cache: AttemptCache) -> None:
        self.state = RequestState.REPLAYING
        logger.debug("Replaying terminal attempt", attempt=cache.attempt, buffered=len(cache))
        await cache.forward_to(self._output)

    def _fail(self, error: Exception) -> None:
        if self.state is RequestState.ABORTED:
            return
        self.state = RequestState.FAILED
        self._release_cache()
        self._record_outcome("transport_error")
        logger.warning(
            "Attempt failed, not retrying",
            attempt=self.attempts,
            error_type=type(error).__name__,
            error=str(error),
        )
        if self.mode is RequestMode.STREAMING:
            self._output.feed_error(error)
        else:
            self._callback(error, None, None)

    def _release_cache(self) -> None:
        if self._cache is not None:
            self._cache.release()
            self._cache = None

    def _record_outcome(self, outcome: str) -> None:
        if settings.METRICS_ENABLED and self.mode is not None:
            outcomes_total.labels(mode=self.mode.value, outcome=outcome).inc()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"state={self.state.value}, attempts={self.attempts}, "
            f"retries={self.config.retries})"
        )


def retry_request(
    options: Any, config: Optional[RetryConfig], callback: Callback
) -> RetryRequest:
    """
    Run a buffered request; ``callback(error, response, body)`` is called once.

    Must be called from a running event loop. The returned RetryRequest
    can be aborted.
    """
    return RetryRequest(options, config).start_buffered(callback)


def retry_stream(options: Any, config: Optional[RetryConfig] = None) -> RetryStream:
    """
    Run a streaming request and return its output before any attempt finishes.

    Must be called from a running event loop.
    """
    return RetryRequest(options, config).start_streaming()


async def fetch(options: Any, config: Optional[RetryConfig] = None) -> RetryResult:
    """
    Run a buffered request and return its final result.

    Raises:
        TransportError: (or whatever the requester raised) on a transport failure
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def deliver(error: Optional[BaseException], response: Any, body: Any) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result((response, body))

    request = RetryRequest(options, config).start_buffered(deliver)
    try:
        response, body = await future
    except asyncio.CancelledError:
        request.abort()
        raise

    return RetryResult(
        response=response,
        body=body,
        attempts=request.attempts,
        total_latency_ms=request.elapsed_ms,
    )
