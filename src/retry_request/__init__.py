"""
retry-request: HTTP requests with automatic retry, exponential backoff and
transparent replay of streamed responses.

Two calling conventions, chosen by entry point:
- Buffered: ``retry_request(options, config, callback)`` or ``await fetch(options)``
- Streaming: ``retry_stream(options)`` returns an async-iterable output at
  once; retried attempts never reach it

Only transport failures surface as errors. A response that keeps failing
the retry predicate is delivered as-is once the budget is spent.
"""

from retry_request.models import (
    CompleteEvent,
    DataEvent,
    RequestState,
    ResponseEvent,
    RetryResult,
)
from retry_request.retry import (
    RetryConfig,
    RetryRequest,
    RetryStream,
    compute_delay,
    default_should_retry,
    fetch,
    retry_request,
    retry_stream,
)
from retry_request.transport import (
    BaseRequester,
    HttpxRequester,
    RetryRequestError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "BaseRequester",
    "CompleteEvent",
    "DataEvent",
    "HttpxRequester",
    "RequestState",
    "ResponseEvent",
    "RetryConfig",
    "RetryRequest",
    "RetryRequestError",
    "RetryResult",
    "RetryStream",
    "TransportError",
    "compute_delay",
    "default_should_retry",
    "fetch",
    "retry_request",
    "retry_stream",
]
