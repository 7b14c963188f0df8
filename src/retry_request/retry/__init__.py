"""
Retry orchestration with exponential backoff and streamed replay.

Main Components:
    - RetryRequest: State machine for one logical request
    - RetryConfig: Immutable retry policy (requester, retries, predicate)
    - RetryStream: Output of a streaming request
    - AttemptCache: Per-attempt event buffer
    - compute_delay: Exponential backoff with jitter

Usage:
    >>> from retry_request.retry import fetch
    >>> result = await fetch({"url": "https://example.com"})
"""

from retry_request.retry.backoff import compute_delay
from retry_request.retry.cache import AttemptCache
from retry_request.retry.engine import RetryRequest, fetch, retry_request, retry_stream
from retry_request.retry.retry_config import RetryConfig, default_should_retry
from retry_request.retry.stream import RetryStream

__all__ = [
    "AttemptCache",
    "RetryConfig",
    "RetryRequest",
    "RetryStream",
    "compute_delay",
    "default_should_retry",
    "fetch",
    "retry_request",
    "retry_stream",
]
