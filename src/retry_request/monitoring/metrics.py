"""Prometheus metrics for retry-request.

Registered on the default prometheus_client registry; applications expose
them with their usual /metrics endpoint. Useful alerts:
- retry_request_retries_total (high retry rate indicates an unhealthy upstream)
- retry_request_outcomes_total{outcome="exhausted"} (budget too small or upstream down)
"""

from prometheus_client import Counter, Histogram

attempts_total = Counter(
    "retry_request_attempts_total",
    "Total attempts handed to a requester",
    ["mode"],
)
"""
Attempts counter.

Labels:
- mode: buffered, streaming
"""

retries_total = Counter(
    "retry_request_retries_total",
    "Total retries scheduled after a retryable response",
    ["mode"],
)

outcomes_total = Counter(
    "retry_request_outcomes_total",
    "Total finished logical requests by outcome",
    ["mode", "outcome"],
)
"""
Outcome counter.

Labels:
- mode: buffered, streaming
- outcome: success, exhausted, transport_error, aborted
"""

backoff_seconds = Histogram(
    "retry_request_backoff_seconds",
    "Backoff delay inserted before a retry",
    buckets=[0.5, 1, 2, 4, 8, 16, 32, 64],
)
