"""Monitoring and metrics instrumentation for retry-request."""

from retry_request.monitoring.metrics import (
    attempts_total,
    backoff_seconds,
    outcomes_total,
    retries_total,
)

__all__ = [
    "attempts_total",
    "backoff_seconds",
    "outcomes_total",
    "retries_total",
]
