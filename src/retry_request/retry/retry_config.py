"""
Per-request retry configuration.

RetryConfig is immutable. Callers that omit it get a freshly built default
for every request, and a caller-supplied instance is never written to, so
one request can never leak settings into another.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from retry_request.config import Settings, settings as default_settings
from retry_request.retry.backoff import backoff_from_settings, compute_delay
from retry_request.transport.base_requester import BaseRequester
from retry_request.transport.httpx_requester import HttpxRequester

DEFAULT_RETRIES = 2


def default_should_retry(response: Any) -> bool:
    """Retry anything that is neither a success nor a redirect."""
    return response.status_code < 200 or response.status_code >= 400


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry policy for one logical request.

    Attributes:
        requester: Performs one attempt per call
        retries: Retries allowed after the first attempt (>= 0)
        should_retry: Predicate on a response; True means try again
        backoff: Delay in milliseconds before the next attempt, given the
            number of attempts already made
    """

    requester: BaseRequester = field(default_factory=HttpxRequester)
    retries: int = DEFAULT_RETRIES
    should_retry: Callable[[Any], bool] = default_should_retry
    backoff: Callable[[int], float] = compute_delay

    def __post_init__(self) -> None:
        """Validate config invariants."""
        if isinstance(self.retries, bool) or not isinstance(self.retries, int):
            raise ValueError(f"retries must be an integer, got {self.retries!r}")

        if self.retries < 0:
            raise ValueError("retries must be >= 0")

        if not callable(self.should_retry):
            raise ValueError("should_retry must be callable")

        if not callable(self.backoff):
            raise ValueError("backoff must be callable")

        if not (hasattr(self.requester, "request") and hasattr(self.requester, "stream")):
            raise ValueError("requester must provide request() and stream()")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> "RetryConfig":
        """
        Build a config from library settings.

        Args:
            settings: Settings to read (default: global settings)
            **overrides: Field values taking precedence over settings
        """
        settings = settings or default_settings
        values: dict[str, Any] = {
            "retries": settings.RETRIES,
            "backoff": backoff_from_settings(settings),
        }
        values.update(overrides)
        return cls(**values)

    def replace(self, **changes: Any) -> "RetryConfig":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)
