"""
Result of a buffered retry request.

Exhaustion is not distinguished from first-try success here: callers that
care compare ``attempts`` against their configured budget or inspect the
response status themselves.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RetryResult:
    """
    Final response of a buffered request.

    Attributes:
        response: Response object of the terminal attempt
        body: Body of the terminal attempt
        attempts: Number of attempts made (1 = first try)
        total_latency_ms: Time from first attempt to final result (ms)
    """

    response: Any
    body: Any
    attempts: int
    total_latency_ms: int = 0

    def __post_init__(self) -> None:
        """Validate result invariants."""
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")

        if self.total_latency_ms < 0:
            raise ValueError("total_latency_ms must be >= 0")
