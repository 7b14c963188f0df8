"""
Exponential backoff with jitter.

The delay before the next attempt doubles with every attempt already made
and carries up to one second of random jitter, so that many callers
failing against the same upstream do not retry in lockstep.
"""

import random
from functools import partial
from typing import Callable

from retry_request.config import Settings

BACKOFF_BASE_MS = 1000
BACKOFF_JITTER_MS = 1000


def compute_delay(
    attempt: int,
    base_ms: int = BACKOFF_BASE_MS,
    jitter_ms: int = BACKOFF_JITTER_MS,
) -> int:
    """
    Compute the delay before the next attempt.

    ``base_ms * 2**attempt`` plus a uniform jitter in ``[0, jitter_ms)``.

    Args:
        attempt: Number of attempts already made (1 after the first try)
        base_ms: Base delay in milliseconds
        jitter_ms: Exclusive upper bound of the random jitter

    Returns:
        Delay in whole milliseconds
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    jitter = random.randrange(jitter_ms) if jitter_ms > 0 else 0
    return base_ms * 2**attempt + jitter


def backoff_from_settings(settings: Settings) -> Callable[[int], int]:
    """Bind compute_delay to the configured base and jitter."""
    return partial(
        compute_delay,
        base_ms=settings.BACKOFF_BASE_MS,
        jitter_ms=settings.BACKOFF_JITTER_MS,
    )
