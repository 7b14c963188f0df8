"""
Enumerations for retry-request data models.
"""

from enum import Enum


class RequestState(str, Enum):
    """
    Lifecycle of one logical request.

    IDLE -> ATTEMPTING -> (BACKOFF -> ATTEMPTING)* -> one of
    REPLAYING/COMPLETED, FAILED or ABORTED. ABORTED is reachable from
    any non-terminal state.
    """

    IDLE = "idle"
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    REPLAYING = "replaying"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestState.COMPLETED, RequestState.FAILED, RequestState.ABORTED)


class RequestMode(str, Enum):
    """Calling convention selected by the entry point."""

    BUFFERED = "buffered"
    STREAMING = "streaming"
