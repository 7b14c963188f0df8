"""
Events produced by a single streamed attempt.

A requester's stream yields these in transport order: one ResponseEvent
once headers arrive, DataEvent chunks for the body, and a CompleteEvent
when the body is exhausted. Transport failures are raised, not yielded.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResponseEvent:
    """Response headers received; the retry decision is made on this event."""

    response: Any


@dataclass(frozen=True)
class DataEvent:
    """One chunk of response body."""

    chunk: bytes


@dataclass(frozen=True)
class CompleteEvent:
    """
    Body fully received.

    ``body`` is only filled by requesters that buffer the body anyway;
    streaming requesters leave it empty and rely on the DataEvents.
    """

    response: Any
    body: bytes = b""


AttemptEvent = ResponseEvent | DataEvent | CompleteEvent
