"""
Abstract requester performing exactly one attempt.

The retry orchestrator never looks inside request options; it hands them
to a requester once per attempt. Swapping the requester swaps the
transport without touching the retry state machine.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from retry_request.models.events import AttemptEvent


class BaseRequester(ABC):
    """
    Abstract base class for single-attempt requesters.

    Responsibilities:
    - Perform one request for the given options
    - Report transport failures by raising
    - Return (or stream) the response even when its status is an error

    Does NOT handle:
    - Retries, backoff or status inspection (that's RetryRequest's job)
    - Per-attempt timeouts, unless the underlying client enforces them
    """

    @abstractmethod
    async def request(self, options: Any) -> tuple[Any, Any]:
        """
        Perform one buffered attempt.

        Args:
            options: Opaque request options

        Returns:
            Tuple of (response, body)

        Raises:
            TransportError: The attempt could not complete
        """
        pass

    @abstractmethod
    def stream(self, options: Any) -> AsyncIterator[AttemptEvent]:
        """
        Perform one streamed attempt.

        Returns an async iterator yielding ResponseEvent, then DataEvent
        chunks, then CompleteEvent. Any async iterator is accepted; when it
        has ``aclose()`` (async generators do) it is closed as soon as the
        attempt is retried or aborted, and that must stop the attempt and
        release its connection.

        Raises:
            TransportError: From iteration, when the attempt fails
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
