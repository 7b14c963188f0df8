"""
Per-attempt event cache.

Every streamed attempt writes into its own AttemptCache. Once the attempt
is known to be terminal the cache is forwarded to the output stream:
buffered events first, in arrival order, then every later event directly.
A retried attempt's cache is released without ever being read.
"""

from typing import TYPE_CHECKING

from retry_request.models.events import AttemptEvent

if TYPE_CHECKING:
    from retry_request.retry.stream import RetryStream


class AttemptCache:
    """
    Buffer owned by exactly one attempt.

    Attributes:
        attempt: Attempt number the cache belongs to
    """

    def __init__(self, attempt: int):
        self.attempt = attempt
        self._events: list[AttemptEvent] = []
        self._target: "RetryStream | None" = None
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def forwarding(self) -> bool:
        return self._target is not None

    async def append(self, event: AttemptEvent) -> None:
        if self._released:
            raise RuntimeError(f"cache of attempt {self.attempt} was released")
        if self._target is not None:
            await self._target.feed(event)
        else:
            self._events.append(event)

    async def forward_to(self, target: "RetryStream") -> None:
        """Replay buffered events into target and pass later ones through."""
        if self._released:
            raise RuntimeError(f"cache of attempt {self.attempt} was released")
        if self._target is not None:
            raise RuntimeError(f"cache of attempt {self.attempt} is already forwarded")
        self._target = target
        events, self._events = self._events, []
        for event in events:
            await target.feed(event)

    def release(self) -> None:
        self._events = []
        self._target = None
        self._released = True

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"attempt={self.attempt}, buffered={len(self._events)}, "
            f"forwarding={self.forwarding}, released={self._released})"
        )
