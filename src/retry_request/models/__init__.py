"""
Data models shared by the transport and retry layers.
"""

from retry_request.models.enums import RequestMode, RequestState
from retry_request.models.events import AttemptEvent, CompleteEvent, DataEvent, ResponseEvent
from retry_request.models.result import RetryResult

__all__ = [
    "AttemptEvent",
    "CompleteEvent",
    "DataEvent",
    "RequestMode",
    "RequestState",
    "ResponseEvent",
    "RetryResult",
]
