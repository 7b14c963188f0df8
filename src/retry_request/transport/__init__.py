"""
Transport abstraction and the default httpx implementation.

Components:
- BaseRequester: Abstract single-attempt requester
- HttpxRequester: Requester backed by httpx.AsyncClient
- exceptions: Transport-level errors
"""

from retry_request.transport.base_requester import BaseRequester
from retry_request.transport.exceptions import RetryRequestError, TransportError
from retry_request.transport.httpx_requester import HttpxRequester

__all__ = [
    "BaseRequester",
    "HttpxRequester",
    "RetryRequestError",
    "TransportError",
]
