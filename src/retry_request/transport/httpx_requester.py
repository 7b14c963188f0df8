"""
Default requester built on httpx.

Request options are keyword arguments for ``httpx.AsyncClient.request``
(``method``, ``url``, ``headers``, ``content``, ...). A bare URL string is
accepted as shorthand for a GET request.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional

import httpx
import structlog

from retry_request.config import settings
from retry_request.models.events import AttemptEvent, CompleteEvent, DataEvent, ResponseEvent
from retry_request.transport.base_requester import BaseRequester
from retry_request.transport.exceptions import TransportError


logger = structlog.get_logger(__name__)


def _as_request_kwargs(options: Any) -> dict[str, Any]:
    if isinstance(options, (str, httpx.URL)):
        return {"method": "GET", "url": options}
    if not isinstance(options, Mapping):
        raise TypeError(
            f"httpx request options must be a URL or a mapping, got {type(options).__name__}"
        )
    kwargs = dict(options)
    kwargs.setdefault("method", "GET")
    return kwargs


class HttpxRequester(BaseRequester):
    """
    Requester sending each attempt through an httpx AsyncClient.

    When a client is supplied it is shared by all attempts and left open;
    otherwise a short-lived client is created per attempt. HTTP error
    statuses are returned as ordinary responses. ``httpx.TransportError``
    (connect, read, timeout, ...) is translated into TransportError.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        follow_redirects: Optional[bool] = None,
    ):
        """
        Initialize httpx requester.

        Args:
            client: Shared AsyncClient (caller keeps ownership)
            timeout: Client timeout in seconds for per-attempt clients
            follow_redirects: Redirect policy for per-attempt clients
        """
        self._client = client
        self.timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
        self.follow_redirects = (
            settings.HTTP_FOLLOW_REDIRECTS if follow_redirects is None else follow_redirects
        )

    @asynccontextmanager
    async def _client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=self.follow_redirects,
        ) as client:
            yield client

    def _transport_error(self, kwargs: dict[str, Any], exc: httpx.TransportError) -> TransportError:
        details = {
            "method": kwargs.get("method"),
            "url": str(kwargs.get("url")),
            "error_type": type(exc).__name__,
        }
        logger.debug("httpx transport error", **details, error=str(exc))
        return TransportError(f"Request failed: {exc}", details=details)

    async def request(self, options: Any) -> tuple[httpx.Response, bytes]:
        kwargs = _as_request_kwargs(options)
        try:
            async with self._client_context() as client:
                response = await client.request(**kwargs)
        except httpx.TransportError as e:
            raise self._transport_error(kwargs, e) from e
        return response, response.content

    async def stream(self, options: Any) -> AsyncIterator[AttemptEvent]:
        kwargs = _as_request_kwargs(options)
        try:
            async with self._client_context() as client:
                async with client.stream(**kwargs) as response:
                    yield ResponseEvent(response)
                    async for chunk in response.aiter_bytes():
                        yield DataEvent(chunk)
                    # Chunks are not kept; the body already went out as DataEvents
                    yield CompleteEvent(response)
        except httpx.TransportError as e:
            raise self._transport_error(kwargs, e) from e

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"shared_client={self._client is not None}, "
            f"timeout={self.timeout}s)"
        )
