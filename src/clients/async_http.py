"""Async retrying HTTP client built on httpx.

`AsyncHTTPClient` mirrors `clients.http.HTTPClient` for asyncio code: same
retry policy (5xx only, ``max_retries + 1`` attempts, last response returned
on exhaustion), same convenience verbs, same error types.

Backoff waits use ``asyncio.sleep``, so cancelling the calling task (or
wrapping the call in ``asyncio.timeout``) aborts the in-flight attempt or
the pending wait.

## Usage

```python
async with AsyncHTTPClient(timeout=5, max_retries=2) as client:
    response = await client.post_json("https://api.example.com/items", {"name": "x"})
```
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import attrs
import httpx

from config import DEFAULT_HTTP_CLIENT_RETRIES, DEFAULT_HTTP_CLIENT_TIMEOUT, HTTPClientConfig
from foundation.exceptions import InvalidURLError, TransportError
from foundation.http import (
    FORM_CONTENT_TYPE,
    buffer_body,
    encode_form_body,
    encode_json_body,
    merge_headers,
)
from foundation.retry import BackoffStrategy, ExponentialBackoff, build_async_retrying

from .http import JSON_HEADERS, replace_query, validate_non_negative, validate_positive
from .mixins import LoggerMixin


@attrs.define(frozen=False, slots=True)
class AsyncHTTPClient(LoggerMixin):
    """Async HTTP client that retries 5xx responses.

    Attributes:
        timeout: Per-attempt timeout in seconds (default: 5).
        max_retries: Retries after the first attempt (default: 0).
        backoff: Wait strategy between attempts.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
        sleep: Async sleep used between attempts.
    """

    timeout: float = attrs.field(default=DEFAULT_HTTP_CLIENT_TIMEOUT, validator=validate_positive)
    max_retries: int = attrs.field(default=DEFAULT_HTTP_CLIENT_RETRIES, validator=validate_non_negative)
    backoff: BackoffStrategy = attrs.field(factory=ExponentialBackoff)
    _transport: httpx.AsyncBaseTransport | None = attrs.field(default=None)
    _sleep: Callable[[float], Awaitable[None]] = attrs.field(default=asyncio.sleep)
    _client: httpx.AsyncClient | None = attrs.field(init=False, default=None)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the underlying httpx client, creating it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    @classmethod
    def from_config(
        cls,
        config: HTTPClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AsyncHTTPClient":
        return cls(
            timeout=config.timeout,
            max_retries=config.max_retries,
            backoff=config.create_backoff(),
            transport=transport,
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AsyncHTTPClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Execute ``request`` with the retry policy of this client.

        Raises:
            InvalidURLError: If the URL scheme is not supported.
            TransportError: If an attempt fails without a response.
        """
        # Read streaming content into memory so every attempt resends it
        await request.aread()

        retrying = build_async_retrying(
            self.max_retries,
            self.backoff,
            logger=self._logger,
            sleep=self._sleep,
        )
        return await retrying(self._attempt, request)

    async def _attempt(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self.client.send(request)
        except httpx.UnsupportedProtocol as e:
            raise InvalidURLError(str(request.url)) from e
        except httpx.TransportError as e:
            msg = f"{request.method} {request.url} failed: {e}"
            raise TransportError(msg) from e

        self._logger.debug(
            "HTTP attempt completed",
            extra={"method": request.method, "url": str(request.url), "status_code": response.status_code},
        )
        return response

    async def request(
        self,
        method: str,
        url: str,
        content: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Build a request from its parts and `send` it."""
        try:
            request = self.client.build_request(
                method.upper(),
                url,
                content=buffer_body(content),
                headers=dict(headers or {}),
            )
        except httpx.InvalidURL as e:
            raise InvalidURLError(url) from e
        if request.url.scheme not in ("http", "https") or not request.url.host:
            raise InvalidURLError(url)
        return await self.send(request)

    async def _send_json(
        self, method: str, url: str, params: Any, headers: Mapping[str, str] | None
    ) -> httpx.Response:
        body = encode_json_body(params)
        return await self.request(method, url, content=body, headers=merge_headers(headers, JSON_HEADERS))

    async def post_json(self, url: str, params: Any = None, headers: Mapping[str, str] | None = None) -> httpx.Response:
        return await self._send_json("POST", url, params, headers)

    async def put_json(self, url: str, params: Any = None, headers: Mapping[str, str] | None = None) -> httpx.Response:
        return await self._send_json("PUT", url, params, headers)

    async def patch_json(
        self, url: str, params: Any = None, headers: Mapping[str, str] | None = None
    ) -> httpx.Response:
        return await self._send_json("PATCH", url, params, headers)

    async def post_form(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        body = encode_form_body(params)
        forced = {"Content-Type": FORM_CONTENT_TYPE}
        return await self.request("POST", url, content=body, headers=merge_headers(headers, forced))

    async def get_with_params(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("GET", replace_query(url, params), headers=headers)

    async def get(self, url: str, headers: Mapping[str, str] | None = None) -> httpx.Response:
        return await self.request("GET", url, headers=headers)

    async def delete(self, url: str, headers: Mapping[str, str] | None = None) -> httpx.Response:
        return await self.request("DELETE", url, headers=headers)
