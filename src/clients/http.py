"""Retrying HTTP client built on requests.

This module provides `HTTPClient`, a thin attrs wrapper around a pooled
``requests.Session`` that re-sends a request when the server answers with a
5xx status, plus JSON helpers for the common "call an API, decode the
answer" flow.

## Usage

```python
from clients.http import HTTPClient, ReqConfig, get

client = HTTPClient(timeout=5, max_retries=3)
response = client.post_json("https://api.example.com/items", {"name": "x"})

# Typed request: non-2xx responses raise ResponseNotOKError
item = get(ReqConfig(url="https://api.example.com/items/1", client=client), Item)
```

## Retry Semantics

- At most ``max_retries + 1`` attempts are made
- Only responses with a 5xx status are retried
- Transport failures (DNS, connection refused, timeouts) raise
  `TransportError` immediately, without retrying
- When every attempt returns 5xx, the last response is returned
- The request body is buffered before the first attempt, so every attempt
  sends the same bytes
"""

import time
from collections.abc import Callable, Mapping
from typing import Any, TypeVar
from urllib.parse import urlencode, urlsplit, urlunsplit

import attrs
import requests

from config import DEFAULT_HTTP_CLIENT_RETRIES, DEFAULT_HTTP_CLIENT_TIMEOUT, HTTPClientConfig
from foundation.exceptions import InvalidURLError, TransportError
from foundation.http import (
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    buffer_body,
    create_session,
    encode_form_body,
    encode_json_body,
    merge_headers,
)
from foundation.retry import BackoffStrategy, ExponentialBackoff, build_retrying

from .mixins import LoggerMixin
from .responses import decode_response, is_success, parse_error_response

T = TypeVar("T")

# Headers forced on the JSON convenience verbs
JSON_HEADERS: dict[str, str] = {"Content-Type": JSON_CONTENT_TYPE, "Connection": "close"}


def validate_positive(instance: Any, attribute: attrs.Attribute, value: float) -> None:
    if value <= 0:
        msg = f"{attribute.name} must be positive, got {value}"
        raise ValueError(msg)


def validate_non_negative(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        msg = f"{attribute.name} must be non-negative, got {value}"
        raise ValueError(msg)


def replace_query(url: str, params: Mapping[str, Any] | None) -> str:
    """Return ``url`` with its query string replaced by ``params``.

    Raises:
        InvalidURLError: If ``url`` cannot be parsed.
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise InvalidURLError(url) from e
    query = urlencode(params or {}, doseq=True)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


@attrs.define(frozen=False, slots=True)
class HTTPClient(LoggerMixin):
    """HTTP client that retries 5xx responses.

    Attributes:
        timeout: Per-attempt timeout in seconds (default: 5).
        max_retries: Retries after the first attempt (default: 0).
        backoff: Wait strategy between attempts (default: exponential with
            jitter, 2ms doubling up to 9ms).
        sleep: Sleep function used between attempts, injectable for tests.

    Example:
        ```python
        client = HTTPClient(timeout=2, max_retries=2)
        response = client.get("https://api.example.com/health")
        ```

    Note:
        This class is not frozen to allow session reuse and connection pooling.
        A single instance is safe to share between threads as long as the
        underlying session is.
    """

    timeout: float = attrs.field(default=DEFAULT_HTTP_CLIENT_TIMEOUT, validator=validate_positive)
    max_retries: int = attrs.field(default=DEFAULT_HTTP_CLIENT_RETRIES, validator=validate_non_negative)
    backoff: BackoffStrategy = attrs.field(factory=ExponentialBackoff)
    _sleep: Callable[[float], None] = attrs.field(default=time.sleep)
    _session: requests.Session | None = attrs.field(init=False, default=None)

    @property
    def session(self) -> requests.Session:
        """Get the requests session.

        Creates one if needed.
        """
        if self._session is None:
            self._session = create_session()
        return self._session

    def set_session(self, session: requests.Session) -> None:
        """Set a custom requests session (e.g. one mounting a mock adapter).

        Args:
            session: Requests session to use for every attempt.
        """
        self._session = session

    @classmethod
    def from_config(cls, config: HTTPClientConfig, session: requests.Session | None = None) -> "HTTPClient":
        """Create HTTPClient from HTTPClientConfig.

        Args:
            config: HTTP client configuration.
            session: Optional requests session for connection pooling.

        Returns:
            Configured HTTPClient instance.
        """
        client = cls(
            timeout=config.timeout,
            max_retries=config.max_retries,
            backoff=config.create_backoff(),
        )
        if session is not None:
            client.set_session(session)
        return client

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Executor
    # -------------------------------------------------------------------------

    def prepare(self, request: requests.Request) -> requests.PreparedRequest:
        """Buffer the body of ``request`` and prepare it on the session.

        Raises:
            InvalidURLError: If the URL is malformed or has no scheme/host.
            RequestEncodingError: If the body cannot be buffered.
        """
        if request.data is not None and not isinstance(request.data, dict | list):
            request.data = buffer_body(request.data)
        try:
            return self.session.prepare_request(request)
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as e:
            raise InvalidURLError(request.url or "") from e

    def send(self, request: requests.Request | requests.PreparedRequest) -> requests.Response:
        """Execute ``request`` with the retry policy of this client.

        Args:
            request: A ``requests.Request`` (prepared on this client's
                session) or an already prepared request.

        Returns:
            The first non-5xx response, or the last 5xx response once all
            attempts are used.

        Raises:
            InvalidURLError: If the URL is malformed.
            TransportError: If an attempt fails without a response.
        """
        if isinstance(request, requests.Request):
            prepared = self.prepare(request)
        else:
            prepared = request
            if prepared.body is not None and not isinstance(prepared.body, bytes | str):
                prepared.body = buffer_body(prepared.body)
                prepared.headers.pop("Transfer-Encoding", None)
                prepared.headers["Content-Length"] = str(len(prepared.body or b""))

        retrying = build_retrying(
            self.max_retries,
            self.backoff,
            logger=self._logger,
            sleep=self._sleep,
        )
        return retrying(self._attempt, prepared)

    def _attempt(self, prepared: requests.PreparedRequest) -> requests.Response:
        try:
            response = self.session.send(prepared.copy(), timeout=self.timeout)
        except requests.RequestException as e:
            msg = f"{prepared.method} {prepared.url} failed: {e}"
            raise TransportError(msg) from e

        self._logger.debug(
            "HTTP attempt completed",
            extra={"method": prepared.method, "url": prepared.url, "status_code": response.status_code},
        )
        return response

    def request(
        self,
        method: str,
        url: str,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        """Build a request from its parts and `send` it."""
        return self.send(requests.Request(method.upper(), url, data=data, headers=dict(headers or {})))

    # -------------------------------------------------------------------------
    # Convenience verbs
    # -------------------------------------------------------------------------

    def _send_json(self, method: str, url: str, params: Any, headers: Mapping[str, str] | None) -> requests.Response:
        body = encode_json_body(params)
        return self.request(method, url, data=body, headers=merge_headers(headers, JSON_HEADERS))

    def post_json(self, url: str, params: Any = None, headers: Mapping[str, str] | None = None) -> requests.Response:
        """POST ``params`` as JSON.

        ``Content-Type: application/json`` and ``Connection: close`` are
        forced and override caller values.
        """
        return self._send_json("POST", url, params, headers)

    def put_json(self, url: str, params: Any = None, headers: Mapping[str, str] | None = None) -> requests.Response:
        return self._send_json("PUT", url, params, headers)

    def patch_json(self, url: str, params: Any = None, headers: Mapping[str, str] | None = None) -> requests.Response:
        return self._send_json("PATCH", url, params, headers)

    def post_form(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        """POST ``params`` URL-encoded, with the form content type forced."""
        body = encode_form_body(params)
        return self.request("POST", url, data=body, headers=merge_headers(headers, {"Content-Type": FORM_CONTENT_TYPE}))

    def get_with_params(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        """GET ``url`` with its query string replaced by ``params``."""
        return self.request("GET", replace_query(url, params), headers=headers)

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> requests.Response:
        return self.request("GET", url, headers=headers)

    def delete(self, url: str, headers: Mapping[str, str] | None = None) -> requests.Response:
        return self.request("DELETE", url, headers=headers)


def new_default_client() -> HTTPClient:
    """Client with a 5 second timeout and no retries."""
    return HTTPClient()


def new_custom_client(retries: int, timeout: float) -> HTTPClient:
    """Client with the given retry count and per-attempt timeout.

    Raises:
        ValueError: If retries is negative or timeout is not positive.
    """
    return HTTPClient(timeout=timeout, max_retries=retries)


# =============================================================================
# Typed JSON requests
# =============================================================================


@attrs.define(frozen=True, slots=True)
class ReqConfig:
    """Parameters of a typed JSON request.

    Attributes:
        url: Target URL.
        body: Request body. Strings and bytes are sent verbatim, anything
            else is JSON-encoded. None sends no body.
        headers: Extra request headers.
        client: Client to use (default: a fresh `new_default_client()`).
    """

    url: str
    body: Any = None
    headers: Mapping[str, str] | None = None
    client: HTTPClient | None = None


def do_request(method: str, config: ReqConfig, response_type: type[T] | None = None) -> T | Any:
    """Send a JSON request and decode a 2xx answer.

    Args:
        method: HTTP method.
        config: Request parameters.
        response_type: Pydantic model, ``dict`` or other type to decode the
            body into; None returns the decoded JSON as is.

    Returns:
        The decoded response body (None for an empty body).

    Raises:
        ResponseNotOKError: If the final response is not 2xx.
        TransportError: If the request could not be sent.
        UpstreamError: If the body cannot be decoded as ``response_type``.
    """
    if config.body is None or isinstance(config.body, str | bytes):
        body = config.body
    else:
        body = encode_json_body(config.body)

    forced = {"Content-Type": JSON_CONTENT_TYPE} if body is not None else None
    headers = merge_headers(config.headers, forced)

    if config.client is not None:
        response = config.client.request(method, config.url, data=body, headers=headers)
    else:
        with new_default_client() as client:
            response = client.request(method, config.url, data=body, headers=headers)

    if not is_success(response.status_code):
        raise parse_error_response(response)
    return decode_response(response, response_type)


def get(config: ReqConfig, response_type: type[T] | None = None) -> T | Any:
    return do_request("GET", config, response_type)


def post(config: ReqConfig, response_type: type[T] | None = None) -> T | Any:
    return do_request("POST", config, response_type)


def put(config: ReqConfig, response_type: type[T] | None = None) -> T | Any:
    return do_request("PUT", config, response_type)


def patch(config: ReqConfig, response_type: type[T] | None = None) -> T | Any:
    return do_request("PATCH", config, response_type)


def delete(config: ReqConfig, response_type: type[T] | None = None) -> T | Any:
    return do_request("DELETE", config, response_type)
