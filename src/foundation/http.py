"""Shared HTTP utilities for session management and request bodies.

This module provides the pieces both HTTP clients build on:

- `create_session`: a pooled ``requests.Session`` whose adapters never retry
  on their own (retries are decided by the request executor, see
  `foundation.retry`)
- `buffer_body`: read a request body fully into memory so every retry
  attempt re-sends the same bytes
- `encode_json_body` / `encode_form_body`: body serialization with
  `RequestEncodingError` on failure
- `merge_headers`: case-insensitive merge of caller headers with forced ones
"""

import json
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict
from urllib3.util.retry import Retry

from foundation.exceptions import RequestEncodingError

# Default connection pool configuration
DEFAULT_POOL_CONNECTIONS = 10
DEFAULT_POOL_MAXSIZE = 10

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def create_session(
    pool_connections: int = DEFAULT_POOL_CONNECTIONS,
    pool_maxsize: int = DEFAULT_POOL_MAXSIZE,
) -> requests.Session:
    """Create a requests session with connection pooling and no adapter retries.

    urllib3 is told not to retry anything (connect, read, redirect or
    status) and not to raise on status, so a transport failure surfaces on
    the first attempt and every status code reaches the caller untouched.

    Args:
        pool_connections: Number of connection pools to cache.
        pool_maxsize: Maximum connections kept per pool.

    Returns:
        Configured requests.Session.

    Example:
        ```python
        from foundation.http import create_session

        session = create_session()
        response = session.get("http://api.example.com/health", timeout=5)
        ```
    """
    session = requests.Session()
    no_retries = Retry(total=0, connect=0, read=False, redirect=0, status=0, raise_on_status=False)
    adapter = HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=no_retries,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def buffer_body(body: Any) -> bytes | None:
    """Read a request body fully into memory.

    Args:
        body: None, bytes, str (encoded as UTF-8), a file-like object with
            ``read()``, or an iterable of bytes chunks.

    Returns:
        The body as bytes, or None for no body.

    Raises:
        RequestEncodingError: If the body type is not supported.
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, bytearray | memoryview):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if hasattr(body, "read"):
        data = body.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if isinstance(body, Iterable):
        chunks = []
        for chunk in body:
            chunks.append(chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk))
        return b"".join(chunks)

    msg = f"unsupported request body type: {type(body).__name__}"
    raise RequestEncodingError(msg)


def encode_json_body(params: Any) -> bytes | None:
    """Serialize ``params`` as a JSON request body.

    Returns:
        UTF-8 JSON bytes, or None when ``params`` is None.

    Raises:
        RequestEncodingError: If ``params`` is not JSON serializable.
    """
    if params is None:
        return None
    try:
        return json.dumps(params).encode("utf-8")
    except (TypeError, ValueError) as e:
        msg = f"unable to encode JSON body: {e}"
        raise RequestEncodingError(msg) from e


def encode_form_body(params: Mapping[str, Any] | None) -> bytes | None:
    """Serialize a mapping as an URL-encoded form body.

    Sequence values are encoded as repeated keys.

    Raises:
        RequestEncodingError: If ``params`` cannot be URL-encoded.
    """
    if params is None:
        return None
    try:
        return urlencode(params, doseq=True).encode("ascii")
    except (TypeError, ValueError) as e:
        msg = f"unable to encode form body: {e}"
        raise RequestEncodingError(msg) from e


def merge_headers(
    headers: Mapping[str, str] | None,
    forced: Mapping[str, str] | None = None,
) -> CaseInsensitiveDict:
    """Merge caller headers with forced ones; forced keys win."""
    merged: CaseInsensitiveDict = CaseInsensitiveDict(headers or {})
    for key, value in (forced or {}).items():
        merged[key] = value
    return merged
