"""Response handling shared by the sync and async HTTP clients.

- `is_success`: 2xx check
- `parse_error_response`: turn a non-2xx response into `ResponseNotOKError`,
  pulling a human readable message out of common JSON error keys
- `decode_response`: decode a JSON body into a pydantic model, a plain
  dict/list, or any type pydantic can validate
"""

import json
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from foundation.exceptions import ResponseNotOKError, UpstreamError

T = TypeVar("T")

# Keys checked, in order, for an error message in JSON error bodies
ERROR_MESSAGE_KEYS: tuple[str, ...] = (
    "error",
    "message",
    "error_message",
    "errorMessage",
    "detail",
    "msg",
)


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def status_line(response: Any) -> str:
    """Return ``"<code> <reason>"`` for a requests or httpx response."""
    reason = getattr(response, "reason", None) or getattr(response, "reason_phrase", None) or ""
    return f"{response.status_code} {reason}".strip()


def _error_message(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    for key in ERROR_MESSAGE_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
        # {"error": {"message": "..."}}
        if isinstance(value, dict):
            nested = _error_message(value)
            if nested:
                return nested
    return None


def parse_error_response(response: Any) -> ResponseNotOKError:
    """Build a descriptive error for a non-2xx response.

    The message is ``"response not OK. <status line>"`` followed by
    ``": <message>"`` when the body is a JSON object carrying a non-empty
    string under one of `ERROR_MESSAGE_KEYS`.

    Args:
        response: requests.Response or httpx.Response.

    Returns:
        The exception to raise (it is returned, not raised).
    """
    base = f"response not OK. {status_line(response)}"
    body = response.text or ""

    try:
        data = json.loads(body)
    except ValueError:
        return ResponseNotOKError(base, status_code=response.status_code, body=body)

    message = _error_message(data)
    if message:
        return ResponseNotOKError(f"{base}: {message}", status_code=response.status_code, body=body)
    return ResponseNotOKError(base, status_code=response.status_code, body=body)


def decode_response(response: Any, response_type: type[T] | None = None) -> T | Any:
    """Decode a JSON response body.

    Args:
        response: requests.Response or httpx.Response.
        response_type: Pydantic model class, ``dict``, any type supported by
            `pydantic.TypeAdapter`, or None for the raw decoded JSON.

    Returns:
        The decoded body. An empty body decodes to None.

    Raises:
        UpstreamError: If the body is not JSON or does not match
            ``response_type``.
    """
    if not response.content:
        return None

    try:
        data = response.json()
    except ValueError as e:
        msg = f"unable to decode response body: {e}"
        raise UpstreamError(msg) from e

    if response_type is None:
        return data

    try:
        if isinstance(response_type, type) and issubclass(response_type, BaseModel):
            return response_type.model_validate(data)
        return TypeAdapter(response_type).validate_python(data)
    except ValidationError as e:
        msg = f"response body does not match {getattr(response_type, '__name__', response_type)}: {e}"
        raise UpstreamError(msg) from e
