"""Integer extraction from JSON objects by dotted key path.

Keys are given as ``"key1.nested1.nested2"``. The value found may be a JSON
number (floats are truncated toward zero) or a string holding an integer
literal, optionally with a ``0x``/``0o``/``0b`` prefix.
"""

import json
from typing import IO, Any

from foundation.exceptions import ParseError


def _decode(text: str | bytes) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except ValueError as e:
        msg = f"error decoding payload: {e}"
        raise ParseError(msg) from e
    if not isinstance(payload, dict):
        msg = f"error decoding payload: expected a JSON object, got {type(payload).__name__}"
        raise ParseError(msg)
    return payload


def nested_lookup(mapping: dict[str, Any], key_path: str) -> Any:
    """Follow ``key_path`` through nested objects.

    Raises:
        ParseError: If a key is missing or an intermediate value is not an
            object.
    """
    head, _, rest = key_path.partition(".")
    if head not in mapping:
        msg = f"key {head} not found"
        raise ParseError(msg)

    value = mapping[head]
    if not rest:
        return value
    if not isinstance(value, dict):
        raise ParseError("nested key is not of type map")
    return nested_lookup(value, rest)


def _to_integer(value: Any, key: str) -> int:
    # bool is an int subclass; JSON true/false are not numbers
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (OverflowError, ValueError) as e:
            msg = f"error parsing field {key}: {value} is not a finite number"
            raise ParseError(msg) from e
    if isinstance(value, str):
        msg = f"error parsing field {key}: invalid integer literal {value!r}"
        if value != value.strip():
            raise ParseError(msg)
        try:
            return int(value, 0)
        except ValueError as e:
            raise ParseError(msg) from e

    msg = f"error parsing field {key}: invalid type for payload: {type(value).__name__}"
    raise ParseError(msg)


def integer_json_string(text: str | bytes, key: str) -> int:
    """Parse ``text`` as a JSON object and return the integer at ``key``.

    Example:
        >>> integer_json_string('{"block": {"number": "0x1a"}}', "block.number")
        26

    Raises:
        ParseError: On invalid JSON, a missing key, or a value that is not
            an integer.
    """
    return _to_integer(nested_lookup(_decode(text), key), key)


def integer_from_json_payload(stream: IO[str] | IO[bytes], key: str) -> int:
    """Like `integer_json_string`, reading the JSON from a file-like object."""
    return integer_json_string(stream.read(), key)
