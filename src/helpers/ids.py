"""Random identifiers from the OS CSPRNG."""

import math
import secrets


def generate_id(length: int) -> str:
    """Random hex id of ``length`` characters, rounded up to an even length.

    Raises:
        ValueError: If length is negative.
    """
    if length < 0:
        raise ValueError("length must be non-negative")
    return secrets.token_hex(math.ceil(length / 2))


def hex_string(n: int) -> str:
    """Random hex string of ``n`` characters, rounded down to an even length.

    Raises:
        ValueError: If n is negative.
    """
    if n < 0:
        raise ValueError("n must be non-negative")
    return secrets.token_hex(n // 2)
