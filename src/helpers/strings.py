"""String collection helpers."""

from collections.abc import Iterable


def exact_contains(items: Iterable[str], value: str) -> bool:
    """True if ``value`` equals one of ``items`` (case-sensitive, no substring match)."""
    return any(item == value for item in items)
