"""Shared pytest configuration and fixtures.

This module provides global fixtures and configuration that are available
to all tests in the test suite.

Fixtures defined here are automatically available to all tests without explicit
import statements. Keep fixtures small, composable, and focused on setup/teardown.
Do NOT put business logic in fixtures.
"""

# pylint: disable=redefined-outer-name

from collections.abc import Callable, Iterator

import pytest

from config import get_settings
from foundation.environment import Environment, MappingEnvironment


@pytest.fixture
def make_environment() -> Callable[..., Environment]:
    """Build an `Environment` backed by the given variables.

    Returns:
        Factory taking keyword arguments (``make_environment(LOG_LEVEL="debug")``)
        or a single mapping.
    """

    def _make(values: dict[str, str] | None = None, **kwargs: str) -> Environment:
        return Environment(MappingEnvironment({**(values or {}), **kwargs}))

    return _make


@pytest.fixture
def empty_environment(make_environment: Callable[..., Environment]) -> Environment:
    """Environment with no variables set."""
    return make_environment()


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Reset the cached settings around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
