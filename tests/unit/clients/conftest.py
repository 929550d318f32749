"""Shared fixtures for client tests.

This module provides common fixtures used across all client test modules:
a recording sleep, sync clients wired to a `MockAdapter`, and the path of
the canned response files.
"""

# pylint: disable=redefined-outer-name
# Pytest fixtures intentionally redefine fixture names - this is expected behavior

from pathlib import Path

import pytest

from clients.http import HTTPClient
from clients.mock import MockAdapter, mount_mock_adapter
from foundation.retry import ConstantBackoff

SAMPLES_DIR = Path(__file__).parent / "samples"

# =============================================================================
# Common Fixtures
# =============================================================================


@pytest.fixture
def samples_dir() -> Path:
    """Directory holding the canned JSON response bodies."""
    return SAMPLES_DIR


@pytest.fixture
def sleeps() -> list[float]:
    """Record of every backoff wait requested by a client."""
    return []


# =============================================================================
# Sync Client Fixtures
# =============================================================================


@pytest.fixture
def http_client(sleeps: list[float]) -> HTTPClient:
    """HTTPClient with 3 retries, a constant 10ms backoff and no real sleeping.

    Returns:
        HTTPClient: Client whose waits are appended to ``sleeps``.
    """
    return HTTPClient(timeout=1.0, max_retries=3, backoff=ConstantBackoff(0.01), sleep=sleeps.append)


@pytest.fixture
def mock_adapter(http_client: HTTPClient) -> MockAdapter:
    """MockAdapter mounted on ``http_client``'s session."""
    return mount_mock_adapter(http_client)
