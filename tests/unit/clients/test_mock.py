"""Unit tests for clients.mock module.

# Test Coverage

The tests cover:
  - add_mocked_response_from_file: repeated answers, missing files
  - add_multiple_mocked_responses: ordered consumption and exhaustion
  - MockAdapter: call recording, unknown routes, URL normalization

# Running Tests

Run with: pytest tests/unit/clients/test_mock.py
"""

from pathlib import Path

import pytest

from clients.http import HTTPClient
from clients.mock import (
    MockAdapter,
    ResponseNotFoundError,
    add_mocked_response_from_file,
    add_multiple_mocked_responses,
)
from foundation.exceptions import TransportError

URL = "https://dummy.test/items"


class TestAddMockedResponseFromFile:
    """Test suite for add_mocked_response_from_file."""

    def test_serves_file_content_on_every_call(
        self, http_client: HTTPClient, mock_adapter: MockAdapter, samples_dir: Path
    ) -> None:
        """Test that a single registered response answers repeatedly.

        **Why this test is important:**
          - Tests exercising a polling loop need a stable answer

        **What it tests:**
          - The body is the file content
          - The same response is served on consecutive calls
          - The status line uses the standard reason phrase
        """
        add_mocked_response_from_file(mock_adapter, "GET", URL, 200, samples_dir / "item.json")

        first = http_client.get(URL)
        second = http_client.get(URL)

        assert first.json() == {"id": 1, "name": "first"}
        assert second.json() == first.json()
        assert first.reason == "OK"
        assert len(mock_adapter.calls) == 2

    def test_missing_file_raises(self, mock_adapter: MockAdapter, samples_dir: Path) -> None:
        with pytest.raises(FileNotFoundError):
            add_mocked_response_from_file(mock_adapter, "GET", URL, 200, samples_dir / "absent.json")

    def test_error_status_is_served(
        self, http_client: HTTPClient, mock_adapter: MockAdapter, samples_dir: Path
    ) -> None:
        add_mocked_response_from_file(mock_adapter, "GET", URL, 404, samples_dir / "not_found.json")

        response = http_client.get(URL)

        assert response.status_code == 404
        assert response.json() == {"error": "item not found"}


class TestAddMultipleMockedResponses:
    """Test suite for add_multiple_mocked_responses."""

    def test_responses_consumed_in_order_then_exhausted(
        self, http_client: HTTPClient, mock_adapter: MockAdapter, samples_dir: Path
    ) -> None:
        """Test ordered consumption and the error once responses run out.

        **Why this test is important:**
          - Pagination and retry tests depend on a precise answer sequence
          - A silent extra call must fail loudly

        **What it tests:**
          - Responses come back in registration order
          - The next call raises TransportError caused by ResponseNotFoundError
        """
        add_multiple_mocked_responses(
            mock_adapter, "GET", URL, 200, [samples_dir / "item.json", samples_dir / "item_2.json"]
        )

        assert http_client.get(URL).json()["id"] == 1
        assert http_client.get(URL).json()["id"] == 2

        with pytest.raises(TransportError) as exc_info:
            http_client.get(URL)

        assert isinstance(exc_info.value.__cause__, ResponseNotFoundError)

    def test_nothing_registered_when_a_file_is_missing(
        self, http_client: HTTPClient, mock_adapter: MockAdapter, samples_dir: Path
    ) -> None:
        with pytest.raises(FileNotFoundError):
            add_multiple_mocked_responses(
                mock_adapter, "GET", URL, 200, [samples_dir / "item.json", samples_dir / "absent.json"]
            )

        with pytest.raises(TransportError):
            http_client.get(URL)


class TestMockAdapter:
    """Test suite for MockAdapter routing."""

    def test_method_is_part_of_the_route(
        self, http_client: HTTPClient, mock_adapter: MockAdapter, samples_dir: Path
    ) -> None:
        add_mocked_response_from_file(mock_adapter, "get", URL, 200, samples_dir / "item.json")

        assert http_client.get(URL).status_code == 200
        with pytest.raises(TransportError, match="no mocked response for DELETE"):
            http_client.delete(URL)

    def test_urls_are_normalized(
        self, http_client: HTTPClient, mock_adapter: MockAdapter, samples_dir: Path
    ) -> None:
        add_mocked_response_from_file(mock_adapter, "GET", "https://dummy.test", 200, samples_dir / "item.json")

        assert http_client.get("https://dummy.test/").status_code == 200
        assert mock_adapter.calls[0].url == "https://dummy.test/"
