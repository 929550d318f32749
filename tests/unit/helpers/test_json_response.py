"""Unit tests for helpers.json_response module.

# Test Coverage

The tests cover:
  - respond_with_json: status, content type, JSON body, pydantic models,
    unencodable payloads
  - respond_with_error: error envelope
  - Integration with a FastAPI application through TestClient

# Running Tests

Run with: pytest tests/unit/helpers/test_json_response.py
"""

import json

import pytest
from fastapi import FastAPI, Response
from fastapi.testclient import TestClient
from pydantic import BaseModel

from helpers.json_response import respond_with_error, respond_with_json


class Item(BaseModel):
    id: int
    name: str


@pytest.fixture
def client() -> TestClient:
    """FastAPI app with one route per response helper."""
    app = FastAPI()

    @app.get("/items/{item_id}")
    def read_item(item_id: int) -> Response:
        if item_id != 1:
            return respond_with_error(404, "item not found")
        return respond_with_json(200, Item(id=1, name="first"))

    return TestClient(app)


class TestRespondWithJSON:
    """Test suite for respond_with_json."""

    def test_encodes_payload(self) -> None:
        response = respond_with_json(201, {"id": 7, "tags": ["a"]})

        assert response.status_code == 201
        assert response.media_type == "application/json"
        assert json.loads(response.body) == {"id": 7, "tags": ["a"]}

    def test_encodes_pydantic_model(self) -> None:
        response = respond_with_json(200, Item(id=1, name="first"))

        assert json.loads(response.body) == {"id": 1, "name": "first"}

    def test_unencodable_payload_raises(self) -> None:
        """Test that encoding failures are not swallowed.

        **Why this test is important:**
          - A handler returning an empty 200 on a bug would hide the failure

        **What it tests:**
          - TypeError propagates to the caller
        """
        with pytest.raises(TypeError):
            respond_with_json(200, {"when": object()})


class TestRespondWithError:
    """Test suite for respond_with_error."""

    def test_wraps_message(self) -> None:
        response = respond_with_error(400, "bad input")

        assert response.status_code == 400
        assert json.loads(response.body) == {"error": "bad input"}


class TestFastAPIIntegration:
    """Test suite for the helpers inside a FastAPI route."""

    def test_success_route(self, client: TestClient) -> None:
        response = client.get("/items/1")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"id": 1, "name": "first"}

    def test_error_route(self, client: TestClient) -> None:
        response = client.get("/items/2")

        assert response.status_code == 404
        assert response.json() == {"error": "item not found"}
