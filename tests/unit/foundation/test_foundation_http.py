"""Unit tests for foundation.http module.

This file tests the shared HTTP building blocks used by both clients.

# Test Coverage

The tests cover:
  - Session Creation: pooled adapters mounted for http and https, adapter
    level retries disabled
  - Body Buffering: bytes, str, file-like and iterable bodies, unsupported
    types
  - Body Encoding: JSON and URL-encoded forms, encoding failures
  - Header Merging: case-insensitive merge where forced headers win

# Test Structure

Tests use pytest class-based organization with descriptive test names.
Session creation is tested in isolation without network calls.

# Running Tests

Run with: pytest tests/unit/foundation/test_foundation_http.py
"""

import io

import pytest
import requests
from urllib3.util.retry import Retry

from foundation.exceptions import RequestEncodingError
from foundation.http import (
    DEFAULT_POOL_MAXSIZE,
    JSON_CONTENT_TYPE,
    buffer_body,
    create_session,
    encode_form_body,
    encode_json_body,
    merge_headers,
)

# =============================================================================
# Session Creation Tests
# =============================================================================


class TestCreateSession:
    """Test suite for create_session function."""

    def test_mounts_adapters_for_both_schemes(self) -> None:
        """Test that http and https share the same pooled adapter.

        **Why this test is important:**
          - Requests to either scheme must go through the configured pool
          - A missing mount silently falls back to requests' defaults

        **What it tests:**
          - Returns a requests.Session
          - The same adapter instance serves http:// and https://
        """
        session = create_session()

        assert isinstance(session, requests.Session)
        assert session.adapters["http://"] is session.adapters["https://"]
        assert session.adapters["http://"]._pool_maxsize == DEFAULT_POOL_MAXSIZE  # type: ignore[attr-defined]

    def test_adapter_never_retries(self) -> None:
        """Test that urllib3 retries are fully disabled.

        **Why this test is important:**
          - Retries are decided by the client's executor only
          - Adapter retries would multiply the number of attempts and retry
            transport errors, which must fail immediately

        **What it tests:**
          - total, connect, redirect and status retries are zero
          - read retries are disabled and status codes never raise
        """
        retry = create_session().adapters["https://"].max_retries  # type: ignore[attr-defined]

        assert isinstance(retry, Retry)
        assert retry.total == 0
        assert retry.connect == 0
        assert retry.read is False
        assert retry.redirect == 0
        assert retry.raise_on_status is False


# =============================================================================
# Body Buffering Tests
# =============================================================================


class TestBufferBody:
    """Test suite for buffer_body function."""

    def test_none_stays_none(self) -> None:
        assert buffer_body(None) is None

    def test_bytes_are_returned_as_is(self) -> None:
        assert buffer_body(b"abc") == b"abc"

    def test_str_is_utf8_encoded(self) -> None:
        assert buffer_body("héllo") == "héllo".encode()

    def test_file_like_is_read_once(self) -> None:
        """Test that file-like bodies are read fully up front.

        **Why this test is important:**
          - A stream can only be read once; retries need the same bytes

        **What it tests:**
          - Binary and text streams produce the full content as bytes
        """
        assert buffer_body(io.BytesIO(b"payload")) == b"payload"
        assert buffer_body(io.StringIO("payload")) == b"payload"

    def test_iterable_chunks_are_joined(self) -> None:
        assert buffer_body(iter([b"a", "b", bytearray(b"c")])) == b"abc"

    def test_unsupported_type_raises(self) -> None:
        with pytest.raises(RequestEncodingError, match="unsupported request body type: int"):
            buffer_body(42)


# =============================================================================
# Body Encoding Tests
# =============================================================================


class TestEncodeBodies:
    """Test suite for encode_json_body and encode_form_body."""

    def test_json_none_means_no_body(self) -> None:
        assert encode_json_body(None) is None

    def test_json_encodes_mapping(self) -> None:
        assert encode_json_body({"a": 1}) == b'{"a": 1}'

    def test_json_failure_raises_encoding_error(self) -> None:
        """Test that unserializable params fail locally.

        **Why this test is important:**
          - Serialization errors must never reach the network or be retried

        **What it tests:**
          - RequestEncodingError is raised with the cause chained
        """
        with pytest.raises(RequestEncodingError, match="unable to encode JSON body") as exc_info:
            encode_json_body({"a": object()})

        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_form_encodes_sequences_as_repeated_keys(self) -> None:
        assert encode_form_body({"a": "1", "b": ["x", "y"]}) == b"a=1&b=x&b=y"

    def test_form_none_means_no_body(self) -> None:
        assert encode_form_body(None) is None


# =============================================================================
# Header Merging Tests
# =============================================================================


class TestMergeHeaders:
    """Test suite for merge_headers function."""

    def test_forced_headers_override_caller_headers(self) -> None:
        """Test that forced headers win regardless of case.

        **Why this test is important:**
          - JSON helpers must always send the JSON content type even when the
            caller passes a conflicting one

        **What it tests:**
          - A lower-case caller key is replaced by the forced value
          - Unrelated caller headers are preserved
        """
        merged = merge_headers(
            {"content-type": "text/plain", "X-Trace": "abc"},
            {"Content-Type": JSON_CONTENT_TYPE},
        )

        assert merged["Content-Type"] == JSON_CONTENT_TYPE
        assert merged["x-trace"] == "abc"
        assert len(merged) == 2

    def test_handles_missing_inputs(self) -> None:
        assert dict(merge_headers(None, None)) == {}
