"""Tests for the tool response envelope."""

from dataclasses import asdict
from datetime import datetime, timezone

import pytest

from omnisearch_mcp.core.errors import (
    ApiError,
    InvalidInputError,
    RateLimitError,
    UpstreamProviderError,
)
from omnisearch_mcp.core.responses import (
    RESPONSE_VERSION,
    ErrorCode,
    ErrorType,
    error_response,
    internal_error_response,
    provider_error_response,
    success_response,
)


class TestSuccessResponse:
    def test_shape(self):
        response = asdict(success_response({"results": []}, count=0))
        assert response == {
            "success": True,
            "data": {"results": [], "count": 0},
            "error": None,
            "meta": {"version": RESPONSE_VERSION},
        }

    def test_meta_extras(self):
        response = success_response(warnings=["partial"], meta={"provider": "brave"})
        assert response.meta["warnings"] == ["partial"]
        assert response.meta["provider"] == "brave"


class TestErrorResponse:
    def test_defaults_to_internal(self):
        response = error_response("boom")
        assert response.success is False
        assert response.error == "boom"
        assert response.data["error_code"] == "INTERNAL_ERROR"
        assert response.data["error_type"] == "internal"

    def test_remediation_and_details(self):
        response = error_response(
            "bad",
            error_code=ErrorCode.VALIDATION_ERROR,
            error_type=ErrorType.VALIDATION,
            remediation="Fix the query",
            details={"field": "query"},
        )
        assert response.data["remediation"] == "Fix the query"
        assert response.data["details"] == {"field": "query"}


class TestProviderErrorResponse:
    """Tests for mapping the error taxonomy onto the envelope."""

    @pytest.mark.parametrize(
        "error,code,kind",
        [
            (InvalidInputError("bad", "tavily"), "VALIDATION_ERROR", "validation"),
            (ApiError("bad key", "tavily"), "UNAUTHORIZED", "authentication"),
            (RateLimitError("slow", "tavily"), "RATE_LIMITED", "rate_limit"),
            (UpstreamProviderError("down", "tavily"), "UNAVAILABLE", "unavailable"),
        ],
    )
    def test_kind_mapping(self, error, code, kind):
        response = provider_error_response(error)
        assert response.success is False
        assert response.data["error_code"] == code
        assert response.data["error_type"] == kind
        assert response.data["provider"] == "tavily"

    def test_message_names_provider(self):
        response = provider_error_response(InvalidInputError("Query cannot be empty", "brave"))
        assert response.error == "brave error: Query cannot be empty"

    def test_rate_limit_reset_in_meta(self):
        reset = datetime(2024, 1, 1, tzinfo=timezone.utc)
        response = provider_error_response(
            RateLimitError("slow", "brave", {"reset_time": reset})
        )
        assert response.meta["rate_limit"] == {"reset_at": reset.isoformat()}
        assert response.data["details"]["reset_time"] == reset.isoformat()


class TestInternalErrorResponse:
    def test_redacts_and_records_context(self):
        response = internal_error_response(
            RuntimeError("leaked api_key=abcdefgh12345"), tool="web_search"
        )
        assert response.data["error_code"] == "INTERNAL_ERROR"
        assert "abcdefgh12345" not in response.error
        assert response.data["details"] == {"tool": "web_search", "error_type": "RuntimeError"}
