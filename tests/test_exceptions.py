"""Tests for exception classes and status mapping."""

from __future__ import annotations

import pytest

from cocoon_sdk.exceptions import (
    APIError,
    AuthenticationError,
    CocoonError,
    CompilationTimeoutError,
    ConflictError,
    NotFoundError,
    RateLimitError,
    ValidationError,
    raise_for_status,
)


class TestRaiseForStatus:
    """Tests for raise_for_status."""

    @pytest.mark.parametrize(
        "status_code,error_class",
        [
            (401, AuthenticationError),
            (404, NotFoundError),
            (409, ConflictError),
            (422, ValidationError),
            (429, RateLimitError),
            (400, APIError),
            (500, APIError),
        ],
    )
    def test_status_mapping(self, status_code, error_class):
        """Test the exception raised for each status code."""
        with pytest.raises(error_class) as exc_info:
            raise_for_status(status_code, {"message": "failed"})

        assert exc_info.value.status_code == status_code

    def test_success_does_not_raise(self):
        """Test that success codes are ignored."""
        raise_for_status(200, {})
        raise_for_status(204)

    def test_message_precedence(self):
        """Test that the API description is preferred."""
        with pytest.raises(APIError) as exc_info:
            raise_for_status(400, {"description": "Invalid zip", "message": "Bad request"})

        assert str(exc_info.value) == "[400] Invalid zip"

    def test_unknown_error(self):
        """Test the message when the body has no error text."""
        with pytest.raises(APIError) as exc_info:
            raise_for_status(500, None)

        assert "Unknown error" in str(exc_info.value)

    def test_retry_after(self):
        """Test that the rate limit delay is kept."""
        with pytest.raises(RateLimitError) as exc_info:
            raise_for_status(429, {"message": "Slow down", "retry_after": 30})

        assert exc_info.value.retry_after == 30


class TestExceptions:
    """Tests for exception attributes."""

    @pytest.mark.parametrize("status_code,retryable", [(429, True), (503, True), (404, False)])
    def test_is_retryable(self, status_code, retryable):
        """Test which API errors can be retried."""
        assert APIError(status_code, "error").is_retryable is retryable

    def test_default_messages(self):
        """Test the message used when the API gives none."""
        assert str(NotFoundError()) == "[404] Resource not found"
        assert str(AuthenticationError("Token expired")) == "[401] Token expired"

    def test_status_errors_are_api_errors(self):
        """Test that status-specific errors share the APIError base."""
        error = ConflictError("Project is compiling", {"state": "compiling"})

        assert isinstance(error, APIError)
        assert error.status_code == 409
        assert error.details == {"state": "compiling"}

    def test_compilation_timeout(self):
        """Test the compilation timeout error."""
        error = CompilationTimeoutError(project_id="prj_1", max_wait_time=60)

        assert isinstance(error, CocoonError)
        assert error.message == "It wasn't possible to compile the project in the time limit frame."
        assert error.max_wait_time == 60
