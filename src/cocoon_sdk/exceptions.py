"""Exception classes for the Cocoon SDK."""

from __future__ import annotations

from typing import Any, ClassVar


class CocoonError(Exception):
    """Base exception for all Cocoon SDK errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class APIError(CocoonError):
    """Error returned from the Cocoon API.

    Attributes:
        status_code: HTTP status code from the API.
        details: Additional error details from the API.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.details = details or {}
        super().__init__(f"[{status_code}] {message}")

    @property
    def is_retryable(self) -> bool:
        """True if the same request may succeed later."""
        return self.status_code == 429 or self.status_code >= 500


class _StatusError(APIError):
    """API error bound to a single status code."""

    status: ClassVar[int]
    default_message: ClassVar[str]

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(self.status, message or self.default_message, details)


class AuthenticationError(_StatusError):
    """The access token is missing, invalid or expired."""

    status = 401
    default_message = "Authentication failed"


class NotFoundError(_StatusError):
    """Unknown project, signing key or Cocoon version."""

    status = 404
    default_message = "Resource not found"


class ConflictError(_StatusError):
    """The operation conflicts with the current state of the project."""

    status = 409
    default_message = "Resource conflict"


class ValidationError(_StatusError):
    """The API rejected the request payload, e.g. a malformed zip or config.xml."""

    status = 422
    default_message = "Validation error"


class RateLimitError(_StatusError):
    """Too many requests.

    Attributes:
        retry_after: Seconds to wait before retrying, when the API says so.
    """

    status = 429
    default_message = "Rate limit exceeded"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        retry_after: int | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, details)


class ConnectionError(CocoonError):
    """The Cocoon API could not be reached."""

    def __init__(
        self,
        message: str = "Failed to connect to Cocoon API",
        cause: Exception | None = None,
    ) -> None:
        self.cause = cause
        super().__init__(message)


class TimeoutError(CocoonError):
    """A single HTTP request took longer than the configured timeout."""

    def __init__(
        self, message: str = "Request timed out", timeout_seconds: float | None = None
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(message)


class CompilationTimeoutError(CocoonError):
    """A project was still compiling when the polling deadline expired.

    Attributes:
        project_id: Project being polled, if known.
        max_wait_time: The maximum wait that was exceeded, in seconds.
    """

    def __init__(
        self,
        message: str = "It wasn't possible to compile the project in the time limit frame.",
        project_id: str | None = None,
        max_wait_time: float | None = None,
    ) -> None:
        self.project_id = project_id
        self.max_wait_time = max_wait_time
        super().__init__(message)


_ERRORS_BY_STATUS: dict[int, type[_StatusError]] = {
    cls.status: cls
    for cls in (AuthenticationError, NotFoundError, ConflictError, ValidationError)
}

# Keys the API uses for the human-readable error, most specific first.
_MESSAGE_KEYS = ("description", "detail", "message", "error")


def raise_for_status(status_code: int, response_data: dict[str, Any] | None = None) -> None:
    """Raise the exception matching a failed HTTP status.

    Args:
        status_code: HTTP status code.
        response_data: Parsed JSON error body, if any.

    Raises:
        APIError: A status-specific subclass where one exists.
    """
    if status_code < 400:
        return

    data = response_data or {}
    message = next((str(data[k]) for k in _MESSAGE_KEYS if data.get(k)), "Unknown error")
    details = data.get("details")

    if status_code == RateLimitError.status:
        raise RateLimitError(message, details, retry_after=data.get("retry_after"))

    error_class = _ERRORS_BY_STATUS.get(status_code)
    if error_class is not None:
        raise error_class(message, details)
    raise APIError(status_code, message, details)
