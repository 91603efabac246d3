"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to JSON error responses by the exception handlers. Anything raised
before an entity write reaches the caller with a precise status code;
failures after the write are handled by the best-effort dispatcher and never
end up here.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
        headers: Extra response headers (rate limit metadata, for example)
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("User not found", resource="user", resource_id=user_id)
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    The admin guard raises this with one fixed message for every failure
    mode so callers cannot tell a missing token from a non-admin one.
    """

    message = "Unauthorized. Admin access required."
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """Raised when user lacks permission to access a resource."""

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class BadRequestError(AppException):
    """Raised for general client errors.

    Example:
        raise BadRequestError("Request body must be a JSON object")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class InvalidTransitionError(BadRequestError):
    """Raised when a requested status is outside the legal set, or the
    entity is not in a state the transition can start from.

    Example:
        raise InvalidTransitionError(
            "Invalid status. Valid values: active, under_review, rejected, inactive",
            details={"requested_status": "banned"},
        )
    """

    message = "Invalid status transition"
    error_code = "invalid_transition"


class RateLimitError(AppException):
    """Raised when rate limit is exceeded.

    Example:
        raise RateLimitError(
            "Too many requests. Please try again later.",
            details={"retry_after": 60},
            headers={"Retry-After": "60"},
        )
    """

    message = "Too many requests. Please try again later."
    error_code = "rate_limit_exceeded"
    status_code = 429


class PersistenceError(AppException):
    """Raised when writing a governed entity fails at the database level."""

    message = "Failed to persist the requested change"
    error_code = "persistence_failure"
    status_code = 500


class ServiceUnavailableError(AppException):
    """Raised when a required service is unavailable.

    Example:
        raise ServiceUnavailableError("Rate limiter backend unavailable")
    """

    message = "Service temporarily unavailable"
    error_code = "service_unavailable"
    status_code = 503


class InvalidCredentialError(Exception):
    """Raised by identity verifiers for a bad, expired or malformed token.

    Internal only: the authorization guard turns it into UnauthorizedError.
    """
