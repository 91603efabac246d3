"""Error handling module with JSON problem details."""

from marketadmin.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ForbiddenError,
    InvalidCredentialError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    RateLimitError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from marketadmin.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    "AppException",
    "BadRequestError",
    "FieldError",
    "ForbiddenError",
    "InvalidCredentialError",
    "InvalidTransitionError",
    "NotFoundError",
    "PersistenceError",
    "ProblemDetail",
    "RateLimitError",
    "ServiceUnavailableError",
    "UnauthorizedError",
    "register_exception_handlers",
]
