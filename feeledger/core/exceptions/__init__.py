from feeledger.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    DuplicateError,
    ConflictError,
    InvalidAmountError,
    InvalidMethodError,
    MissingFieldError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "DuplicateError",
    "ConflictError",
    "InvalidAmountError",
    "InvalidMethodError",
    "MissingFieldError",
]
