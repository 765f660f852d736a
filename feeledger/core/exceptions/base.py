from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class AuthorizationError(AppException):
    """Not authorized to perform action."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message=message, status_code=403)


class DuplicateError(AppException):
    """Duplicate resource."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})


class ConflictError(AppException):
    """Operation conflicts with the current state of the resource."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=409)


# --- Payment collection errors ---


class InvalidAmountError(AppException):
    """Payment amount is not positive or exceeds the outstanding balance."""

    def __init__(self, message: str, amount: Any = None, balance: Any = None):
        details: dict[str, Any] = {"field": "amount"}
        if amount is not None:
            details["amount"] = str(amount)
        if balance is not None:
            details["balance"] = str(balance)
        super().__init__(message=message, status_code=422, details=details)


class InvalidMethodError(AppException):
    """Payment method is not one of the supported methods."""

    def __init__(self, method: Any):
        super().__init__(
            message=f"Invalid payment method: {method}",
            status_code=422,
            details={"field": "payment_method", "value": method},
        )


class MissingFieldError(AppException):
    """A field required by the chosen payment method is missing."""

    def __init__(self, field: str, method: str):
        label = field.replace("_", " ").capitalize()
        super().__init__(
            message=f"{label} is required for {method} payment",
            status_code=422,
            details={"field": field},
        )
