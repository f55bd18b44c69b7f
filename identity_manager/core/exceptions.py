"""Typed errors raised by services and the authorization gate.

Each error carries the HTTP status it maps to at the API boundary and the
short label used in the ``error`` field of the response body.
"""

from typing import Any


class IdentityManagerError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(IdentityManagerError):
    """Raised when a resource does not exist."""

    status_code = 404
    error = "Not Found"

    def __init__(self, resource: str, field: str | None = None, value: Any = None, message: str | None = None):
        self.resource = resource
        self.field = field
        self.value = value
        if message is None:
            message = f"{resource} not found with {field}: '{value}'" if field else f"{resource} not found"
        super().__init__(message)


class DuplicateResourceError(IdentityManagerError):
    """Raised when creating a resource would violate a uniqueness rule."""

    status_code = 409
    error = "Conflict"

    def __init__(self, resource: str, field: str, value: Any):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} already exists with {field}: '{value}'")


class ValidationError(IdentityManagerError):
    """Raised when one or more fields fail validation."""

    status_code = 400
    error = "Validation Failed"

    def __init__(self, field_errors: dict[str, str], message: str = "Validation failed"):
        self.field_errors = dict(field_errors)
        super().__init__(message)


class InvalidArgumentError(IdentityManagerError):
    """Raised for malformed arguments such as unknown enum literals."""

    status_code = 400
    error = "Bad Request"


class UnauthorizedError(IdentityManagerError):
    """Raised when a request carries no valid identity."""

    status_code = 401
    error = "Unauthorized"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(IdentityManagerError):
    """Raised when an identity lacks the role a route requires."""

    status_code = 403
    error = "Forbidden"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)
