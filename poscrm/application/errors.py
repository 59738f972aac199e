"""Application errors.

Each error carries the HTTP status it maps to, so the API layer can turn any
of them into a ``{message, errors?}`` response with a single handler.
"""
from typing import Any, Optional


class PosError(Exception):
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(PosError):
    """Malformed or missing input."""
    status_code = 400
    default_message = "Validation failed"


class StockError(ValidationError):
    """Product disabled or short on stock. The message names the product."""


class AuthenticationError(PosError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(PosError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(PosError):
    status_code = 404
    default_message = "Not found"


class PersistenceError(PosError):
    """Storage failure. The driver message is logged, never returned."""
    status_code = 500
    default_message = "Internal server error"
