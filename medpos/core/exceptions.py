"""
Domain errors raised by the service layer.

Each error carries the HTTP status the API should answer with, so routers
never translate them by hand; ``medpos.main`` installs one handler for the
whole hierarchy.
"""
from typing import Iterable, Optional


class PosError(Exception):
    status_code = 500
    default_message = "An internal error occurred. Please try again later."

    def __init__(self, message: Optional[str] = None, *, errors: Optional[Iterable[str]] = None):
        self.message = message or self.default_message
        self.errors = list(errors or [])
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload = {"success": False, "message": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class InvalidInputError(PosError):
    """Malformed cart, non-positive quantity, price or discount out of range."""

    status_code = 400
    default_message = "Invalid input"


class NotFoundError(PosError):
    status_code = 404
    default_message = "Resource not found"


class InsufficientInventoryError(PosError):
    """One or more cart lines lack sufficient available, non-expired stock."""

    status_code = 400
    default_message = "Insufficient inventory"

    def __init__(self, errors: Iterable[str], message: Optional[str] = None):
        super().__init__(message, errors=errors)


class ConcurrencyConflictError(PosError):
    """Stock was drained between validation and decrement; retry with a fresh cart."""

    status_code = 409
    default_message = "Stock changed while the order was being processed"


class InvalidStateError(PosError):
    status_code = 400
    default_message = "Operation not allowed in the current state"


class ConflictError(PosError):
    status_code = 409
    default_message = "Resource already exists"


class AuthenticationError(PosError):
    status_code = 401
    default_message = "Not authenticated"


class PermissionDeniedError(PosError):
    status_code = 403
    default_message = "Access denied"


__all__ = [
    "AuthenticationError",
    "ConcurrencyConflictError",
    "ConflictError",
    "InsufficientInventoryError",
    "InvalidInputError",
    "InvalidStateError",
    "NotFoundError",
    "PermissionDeniedError",
    "PosError",
]
