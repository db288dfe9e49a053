# Overview: Service error taxonomy shared by services and routes.

"""
Every failure a service raises on purpose is a ServiceError subclass.
The HTTP layer maps ``status_code`` straight onto the response, so a
route never has to know which service produced the error.

Errors are terminal for the request: nothing here is retried.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for expected, per-request failures."""
    status_code = 400

    def __init__(self, message: str, *, field: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.field:
            body["field"] = self.field
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    """Missing or malformed input."""
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class AuthorizationError(ServiceError):
    """Caller may not act on this station or resource."""
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """Business rule conflict: duplicates, illegal transitions, stock bounds."""
    status_code = 409


class InsufficientStockError(ConflictError):
    pass


class CapacityExceededError(ConflictError):
    pass
