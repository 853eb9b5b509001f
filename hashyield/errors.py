"""Typed application errors raised by services and mapped to HTTP statuses."""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that carry an HTTP status code."""

    status_code = 500

    def __init__(self, message: str = "Internal server error", status_code: Optional[int] = None,
                 details: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, **kwargs)


class ForbiddenError(AppError):
    status_code = 403

    def __init__(self, message: str = "Access denied", **kwargs):
        super().__init__(message, **kwargs)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, resource: str = "Resource", **kwargs):
        super().__init__(f"{resource} not found", **kwargs)
        self.resource = resource


class ConflictError(AppError):
    status_code = 409


class InsufficientBalanceError(AppError):
    status_code = 409

    def __init__(self, field: str, available, requested):
        super().__init__(
            f"Insufficient {field} balance: have {available}, need {requested}",
            details={"field": field, "available": str(available), "requested": str(requested)},
        )
        self.field = field
        self.available = available
        self.requested = requested


class StorageError(AppError):
    """Persistence failure, distinct from validation errors."""

    status_code = 500
