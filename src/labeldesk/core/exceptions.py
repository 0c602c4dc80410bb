"""Application exception hierarchy mapped onto HTTP status codes."""
from typing import Any, Optional


class AppError(Exception):
    """Base error carrying an HTTP status and a client-facing message."""

    status_code = 500

    def __init__(
        self,
        message: str = "Internal server error",
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    """Missing or invalid input, or a duplicate unique field."""

    status_code = 400


class UnauthorizedError(AppError):
    """Missing credentials or failed login."""

    status_code = 401


class ForbiddenError(AppError):
    """Invalid credentials or insufficient role."""

    status_code = 403


class NotFoundError(AppError):
    status_code = 404
