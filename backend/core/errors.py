"""Domain errors rendered as failure envelopes by the API layer."""

from __future__ import annotations

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto a client-facing status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """The requested state already holds, e.g. a post liked twice."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidOperationError(AppError):
    """The transition is not allowed from the current state."""

    status_code = status.HTTP_400_BAD_REQUEST


class ValidationFailedError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


__all__ = [
    "AppError",
    "ConflictError",
    "InvalidOperationError",
    "NotFoundError",
    "ValidationFailedError",
]
