"""Core configuration, logging and error types."""

from .config import Settings, settings
from .errors import (
    AppError,
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    ValidationFailedError,
)
from .logging_config import configure_logging

__all__ = [
    "Settings",
    "settings",
    "configure_logging",
    "AppError",
    "ConflictError",
    "InvalidOperationError",
    "NotFoundError",
    "ValidationFailedError",
]
