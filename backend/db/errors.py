"""Database error helpers."""

from __future__ import annotations

from pymongo.errors import DuplicateKeyError, PyMongoError

DUPLICATE_KEY_ERROR_CODES = frozenset({11000, 11001})


def is_duplicate_key(error: PyMongoError) -> bool:
    """Return True when the error indicates a unique-index conflict."""
    if isinstance(error, DuplicateKeyError):
        return True
    code = getattr(error, "code", None)
    if code in DUPLICATE_KEY_ERROR_CODES:
        return True
    return "duplicate key" in str(error).lower()


__all__ = ["is_duplicate_key"]
