"""Database helpers."""

from .errors import is_duplicate_key
from .mongo import POSTS_COLLECTION, USERS_COLLECTION, MongoResources, ensure_indexes

__all__ = [
    "MongoResources",
    "POSTS_COLLECTION",
    "USERS_COLLECTION",
    "ensure_indexes",
    "is_duplicate_key",
]
