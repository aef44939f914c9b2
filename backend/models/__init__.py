"""Document models package."""

from .post import PostDocument
from .user import UserDocument, normalize_email, utcnow

__all__ = [
    "PostDocument",
    "UserDocument",
    "normalize_email",
    "utcnow",
]
