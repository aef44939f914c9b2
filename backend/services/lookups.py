"""Single-document lookups shared by the routers and the like engine."""

from __future__ import annotations

from pymongo.asynchronous.database import AsyncDatabase

from db import POSTS_COLLECTION, USERS_COLLECTION
from models import PostDocument, UserDocument


async def find_post(database: AsyncDatabase, post_id: str) -> PostDocument | None:
    document = await database[POSTS_COLLECTION].find_one({"postId": post_id})
    return PostDocument.model_validate(document) if document is not None else None


async def find_user(database: AsyncDatabase, user_id: str) -> UserDocument | None:
    document = await database[USERS_COLLECTION].find_one({"userId": user_id})
    return UserDocument.model_validate(document) if document is not None else None


__all__ = ["find_post", "find_user"]
