"""Post like/unlike state transitions and the post-liked notification."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from core import ConflictError, InvalidOperationError, NotFoundError
from db import POSTS_COLLECTION
from models import PostDocument, UserDocument, utcnow

from .events import EventPublisher
from .lookups import find_post, find_user

logger = logging.getLogger(__name__)

POST_LIKED_EVENT = "Post Liked"
POST_LIKED_CATEGORY = "engagement"
POST_LIKED_PRIORITY = "medium"

POST_NOT_FOUND = "Post not found"
USER_NOT_FOUND = "User not found"
ALREADY_LIKED = "Post already liked"
SELF_LIKE = "Cannot like your own post"
NOT_LIKED = "Post not liked by this user"


@dataclass(frozen=True)
class LikeOutcome:
    post: PostDocument
    liker: UserDocument
    like_count: int


@dataclass(frozen=True)
class UnlikeOutcome:
    post_id: str
    user_id: str
    like_count: int


async def like_post(database: AsyncDatabase, *, post_id: str, user_id: str) -> LikeOutcome:
    """Add ``user_id`` to the post's like set and bump its counter."""
    post, liker = await asyncio.gather(
        find_post(database, post_id),
        find_user(database, user_id),
    )
    if post is None:
        raise NotFoundError(POST_NOT_FOUND)
    if liker is None:
        raise NotFoundError(USER_NOT_FOUND)
    if post.is_liked_by(user_id):
        raise ConflictError(ALREADY_LIKED)
    if post.author_id == user_id:
        raise InvalidOperationError(SELF_LIKE)

    # The membership guard keeps a racing duplicate like from bumping the
    # counter a second time.
    updated = await database[POSTS_COLLECTION].find_one_and_update(
        {"postId": post_id, "likes": {"$ne": user_id}},
        {
            "$addToSet": {"likes": user_id},
            "$inc": {"likeCount": 1},
            "$set": {"updatedAt": utcnow()},
        },
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        if await find_post(database, post_id) is None:
            raise NotFoundError(POST_NOT_FOUND)
        raise ConflictError(ALREADY_LIKED)

    updated_post = PostDocument.model_validate(updated)
    return LikeOutcome(post=updated_post, liker=liker, like_count=updated_post.like_count)


async def unlike_post(database: AsyncDatabase, *, post_id: str, user_id: str) -> UnlikeOutcome:
    """Remove ``user_id`` from the post's like set and decrement its counter."""
    post = await find_post(database, post_id)
    if post is None:
        raise NotFoundError(POST_NOT_FOUND)
    if not post.is_liked_by(user_id):
        raise InvalidOperationError(NOT_LIKED)

    updated = await database[POSTS_COLLECTION].find_one_and_update(
        {"postId": post_id, "likes": user_id},
        {
            "$pull": {"likes": user_id},
            "$inc": {"likeCount": -1},
            "$set": {"updatedAt": utcnow()},
        },
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        if await find_post(database, post_id) is None:
            raise NotFoundError(POST_NOT_FOUND)
        raise InvalidOperationError(NOT_LIKED)

    stored_count = int(updated.get("likeCount") or 0)
    # Display value only; a drifted stored counter is left as is.
    return UnlikeOutcome(post_id=post_id, user_id=user_id, like_count=max(0, stored_count))


def build_post_liked_payload(
    *,
    post: PostDocument,
    liker: UserDocument,
    author: UserDocument,
) -> dict[str, Any]:
    return {
        "postId": post.post_id,
        "userId": liker.user_id,
        "authorId": post.author_id,
        "authorEmail": author.email,
        "authorName": author.name,
        "postTitle": post.title,
        "likerName": liker.name,
        "likerEmail": liker.email,
        "category": POST_LIKED_CATEGORY,
        "priority": POST_LIKED_PRIORITY,
    }


async def notify_post_liked(
    database: AsyncDatabase,
    publisher: EventPublisher,
    *,
    post: PostDocument,
    liker: UserDocument,
) -> None:
    """Publish the post-liked event; failures are logged and dropped.

    Runs after the like response has been sent. Nothing here may undo the
    stored like or reach the original caller.
    """
    log_context = {"post_id": post.post_id, "user_id": liker.user_id}
    try:
        author = await find_user(database, post.author_id)
        if author is None:
            logger.warning("Post author not found for like notification", extra=log_context)
            return

        payload = build_post_liked_payload(post=post, liker=liker, author=author)
        result = await publisher.publish(POST_LIKED_EVENT, payload)
    except Exception as exc:
        logger.warning(
            "Background post-liked notification failed",
            extra=log_context,
            exc_info=exc,
        )
        return

    if result.ok:
        logger.info(
            "Post-liked event published",
            extra={**log_context, "message_id": result.message_id},
        )
    else:
        logger.warning(
            "Post-liked event was not published",
            extra={**log_context, "error": result.error},
        )


__all__ = [
    "LikeOutcome",
    "POST_LIKED_EVENT",
    "UnlikeOutcome",
    "build_post_liked_payload",
    "like_post",
    "notify_post_liked",
    "unlike_post",
]
