"""Post CRUD and like endpoints."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from api.deps import get_db, get_event_publisher
from core import NotFoundError
from db import POSTS_COLLECTION, USERS_COLLECTION
from models import PostDocument, UserDocument, utcnow
from services import EventPublisher, post_likes
from services.lookups import find_post, find_user
from .pagination import (
    DEFAULT_POST_PAGE_SIZE,
    MAX_PAGE_SIZE,
    set_next_offset_header,
    split_page,
)
from .responses import success

router = APIRouter(prefix="/posts", tags=["posts"])
MAX_POST_TITLE_LENGTH = 200
MAX_POST_CONTENT_LENGTH = 5000
POST_SORT = [("createdAt", DESCENDING), ("postId", DESCENDING)]
logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PostCreateRequest(_CamelModel):
    author_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=MAX_POST_TITLE_LENGTH)
    content: str = Field(min_length=1, max_length=MAX_POST_CONTENT_LENGTH)


class PostUpdateRequest(_CamelModel):
    title: str | None = Field(default=None, max_length=MAX_POST_TITLE_LENGTH)
    content: str | None = Field(default=None, max_length=MAX_POST_CONTENT_LENGTH)


class PostLikeRequest(_CamelModel):
    user_id: str = Field(min_length=1)


async def _load_users(
    database: AsyncDatabase,
    user_ids: Iterable[str],
) -> dict[str, UserDocument]:
    unique_ids = sorted(set(user_ids))
    if not unique_ids:
        return {}
    cursor = database[USERS_COLLECTION].find({"userId": {"$in": unique_ids}})
    users = [UserDocument.model_validate(document) for document in await cursor.to_list()]
    return {user.user_id: user for user in users}


def _with_author(post: PostDocument, author: UserDocument | None) -> dict[str, Any]:
    return {
        **post.to_public(),
        "author": author.to_summary() if author is not None else None,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreateRequest,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    author = await find_user(database, payload.author_id)
    if author is None:
        raise NotFoundError("Author not found")

    post = PostDocument(
        author_id=author.user_id,
        title=payload.title,
        content=payload.content,
    )
    await database[POSTS_COLLECTION].insert_one(post.to_document())

    logger.info("Post created", extra={"post_id": post.post_id, "author_id": author.user_id})
    return success(_with_author(post, author), message="Post created successfully")


@router.get("")
async def list_posts(
    response: Response,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_POST_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    cursor = (
        database[POSTS_COLLECTION]
        .find({})
        .sort(POST_SORT)
        .skip(offset)
        .limit(limit + 1)
    )
    documents, has_more = split_page(await cursor.to_list(), limit)
    set_next_offset_header(response, offset=offset, limit=limit, has_more=has_more)

    posts = [PostDocument.model_validate(document) for document in documents]
    authors = await _load_users(database, (post.author_id for post in posts))
    data = [_with_author(post, authors.get(post.author_id)) for post in posts]
    return success(data, count=len(data))


@router.get("/author/{author_id}")
async def list_posts_by_author(
    author_id: str,
    response: Response,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_POST_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    author = await find_user(database, author_id)
    if author is None:
        raise NotFoundError("Author not found")

    cursor = (
        database[POSTS_COLLECTION]
        .find({"authorId": author_id})
        .sort(POST_SORT)
        .skip(offset)
        .limit(limit + 1)
    )
    documents, has_more = split_page(await cursor.to_list(), limit)
    set_next_offset_header(response, offset=offset, limit=limit, has_more=has_more)

    data = [_with_author(PostDocument.model_validate(document), author) for document in documents]
    return success(data, count=len(data))


@router.get("/{post_id}")
async def get_post(
    post_id: str,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    post = await find_post(database, post_id)
    if post is None:
        raise NotFoundError("Post not found")

    author = await find_user(database, post.author_id)
    return success(_with_author(post, author))


@router.put("/{post_id}")
async def update_post(
    post_id: str,
    payload: PostUpdateRequest,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    updates: dict[str, Any] = {}
    if payload.title:
        updates["title"] = payload.title
    if payload.content:
        updates["content"] = payload.content
    updates["updatedAt"] = utcnow()

    updated = await database[POSTS_COLLECTION].find_one_and_update(
        {"postId": post_id},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFoundError("Post not found")

    post = PostDocument.model_validate(updated)
    author = await find_user(database, post.author_id)
    return success(_with_author(post, author), message="Post updated successfully")


@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    # The like set is embedded, so removing the document removes it too.
    deleted = await database[POSTS_COLLECTION].find_one_and_delete({"postId": post_id})
    if deleted is None:
        raise NotFoundError("Post not found")

    logger.info("Post deleted", extra={"post_id": post_id})
    return success({"postId": post_id}, message="Post deleted successfully")


@router.get("/{post_id}/likes")
async def get_post_likes(
    post_id: str,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    post = await find_post(database, post_id)
    if post is None:
        raise NotFoundError("Post not found")

    # Users deleted after liking are skipped rather than reported.
    likers = await _load_users(database, post.likes)
    likes = [likers[user_id].to_summary() for user_id in post.likes if user_id in likers]
    return success({"postId": post_id, "likeCount": post.like_count, "likes": likes})


@router.post("/{post_id}/like")
async def like_post(
    post_id: str,
    payload: PostLikeRequest,
    background_tasks: BackgroundTasks,
    database: AsyncDatabase = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> dict[str, Any]:
    outcome = await post_likes.like_post(database, post_id=post_id, user_id=payload.user_id)

    # Runs after the response is sent; its failures never reach this caller.
    background_tasks.add_task(
        post_likes.notify_post_liked,
        database,
        publisher,
        post=outcome.post,
        liker=outcome.liker,
    )
    return success(
        {
            "postId": post_id,
            "userId": payload.user_id,
            "likeCount": outcome.like_count,
            "eventPublished": True,
        },
        message="Post liked successfully",
    )


@router.delete("/{post_id}/like")
async def unlike_post(
    post_id: str,
    payload: PostLikeRequest,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    outcome = await post_likes.unlike_post(database, post_id=post_id, user_id=payload.user_id)
    return success(
        {
            "postId": outcome.post_id,
            "userId": outcome.user_id,
            "likeCount": outcome.like_count,
        },
        message="Post unliked successfully",
    )
