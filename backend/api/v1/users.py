"""User CRUD and lookup endpoints."""

from __future__ import annotations

import logging
import re
from typing import Annotated, Any, NoReturn

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, EmailStr, Field
from pymongo import DESCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from api.deps import get_db
from core import ConflictError, NotFoundError, ValidationFailedError
from db import USERS_COLLECTION, is_duplicate_key
from models import UserDocument, normalize_email, utcnow
from services.lookups import find_user
from .pagination import (
    DEFAULT_SEARCH_PAGE_SIZE,
    DEFAULT_USER_PAGE_SIZE,
    MAX_PAGE_SIZE,
    set_next_offset_header,
    split_page,
)
from .responses import success

router = APIRouter(prefix="/users", tags=["users"])
MAX_USER_NAME_LENGTH = 80
MIN_SEARCH_QUERY_LENGTH = 2
logger = logging.getLogger(__name__)


class UserCreateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=MAX_USER_NAME_LENGTH)
    email: EmailStr | None = None


class UserUpdateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=MAX_USER_NAME_LENGTH)
    email: EmailStr | None = None


def _raise_user_not_found() -> NoReturn:
    raise NotFoundError("User not found")


async def _email_in_use(database: AsyncDatabase, email: str) -> bool:
    return await database[USERS_COLLECTION].find_one({"email": email}) is not None


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    name = (payload.name or "").strip()
    if not name or payload.email is None:
        raise ValidationFailedError("Name and email are required")

    email = normalize_email(payload.email)
    if await _email_in_use(database, email):
        raise ConflictError("User already exists with this email")

    user = UserDocument(name=name, email=email)
    try:
        await database[USERS_COLLECTION].insert_one(user.to_document())
    except PyMongoError as exc:
        if not is_duplicate_key(exc):
            raise
        raise ConflictError("User already exists with this email") from exc

    logger.info("User created", extra={"user_id": user.user_id})
    return success(user.to_public(), message="User created successfully")


@router.get("")
async def list_users(
    response: Response,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_USER_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    cursor = (
        database[USERS_COLLECTION]
        .find({})
        .sort([("createdAt", DESCENDING), ("userId", DESCENDING)])
        .skip(offset)
        .limit(limit + 1)
    )
    documents, has_more = split_page(await cursor.to_list(), limit)
    set_next_offset_header(response, offset=offset, limit=limit, has_more=has_more)

    users = [UserDocument.model_validate(document).to_public() for document in documents]
    return success(users, count=len(users), message=f"Found {len(users)} users")


@router.get("/search")
async def search_users(
    query: Annotated[str | None, Query()] = None,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    normalized_query = (query or "").strip()
    if len(normalized_query) < MIN_SEARCH_QUERY_LENGTH:
        raise ValidationFailedError(
            f"Search query must be at least {MIN_SEARCH_QUERY_LENGTH} characters"
        )

    pattern = re.escape(normalized_query)
    cursor = (
        database[USERS_COLLECTION]
        .find(
            {
                "$or": [
                    {"name": {"$regex": pattern, "$options": "i"}},
                    {"email": {"$regex": pattern, "$options": "i"}},
                ]
            }
        )
        .sort("name", 1)
        .limit(DEFAULT_SEARCH_PAGE_SIZE)
    )
    users = [UserDocument.model_validate(document).to_public() for document in await cursor.to_list()]
    return success(
        users,
        count=len(users),
        query=normalized_query,
        message=f'Found {len(users)} users matching "{normalized_query}"',
    )


@router.get("/email/{email}")
async def get_user_by_email(
    email: str,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    document = await database[USERS_COLLECTION].find_one({"email": normalize_email(email)})
    if document is None:
        raise NotFoundError("User not found with this email")
    return success(UserDocument.model_validate(document).to_public())


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    user = await find_user(database, user_id)
    if user is None:
        _raise_user_not_found()
    return success(user.to_public())


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    user = await find_user(database, user_id)
    if user is None:
        _raise_user_not_found()

    updates: dict[str, Any] = {}
    if payload.name is not None and payload.name.strip():
        updates["name"] = payload.name.strip()
    if payload.email is not None:
        email = normalize_email(payload.email)
        if email != user.email and await _email_in_use(database, email):
            raise ConflictError("Email already exists")
        updates["email"] = email

    if not updates:
        return success(user.to_public(), message="User updated successfully")

    updates["updatedAt"] = utcnow()
    try:
        updated = await database[USERS_COLLECTION].find_one_and_update(
            {"userId": user_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
    except PyMongoError as exc:
        if not is_duplicate_key(exc):
            raise
        raise ConflictError("Email already exists") from exc
    if updated is None:
        _raise_user_not_found()

    return success(
        UserDocument.model_validate(updated).to_public(),
        message="User updated successfully",
    )


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    database: AsyncDatabase = Depends(get_db),
) -> dict[str, Any]:
    deleted = await database[USERS_COLLECTION].find_one_and_delete({"userId": user_id})
    if deleted is None:
        _raise_user_not_found()

    # Likes and posts referencing this user are left in place.
    user = UserDocument.model_validate(deleted)
    logger.info("User deleted", extra={"user_id": user_id})
    return success(user.to_summary(), message="User deleted successfully")
