"""Pytest fixtures for the insyd backend."""

from __future__ import annotations

import re
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from copy import deepcopy
from types import SimpleNamespace
from typing import Any

import pytest
import pytest_asyncio
from bson import ObjectId
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pymongo.errors import DuplicateKeyError

from api.deps import get_db, get_event_publisher
from app import create_app
from db import POSTS_COLLECTION, USERS_COLLECTION
from models import PostDocument, UserDocument
from services import EventPublisher

TEST_EVENT_BUS = "test-notification-bus"
TEST_EVENT_SOURCE = "insyd.test"


def _values_equal(value: Any, expected: Any) -> bool:
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def _matches_operators(value: Any, condition: dict[str, Any]) -> bool:
    for operator, operand in condition.items():
        if operator == "$options":
            continue
        if operator == "$in":
            if isinstance(value, list):
                matched = any(item in operand for item in value)
            else:
                matched = value in operand
        elif operator == "$ne":
            matched = not _values_equal(value, operand)
        elif operator == "$regex":
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            matched = isinstance(value, str) and re.search(operand, value, flags) is not None
        else:
            raise NotImplementedError(f"Unsupported query operator {operator}")
        if not matched:
            return False
    return True


def _matches(document: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(_matches(document, branch) for branch in condition):
                return False
            continue
        value = document.get(key)
        if isinstance(condition, dict) and any(name.startswith("$") for name in condition):
            if not _matches_operators(value, condition):
                return False
        elif not _values_equal(value, condition):
            return False
    return True


def _apply_update(document: dict[str, Any], update: dict[str, Any]) -> None:
    for operator, fields in update.items():
        for field, operand in fields.items():
            if operator == "$set":
                document[field] = operand
            elif operator == "$inc":
                document[field] = document.get(field, 0) + operand
            elif operator == "$addToSet":
                values = document.setdefault(field, [])
                if operand not in values:
                    values.append(operand)
            elif operator == "$pull":
                document[field] = [item for item in document.get(field, []) if item != operand]
            else:
                raise NotImplementedError(f"Unsupported update operator {operator}")


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is None, value if value is not None else 0)


class InMemoryCursor:
    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents
        self._sort: list[tuple[str, int]] = []
        self._skip = 0
        self._limit = 0

    def sort(self, key_or_list: Any, direction: int | None = None) -> "InMemoryCursor":
        if isinstance(key_or_list, str):
            self._sort = [(key_or_list, direction or 1)]
        else:
            self._sort = list(key_or_list)
        return self

    def skip(self, count: int) -> "InMemoryCursor":
        self._skip = count
        return self

    def limit(self, count: int) -> "InMemoryCursor":
        self._limit = count
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        documents = list(self._documents)
        for key, direction in reversed(self._sort):
            documents.sort(key=lambda document: _sort_key(document.get(key)), reverse=direction < 0)
        documents = documents[self._skip:]
        if self._limit:
            documents = documents[: self._limit]
        if length:
            documents = documents[:length]
        return documents


class InMemoryCollection:
    """Implements the slice of the async PyMongo collection API the app uses."""

    def __init__(self) -> None:
        self.documents: list[dict[str, Any]] = []
        self.indexes: list[tuple[Any, bool]] = []
        self.unique_fields: set[str] = set()

    async def create_index(self, keys: Any, unique: bool = False, **_: Any) -> str:
        self.indexes.append((keys, unique))
        if unique:
            field = keys if isinstance(keys, str) else keys[0][0]
            self.unique_fields.add(field)
        return f"index_{len(self.indexes)}"

    def _check_unique(self, candidate: dict[str, Any], *, ignore: dict[str, Any] | None = None) -> None:
        for field in self.unique_fields:
            for existing in self.documents:
                if existing is ignore:
                    continue
                if field in candidate and existing.get(field) == candidate[field]:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: {field}",
                        code=11000,
                    )

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        for document in self.documents:
            if _matches(document, query):
                return deepcopy(document)
        return None

    def find(self, query: dict[str, Any] | None = None) -> InMemoryCursor:
        return InMemoryCursor(
            [deepcopy(document) for document in self.documents if _matches(document, query or {})]
        )

    async def insert_one(self, document: dict[str, Any]) -> SimpleNamespace:
        self._check_unique(document)
        document.setdefault("_id", ObjectId())
        self.documents.append(deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one_and_update(
        self,
        query: dict[str, Any],
        update: dict[str, Any],
        return_document: bool = False,
        **_: Any,
    ) -> dict[str, Any] | None:
        for index, document in enumerate(self.documents):
            if not _matches(document, query):
                continue
            updated = deepcopy(document)
            _apply_update(updated, update)
            self._check_unique(updated, ignore=document)
            self.documents[index] = updated
            return deepcopy(updated if return_document else document)
        return None

    async def find_one_and_delete(self, query: dict[str, Any]) -> dict[str, Any] | None:
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                return self.documents.pop(index)
        return None

    async def delete_many(self, query: dict[str, Any]) -> SimpleNamespace:
        kept = [document for document in self.documents if not _matches(document, query)]
        deleted = len(self.documents) - len(kept)
        self.documents = kept
        return SimpleNamespace(deleted_count=deleted)


class InMemoryDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, InMemoryCollection] = {}

    def __getitem__(self, name: str) -> InMemoryCollection:
        return self.collections.setdefault(name, InMemoryCollection())


class RecordingEventBridge:
    """Stands in for the boto3 EventBridge client."""

    def __init__(self) -> None:
        self.calls: list[list[dict[str, Any]]] = []
        self.error: Exception | None = None
        self.failed_entry_count = 0

    @property
    def entries(self) -> list[dict[str, Any]]:
        return [entry for call in self.calls for entry in call]

    def put_events(self, Entries: list[dict[str, Any]]) -> dict[str, Any]:  # noqa: N803
        if self.error is not None:
            raise self.error
        self.calls.append(Entries)
        if self.failed_entry_count:
            return {
                "FailedEntryCount": self.failed_entry_count,
                "Entries": [{"ErrorCode": "InternalFailure", "ErrorMessage": "boom"}],
            }
        return {
            "FailedEntryCount": 0,
            "Entries": [{"EventId": f"event-{len(self.calls)}"}],
        }


@pytest.fixture()
def mongo_db() -> InMemoryDatabase:
    """Return a fresh in-memory database for each test."""
    return InMemoryDatabase()


@pytest.fixture()
def eventbridge() -> RecordingEventBridge:
    return RecordingEventBridge()


@pytest.fixture()
def event_publisher(eventbridge: RecordingEventBridge) -> EventPublisher:
    return EventPublisher(eventbridge, bus_name=TEST_EVENT_BUS, source=TEST_EVENT_SOURCE)


@pytest.fixture()
def app(mongo_db: InMemoryDatabase, event_publisher: EventPublisher) -> Iterator[FastAPI]:
    """Create the FastAPI app with in-memory store and event bus overrides."""
    application = create_app()
    application.dependency_overrides[get_db] = lambda: mongo_db
    application.dependency_overrides[get_event_publisher] = lambda: event_publisher
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def make_user(mongo_db: InMemoryDatabase) -> Callable[..., Awaitable[UserDocument]]:
    """Insert a user document directly into the store."""

    async def _make_user(name: str = "Test User", email: str | None = None) -> UserDocument:
        user = UserDocument(name=name, email=email or f"{name.lower().replace(' ', '.')}@example.com")
        await mongo_db[USERS_COLLECTION].insert_one(user.to_document())
        return user

    return _make_user


@pytest.fixture()
def make_post(mongo_db: InMemoryDatabase) -> Callable[..., Awaitable[PostDocument]]:
    """Insert a post document directly into the store."""

    async def _make_post(
        author: UserDocument,
        *,
        title: str = "A post",
        content: str = "Some content",
        likes: list[str] | None = None,
        like_count: int | None = None,
    ) -> PostDocument:
        liked_by = list(likes or [])
        post = PostDocument(
            author_id=author.user_id,
            title=title,
            content=content,
            likes=liked_by,
            like_count=len(liked_by) if like_count is None else like_count,
        )
        await mongo_db[POSTS_COLLECTION].insert_one(post.to_document())
        return post

    return _make_post


async def load_post(database: InMemoryDatabase, post_id: str) -> dict[str, Any] | None:
    return await database[POSTS_COLLECTION].find_one({"postId": post_id})


@pytest.fixture()
def stored_post(mongo_db: InMemoryDatabase) -> Callable[[str], Awaitable[dict[str, Any] | None]]:
    """Read a post straight from the store, bypassing the API."""

    async def _stored_post(post_id: str) -> dict[str, Any] | None:
        return await load_post(mongo_db, post_id)

    return _stored_post
