"""MongoDB connection lifecycle and collection setup."""

from __future__ import annotations

import logging
from typing import Any, Callable

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from core import settings

USERS_COLLECTION = "users"
POSTS_COLLECTION = "posts"

logger = logging.getLogger(__name__)


async def ensure_indexes(database: AsyncDatabase) -> None:
    """Create the unique and lookup indexes the handlers rely on."""
    users = database[USERS_COLLECTION]
    posts = database[POSTS_COLLECTION]
    await users.create_index([("userId", ASCENDING)], unique=True)
    await users.create_index([("email", ASCENDING)], unique=True)
    await users.create_index([("createdAt", DESCENDING)])
    await posts.create_index([("postId", ASCENDING)], unique=True)
    await posts.create_index([("authorId", ASCENDING), ("createdAt", DESCENDING)])
    await posts.create_index([("createdAt", DESCENDING)])


class MongoResources:
    """Owns the client handle between application startup and shutdown."""

    def __init__(
        self,
        uri: str,
        database_name: str,
        *,
        client_factory: Callable[..., Any] = AsyncMongoClient,
        **client_options: Any,
    ) -> None:
        self.uri = uri
        self.database_name = database_name
        self.client_factory = client_factory
        self.client_options = client_options
        self._client: Any | None = None
        self._database: AsyncDatabase | None = None

    @classmethod
    def from_settings(cls) -> "MongoResources":
        return cls(
            settings.mongodb_uri,
            settings.mongodb_database,
            maxPoolSize=settings.mongodb_max_pool_size,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
            socketTimeoutMS=settings.mongodb_socket_timeout_ms,
            tz_aware=True,
        )

    @property
    def database(self) -> AsyncDatabase:
        if self._database is None:
            raise RuntimeError("MongoDB connection has not been opened")
        return self._database

    async def connect(self) -> AsyncDatabase:
        if self._database is not None:
            return self._database

        client = self.client_factory(self.uri, **self.client_options)
        try:
            await client.admin.command("ping")
            database = client[self.database_name]
            await ensure_indexes(database)
        except Exception:
            logger.error(
                "MongoDB connection failed",
                extra={"database": self.database_name},
            )
            await client.close()
            raise

        self._client = client
        self._database = database
        logger.info("MongoDB connected", extra={"database": self.database_name})
        return database

    async def close(self) -> None:
        client = self._client
        self._client = None
        self._database = None
        if client is None:
            return
        await client.close()
        logger.info("MongoDB connection closed")


__all__ = [
    "MongoResources",
    "POSTS_COLLECTION",
    "USERS_COLLECTION",
    "ensure_indexes",
]
