"""Database seed script for local development.

Usage:
    uv run python scripts/seed.py

Re-running is safe: users are matched by email, posts by author and title,
and likes that already exist are skipped. Seeding likes does not publish
notification events.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pymongo.asynchronous.database import AsyncDatabase

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import ConflictError  # noqa: E402
from db import POSTS_COLLECTION, USERS_COLLECTION, MongoResources  # noqa: E402
from models import PostDocument, UserDocument, normalize_email  # noqa: E402
from services.post_likes import like_post  # noqa: E402


@dataclass(frozen=True)
class SeedUser:
    name: str
    email: str


@dataclass(frozen=True)
class SeedPost:
    author_email: str
    title: str
    content: str


BASE_USERS: Sequence[SeedUser] = [
    SeedUser(name="Alex Demo", email="alex@example.com"),
    SeedUser(name="Bella Demo", email="bella@example.com"),
    SeedUser(name="Cara Demo", email="cara@example.com"),
    SeedUser(name="Dan Demo", email="dan@example.com"),
]

BASE_POSTS: Sequence[SeedPost] = [
    SeedPost(
        author_email="alex@example.com",
        title="Sunny day snapshots",
        content="Spent the afternoon walking by the river.",
    ),
    SeedPost(
        author_email="bella@example.com",
        title="First latte art attempt",
        content="It was supposed to be a heart.",
    ),
    SeedPost(
        author_email="cara@example.com",
        title="Golden hour",
        content="The light on the way home was unreal today.",
    ),
]

# (liker email, post title)
BASE_LIKES: Sequence[tuple[str, str]] = [
    ("bella@example.com", "Sunny day snapshots"),
    ("cara@example.com", "Sunny day snapshots"),
    ("dan@example.com", "First latte art attempt"),
]


async def get_or_create_user(database: AsyncDatabase, payload: SeedUser) -> UserDocument:
    email = normalize_email(payload.email)
    existing = await database[USERS_COLLECTION].find_one({"email": email})
    if existing is not None:
        return UserDocument.model_validate(existing)

    user = UserDocument(name=payload.name, email=email)
    await database[USERS_COLLECTION].insert_one(user.to_document())
    return user


async def ensure_posts(
    database: AsyncDatabase,
    users: dict[str, UserDocument],
    posts: Sequence[SeedPost],
) -> dict[str, PostDocument]:
    seeded: dict[str, PostDocument] = {}
    for payload in posts:
        author = users[normalize_email(payload.author_email)]
        existing = await database[POSTS_COLLECTION].find_one(
            {"authorId": author.user_id, "title": payload.title}
        )
        if existing is not None:
            seeded[payload.title] = PostDocument.model_validate(existing)
            continue

        post = PostDocument(
            author_id=author.user_id,
            title=payload.title,
            content=payload.content,
        )
        await database[POSTS_COLLECTION].insert_one(post.to_document())
        seeded[payload.title] = post
    return seeded


async def ensure_likes(
    database: AsyncDatabase,
    users: dict[str, UserDocument],
    posts: dict[str, PostDocument],
    likes: Sequence[tuple[str, str]],
) -> int:
    created = 0
    for liker_email, post_title in likes:
        liker = users[normalize_email(liker_email)]
        post = posts[post_title]
        try:
            await like_post(database, post_id=post.post_id, user_id=liker.user_id)
        except ConflictError:
            continue
        created += 1
    return created


async def seed() -> None:
    resources = MongoResources.from_settings()
    database = await resources.connect()
    try:
        users: dict[str, UserDocument] = {}
        for payload in BASE_USERS:
            user = await get_or_create_user(database, payload)
            users[user.email] = user

        posts = await ensure_posts(database, users, BASE_POSTS)
        created_likes = await ensure_likes(database, users, posts, BASE_LIKES)
    finally:
        await resources.close()

    print("✅ Seed data inserted.")
    print("   Users:", ", ".join(user.email for user in users.values()))
    print("   Posts:", len(posts))
    print("   New likes:", created_likes)


if __name__ == "__main__":
    asyncio.run(seed())
