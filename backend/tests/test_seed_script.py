"""Tests for the development seed helpers."""

import pytest

from db import POSTS_COLLECTION, USERS_COLLECTION
from scripts import seed as seed_script


async def _run_seed(database) -> tuple[dict, dict, int]:
    users = {}
    for payload in seed_script.BASE_USERS:
        user = await seed_script.get_or_create_user(database, payload)
        users[user.email] = user
    posts = await seed_script.ensure_posts(database, users, seed_script.BASE_POSTS)
    created = await seed_script.ensure_likes(database, users, posts, seed_script.BASE_LIKES)
    return users, posts, created


@pytest.mark.asyncio
async def test_get_or_create_user_matches_by_normalized_email(mongo_db) -> None:
    first = await seed_script.get_or_create_user(
        mongo_db,
        seed_script.SeedUser(name="Alex Demo", email="Alex@Example.com"),
    )
    second = await seed_script.get_or_create_user(
        mongo_db,
        seed_script.SeedUser(name="Someone Else", email="alex@example.com"),
    )

    assert first.user_id == second.user_id
    assert second.name == "Alex Demo"
    assert len(mongo_db[USERS_COLLECTION].documents) == 1


@pytest.mark.asyncio
async def test_seed_creates_users_posts_and_likes(mongo_db) -> None:
    users, posts, created = await _run_seed(mongo_db)

    assert len(users) == len(seed_script.BASE_USERS)
    assert set(posts) == {post.title for post in seed_script.BASE_POSTS}
    assert created == len(seed_script.BASE_LIKES)

    sunny = await mongo_db[POSTS_COLLECTION].find_one({"title": "Sunny day snapshots"})
    assert sunny["likeCount"] == 2
    assert sorted(sunny["likes"]) == sorted(
        [users["bella@example.com"].user_id, users["cara@example.com"].user_id]
    )


@pytest.mark.asyncio
async def test_seed_is_idempotent(mongo_db) -> None:
    await _run_seed(mongo_db)
    _, posts, created = await _run_seed(mongo_db)

    assert created == 0
    assert len(mongo_db[USERS_COLLECTION].documents) == len(seed_script.BASE_USERS)
    assert len(mongo_db[POSTS_COLLECTION].documents) == len(seed_script.BASE_POSTS)
    latte = posts["First latte art attempt"]
    stored = await mongo_db[POSTS_COLLECTION].find_one({"postId": latte.post_id})
    assert stored["likeCount"] == 1
