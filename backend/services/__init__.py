"""Business logic services."""

from .events import (
    EventPublisher,
    PublishResult,
    build_event_id,
    get_eventbridge_client,
)
from .lookups import find_post, find_user
from .post_likes import (
    POST_LIKED_EVENT,
    LikeOutcome,
    UnlikeOutcome,
    build_post_liked_payload,
    like_post,
    notify_post_liked,
    unlike_post,
)

__all__ = [
    "find_post",
    "find_user",
    "EventPublisher",
    "PublishResult",
    "build_event_id",
    "get_eventbridge_client",
    "POST_LIKED_EVENT",
    "LikeOutcome",
    "UnlikeOutcome",
    "build_post_liked_payload",
    "like_post",
    "notify_post_liked",
    "unlike_post",
]
