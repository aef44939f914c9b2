"""Post document model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .user import utcnow


class PostDocument(BaseModel):
    """A post with its embedded like set.

    ``like_count`` is maintained alongside ``likes`` by the same update
    operation and is never recomputed from the set.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    post_id: str = Field(default_factory=lambda: str(uuid4()))
    author_id: str
    title: str
    content: str
    likes: list[str] = Field(default_factory=list)
    like_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def is_liked_by(self, user_id: str) -> bool:
        return user_id in self.likes

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)

    def to_public(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
