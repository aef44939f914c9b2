"""User document model."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserDocument(BaseModel):
    """Registered application user as stored in the ``users`` collection."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    user_id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    # Stored lower-cased; uniqueness is enforced by a collection index.
    email: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)

    def to_public(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    def to_summary(self) -> dict[str, str]:
        return {"userId": self.user_id, "name": self.name, "email": self.email}


def normalize_email(email: str) -> str:
    return email.strip().lower()
