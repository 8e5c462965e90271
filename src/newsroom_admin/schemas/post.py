# src/newsroom_admin/schemas/post.py
"""Community post schemas."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .community import CamelModel


class PostType(StrEnum):
    """Audience of a community post."""

    PUBLIC = "Public"
    MEMBER = "Member"
    EVENT = "Event"


def post_content_problems(content: str | None) -> list[str]:
    """Return problems with a post draft, empty when it can be published."""
    if not content or not content.strip():
        return ["Post content is required"]
    return []


class PostCreate(CamelModel):
    """Schema for publishing a post in a community."""

    community_id: int
    content: str
    type: PostType = PostType.PUBLIC
    user_id: int
    author_name: str | None = None

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: str) -> str:
        problems = post_content_problems(value)
        if problems:
            raise ValueError(problems[0])
        return value.strip()


class PostResponse(CamelModel):
    """Schema for post information returned by the API."""

    id: int
    community_id: int
    author_id: int
    author_name: str
    content: str
    type: PostType
    likes: int
    shares: int
    created_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PostRecord(BaseModel):
    """Client-side view of a post, normalized from any server shape."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    community_id: str | None = Field(
        default=None, validation_alias=AliasChoices("communityId", "community_id")
    )
    author_name: str | None = Field(
        default=None, validation_alias=AliasChoices("authorName", "author_name")
    )
    content: str
    type: PostType = PostType.PUBLIC
    likes: int = 0
    shares: int = 0

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", "community_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str | None:
        return None if value is None else str(value)
