"""
Resource and vote models — typed representation of learning resources and user votes.

Built from store documents/API payloads via Resource.model_validate(d).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ResourceType(str, Enum):
    """Content type of a resource. Each value is also a feed type."""

    PAPER = "paper"
    VIDEO = "video"
    BLOG_POST = "blog_post"
    SOCIAL_MEDIA_POST = "social_media_post"


class VoteType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"

    @property
    def sign(self) -> int:
        return 1 if self is VoteType.UPVOTE else -1


class Resource(BaseModel):
    """A learning resource (paper, video, blog post, social media post)."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    url: str = ""
    type: ResourceType
    source_id: Optional[str] = None
    source_name: Optional[str] = None
    topic_ids: List[str] = Field(default_factory=list)
    published_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("published_date", "created_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @property
    def reference_time(self) -> datetime:
        """Timestamp recency is measured from: published date, else ingestion time."""
        return self.published_date or self.created_at

    @property
    def searchable_text(self) -> str:
        """Text embedded for vector search."""
        return f"{self.title}\n{self.description}".strip()


class ResourceVote(BaseModel):
    """A user's up/down vote on a resource. At most one per (user_id, resource_id)."""

    id: str
    user_id: str
    resource_id: str
    vote_type: VoteType
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @property
    def last_changed(self) -> datetime:
        return self.updated_at or self.created_at
