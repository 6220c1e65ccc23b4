"""
Recommendation — persisted feed rows — and the result types of a run.

Rows for a (user_id, date, feed_type) are created as one atomic batch; positions are 1..n.
"""

import uuid
import datetime as dt
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .resource import ResourceType, utc_now
from .scoring import ScoredResource

DEFAULT_HISTORY_PAGE_SIZE = 30
MAX_HISTORY_PAGE_SIZE = 100


class Recommendation(BaseModel):
    """One persisted slot of a daily feed."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    resource_id: str
    feed_type: ResourceType
    date: dt.date
    score: float
    position: int = Field(ge=1)
    created_at: dt.datetime = Field(default_factory=utc_now)

    @property
    def feed_key(self) -> Tuple[str, dt.date, ResourceType]:
        return (self.user_id, self.date, self.feed_type)


class RankedFeed(BaseModel):
    """Engine output: ranked top-K plus how it was produced."""

    items: List[ScoredResource] = Field(default_factory=list)
    degraded: bool = False
    vector_used: bool = False
    candidate_count: int = 0


class FeedResult(BaseModel):
    """FeedGenerator output: the day's rows, new or previously created."""

    recommendations: List[Recommendation] = Field(default_factory=list)
    degraded: bool = False
    created: bool = False


def sort_feed_rows(rows: List[Recommendation]) -> List[Recommendation]:
    """Newest date first, then by position."""
    return sorted(rows, key=lambda r: (-r.date.toordinal(), r.position))
