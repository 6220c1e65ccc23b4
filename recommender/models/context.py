"""RecommendationContext — immutable input bundle for one recommendation run."""

import datetime as dt
from typing import Dict, FrozenSet

from pydantic import BaseModel, ConfigDict, Field

from .resource import ResourceType


class RecommendationContext(BaseModel):
    """
    Everything a run needs besides the profile and the candidates.

    Built by FeedGenerator. The engine derives an enriched copy carrying vector
    similarities (with_similarities); the original is never modified.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    feed_type: ResourceType
    date: dt.date
    count: int = Field(default=5, ge=1)
    seen_resource_ids: FrozenSet[str] = frozenset()
    recently_recommended_ids: FrozenSet[str] = frozenset()
    similarity_by_id: Dict[str, float] = Field(default_factory=dict)
    # True when a vector search completed for this run; its misses then rank below its hits
    vector_used: bool = False

    @property
    def excluded_ids(self) -> FrozenSet[str]:
        return self.seen_resource_ids | self.recently_recommended_ids

    def with_similarities(
        self, similarity_by_id: Dict[str, float], vector_used: bool = True
    ) -> "RecommendationContext":
        return self.model_copy(
            update={"similarity_by_id": dict(similarity_by_id), "vector_used": vector_used}
        )
