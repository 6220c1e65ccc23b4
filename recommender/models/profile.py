"""
UserInterestProfile — derived per-user topic affinities.

Built only by UserProfileService; other components read it and never patch it.
"""

from datetime import datetime
from typing import Dict, FrozenSet, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .resource import utc_now


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class UserInterestProfile(BaseModel):
    """
    Topic affinities in [0, 1] learned from a user's votes.

    An empty profile (no interactions) is valid and means "no preference signal".
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    topic_scores: Dict[str, float] = Field(default_factory=dict)
    favored_source_ids: FrozenSet[str] = frozenset()
    # Newest first; used to build the vector-search query.
    recent_positive_resource_ids: Tuple[str, ...] = ()
    last_updated: datetime = Field(default_factory=utc_now)
    total_interactions: int = 0

    @field_validator("topic_scores")
    @classmethod
    def _clamp_scores(cls, scores: Dict[str, float]) -> Dict[str, float]:
        return {topic_id: _clamp_unit(score) for topic_id, score in scores.items()}

    @property
    def is_empty(self) -> bool:
        return self.total_interactions == 0 or not self.topic_scores

    def get_topic_score(self, topic_id: str, default: float = 0.5) -> float:
        return self.topic_scores.get(topic_id, default)


def empty_profile(user_id: str) -> UserInterestProfile:
    return UserInterestProfile(user_id=user_id)
