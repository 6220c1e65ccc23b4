"""
User interest profile construction from vote history.

Net vote weight per topic is squashed with a logistic so every score lands in [0, 1],
0 net weight maps to neutral 0.5, and profiles stay comparable across users with very
different vote volumes.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.profile import UserInterestProfile, empty_profile
from ..models.resource import ResourceVote, VoteType, utc_now
from ..stores import ResourceRepository, SourceRepository, VoteRepository
from ..utils.scores import logistic

logger = logging.getLogger(__name__)


def _vote_weight(vote: ResourceVote, config: RecommendationConfig) -> float:
    if vote.vote_type is VoteType.UPVOTE:
        return config.upvote_weight
    return config.downvote_weight


def _recent_positive_ids(votes: List[ResourceVote], limit: int) -> List[str]:
    """Upvoted resource ids, newest vote first, capped at limit."""
    upvotes = [v for v in votes if v.vote_type is VoteType.UPVOTE]
    upvotes.sort(key=lambda v: v.last_changed, reverse=True)
    return [v.resource_id for v in upvotes[:limit]]


class UserProfileService:
    """Builds a fresh UserInterestProfile on every call; nothing is cached."""

    def __init__(
        self,
        vote_repository: VoteRepository,
        resource_repository: ResourceRepository,
        source_repository: Optional[SourceRepository] = None,
        config: RecommendationConfig = DEFAULT_CONFIG,
    ):
        self._votes = vote_repository
        self._resources = resource_repository
        self._sources = source_repository
        self._config = config

    async def build_profile(self, user_id: str) -> UserInterestProfile:
        """
        Aggregate the user's votes into per-topic affinities.

        No votes -> empty profile (valid). Repository failures propagate as StorageUnavailable.
        """
        votes = await self._votes.get_by_user(user_id)
        favored = await self._favored_sources(user_id)

        if not votes:
            logger.info("[profile] EMPTY_PROFILE user_id=%s", user_id)
            profile = empty_profile(user_id)
            return profile.model_copy(update={"favored_source_ids": frozenset(favored)})

        resources = await self._resources.get_by_ids({v.resource_id for v in votes})
        topics_by_resource = {r.id: r.topic_ids for r in resources}

        net_by_topic: Dict[str, float] = defaultdict(float)
        for vote in votes:
            weight = _vote_weight(vote, self._config)
            for topic_id in topics_by_resource.get(vote.resource_id, []):
                net_by_topic[topic_id] += weight

        steepness = self._config.topic_affinity_steepness
        topic_scores = {t: logistic(net, steepness) for t, net in net_by_topic.items()}

        logger.info(
            "[profile] PROFILE_BUILT user_id=%s votes=%d topics=%d favored_sources=%d",
            user_id, len(votes), len(topic_scores), len(favored),
        )
        return UserInterestProfile(
            user_id=user_id,
            topic_scores=topic_scores,
            favored_source_ids=frozenset(favored),
            recent_positive_resource_ids=tuple(
                _recent_positive_ids(votes, self._config.query_vector_limit)
            ),
            last_updated=utc_now(),
            total_interactions=len(votes),
        )

    async def _favored_sources(self, user_id: str) -> set:
        if self._sources is None:
            return set()
        return set(await self._sources.get_source_ids_for_user(user_id))
