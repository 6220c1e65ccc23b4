"""
Shared builders for the test suite: resources, votes, scored candidates and a
keyword-based embedding service that needs no network.
"""

import uuid
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from recommender import (
    CompositeScorer,
    HybridRecommendationEngine,
    RecommendationConfig,
    Resource,
    ResourceType,
    ResourceVote,
    UserProfileService,
    VoteType,
    default_filters,
    default_scorers,
)
from recommender.models import ScoreBreakdown, ScoredResource
from recommender.utils import start_of_day

FEED_DATE = date(2026, 3, 1)


def published(days_old: float, feed_date: date = FEED_DATE) -> datetime:
    return start_of_day(feed_date) - timedelta(days=days_old)


def make_resource(
    resource_id: str,
    resource_type: ResourceType = ResourceType.PAPER,
    topics: Iterable[str] = (),
    days_old: float = 1,
    source_id: Optional[str] = None,
    title: Optional[str] = None,
) -> Resource:
    return Resource(
        id=resource_id,
        title=title or f"Resource {resource_id}",
        description=f"About {' and '.join(topics) or 'nothing in particular'}",
        url=f"https://example.org/{resource_id}",
        type=resource_type,
        source_id=source_id,
        topic_ids=list(topics),
        published_date=published(days_old),
    )


def make_vote(
    user_id: str,
    resource_id: str,
    vote_type: VoteType = VoteType.UPVOTE,
    minutes_ago: int = 0,
) -> ResourceVote:
    return ResourceVote(
        id=str(uuid.uuid4()),
        user_id=user_id,
        resource_id=resource_id,
        vote_type=vote_type,
        created_at=start_of_day(FEED_DATE) - timedelta(minutes=minutes_ago),
    )


def scored(resource: Resource, final_score: float) -> ScoredResource:
    return ScoredResource(
        resource=resource,
        scores=ScoreBreakdown(signals={"fixed": final_score}),
        final_score=final_score,
    )


def make_engine(
    store,
    config: Optional[RecommendationConfig] = None,
    vector_store=None,
    embedding_service=None,
    scorer: Optional[CompositeScorer] = None,
) -> HybridRecommendationEngine:
    config = config or RecommendationConfig()
    profiles = UserProfileService(store.votes, store.resources, store.sources, config)
    return HybridRecommendationEngine(
        profiles,
        store.resources,
        scorer or CompositeScorer(default_scorers(config)),
        default_filters(config),
        config,
        vector_store=vector_store,
        embedding_service=embedding_service,
    )


class KeywordEmbeddingService:
    """Embeds text as keyword counts over a small fixed vocabulary."""

    VOCABULARY = ("python", "rust", "cooking", "history")

    def __init__(self):
        self.calls = 0

    @property
    def dimensions(self) -> int:
        return len(self.VOCABULARY)

    async def embed(self, text: str) -> List[float]:
        vectors = await self.embed_many([text])
        return vectors[0]

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls += 1
        return [self._vector(text) for text in texts]

    def _vector(self, text: str) -> List[float]:
        lowered = text.lower()
        vector = [float(lowered.count(word)) for word in self.VOCABULARY]
        return vector if any(vector) else [0.01] * len(self.VOCABULARY)
