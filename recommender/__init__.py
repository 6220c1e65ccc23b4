"""
Learning-resource recommendation pipeline.

Single entry point for the recommender package:
- models/: RecommendationConfig, Resource, UserInterestProfile, ScoredResource, Recommendation
- stages/: user_profile, candidate_pool, scoring, filters, orchestrator
- feed: FeedGenerator (idempotent daily feed materialization)
- stores: collaborator protocols implemented by feed_server.services
"""

from typing import Optional

from .errors import (
    DuplicateFeed,
    EmbeddingUnavailable,
    InvalidConfiguration,
    RecommendationError,
    RunCancelled,
    ScoringFailed,
    StorageUnavailable,
    VectorStoreUnavailable,
)
from .feed import FeedGenerator
from .models import (
    DEFAULT_CONFIG,
    FeedResult,
    RankedFeed,
    Recommendation,
    RecommendationConfig,
    RecommendationContext,
    Resource,
    ResourceType,
    ResourceVote,
    ScoredResource,
    UserInterestProfile,
    VoteType,
    resolve_config,
)
from .stages import HybridRecommendationEngine, UserProfileService
from .stages.filters import NamedFilter, default_filters
from .stages.scoring import CompositeScorer, WeightedScorer, default_scorers
from .stores import (
    EmbeddingService,
    RecommendationRepository,
    ResourceRepository,
    SourceRepository,
    VectorStore,
    VoteRepository,
)


def build_feed_generator(
    resource_repository: ResourceRepository,
    vote_repository: VoteRepository,
    recommendation_repository: RecommendationRepository,
    source_repository: Optional[SourceRepository] = None,
    vector_store: Optional[VectorStore] = None,
    embedding_service: Optional[EmbeddingService] = None,
    config: Optional[RecommendationConfig] = None,
) -> FeedGenerator:
    """
    Wire the default pipeline: default scorers and filters, engine, feed generator.
    Raises InvalidConfiguration when the scorer weights are invalid.
    """
    config = resolve_config(config)
    profile_service = UserProfileService(
        vote_repository, resource_repository, source_repository, config
    )
    engine = HybridRecommendationEngine(
        profile_service,
        resource_repository,
        CompositeScorer(default_scorers(config)),
        default_filters(config),
        config,
        vector_store=vector_store,
        embedding_service=embedding_service,
    )
    return FeedGenerator(engine, recommendation_repository, vote_repository, config)


__all__ = [
    "build_feed_generator",
    "CompositeScorer",
    "DEFAULT_CONFIG",
    "DuplicateFeed",
    "EmbeddingUnavailable",
    "FeedGenerator",
    "FeedResult",
    "HybridRecommendationEngine",
    "InvalidConfiguration",
    "NamedFilter",
    "RankedFeed",
    "Recommendation",
    "RecommendationConfig",
    "RecommendationContext",
    "RecommendationError",
    "Resource",
    "ResourceType",
    "ResourceVote",
    "RunCancelled",
    "ScoredResource",
    "ScoringFailed",
    "StorageUnavailable",
    "UserInterestProfile",
    "UserProfileService",
    "VectorStoreUnavailable",
    "VoteType",
    "WeightedScorer",
    "default_filters",
    "default_scorers",
    "resolve_config",
]
