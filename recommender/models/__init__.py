from .config import RecommendationConfig, DEFAULT_CONFIG, resolve_config
from .context import RecommendationContext
from .profile import UserInterestProfile, empty_profile
from .recommendation import (
    DEFAULT_HISTORY_PAGE_SIZE,
    MAX_HISTORY_PAGE_SIZE,
    FeedResult,
    RankedFeed,
    Recommendation,
    sort_feed_rows,
)
from .resource import Resource, ResourceType, ResourceVote, VoteType, ensure_utc, utc_now
from .scoring import ScoreBreakdown, ScoredResource
from .vector import (
    DEFAULT_EMBEDDING_DIMENSIONS,
    DEFAULT_EMBEDDING_MODEL,
    ResourceDocument,
    VectorSearchRequest,
    VectorSearchResult,
)

__all__ = [
    "RecommendationConfig",
    "DEFAULT_CONFIG",
    "resolve_config",
    "RecommendationContext",
    "UserInterestProfile",
    "empty_profile",
    "DEFAULT_HISTORY_PAGE_SIZE",
    "MAX_HISTORY_PAGE_SIZE",
    "FeedResult",
    "RankedFeed",
    "Recommendation",
    "sort_feed_rows",
    "Resource",
    "ResourceType",
    "ResourceVote",
    "VoteType",
    "ensure_utc",
    "utc_now",
    "ScoreBreakdown",
    "ScoredResource",
    "DEFAULT_EMBEDDING_DIMENSIONS",
    "DEFAULT_EMBEDDING_MODEL",
    "ResourceDocument",
    "VectorSearchRequest",
    "VectorSearchResult",
]
