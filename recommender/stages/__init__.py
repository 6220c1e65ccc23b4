"""
Pipeline stages.

- user_profile: interest profile from votes
- candidate_pool / query_vector: rule-based and vector retrieval
- scoring: per-signal scorers and their composite
- filters: seen-removal and topic diversity
- orchestrator: HybridRecommendationEngine
"""

from .orchestrator import HybridRecommendationEngine, top_k
from .user_profile import UserProfileService

__all__ = [
    "HybridRecommendationEngine",
    "UserProfileService",
    "top_k",
]
