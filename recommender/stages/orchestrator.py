"""
Pipeline orchestrator — profile, retrieval, scoring, filtering, top-K.

The main entry point is HybridRecommendationEngine.recommend, which returns the ranked
feed plus run metadata (degraded, vector_used, candidate_count). Nothing is persisted here.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import InvalidConfiguration, StorageUnavailable, VectorStoreUnavailable
from ..models.config import RecommendationConfig, resolve_config
from ..models.context import RecommendationContext
from ..models.profile import UserInterestProfile
from ..models.recommendation import RankedFeed
from ..models.resource import Resource
from ..models.scoring import ScoredResource
from ..stores import EmbeddingService, ResourceRepository, VectorStore
from ..utils.cancellation import raise_if_cancelled
from .candidate_pool import get_rule_based_candidates, get_vector_candidates, merge_candidates
from .filters import NamedFilter
from .query_vector import build_query_vector
from .scoring import CompositeScorer
from .user_profile import UserProfileService

logger = logging.getLogger(__name__)


def top_k(candidates: List[ScoredResource], k: int) -> List[ScoredResource]:
    """Stable sort by final_score (desc) and keep the first k."""
    return sorted(candidates, key=lambda c: c.final_score, reverse=True)[:k]


class HybridRecommendationEngine:
    """
    Rule-based retrieval widened by vector search, scored by a weighted composite,
    filtered in declared order.

    Vector retrieval is optional: when it fails the run continues on rule-based
    candidates and the result is flagged degraded.
    """

    def __init__(
        self,
        profile_service: UserProfileService,
        resource_repository: ResourceRepository,
        scorer: CompositeScorer,
        filters: Sequence[NamedFilter],
        config: Optional[RecommendationConfig] = None,
        vector_store: Optional[VectorStore] = None,
        embedding_service: Optional[EmbeddingService] = None,
    ):
        filters = list(filters)
        if not filters:
            raise InvalidConfiguration("At least one filter must be registered")
        names = [f.name for f in filters]
        if len(set(names)) != len(names):
            raise InvalidConfiguration(f"Duplicate filter names: {names}")
        self._profiles = profile_service
        self._resources = resource_repository
        self._scorer = scorer
        self._filters: List[NamedFilter] = filters
        self._config = resolve_config(config)
        self._vector_store = vector_store
        self._embeddings = embedding_service

    @property
    def vector_enabled(self) -> bool:
        return self._vector_store is not None and self._embeddings is not None

    async def recommend(
        self,
        context: RecommendationContext,
        cancel: Optional[asyncio.Event] = None,
    ) -> RankedFeed:
        """
        Run the pipeline for one (user, feed_type, date).

        Raises StorageUnavailable, ScoringFailed or RunCancelled; vector failures only degrade.
        """
        raise_if_cancelled(cancel, "profile")
        profile = await self._profiles.build_profile(context.user_id)

        # --- 1. Candidate retrieval ---
        raise_if_cancelled(cancel, "retrieval")
        candidates, similarity_by_id, vector_used, degraded = await self._retrieve(
            context, profile
        )
        context = context.with_similarities(similarity_by_id, vector_used=vector_used)

        # --- 2. Scoring (fail fast) ---
        raise_if_cancelled(cancel, "scoring")
        scored = self._scorer.score_all(candidates, context, profile, cancel)

        # --- 3. Filters in declared order ---
        for named in self._filters:
            raise_if_cancelled(cancel, f"filter:{named.name}")
            scored = named.apply(scored, context)

        # --- 4. Top-K ---
        raise_if_cancelled(cancel, "selection")
        items = top_k(scored, context.count)

        logger.info(
            "[engine] RANKED user_id=%s feed_type=%s date=%s candidates=%d returned=%d "
            "vector_used=%s degraded=%s",
            context.user_id, context.feed_type.value, context.date, len(candidates),
            len(items), vector_used, degraded,
        )
        return RankedFeed(
            items=items,
            degraded=degraded,
            vector_used=vector_used,
            candidate_count=len(candidates),
        )

    async def _retrieve(
        self,
        context: RecommendationContext,
        profile: UserInterestProfile,
    ) -> Tuple[List[Resource], Dict[str, float], bool, bool]:
        """Returns (candidates, similarity_by_id, vector_used, degraded)."""
        rule_based = await get_rule_based_candidates(self._resources, context, self._config)
        if not self.vector_enabled:
            return rule_based, {}, False, False

        try:
            query_vector = await build_query_vector(profile, self._resources, self._embeddings)
            if query_vector is None:
                return rule_based, {}, False, False
            vector_hits, similarity_by_id = await get_vector_candidates(
                self._vector_store, self._resources, query_vector, context, self._config
            )
        except StorageUnavailable:
            raise
        except VectorStoreUnavailable as e:
            logger.warning(
                "[retrieval] VECTOR_DEGRADED user_id=%s feed_type=%s error=%s",
                context.user_id, context.feed_type.value, e,
            )
            return rule_based, {}, False, True
        except Exception:
            logger.exception(
                "[retrieval] VECTOR_DEGRADED user_id=%s feed_type=%s unexpected vector failure",
                context.user_id, context.feed_type.value,
            )
            return rule_based, {}, False, True

        merged = merge_candidates(rule_based, vector_hits)
        logger.debug(
            "[retrieval] CANDIDATES user_id=%s rule_based=%d vector=%d merged=%d",
            context.user_id, len(rule_based), len(vector_hits), len(merged),
        )
        return merged, similarity_by_id, True, False
