"""
Candidate retrieval: rule-based pool by feed type and freshness, optionally widened
with vector-similarity hits.

The public entry points are get_rule_based_candidates, get_vector_candidates and
merge_candidates.
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from ..models.config import DEFAULT_CONFIG, RecommendationConfig
from ..models.context import RecommendationContext
from ..models.resource import Resource
from ..models.vector import VectorSearchRequest
from ..stores import ResourceRepository, VectorStore
from ..utils.scores import days_between, start_of_day

logger = logging.getLogger(__name__)


def _within_freshness_window(
    resource: Resource,
    context: RecommendationContext,
    window_days: int,
) -> bool:
    """True if the resource's reference time falls within window_days before the feed date."""
    return days_between(resource.reference_time, context.date) <= window_days


def _filter_fresh(
    resources: List[Resource],
    context: RecommendationContext,
    window_days: int,
) -> List[Resource]:
    return [
        r for r in resources
        if r.type == context.feed_type and _within_freshness_window(r, context, window_days)
    ]


def _expanded_window(
    candidates: List[Resource],
    context: RecommendationContext,
    window_days: int,
    config: RecommendationConfig,
) -> Optional[int]:
    """
    If too few candidates, return a doubled freshness window for retry.
    Returns None if no expansion should be applied.
    """
    if len(candidates) >= context.count:
        return None
    if window_days >= config.max_freshness_window_days:
        return None
    return min(window_days * 2, config.max_freshness_window_days)


def _sort_by_recency_and_cap(
    candidates: List[Resource],
    config: RecommendationConfig,
) -> List[Resource]:
    """Newest first (stable for equal timestamps), up to candidate_pool_size."""
    ordered = sorted(candidates, key=lambda r: r.reference_time, reverse=True)
    return ordered[:config.candidate_pool_size]


async def get_rule_based_candidates(
    repository: ResourceRepository,
    context: RecommendationContext,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> List[Resource]:
    """
    Resources of the feed type published within the freshness window.

    The window doubles (up to max_freshness_window_days) while fewer than
    context.count resources qualify.
    """
    resources = await repository.get_by_type(context.feed_type)
    window = config.freshness_window_days
    candidates = _filter_fresh(resources, context, window)

    expanded = _expanded_window(candidates, context, window, config)
    while expanded is not None:
        logger.info(
            "[retrieval] FRESHNESS_EXPANDED user_id=%s from_days=%d to_days=%d candidates=%d",
            context.user_id, window, expanded, len(candidates),
        )
        window = expanded
        candidates = _filter_fresh(resources, context, window)
        expanded = _expanded_window(candidates, context, window, config)

    return _sort_by_recency_and_cap(candidates, config)


def build_vector_request(
    query_vector: List[float],
    context: RecommendationContext,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> VectorSearchRequest:
    """Search scoped to the feed type and window, excluding seen and recent resources."""
    return VectorSearchRequest(
        query_vector=query_vector,
        top_k=context.count * config.vector_candidate_multiplier,
        resource_type=context.feed_type,
        published_after=start_of_day(context.date) - timedelta(days=config.freshness_window_days),
        exclude_resource_ids=context.excluded_ids,
        minimum_score=config.vector_min_score,
    )


async def get_vector_candidates(
    vector_store: VectorStore,
    repository: ResourceRepository,
    query_vector: List[float],
    context: RecommendationContext,
    config: RecommendationConfig = DEFAULT_CONFIG,
) -> Tuple[List[Resource], Dict[str, float]]:
    """
    Resources most similar to the query vector, with their similarity scores.

    Hits that no longer exist in the catalog or have another type are dropped.
    Raises VectorStoreUnavailable (from the store) when search fails.
    """
    request = build_vector_request(query_vector, context, config)
    hits = await vector_store.search(request)
    similarity_by_id = {h.resource_id: h.score for h in hits}
    resources = await repository.get_by_ids([h.resource_id for h in hits])
    resources = [r for r in resources if r.type == context.feed_type]
    found = {r.id for r in resources}
    missing = [rid for rid in similarity_by_id if rid not in found]
    if missing:
        logger.warning(
            "[retrieval] VECTOR_HITS_MISSING user_id=%s missing=%d of=%d",
            context.user_id, len(missing), len(hits),
        )
    return resources, {rid: s for rid, s in similarity_by_id.items() if rid in found}


def merge_candidates(
    rule_based: List[Resource],
    vector_hits: List[Resource],
) -> List[Resource]:
    """Union de-duplicated by id: rule-based first, then vector-only hits in hit order."""
    seen_ids = set()
    merged = []
    for resource in list(rule_based) + list(vector_hits):
        if resource.id in seen_ids:
            continue
        seen_ids.add(resource.id)
        merged.append(resource)
    return merged
