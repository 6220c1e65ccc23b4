"""Seen-resource filter: drop anything the user voted on or was recently recommended."""

import logging
from typing import List

from ...models.context import RecommendationContext
from ...models.scoring import ScoredResource

logger = logging.getLogger(__name__)


def seen_filter(
    candidates: List[ScoredResource],
    context: RecommendationContext,
) -> List[ScoredResource]:
    """
    Remove exactly the candidates whose id is in seen_resource_ids or
    recently_recommended_ids. Order and scores of survivors are unchanged.
    """
    excluded = context.excluded_ids
    if not excluded:
        return list(candidates)
    kept = [c for c in candidates if c.resource_id not in excluded]
    removed = len(candidates) - len(kept)
    if removed:
        logger.debug("[filters] SEEN_REMOVED user_id=%s removed=%d", context.user_id, removed)
    return kept
