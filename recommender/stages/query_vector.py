"""
Query vector computation (mean-pool of recent positive interactions).

Embeds the user's most recent upvoted resources and pools them into one
normalised vector for vector search, weighting newer interactions higher.
"""

import logging
from typing import List, Optional

from ..models.profile import UserInterestProfile
from ..stores import EmbeddingService, ResourceRepository
from ..utils.similarity import mean_pool

logger = logging.getLogger(__name__)

# Weight of the i-th most recent interaction is RECENCY_DECAY ** i.
RECENCY_DECAY = 0.9


async def build_query_vector(
    profile: UserInterestProfile,
    repository: ResourceRepository,
    embedding_service: EmbeddingService,
) -> Optional[List[float]]:
    """
    Query vector for the user, or None when there is no positive interaction to pool.

    Raises EmbeddingUnavailable when embedding fails; StorageUnavailable when the
    resources cannot be read.
    """
    resource_ids = list(profile.recent_positive_resource_ids)
    if not resource_ids:
        return None
    resources = await repository.get_by_ids(resource_ids)
    texts = [r.searchable_text for r in resources if r.searchable_text]
    if not texts:
        logger.info("[query_vector] NO_TEXT user_id=%s ids=%d", profile.user_id, len(resource_ids))
        return None
    embeddings = await embedding_service.embed_many(texts)
    weights = [RECENCY_DECAY ** i for i in range(len(embeddings))]
    return mean_pool(embeddings, weights)
