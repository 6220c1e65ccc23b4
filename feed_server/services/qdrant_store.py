"""
Qdrant vector store for resource embeddings.

Point ids are UUIDv5 derived from the resource id (Qdrant accepts only UUIDs or
unsigned ints); the resource id itself is kept in the payload and returned from search.
"""

import logging
import os
import uuid
from typing import List, Optional, Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models

from recommender.errors import VectorStoreUnavailable
from recommender.models import (
    DEFAULT_EMBEDDING_DIMENSIONS,
    ResourceDocument,
    VectorSearchRequest,
    VectorSearchResult,
)

logger = logging.getLogger(__name__)

POINT_NAMESPACE = uuid.UUID("6f1c2b9e-5a43-4f0e-9c36-7d1e0b4a8e21")
UPSERT_BATCH_SIZE = 100


def point_id(resource_id: str) -> str:
    return str(uuid.uuid5(POINT_NAMESPACE, resource_id))


def build_qdrant_filter(request: VectorSearchRequest) -> Optional[models.Filter]:
    """Payload filter for type, sources, publish range and exclusions."""
    must: List[models.FieldCondition] = []
    must_not: List[models.FieldCondition] = []
    if request.resource_type is not None:
        must.append(models.FieldCondition(
            key="type", match=models.MatchValue(value=request.resource_type.value)
        ))
    if request.source_ids:
        must.append(models.FieldCondition(
            key="source_id", match=models.MatchAny(any=sorted(request.source_ids))
        ))
    if request.published_after is not None or request.published_before is not None:
        must.append(models.FieldCondition(
            key="published_at",
            range=models.Range(
                gte=int(request.published_after.timestamp()) if request.published_after else None,
                lte=int(request.published_before.timestamp()) if request.published_before else None,
            ),
        ))
    if request.exclude_resource_ids:
        must_not.append(models.FieldCondition(
            key="resource_id", match=models.MatchAny(any=sorted(request.exclude_resource_ids))
        ))
    if not must and not must_not:
        return None
    return models.Filter(must=must or None, must_not=must_not or None)


class QdrantVectorStore:
    """
    Resource embeddings in a Qdrant collection (cosine distance).

    Usage:
        store = QdrantVectorStore(qdrant_url="http://localhost:6333")
        await store.initialize()
        hits = await store.search(VectorSearchRequest(query_vector=vec, top_k=50))
    """

    DEFAULT_COLLECTION = "learning_resources"

    def __init__(
        self,
        qdrant_url: Optional[str] = None,
        collection_name: Optional[str] = None,
        dimension: int = DEFAULT_EMBEDDING_DIMENSIONS,
        timeout: float = 30.0,
        client: Optional[AsyncQdrantClient] = None,
    ):
        self.qdrant_url = qdrant_url or os.environ.get("QDRANT_URL", "http://localhost:6333")
        self.collection_name = collection_name or self.DEFAULT_COLLECTION
        self._dimension = dimension
        self._client = client or AsyncQdrantClient(url=self.qdrant_url, timeout=int(timeout))

    async def initialize(self) -> None:
        try:
            if not await self._client.collection_exists(self.collection_name):
                logger.info(
                    "[qdrant] creating collection=%s dimension=%d",
                    self.collection_name, self._dimension,
                )
                await self._client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=models.VectorParams(
                        size=self._dimension, distance=models.Distance.COSINE
                    ),
                )
        except Exception as e:
            raise VectorStoreUnavailable(f"Qdrant initialize failed: {e}") from e

    async def upsert_documents(self, documents: Sequence[ResourceDocument]) -> None:
        if not documents:
            return
        points = [
            models.PointStruct(id=point_id(doc.id), vector=doc.embedding, payload=doc.metadata())
            for doc in documents
        ]
        try:
            for i in range(0, len(points), UPSERT_BATCH_SIZE):
                await self._client.upsert(
                    collection_name=self.collection_name,
                    points=points[i:i + UPSERT_BATCH_SIZE],
                )
        except Exception as e:
            logger.error("[qdrant] upsert failed: %s: %s", type(e).__name__, e)
            raise VectorStoreUnavailable(f"Qdrant upsert failed: {e}") from e
        logger.info("[qdrant] upserted=%d collection=%s", len(points), self.collection_name)

    async def delete_document(self, resource_id: str) -> None:
        try:
            await self._client.delete(
                collection_name=self.collection_name,
                points_selector=models.PointIdsList(points=[point_id(resource_id)]),
            )
        except Exception as e:
            raise VectorStoreUnavailable(f"Qdrant delete failed: {e}") from e

    async def search(self, request: VectorSearchRequest) -> List[VectorSearchResult]:
        """Nearest neighbours by cosine similarity, sorted by score descending."""
        if not request.query_vector:
            return []
        try:
            response = await self._client.query_points(
                collection_name=self.collection_name,
                query=request.query_vector,
                query_filter=build_qdrant_filter(request),
                limit=request.top_k,
                score_threshold=request.minimum_score,
                with_payload=True,
            )
        except Exception as e:
            logger.error("[qdrant] search failed: %s: %s", type(e).__name__, e)
            raise VectorStoreUnavailable(f"Qdrant search failed: {e}") from e
        return [
            VectorSearchResult(
                resource_id=(hit.payload or {}).get("resource_id", str(hit.id)),
                score=float(hit.score),
            )
            for hit in response.points
        ]

    async def count(self) -> int:
        try:
            result = await self._client.count(collection_name=self.collection_name, exact=True)
        except Exception as e:
            raise VectorStoreUnavailable(f"Qdrant count failed: {e}") from e
        return result.count
