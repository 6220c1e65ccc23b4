"""
Pinecone vector store for resource embeddings.

Requires pinecone[asyncio]. Index management (describe/create) uses the sync client;
upsert, query and delete go through IndexAsyncio. Every failure surfaces as
VectorStoreUnavailable so the engine can fall back to rule-based candidates.
"""

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from pinecone import Pinecone, ServerlessSpec

from recommender.errors import VectorStoreUnavailable
from recommender.models import (
    DEFAULT_EMBEDDING_DIMENSIONS,
    ResourceDocument,
    VectorSearchRequest,
    VectorSearchResult,
)

logger = logging.getLogger(__name__)

# Pinecone $nin / $in accept max 10,000 values
MAX_NIN_VALUES = 10_000
UPSERT_BATCH_SIZE = 100


def build_pinecone_filter(request: VectorSearchRequest) -> Optional[dict]:
    """
    Build Pinecone metadata filter from a search request.
    Vectors must have metadata: resource_id, type, source_id, published_at (epoch seconds).
    Returns None when the request has no filter.
    """
    clauses: List[Dict[str, Any]] = []
    if request.resource_type is not None:
        clauses.append({"type": {"$eq": request.resource_type.value}})
    if request.source_ids:
        clauses.append({"source_id": {"$in": sorted(request.source_ids)[:MAX_NIN_VALUES]}})
    if request.published_after is not None:
        clauses.append({"published_at": {"$gte": int(request.published_after.timestamp())}})
    if request.published_before is not None:
        clauses.append({"published_at": {"$lte": int(request.published_before.timestamp())}})
    if request.exclude_resource_ids:
        excluded_list = sorted(request.exclude_resource_ids)[:MAX_NIN_VALUES]
        clauses.append({"resource_id": {"$nin": excluded_list}})

    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class PineconeVectorStore:
    """
    Resource embeddings in Pinecone, keyed by resource id.

    Uses PINECONE_API_KEY from env. Index name from PINECONE_INDEX_NAME or default.
    """

    DEFAULT_INDEX_NAME = "learning-resources"

    def __init__(
        self,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
        dimension: int = DEFAULT_EMBEDDING_DIMENSIONS,
        namespace: str = "",
        cloud: str = "aws",
        region: str = "us-east-1",
    ):
        self._api_key = (api_key or os.environ.get("PINECONE_API_KEY") or "").strip()
        if not self._api_key:
            raise ValueError("PINECONE_API_KEY is required for PineconeVectorStore")
        self._index_name = (
            index_name or os.environ.get("PINECONE_INDEX_NAME") or self.DEFAULT_INDEX_NAME
        ).strip()
        self._dimension = dimension
        self._namespace = namespace
        self._cloud = cloud
        self._region = region
        self._client: Optional[Pinecone] = None
        self._index_host: Optional[str] = None

    @property
    def client(self) -> Pinecone:
        if self._client is None:
            self._client = Pinecone(api_key=self._api_key)
        return self._client

    def _get_index_host(self) -> str:
        """Resolve index host for async operations (cached)."""
        if self._index_host is not None:
            return self._index_host
        desc = self.client.describe_index(self._index_name)
        host = getattr(desc, "host", None)
        if not host:
            raise VectorStoreUnavailable(
                f"Pinecone index {self._index_name!r} has no host; check index exists and API key."
            )
        self._index_host = host
        logger.info("[pinecone] index host resolved index=%s host=%s", self._index_name, host)
        return self._index_host

    async def initialize(self) -> None:
        """Create the index (cosine metric) if it does not exist."""
        try:
            if not self.client.has_index(self._index_name):
                logger.info(
                    "[pinecone] creating index=%s dimension=%d", self._index_name, self._dimension
                )
                self.client.create_index(
                    name=self._index_name,
                    dimension=self._dimension,
                    metric="cosine",
                    spec=ServerlessSpec(cloud=self._cloud, region=self._region),
                )
            self._get_index_host()
        except VectorStoreUnavailable:
            raise
        except Exception as e:
            raise VectorStoreUnavailable(f"Pinecone initialize failed: {e}") from e

    async def upsert_documents(self, documents: Sequence[ResourceDocument]) -> None:
        if not documents:
            return
        vectors = [
            {"id": doc.id, "values": doc.embedding, "metadata": doc.metadata()}
            for doc in documents
        ]
        try:
            host = self._get_index_host()
            async with self.client.IndexAsyncio(host=host) as idx:
                for i in range(0, len(vectors), UPSERT_BATCH_SIZE):
                    await idx.upsert(
                        vectors=vectors[i:i + UPSERT_BATCH_SIZE], namespace=self._namespace
                    )
        except VectorStoreUnavailable:
            raise
        except Exception as e:
            logger.error("[pinecone] upsert failed: %s: %s", type(e).__name__, e)
            raise VectorStoreUnavailable(f"Pinecone upsert failed: {e}") from e
        logger.info("[pinecone] upserted=%d index=%s", len(vectors), self._index_name)

    async def delete_document(self, resource_id: str) -> None:
        try:
            host = self._get_index_host()
            async with self.client.IndexAsyncio(host=host) as idx:
                await idx.delete(ids=[resource_id], namespace=self._namespace)
        except VectorStoreUnavailable:
            raise
        except Exception as e:
            raise VectorStoreUnavailable(f"Pinecone delete failed: {e}") from e

    async def search(self, request: VectorSearchRequest) -> List[VectorSearchResult]:
        """
        Query approximate NN by vector with a metadata filter.
        Uses include_values=False, include_metadata=False for latency.
        """
        if not request.query_vector:
            return []
        try:
            host = self._get_index_host()
            async with self.client.IndexAsyncio(host=host) as idx:
                result = await idx.query(
                    vector=request.query_vector,
                    top_k=request.top_k,
                    namespace=self._namespace,
                    filter=build_pinecone_filter(request),
                    include_values=False,
                    include_metadata=False,
                )
        except VectorStoreUnavailable:
            raise
        except Exception as e:
            logger.error("[pinecone] query failed: %s: %s", type(e).__name__, e)
            raise VectorStoreUnavailable(f"Pinecone query failed: {e}") from e

        hits = []
        for match in getattr(result, "matches", None) or []:
            mid = getattr(match, "id", None)
            mscore = getattr(match, "score", None)
            if not mid or mscore is None:
                continue
            if request.minimum_score is not None and mscore < request.minimum_score:
                continue
            hits.append(VectorSearchResult(resource_id=str(mid), score=float(mscore)))
        logger.debug("[pinecone] query top_k=%d returned=%d", request.top_k, len(hits))
        return hits

    async def count(self) -> int:
        """Vector count in this store's namespace."""
        try:
            host = self._get_index_host()
            async with self.client.IndexAsyncio(host=host) as idx:
                stats = await idx.describe_index_stats()
        except VectorStoreUnavailable:
            raise
        except Exception as e:
            raise VectorStoreUnavailable(f"Pinecone stats failed: {e}") from e
        namespaces = getattr(stats, "namespaces", None) or {}
        if self._namespace in namespaces:
            return namespaces[self._namespace].vector_count or 0
        return getattr(stats, "total_vector_count", 0) or 0
