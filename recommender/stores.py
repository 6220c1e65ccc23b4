"""
Collaborator interfaces consumed by the pipeline.

Implementations live in feed_server.services (in-memory, Firestore, Pinecone, Qdrant, OpenAI).
Repository implementations raise StorageUnavailable on I/O failure; vector and embedding
implementations raise VectorStoreUnavailable / EmbeddingUnavailable.
"""

from datetime import date
from typing import Iterable, List, Optional, Protocol, Sequence, Set

from .models import (
    DEFAULT_HISTORY_PAGE_SIZE,
    Recommendation,
    Resource,
    ResourceDocument,
    ResourceType,
    ResourceVote,
    VectorSearchRequest,
    VectorSearchResult,
)


class ResourceRepository(Protocol):
    """Catalog of learning resources."""

    async def get_by_id(self, resource_id: str) -> Optional[Resource]:
        ...

    async def get_by_ids(self, resource_ids: Iterable[str]) -> List[Resource]:
        """Resources for the given ids, in request order; unknown ids are skipped."""
        ...

    async def get_by_type(self, resource_type: ResourceType) -> List[Resource]:
        ...

    async def get_by_topics(self, topic_ids: Iterable[str]) -> List[Resource]:
        ...

    async def get_by_source(self, source_id: str) -> List[Resource]:
        ...

    async def exists_by_url(self, url: str) -> bool:
        ...

    async def add(self, resource: Resource) -> None:
        ...

    async def list_all(self) -> List[Resource]:
        ...


class VoteRepository(Protocol):
    """User votes; at most one per (user_id, resource_id)."""

    async def get_by_user(self, user_id: str) -> List[ResourceVote]:
        ...

    async def get_by_resource(self, resource_id: str) -> List[ResourceVote]:
        ...

    async def get_by_user_and_resource(
        self, user_id: str, resource_id: str
    ) -> Optional[ResourceVote]:
        ...

    async def upsert_vote(self, vote: ResourceVote) -> ResourceVote:
        """Create the vote, or update the existing one for the same (user, resource)."""
        ...


class RecommendationRepository(Protocol):
    """Persisted daily feeds, unique on (user_id, date, feed_type)."""

    async def exists_for(self, user_id: str, feed_date: date, feed_type: ResourceType) -> bool:
        ...

    async def get_by_user_date_and_type(
        self, user_id: str, feed_date: date, feed_type: ResourceType
    ) -> List[Recommendation]:
        """Rows ordered by position; empty when no feed exists."""
        ...

    async def create_batch(self, rows: Sequence[Recommendation]) -> None:
        """
        Atomically create all rows of one feed.

        Raises DuplicateFeed when rows already exist for the key; nothing is written then.
        """
        ...

    async def get_recent_by_user(
        self, user_id: str, start: date, end: date
    ) -> List[Recommendation]:
        """Rows with start <= date <= end, any feed type."""
        ...

    async def get_history(
        self,
        user_id: str,
        feed_type: Optional[ResourceType] = None,
        page_size: int = DEFAULT_HISTORY_PAGE_SIZE,
        page: int = 1,
    ) -> List[Recommendation]:
        ...

    async def get_most_recent_date(
        self, user_id: str, feed_type: ResourceType
    ) -> Optional[date]:
        ...


class SourceRepository(Protocol):
    """Content sources users configure (feeds, channels, blogs)."""

    async def get_source_ids_for_user(self, user_id: str) -> Set[str]:
        ...


class UserRepository(Protocol):
    async def list_user_ids(self) -> List[str]:
        ...


class VectorStore(Protocol):
    """Similarity index over resource embeddings."""

    async def initialize(self) -> None:
        ...

    async def upsert_documents(self, documents: Sequence[ResourceDocument]) -> None:
        ...

    async def delete_document(self, resource_id: str) -> None:
        ...

    async def search(self, request: VectorSearchRequest) -> List[VectorSearchResult]:
        """Hits sorted by score descending, honoring every filter in the request."""
        ...

    async def count(self) -> int:
        ...


class EmbeddingService(Protocol):
    @property
    def dimensions(self) -> int:
        ...

    async def embed(self, text: str) -> List[float]:
        ...

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        ...
