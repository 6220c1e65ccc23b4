"""Vector store contracts: indexed documents, search requests and hits."""

from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, Field

from .resource import Resource, ResourceType

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_EMBEDDING_DIMENSIONS = 1536


class ResourceDocument(BaseModel):
    """A resource as indexed in the vector store, with its embedding."""

    id: str
    title: str = ""
    description: str = ""
    url: str = ""
    type: ResourceType
    source_id: Optional[str] = None
    published_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    embedding: List[float] = Field(default_factory=list)

    @classmethod
    def from_resource(cls, resource: Resource, embedding: List[float]) -> "ResourceDocument":
        return cls(
            id=resource.id,
            title=resource.title,
            description=resource.description,
            url=resource.url,
            type=resource.type,
            source_id=resource.source_id,
            published_date=resource.published_date,
            created_at=resource.created_at,
            embedding=list(embedding),
        )

    def metadata(self) -> Dict[str, Any]:
        """Filterable metadata. Timestamps are epoch seconds for range filters."""
        published = self.published_date or self.created_at
        meta: Dict[str, Any] = {
            "resource_id": self.id,
            "type": self.type.value,
            "title": self.title,
            "url": self.url,
        }
        if self.source_id:
            meta["source_id"] = self.source_id
        if published is not None:
            meta["published_at"] = int(published.timestamp())
        return meta


class VectorSearchRequest(BaseModel):
    query_vector: List[float]
    top_k: int = Field(default=10, ge=1)
    resource_type: Optional[ResourceType] = None
    source_ids: FrozenSet[str] = frozenset()
    published_after: Optional[datetime] = None
    published_before: Optional[datetime] = None
    exclude_resource_ids: FrozenSet[str] = frozenset()
    minimum_score: Optional[float] = None


class VectorSearchResult(BaseModel):
    resource_id: str
    score: float
