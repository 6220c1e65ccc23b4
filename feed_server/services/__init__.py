"""Backing logic: repository, vector store and embedding implementations."""

from .embedding_service import OpenAIEmbeddingService, check_openai_available
from .firestore_store import FirestoreStore
from .memory_store import InMemoryStore, InMemoryVectorStore
from .pinecone_store import PineconeVectorStore, build_pinecone_filter
from .qdrant_store import QdrantVectorStore, build_qdrant_filter

__all__ = [
    "OpenAIEmbeddingService",
    "check_openai_available",
    "FirestoreStore",
    "InMemoryStore",
    "InMemoryVectorStore",
    "PineconeVectorStore",
    "build_pinecone_filter",
    "QdrantVectorStore",
    "build_qdrant_filter",
]
