"""Application state: stores, vector retrieval and the wired feed generator."""

import logging
from typing import Any, Optional

from recommender import FeedGenerator, RecommendationConfig, build_feed_generator

from .config import ServerConfig, get_config
from .services import (
    FirestoreStore,
    InMemoryStore,
    InMemoryVectorStore,
    OpenAIEmbeddingService,
    PineconeVectorStore,
    QdrantVectorStore,
)

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(
        self,
        config: ServerConfig,
        store: Optional[Any] = None,
        vector_store: Optional[Any] = None,
        embedding_service: Optional[Any] = None,
        algorithm_config: Optional[RecommendationConfig] = None,
    ):
        self.config = config
        # Raises InvalidConfiguration: the app must not start with bad weights
        self.algorithm_config = algorithm_config or config.load_algorithm_config()

        self.store = store if store is not None else self._create_store(config)
        logger.info("[startup] Store: %s", type(self.store).__name__)

        if vector_store is None and embedding_service is None:
            vector_store, embedding_service = self._create_vector_retrieval(config)
        self.vector_store = vector_store
        self.embedding_service = embedding_service
        logger.info(
            "[startup] Vector store: %s",
            type(self.vector_store).__name__ if self.vector_store is not None else "disabled",
        )

        self.feed_generator: FeedGenerator = build_feed_generator(
            self.store.resources,
            self.store.votes,
            self.store.recommendations,
            source_repository=self.store.sources,
            vector_store=self.vector_store,
            embedding_service=self.embedding_service,
            config=self.algorithm_config,
        )

    def _create_store(self, config: ServerConfig) -> Any:
        """Create repositories from config (Firestore, JSON-seeded memory, or empty memory)."""
        if config.data_source == "firebase":
            return FirestoreStore(
                project_id=config.firebase_project_id,
                credentials_path=config.firebase_credentials_path,
            )
        if config.data_source == "json" and config.catalog_json_path:
            return InMemoryStore.from_json(config.catalog_json_path)
        return InMemoryStore()

    def _create_vector_retrieval(self, config: ServerConfig):
        """(vector_store, embedding_service); (None, None) when vector retrieval is off."""
        if not config.vector_backend:
            return None, None
        if not config.openai_api_key:
            logger.warning(
                "[startup] Vector backend %s skipped: OPENAI_API_KEY not set, rule-based only",
                config.vector_backend,
            )
            return None, None
        embedding_service = OpenAIEmbeddingService(
            api_key=config.openai_api_key,
            model=config.embedding_model,
            dimensions=config.embedding_dimensions,
        )
        if config.vector_backend == "pinecone":
            try:
                store = PineconeVectorStore(
                    api_key=config.pinecone_api_key,
                    index_name=config.pinecone_index_name,
                    dimension=config.embedding_dimensions,
                )
            except ValueError as e:
                logger.warning("[startup] Pinecone vector store init failed: %s, rule-based only", e)
                return None, None
            return store, embedding_service
        if config.vector_backend == "qdrant":
            return (
                QdrantVectorStore(
                    qdrant_url=config.qdrant_url,
                    collection_name=config.qdrant_collection,
                    dimension=config.embedding_dimensions,
                ),
                embedding_service,
            )
        return InMemoryVectorStore(), embedding_service


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (tests, scripts)."""
    global _state
    _state = state
