"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from recommender.models import (
    DEFAULT_EMBEDDING_DIMENSIONS,
    DEFAULT_EMBEDDING_MODEL,
    RecommendationConfig,
)

BASE_DIR = Path(__file__).resolve().parent.parent

# Single .env at the project root
_root_env = BASE_DIR / ".env"
if _root_env.exists():
    load_dotenv(_root_env)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

DATA_SOURCES = ("memory", "json", "firebase")
VECTOR_BACKENDS = ("pinecone", "qdrant", "memory")


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Data source: "memory" | "json" (memory seeded from catalog_json_path) | "firebase"
    data_source: str = "memory"
    catalog_json_path: Optional[Path] = None
    # When data_source=firebase: path to service account JSON and optional project id
    firebase_credentials_path: Optional[Path] = None
    firebase_project_id: Optional[str] = None

    # Vector backend: "pinecone" | "qdrant" | "memory" | None (rule-based only)
    vector_backend: Optional[str] = None
    pinecone_api_key: Optional[str] = None
    pinecone_index_name: Optional[str] = None
    qdrant_url: Optional[str] = None
    qdrant_collection: Optional[str] = None

    # Embeddings
    openai_api_key: Optional[str] = None
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS

    # Optional JSON file with RecommendationConfig overrides
    algorithm_config_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        data_source = os.getenv("DATA_SOURCE", "").strip().lower() or "memory"
        if data_source not in DATA_SOURCES:
            data_source = "memory"
        vector_backend = os.getenv("VECTOR_BACKEND", "").strip().lower() or None
        if vector_backend not in VECTOR_BACKENDS:
            vector_backend = None

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (BASE_DIR / p).resolve()

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            data_source=data_source,
            catalog_json_path=_path_env("CATALOG_JSON_PATH"),
            firebase_credentials_path=_path_env("FIREBASE_CREDENTIALS_PATH") or _path_env("GOOGLE_APPLICATION_CREDENTIALS"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
            vector_backend=vector_backend,
            pinecone_api_key=os.getenv("PINECONE_API_KEY") or None,
            pinecone_index_name=os.getenv("PINECONE_INDEX_NAME") or None,
            qdrant_url=os.getenv("QDRANT_URL") or None,
            qdrant_collection=os.getenv("QDRANT_COLLECTION") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            embedding_model=os.getenv("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            embedding_dimensions=int(os.getenv("EMBEDDING_DIMENSIONS", str(DEFAULT_EMBEDDING_DIMENSIONS))),
            algorithm_config_path=_path_env("ALGORITHM_CONFIG_PATH"),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []
        if self.data_source == "json" and not (self.catalog_json_path and self.catalog_json_path.is_file()):
            errors.append(f"CATALOG_JSON_PATH not found: {self.catalog_json_path}")
        if self.data_source == "firebase" and self.firebase_credentials_path and not self.firebase_credentials_path.is_file():
            errors.append(f"FIREBASE_CREDENTIALS_PATH is not a file: {self.firebase_credentials_path}")
        if self.vector_backend == "pinecone" and not self.pinecone_api_key:
            errors.append("VECTOR_BACKEND=pinecone requires PINECONE_API_KEY")
        if self.vector_backend and not self.openai_api_key:
            errors.append(f"VECTOR_BACKEND={self.vector_backend} requires OPENAI_API_KEY")
        if self.algorithm_config_path and not self.algorithm_config_path.is_file():
            errors.append(f"ALGORITHM_CONFIG_PATH not found: {self.algorithm_config_path}")
        return len(errors) == 0, errors

    def load_algorithm_config(self) -> RecommendationConfig:
        """RecommendationConfig from ALGORITHM_CONFIG_PATH, or defaults. Raises InvalidConfiguration."""
        if not self.algorithm_config_path:
            return RecommendationConfig()
        with open(self.algorithm_config_path) as f:
            return RecommendationConfig.from_dict(json.load(f))


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()


def configure_logging(level: str = "INFO") -> None:
    """Root logging for the server and scripts; modules log via logging.getLogger(__name__)."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
