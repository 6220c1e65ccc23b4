"""
Embedding service

Embeds resource text with OpenAI's embedding API (AsyncOpenAI), in batches.

Usage:
    service = OpenAIEmbeddingService(api_key="sk-...")
    vectors = await service.embed_many([resource.searchable_text for resource in resources])
"""

import logging
import os
from typing import List, Optional, Sequence, Tuple

from openai import AsyncOpenAI, OpenAIError

from recommender.errors import EmbeddingUnavailable
from recommender.models import DEFAULT_EMBEDDING_DIMENSIONS, DEFAULT_EMBEDDING_MODEL

logger = logging.getLogger(__name__)


class OpenAIEmbeddingService:
    """
    Generates embeddings using OpenAI's embedding API.

    Inputs are sent in batches of BATCH_SIZE; output order matches input order.
    """

    BATCH_SIZE = 100

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_EMBEDDING_MODEL,
        dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.model = model
        self._dimensions = dimensions
        self._client = client

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise EmbeddingUnavailable(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
                )
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def embed(self, text: str) -> List[float]:
        vectors = await self.embed_many([text])
        return vectors[0]

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        texts = list(texts)
        if not texts:
            return []
        out: List[List[float]] = []
        for i in range(0, len(texts), self.BATCH_SIZE):
            out.extend(await self._generate_batch(texts[i:i + self.BATCH_SIZE]))
        return out

    async def _generate_batch(self, texts: List[str]) -> List[List[float]]:
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=texts,
                dimensions=self._dimensions,
            )
        except OpenAIError as e:
            logger.error("[embeddings] batch failed size=%d error=%s", len(texts), e)
            raise EmbeddingUnavailable(f"OpenAI embeddings failed: {e}") from e
        ordered = sorted(response.data, key=lambda item: item.index)
        return [item.embedding for item in ordered]


def check_openai_available(api_key: Optional[str] = None) -> Tuple[bool, str]:
    """Return (configured, message) for the OpenAI key without calling the API."""
    key = api_key or os.environ.get("OPENAI_API_KEY")
    if not key:
        return False, "OPENAI_API_KEY not set"
    return True, "configured"
