#!/usr/bin/env python3
"""
Embed every resource in the catalog and upsert it into the vector store.

Requires VECTOR_BACKEND (pinecone | qdrant) and OPENAI_API_KEY in env.

Usage:
  From repo root:
    python -m feed_server.scripts.reindex_resources
    python -m feed_server.scripts.reindex_resources --batch-size 25 --limit 500
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from recommender.models import ResourceDocument
from recommender.stores import EmbeddingService, ResourceRepository, VectorStore

from ..config import configure_logging, get_config
from ..state import AppState

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


async def reindex_resources(
    repository: ResourceRepository,
    embedding_service: EmbeddingService,
    vector_store: VectorStore,
    batch_size: int = DEFAULT_BATCH_SIZE,
    limit: Optional[int] = None,
) -> int:
    """Embed and upsert resources batch by batch. Returns the number of documents indexed."""
    await vector_store.initialize()
    resources = [r for r in await repository.list_all() if r.searchable_text]
    if limit is not None:
        resources = resources[:limit]
    indexed = 0
    for i in range(0, len(resources), batch_size):
        batch = resources[i:i + batch_size]
        embeddings = await embedding_service.embed_many([r.searchable_text for r in batch])
        documents = [
            ResourceDocument.from_resource(resource, embedding)
            for resource, embedding in zip(batch, embeddings)
        ]
        await vector_store.upsert_documents(documents)
        indexed += len(documents)
        logger.info("[reindex] batch=%d indexed=%d/%d", i // batch_size + 1, indexed, len(resources))
    return indexed


async def _run(args: argparse.Namespace) -> int:
    state = AppState(get_config())
    if state.vector_store is None or state.embedding_service is None:
        print("VECTOR_BACKEND and OPENAI_API_KEY are required.", file=sys.stderr)
        return 1
    indexed = await reindex_resources(
        state.store.resources,
        state.embedding_service,
        state.vector_store,
        batch_size=args.batch_size,
        limit=args.limit,
    )
    print(f"Indexed {indexed} resources into {type(state.vector_store).__name__}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Re-embed resources into the vector store")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    parser.add_argument("--limit", type=int, default=None, help="Max resources (default: all)")
    args = parser.parse_args()
    configure_logging(get_config().log_level)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
