"""Root and health endpoints."""

from fastapi import APIRouter

from ..services import check_openai_available
from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Learning Feed Recommender API",
        "version": "1.0.0",
        "store": type(state.store).__name__,
        "vector_store": type(state.vector_store).__name__ if state.vector_store is not None else None,
        "feed_size": state.algorithm_config.feed_size,
        "scorer_weights": state.algorithm_config.scorer_weights(),
        "endpoints": {
            "feeds": [
                "POST /api/feeds/{user_id}/{feed_type}",
                "GET /api/feeds/{user_id}/{feed_type}",
                "GET /api/feeds/{user_id}/history",
            ],
            "votes": ["POST /api/votes", "GET /api/votes/{user_id}"],
        },
    }


@router.get("/api/health")
def health():
    state = get_state()
    openai_ok, openai_msg = check_openai_available(state.config.openai_api_key)
    return {
        "status": "healthy",
        "data_source": state.config.data_source,
        "vector_retrieval": state.vector_store is not None,
        "openai": {"available": openai_ok, "message": openai_msg},
    }
