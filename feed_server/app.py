"""
Learning Feed Recommender — FastAPI app factory.

Use: uvicorn feed_server.app:app
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from recommender.errors import (
    InvalidConfiguration,
    RecommendationError,
    RunCancelled,
    ScoringFailed,
    StorageUnavailable,
    VectorStoreUnavailable,
)

from .config import configure_logging, get_config
from .models import ErrorResponse
from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)


def _error_response(
    status_code: int, kind: str, exc: Exception, scorer: Optional[str] = None
) -> JSONResponse:
    body = ErrorResponse(error=kind, detail=str(exc), scorer=scorer)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    """Map pipeline errors to JSON error bodies."""

    @app.exception_handler(StorageUnavailable)
    async def _storage_unavailable(request: Request, exc: StorageUnavailable):
        logger.error("[api] STORAGE_UNAVAILABLE path=%s error=%s", request.url.path, exc)
        return _error_response(503, "storage_unavailable", exc)

    @app.exception_handler(ScoringFailed)
    async def _scoring_failed(request: Request, exc: ScoringFailed):
        logger.error(
            "[api] SCORING_FAILED path=%s scorer=%s error=%s", request.url.path, exc.scorer_name, exc
        )
        return _error_response(500, "scoring_failed", exc, scorer=exc.scorer_name)

    @app.exception_handler(RunCancelled)
    async def _run_cancelled(request: Request, exc: RunCancelled):
        return _error_response(409, "run_cancelled", exc)

    @app.exception_handler(InvalidConfiguration)
    async def _invalid_configuration(request: Request, exc: InvalidConfiguration):
        return _error_response(500, "invalid_configuration", exc)

    @app.exception_handler(RecommendationError)
    async def _recommendation_error(request: Request, exc: RecommendationError):
        logger.error("[api] RECOMMENDATION_ERROR path=%s error=%s", request.url.path, exc)
        return _error_response(500, "recommendation_error", exc)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, error handlers, and startup."""
    config = get_config()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Learning Feed Recommender API",
        description="Daily learning-resource feeds from hybrid rule-based and vector retrieval",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)
    register_exception_handlers(app)

    @app.on_event("startup")
    async def _startup():
        _, errors = config.validate()
        for error in errors:
            logger.warning("[startup] config: %s", error)
        # Builds stores and the pipeline; InvalidConfiguration aborts startup
        state = get_state()
        if state.vector_store is not None:
            try:
                await state.vector_store.initialize()
            except VectorStoreUnavailable as e:
                logger.warning("[startup] vector store not ready, feeds will degrade: %s", e)
        logger.info(
            "[startup] Learning Feed Recommender API ready data_source=%s vector=%s feed_size=%d",
            state.config.data_source,
            type(state.vector_store).__name__ if state.vector_store is not None else "disabled",
            state.algorithm_config.feed_size,
        )

    return app


app = create_app()
