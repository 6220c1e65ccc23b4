"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .feeds import router as feeds_router
from .root import router as root_router
from .votes import router as votes_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(feeds_router, prefix="/api/feeds", tags=["feeds"])
    app.include_router(votes_router, prefix="/api/votes", tags=["votes"])
