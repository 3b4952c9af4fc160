"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .root import router as root_router
from .feed import router as feed_router
from .interactions import router as interactions_router
from .onboarding import router as onboarding_router
from .sources import router as sources_router
from .articles import router as articles_router
from .jobs import router as jobs_router
from .stats import router as stats_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(feed_router, prefix="/api/feed", tags=["feed"])
    app.include_router(interactions_router, prefix="/api/interactions", tags=["interactions"])
    app.include_router(onboarding_router, prefix="/api/onboarding", tags=["onboarding"])
    app.include_router(sources_router, prefix="/api/sources", tags=["sources"])
    app.include_router(articles_router, prefix="/api/articles", tags=["articles"])
    app.include_router(jobs_router, prefix="/api/jobs", tags=["jobs"])
    app.include_router(stats_router, prefix="/api", tags=["stats"])
