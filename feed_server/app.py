"""
Feed Ranking API: FastAPI app factory.

Use: uvicorn feed_server.app:app
Or:  from feed_server import app
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_config
from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, and startup."""
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    app = FastAPI(
        title="Feed Ranking API",
        description="Personalized article feed: candidate pools, scoring, diversity reranking and feedback",
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

    @app.on_event("startup")
    def _startup_logging():
        ok, errors = config.validate()
        for error in errors:
            logger.warning("[startup] config: %s", error)
        state = get_state()
        logger.info(
            "[startup] Feed Ranking API starting: data_source=%s algorithm=%s articles=%s config_valid=%s",
            config.data_source,
            state.ranking_config.algorithm_version,
            state.content.count(),
            ok,
        )

    return app


app = create_app()
