"""
Content Recommendation API — FastAPI app factory.

Use: uvicorn server.app:app
Or:  from server import app
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import configure_logging, get_config
from .routes import register_routes
from .routes.root import SERVICE_NAME, SERVICE_VERSION

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build FastAPI app with CORS and routes."""
    app = FastAPI(
        title=SERVICE_NAME,
        description="Movie, TV, anime and game recommendations: sequels first, then vector similarity",
        version=SERVICE_VERSION,
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
    async def _startup_logging():
        config = get_config()
        configure_logging(config.log_level)
        _, errors = config.validate()
        logger.info("[startup] %s starting (data_source=%s)", SERVICE_NAME, config.data_source)
        for err in errors:
            logger.warning("[startup] config: %s", err)

    return app


app = create_app()
