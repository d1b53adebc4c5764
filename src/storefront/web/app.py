"""
Storefront - Web Application.

FastAPI app serving the onboarding wizard API.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from onboarding.api import router as onboarding_router
from storefront import __version__
from storefront.config import settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Storefront", version=__version__)

    @app.on_event("startup")
    async def startup_event():
        """Configure logging and report the environment."""
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
        logger.info(f"Storefront starting up ({settings.storefront_env})")
        logger.info(f"  Onboarding snapshots: {settings.onboarding_snapshots_enabled}")

    # CORS middleware for the dashboard dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(onboarding_router, prefix="/api")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


def run() -> None:
    """Start the web server (PORT env var overrides settings.port)."""
    import os

    import uvicorn

    uvicorn.run(
        "storefront.web.app:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", settings.port)),
        reload=settings.is_development,
    )
