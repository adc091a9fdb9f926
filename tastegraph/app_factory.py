"""
Tastegraph Server
Cross-domain cultural ecosystems from a free-text vibe

Hosts the ecosystem engine behind a small HTTP API: context detection,
tab ranking, ecosystem building and collaborator telemetry.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from tastegraph.config.settings import settings, get_cors_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        from tastegraph.api.routes import ecosystem
        await ecosystem.close_collaborators()
        logger.info("Closed collaborator HTTP clients")


def create_app() -> FastAPI:
    """Create and configure the Tastegraph application."""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Cross-domain cultural recommendation ecosystems",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    cors_config = get_cors_config()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config["allow_origins"],
        allow_credentials=cors_config["allow_credentials"],
        allow_methods=cors_config["allow_methods"],
        allow_headers=cors_config["allow_headers"],
    )

    from tastegraph.api.routes import ecosystem, stats
    app.include_router(ecosystem.router)
    app.include_router(stats.router)

    @app.get("/")
    async def root():
        """Root endpoint - service information"""
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": "Cross-domain cultural recommendation ecosystems",
            "status": "operational",
            "endpoints": {
                "context": "/api/context",
                "tabs": "/api/tabs",
                "ecosystem": "/api/ecosystem",
                "stats": "/api/stats/collaborators",
                "health": "/health",
                "docs": "/docs"
            }
        }

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {
            "status": "ok",
            "service": "tastegraph-server",
            "version": settings.APP_VERSION
        }

    logger.info(f"Tastegraph Server initialized on port {settings.PORT}")
    return app


# Create app instance
app = create_app()
