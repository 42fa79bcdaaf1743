"""
Proof-of-Art API

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.container import ServiceContainer, build_container, get_container
from app.middleware import ErrorHandlerMiddleware
from app.routes import artworks, generate, verify

API_VERSION = "1.0.0"


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    """Set the root log level and a single console format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    if getattr(app.state, "container", None) is None:
        app.state.container = build_container(settings)
    container: ServiceContainer = app.state.container
    await container.startup()
    yield
    # Shutdown
    await container.shutdown()


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        container: Pre-built services; built from settings at startup when omitted
    """
    configure_logging()

    app = FastAPI(
        title="Proof-of-Art API",
        description="AI artwork generation with verifiable content-hash provenance",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.container = container

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handling middleware
    app.add_middleware(ErrorHandlerMiddleware)

    # Register routers
    app.include_router(generate.router, prefix="/api", tags=["Generate"])
    app.include_router(artworks.router, prefix="/api", tags=["Artworks"])
    app.include_router(verify.router, prefix="/api", tags=["Verify"])

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {
            "status": "ok",
            "service": "Proof-of-Art API",
            "version": API_VERSION,
        }

    @app.get("/health")
    async def health_check(container: ServiceContainer = Depends(get_container)):
        """
        Detailed health check endpoint.

        Reports whether the record store is reachable and which registry and
        content store are in use. A degraded record store does not make the
        service unhealthy.
        """
        database_ok = await container.database.ping()
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": API_VERSION,
            "services": {
                "database": "connected" if database_ok else "unavailable",
                "registry": "configured" if container.registry.configured else "unconfigured",
                "contentStore": container.content_store.name,
                "cleanup": container.cleanup.status(),
            },
        }

    return app


app = create_app()
