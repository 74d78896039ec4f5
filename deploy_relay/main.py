"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.
It sets up routes, exception handlers and health endpoints.

Design Decisions:
- Use lifespan events for startup/shutdown
- Missing credentials are logged at startup but do not stop the server;
  every webhook request then reports the configuration error
- Expose health and readiness endpoints
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from deploy_relay import __version__
from deploy_relay.config import Settings, get_settings
from deploy_relay.errors import ConfigurationError
from deploy_relay.logging_config import get_logger, setup_logging
from deploy_relay.webhook import router as webhook_router

# Initialize logging first
setup_logging()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events for the application.
    Settings honor dependency overrides so tests see their own configuration.
    """
    settings = app.dependency_overrides.get(get_settings, get_settings)()
    app.state.settings = settings
    logger.info(
        "Starting Vercel deployment relay",
        host=settings.host,
        port=settings.port
    )

    try:
        settings.require_credentials()
        logger.info("Configuration validated successfully")
    except ConfigurationError as e:
        logger.error(
            "Configuration validation failed; webhook requests will be refused",
            error=str(e)
        )

    yield

    logger.info("Shutting down Vercel deployment relay")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Vercel Deployment Relay",
        description="Posts Vercel deployment failures to GitHub pull requests",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    # Register routes
    app.include_router(webhook_router)

    # Add global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "type": type(exc).__name__
            }
        )

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "name": "Vercel Deployment Relay",
            "version": __version__,
            "status": "running",
            "webhook": "/api/vercel-webhook"
        }

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.

        Returns basic health status for load balancers and monitors.
        """
        return {
            "status": "healthy",
            "service": "deploy-relay",
            "version": __version__
        }

    @app.get("/ready")
    async def readiness_check(settings: Settings = Depends(get_settings)):
        """
        Readiness check endpoint.

        Reports not ready while any credential is missing.
        """
        try:
            settings.require_credentials()
        except ConfigurationError as e:
            logger.error("Readiness check failed", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Not ready: {e}"
            )

        return {
            "status": "ready",
            "service": "deploy-relay"
        }

    return app


# Create the application instance
app = create_app()
