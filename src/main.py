"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Can create multiple app instances if needed (e.g., for testing)

For local development:
    uvicorn src.main:app --reload --port 3000

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from . import __version__
from .api import realtime
from .api.dependencies import RateLimit
from .api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from .api.routes import admin, auth, health, users, videos
from .config.bootstrap import bootstrap
from .config.settings import Settings, get_settings

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Runs on startup and shutdown. Global bindings are already configured
    by create_app; startup only reports on the configuration.
    """
    settings: Settings = app.state.settings

    logger.info(
        "Baho ng Lahat API starting",
        extra={
            "version": __version__,
            "mock_mode": {
                "snowflake": settings.snowflake_mock_mode,
                "cloudinary": settings.cloudinary_mock_mode,
                "video_processor": settings.video_processor_mock_mode,
            }
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Baho ng Lahat API shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Configuration to use instead of the environment. When
            given, it also replaces get_settings for every dependency.

    Configures the FFmpeg binding and the Cloudinary SDK before any route
    exists. Opens no database connection and makes no network calls.
    """
    explicit_settings = settings is not None
    if settings is None:
        settings = get_settings()

    logging.getLogger().setLevel(settings.log_level.upper())

    bootstrap(settings)

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description="""
        Community video sharing: upload, watch, react and follow channels.

        ## Authentication

        Log in with `POST /api/v1/auth/login`. The session cookie it sets
        authenticates every later request.

        ## Notifications

        Connect a WebSocket to `/ws/notifications` to receive community
        activity as it happens.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    if explicit_settings:
        app.dependency_overrides[get_settings] = lambda: settings

    # Middleware added last runs first: sessions, then CORS, then logging
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        max_age=settings.session_max_age_seconds,
        https_only=settings.session_https_only,
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    rate_limited = [Depends(RateLimit("api"))]

    app.include_router(
        auth.router,
        prefix="/api/v1/auth",
        tags=["Auth"],
        dependencies=rate_limited,
    )

    app.include_router(
        videos.router,
        prefix="/api/v1/videos",
        tags=["Videos"],
        dependencies=rate_limited,
    )

    app.include_router(
        users.router,
        prefix="/api/v1/users",
        tags=["Users"],
        dependencies=rate_limited,
    )

    app.include_router(
        admin.router,
        prefix="/api/v1/admin",
        tags=["Admin"],
        dependencies=rate_limited,
    )

    app.include_router(realtime.router, tags=["Realtime"])

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "Baho ng Lahat API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "notifications": "/ws/notifications",
        }

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": __version__,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
