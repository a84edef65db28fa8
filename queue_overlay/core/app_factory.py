"""Application factory for creating and configuring the FastAPI app."""

from fastapi import FastAPI
from pydantic import ValidationError

from queue_overlay import __version__
from queue_overlay.config import Settings, get_settings
from queue_overlay.core.lifespan import lifespan
from queue_overlay.core.middleware import setup_middleware
from queue_overlay.exceptions import ConfigurationException
from queue_overlay.middleware.error_handlers import register_error_handlers
from queue_overlay.routers import auth_router, health_router, queue_router


def load_settings() -> Settings:
    """Load settings, turning validation errors into a configuration error.

    Raises:
        ConfigurationException: If Spotify credentials or other settings are missing or invalid
    """
    try:
        return get_settings()
    except ValidationError as e:
        missing = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
        raise ConfigurationException(
            "Invalid configuration; SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set",
            details={"fields": missing},
        ) from e


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance

    Raises:
        ConfigurationException: If configuration is invalid (the server must not start)
    """
    settings = load_settings()

    app = FastAPI(
        title="Queue Overlay",
        description="""
        Now playing overlay for Spotify.

        1. Open /login and approve access to your Spotify account
        2. You are redirected to /queue, which shows the current track and
           the next tracks in the queue and refreshes itself
        3. /health reports whether the server is up
        """,
        version=__version__,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    register_error_handlers(app)

    app.include_router(health_router.router, tags=["health"])
    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(queue_router.router, tags=["views"])

    return app
