"""Middleware configuration."""

from fastapi import FastAPI
from slowapi import Limiter
from slowapi.util import get_remote_address

from queue_overlay.config import Settings
from queue_overlay.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


def setup_middleware(app: FastAPI, settings: Settings) -> Limiter:
    """Configure all middleware for the application.

    Args:
        app: FastAPI application instance
        settings: Application settings

    Returns:
        Limiter instance for rate limiting
    """
    limiter = Limiter(key_func=get_remote_address, default_limits=["120/minute"])
    app.state.limiter = limiter
    log_with_context(
        logger,
        "info",
        "Rate limiter configured",
        default_limit="120/minute",
        api_host=settings.api_host,
        event_type="middleware_config",
    )

    return limiter
