"""Application lifespan management."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI

from queue_overlay import __version__
from queue_overlay.config import get_settings
from queue_overlay.logging_config import get_logger, log_with_context
from queue_overlay.middleware.logging_middleware import redact_sensitive_data
from queue_overlay.state_managers import ReconciliationContext, SpotifyAuthManager

logger = get_logger(__name__)


async def log_request(request: httpx.Request) -> None:
    """Event hook to log outbound requests with redacted sensitive data."""
    log_with_context(
        logger,
        "debug",
        "HTTP Request",
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        event_type="http_request",
    )


async def log_response(response: httpx.Response) -> None:
    """Event hook to log responses with redacted sensitive data."""
    log_with_context(
        logger,
        "debug",
        "HTTP Response",
        status_code=response.status_code,
        url=redact_sensitive_data(str(response.request.url)),
        event_type="http_response",
    )


def create_http_client(timeout_seconds: float) -> httpx.AsyncClient:
    """Shared Spotify HTTP client with pooled connections and logging hooks."""
    event_hooks: dict[str, list[Callable[..., Any]]] = {
        "request": [log_request],
        "response": [log_response],
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=5.0,
            read=timeout_seconds,
            write=5.0,
            pool=5.0,
        ),
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        event_hooks=event_hooks,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan - startup and shutdown events.

    Exceptions after yield are re-raised so cleanup always runs.
    """
    settings = get_settings()

    log_with_context(
        logger,
        "info",
        "Starting Queue Overlay application",
        version=__version__,
        event_type="app_startup",
    )

    client = create_http_client(settings.request_timeout_seconds)
    app.state.http_client = client

    # One Spotify session and one reconciliation context per process
    app.state.spotify_auth_manager = SpotifyAuthManager()
    app.state.reconciliation_context = ReconciliationContext.from_settings(settings)
    await app.state.spotify_auth_manager.initialize()
    await app.state.reconciliation_context.initialize()
    log_with_context(
        logger,
        "info",
        "State managers initialized",
        audio_features_enabled=app.state.reconciliation_context.capabilities.audio_features_enabled,
        genres_enabled=app.state.reconciliation_context.capabilities.genres_enabled,
        event_type="state_managers_ready",
    )

    try:
        yield
    except Exception as e:
        log_with_context(
            logger,
            "error",
            "Application error during lifespan",
            error=str(e),
            error_type=type(e).__name__,
            event_type="app_error",
        )
        raise
    finally:
        log_with_context(
            logger,
            "info",
            "Shutting down Queue Overlay application",
            event_type="app_shutdown",
        )

        await app.state.spotify_auth_manager.cleanup()
        await app.state.reconciliation_context.cleanup()

        await client.aclose()
        log_with_context(
            logger,
            "info",
            "HTTP client closed",
            event_type="http_client_cleanup",
        )
