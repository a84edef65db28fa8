"""FastAPI dependencies for dependency injection."""

import httpx
from fastapi import Request

from queue_overlay.state_managers import ReconciliationContext, SpotifyAuthManager


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Get the shared HTTP client from app state.

    Raises:
        RuntimeError: If HTTP client is not initialized.
    """
    client: httpx.AsyncClient | None = getattr(request.app.state, "http_client", None)

    if client is None:
        raise RuntimeError("HTTP client not initialized. This should never happen.")

    return client


async def get_spotify_auth_manager(request: Request) -> SpotifyAuthManager:
    """
    Get the Spotify authentication manager from app state.

    Raises:
        RuntimeError: If Spotify auth manager is not initialized.
    """
    manager: SpotifyAuthManager | None = getattr(request.app.state, "spotify_auth_manager", None)

    if manager is None:
        raise RuntimeError("Spotify auth manager not initialized.")

    return manager


async def get_reconciliation_context(request: Request) -> ReconciliationContext:
    """
    Get the reconciliation context (cache and capabilities) from app state.

    Raises:
        RuntimeError: If the context is not initialized.
    """
    context: ReconciliationContext | None = getattr(request.app.state, "reconciliation_context", None)

    if context is None:
        raise RuntimeError("Reconciliation context not initialized.")

    return context
