"""Spotify OAuth routes (authorization code flow)."""

import secrets
import time

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, RedirectResponse

from queue_overlay.config import Settings, get_settings
from queue_overlay.dependencies import get_http_client, get_spotify_auth_manager
from queue_overlay.exceptions import SpotifyAuthException
from queue_overlay.logging_config import get_logger, log_with_context
from queue_overlay.services import auth_service
from queue_overlay.state_managers import SpotifyAuthManager

router = APIRouter()
logger = get_logger(__name__)

# OAuth state storage with TTL cleanup
# States expire after 10 minutes so abandoned auth flows do not accumulate
_oauth_states: dict[str, float] = {}  # state -> timestamp
OAUTH_STATE_TTL_SECONDS = 600


def _cleanup_expired_oauth_states() -> None:
    """Remove expired OAuth states."""
    current_time = time.time()
    expired_states = [
        state for state, timestamp in _oauth_states.items() if current_time - timestamp > OAUTH_STATE_TTL_SECONDS
    ]
    for state in expired_states:
        _oauth_states.pop(state, None)


def _auth_error(message: str, status_code: int = 400) -> PlainTextResponse:
    log_with_context(
        logger,
        "warning",
        "Spotify authorization failed",
        error=message,
        status_code=status_code,
        event_type="spotify_auth_failed",
    )
    return PlainTextResponse(f"Error: {message}", status_code=status_code)


@router.get("/login")
async def login(settings: Settings = Depends(get_settings)):
    """Redirect to Spotify's authorization page."""
    _cleanup_expired_oauth_states()

    # Random state for CSRF protection
    state = secrets.token_urlsafe(32)
    _oauth_states[state] = time.time()

    return RedirectResponse(url=auth_service.build_authorize_url(settings, state))


@router.get("/callback")
async def callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    client: httpx.AsyncClient = Depends(get_http_client),
    auth_manager: SpotifyAuthManager = Depends(get_spotify_auth_manager),
    settings: Settings = Depends(get_settings),
):
    """Handle Spotify's OAuth callback and start showing the queue."""
    if error:
        return _auth_error(f"Spotify authorization failed: {error}")

    if not state or state not in _oauth_states:
        return _auth_error("Invalid state parameter")
    _oauth_states.pop(state, None)

    if not code:
        return _auth_error("No authorization code received")

    try:
        await auth_service.exchange_code(client, auth_manager, settings, code)
    except SpotifyAuthException as e:
        return _auth_error(e.message, status_code=e.status_code)

    return RedirectResponse(url="/queue", status_code=303)
