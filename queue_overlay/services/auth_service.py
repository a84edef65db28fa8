"""Spotify OAuth token handling (authorization code exchange and refresh)."""

from urllib.parse import urlencode

import httpx

from queue_overlay.config import Settings
from queue_overlay.exceptions import SpotifyAuthException
from queue_overlay.logging_config import get_logger, log_with_context
from queue_overlay.state_managers import SpotifyAuthManager

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"

# Read-only scopes: the overlay never controls playback
SPOTIFY_SCOPES = [
    "user-read-private",
    "user-read-email",
    "user-read-playback-state",
    "user-read-currently-playing",
]

logger = get_logger(__name__)


def build_authorize_url(settings: Settings, state: str) -> str:
    """Build the Spotify authorization URL the user is redirected to.

    Args:
        settings: Settings instance with client id and redirect URI
        state: Random CSRF token echoed back on the callback

    Returns:
        Absolute authorization URL
    """
    params = {
        "client_id": settings.spotify_client_id,
        "response_type": "code",
        "redirect_uri": settings.redirect_uri,
        "state": state,
        "scope": " ".join(SPOTIFY_SCOPES),
        "show_dialog": "false",
    }
    return f"{SPOTIFY_AUTHORIZE_URL}?{urlencode(params)}"


async def _request_token(client: httpx.AsyncClient, settings: Settings, data: dict[str, str]) -> dict:
    response = await client.post(
        SPOTIFY_TOKEN_URL,
        auth=(settings.spotify_client_id, settings.spotify_client_secret),
        data=data,
        timeout=settings.request_timeout_seconds,
    )
    response.raise_for_status()
    payload = response.json()
    if "access_token" not in payload:
        raise KeyError("access_token")
    return payload


async def exchange_code(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
    code: str,
) -> None:
    """Exchange an authorization code for the initial token pair.

    Args:
        client: Shared HTTP client from dependency injection
        auth_manager: Spotify session owner
        settings: Settings instance
        code: Authorization code from the OAuth callback

    Raises:
        SpotifyAuthException: If the exchange fails for any reason (never retried)
    """
    try:
        data = await _request_token(
            client,
            settings,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": settings.redirect_uri,
            },
        )
    except httpx.HTTPStatusError as e:
        raise SpotifyAuthException(
            f"Token exchange failed (HTTP {e.response.status_code})",
            details={"status_code": e.response.status_code},
        ) from e
    except httpx.HTTPError as e:
        raise SpotifyAuthException(f"Token exchange failed: {str(e)}") from e
    except (KeyError, ValueError) as e:
        raise SpotifyAuthException(f"Invalid Spotify token response: {str(e)}") from e

    refresh_token = data.get("refresh_token")
    if not refresh_token:
        raise SpotifyAuthException("No refresh token received")

    await auth_manager.set_tokens(data["access_token"], data.get("expires_in", 3600), refresh_token)
    log_with_context(
        logger,
        "info",
        "Spotify authorization code exchanged",
        expires_at=auth_manager.token_expires_at,
        event_type="spotify_auth_success",
    )


async def refresh_access_token(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
) -> bool:
    """Refresh the access token once.

    Failures are logged and the stale token is left in place; the next
    Spotify call will then fail with 401 and the page shows the error.

    Returns:
        True if a new access token was stored
    """
    refresh_token = auth_manager.refresh_token
    if not refresh_token:
        log_with_context(
            logger,
            "warning",
            "Cannot refresh Spotify token: no refresh token",
            event_type="spotify_refresh_skipped",
        )
        return False

    try:
        data = await _request_token(
            client,
            settings,
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
    except (httpx.HTTPError, KeyError, ValueError) as e:
        log_with_context(
            logger,
            "error",
            "Spotify token refresh failed",
            error=str(e),
            error_type=type(e).__name__,
            event_type="spotify_refresh_failed",
        )
        return False

    await auth_manager.set_tokens(data["access_token"], data.get("expires_in", 3600), data.get("refresh_token"))
    log_with_context(
        logger,
        "info",
        "Spotify access token refreshed",
        expires_at=auth_manager.token_expires_at,
        event_type="spotify_refresh_success",
    )
    return True


async def ensure_valid(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
) -> None:
    """Refresh the access token if it has reached its expiry.

    Makes exactly one refresh attempt when expired and none otherwise.
    """
    async with auth_manager.refresh_lock:
        if not auth_manager.needs_refresh():
            log_with_context(
                logger,
                "debug",
                "Spotify token still valid",
                expires_at=auth_manager.token_expires_at,
                event_type="spotify_token_valid",
            )
            return

        log_with_context(
            logger,
            "info",
            "Spotify token expired, refreshing",
            expires_at=auth_manager.token_expires_at,
            event_type="spotify_token_expired",
        )
        await refresh_access_token(client, auth_manager, settings)
