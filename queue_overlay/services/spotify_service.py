"""Spotify Web API read operations used by the reconciliation engine."""

from collections.abc import Iterable
from typing import Any

import httpx

from queue_overlay.config import Settings
from queue_overlay.exceptions import SpotifyAPIException, SpotifyRateLimitException
from queue_overlay.logging_config import get_logger, log_with_context
from queue_overlay.models.spotify import (
    AudioFeatures,
    Paused,
    PlaybackContext,
    PlaybackResult,
    Playing,
    Playlist,
    Track,
    Unavailable,
)
from queue_overlay.state_managers import SessionCapabilities, SpotifyAuthManager

SPOTIFY_API_URL = "https://api.spotify.com/v1"
ARTISTS_BATCH_SIZE = 50  # Spotify's maximum ids per /artists request
PLAYLIST_MAX_PAGES = 20

logger = get_logger(__name__)


async def _get(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
    url: str,
    params: dict[str, str] | None = None,
) -> httpx.Response:
    """Authenticated GET with the configured per-call deadline."""
    return await client.get(
        url,
        params=params,
        headers={"Authorization": f"Bearer {auth_manager.access_token or ''}"},
        timeout=settings.request_timeout_seconds,
    )


async def get_current_playback(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
) -> PlaybackResult:
    """Get the current playback state.

    Never raises: every failure is folded into one of the three outcomes.

    Args:
        client: Shared HTTP client from dependency injection
        auth_manager: Spotify session owner (bearer token)
        settings: Settings instance

    Returns:
        Playing when a track is playing, Paused when Spotify is reachable but
        nothing plays (device_active=False for HTTP 204), Unavailable otherwise.
    """
    try:
        response = await _get(client, auth_manager, settings, f"{SPOTIFY_API_URL}/me/player")
    except httpx.HTTPError as e:
        log_with_context(
            logger,
            "error",
            "Spotify playback request failed",
            error=str(e),
            error_type=type(e).__name__,
            event_type="spotify_playback_error",
        )
        return Unavailable(reason=str(e) or type(e).__name__)

    if response.status_code == 204:
        log_with_context(
            logger,
            "info",
            "Spotify has no active device",
            event_type="spotify_no_active_device",
        )
        return Paused(device_active=False)

    if response.status_code != 200:
        log_with_context(
            logger,
            "error",
            "Unexpected Spotify playback status",
            status_code=response.status_code,
            event_type="spotify_playback_error",
        )
        return Unavailable(status_code=response.status_code, reason=response.reason_phrase)

    try:
        data: dict[str, Any] = response.json() or {}
        item = data.get("item")
        progress_ms = max(data.get("progress_ms") or 0, 0)

        if not data.get("is_playing") or not item or item.get("type", "track") != "track" or not item.get("id"):
            log_with_context(
                logger,
                "info",
                "Spotify is available and playback is paused",
                event_type="spotify_paused",
            )
            return Paused(device_active=True, progress_ms=progress_ms)

        track = Track.from_api(item)
        context_data = data.get("context")
        context = PlaybackContext.model_validate(context_data) if context_data else None
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        log_with_context(
            logger,
            "error",
            "Invalid Spotify playback payload",
            error=str(e),
            event_type="spotify_playback_invalid",
        )
        return Unavailable(status_code=response.status_code, reason="Invalid playback payload")

    return Playing(
        track=track,
        progress_ms=min(progress_ms, track.duration_ms),
        duration_ms=track.duration_ms,
        context=context,
    )


async def get_queue(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
    limit: int,
) -> list[Track]:
    """Get the upcoming tracks, at most `limit` of them.

    Queue entries that are not tracks (podcast episodes, local files without
    an id) are skipped.

    Raises:
        SpotifyAPIException: On HTTP, network or payload errors
    """
    try:
        response = await _get(client, auth_manager, settings, f"{SPOTIFY_API_URL}/me/player/queue")
        response.raise_for_status()
        items = response.json().get("queue") or []
        tracks = [
            Track.from_api(item)
            for item in items
            if item and item.get("id") and item.get("type", "track") == "track"
        ]
    except httpx.HTTPStatusError as e:
        raise SpotifyAPIException(
            f"Failed to get queue (HTTP {e.response.status_code})",
            status_code=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Failed to get queue: {str(e)}", details={"error_type": "network_error"}) from e
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SpotifyAPIException(f"Invalid queue payload: {str(e)}", details={"error_type": "parsing_error"}) from e

    return tracks[:limit]


async def get_audio_features(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
    track_id: str,
    capabilities: SessionCapabilities,
) -> AudioFeatures | None:
    """Get tempo, energy, danceability and valence for one track.

    A 429 response turns audio features off for the whole session before
    the rate limit error is raised.

    Returns:
        AudioFeatures, or None when Spotify has no analysis for the track

    Raises:
        SpotifyRateLimitException: Spotify throttled the request
        SpotifyAPIException: Any other HTTP, network or payload error
    """
    try:
        response = await _get(client, auth_manager, settings, f"{SPOTIFY_API_URL}/audio-features/{track_id}")
    except httpx.HTTPError as e:
        raise SpotifyAPIException(
            f"Failed to get audio features: {str(e)}",
            details={"track_id": track_id, "error_type": "network_error"},
        ) from e

    if response.status_code == 429:
        capabilities.disable_audio_features()
        raise SpotifyRateLimitException(
            details={"track_id": track_id, "retry_after": response.headers.get("Retry-After")},
        )

    try:
        response.raise_for_status()
        data = response.json()
        if not data:
            return None
        return AudioFeatures.from_api(data)
    except httpx.HTTPStatusError as e:
        raise SpotifyAPIException(
            f"Failed to get audio features (HTTP {e.response.status_code})",
            status_code=e.response.status_code,
            details={"track_id": track_id},
        ) from e
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SpotifyAPIException(
            f"Invalid audio features payload: {str(e)}",
            details={"track_id": track_id, "error_type": "parsing_error"},
        ) from e


async def get_artist_genres(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
    artist_ids: Iterable[str],
) -> dict[str, list[str]]:
    """Get genres per artist.

    Duplicate ids are removed before calling Spotify. Genres are cosmetic,
    so any failure yields an empty mapping instead of an error.
    """
    unique_ids = list(dict.fromkeys(artist_id for artist_id in artist_ids if artist_id))
    genres: dict[str, list[str]] = {}

    try:
        for start in range(0, len(unique_ids), ARTISTS_BATCH_SIZE):
            batch = unique_ids[start : start + ARTISTS_BATCH_SIZE]
            response = await _get(
                client,
                auth_manager,
                settings,
                f"{SPOTIFY_API_URL}/artists",
                params={"ids": ",".join(batch)},
            )
            response.raise_for_status()
            for artist in response.json().get("artists") or []:
                if artist and artist.get("id"):
                    genres[artist["id"]] = list(artist.get("genres") or [])
    except (httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as e:
        log_with_context(
            logger,
            "warning",
            "Failed to get artist genres",
            error=str(e),
            error_type=type(e).__name__,
            artist_count=len(unique_ids),
            event_type="spotify_genres_error",
        )
        return {}

    return genres


async def get_playlist(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    settings: Settings,
    playlist_id: str,
) -> Playlist | None:
    """Get a playlist with the ids of all its tracks.

    Follows Spotify's paging links for playlists longer than one page.

    Returns:
        Playlist, or None if it could not be fetched
    """
    try:
        response = await _get(
            client,
            auth_manager,
            settings,
            f"{SPOTIFY_API_URL}/playlists/{playlist_id}",
            params={"fields": "id,name,tracks.items(track(id)),tracks.next"},
        )
        response.raise_for_status()
        data = response.json()
        page = data.get("tracks") or {}
        track_ids = _page_track_ids(page)

        pages = 1
        next_url = page.get("next")
        while next_url and pages < PLAYLIST_MAX_PAGES:
            response = await _get(client, auth_manager, settings, next_url)
            response.raise_for_status()
            page = response.json()
            track_ids.extend(_page_track_ids(page))
            next_url = page.get("next")
            pages += 1
    except (httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as e:
        log_with_context(
            logger,
            "warning",
            "Failed to get playlist",
            playlist_id=playlist_id,
            error=str(e),
            error_type=type(e).__name__,
            event_type="spotify_playlist_error",
        )
        return None

    log_with_context(
        logger,
        "info",
        "Fetched playlist membership",
        playlist_id=playlist_id,
        track_count=len(track_ids),
        event_type="spotify_playlist_fetched",
    )
    return Playlist(id=data.get("id") or playlist_id, name=data.get("name") or "", track_ids=track_ids)


def _page_track_ids(page: dict[str, Any]) -> list[str]:
    """Track ids of one playlist page, skipping removed or local entries."""
    ids = []
    for item in page.get("items") or []:
        track = (item or {}).get("track") or {}
        if track.get("id"):
            ids.append(track["id"])
    return ids
