"""Playback reconciliation: merges fresh Spotify data with the cached state.

One call to reconcile() is one cycle. Only the playback request decides the
outcome of a cycle; queue, audio feature, genre and playlist requests may
fail without aborting it, they only narrow what the snapshot can show.
"""

import httpx

from queue_overlay.config import Settings
from queue_overlay.exceptions import SpotifyAPIException, SpotifyException, SpotifyRateLimitException
from queue_overlay.logging_config import get_logger, log_with_context
from queue_overlay.models.snapshot import CachedState, PlaybackSnapshot, PlaybackStatus, TrackMetrics
from queue_overlay.models.spotify import AudioFeatures, Paused, Playing, Track, Unavailable
from queue_overlay.services import spotify_service
from queue_overlay.services.poll_scheduler import compute_next_poll_delay
from queue_overlay.state_managers import ReconciliationContext, SpotifyAuthManager

logger = get_logger(__name__)


async def reconcile(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    context: ReconciliationContext,
    settings: Settings,
) -> PlaybackSnapshot:
    """Run one reconciliation cycle and return the resulting snapshot.

    Cycles are serialized on context.lock, so overlapping page loads never
    interleave their cache writes.

    Args:
        client: Shared HTTP client from dependency injection
        auth_manager: Spotify session owner
        context: Cross-cycle cache and capabilities
        settings: Settings instance

    Returns:
        PlaybackSnapshot ready for rendering
    """
    async with context.lock:
        playback = await spotify_service.get_current_playback(client, auth_manager, settings)

        if isinstance(playback, Unavailable):
            snapshot = _empty_snapshot(PlaybackStatus.UNAVAILABLE, settings, error_code=playback.status_code)
        elif isinstance(playback, Paused):
            if playback.device_active and context.cache.has_active_session:
                snapshot = _paused_snapshot(context, playback, settings)
            else:
                snapshot = _empty_snapshot(PlaybackStatus.IDLE, settings)
        else:
            snapshot = await _playing_snapshot(client, auth_manager, context, settings, playback)

    log_with_context(
        logger,
        "info",
        "Reconciliation cycle complete",
        status=snapshot.status.value,
        track_id=snapshot.current_track.id if snapshot.current_track else None,
        queue_length=len(snapshot.queue),
        next_poll_delay_ms=snapshot.next_poll_delay_ms,
        event_type="reconciliation_cycle",
    )
    return snapshot


async def _playing_snapshot(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    context: ReconciliationContext,
    settings: Settings,
    playback: Playing,
) -> PlaybackSnapshot:
    track = playback.track
    playlist_id = playback.context.playlist_id if playback.context else None

    # Cached membership still applies after autoplay has left the playlist
    membership_known = context.cache.playlist_id is not None
    if playlist_id:
        membership_known = await _refresh_playlist_membership(client, auth_manager, context, settings, playlist_id)

    try:
        queue = await spotify_service.get_queue(client, auth_manager, settings, settings.nbr_tracks)
    except SpotifyException as e:
        log_with_context(
            logger,
            "warning",
            "Queue unknown this cycle",
            error=e.message,
            event_type="queue_fetch_failed",
        )
        queue = []

    if membership_known and queue and not _overlaps_playlist(queue, context.cache.playlist_track_ids):
        log_with_context(
            logger,
            "info",
            "No queued track belongs to the playlist, likely reached its end",
            playlist_id=context.cache.playlist_id,
            event_type="playlist_exhausted",
        )
        queue = []

    tracks = [track, *queue]
    features = await _fetch_audio_features(client, auth_manager, context, settings, tracks)
    genres = await _fetch_genres(client, auth_manager, context, settings, tracks)

    cache = context.cache
    context.replace_cache(
        CachedState(
            current_track=track,
            queue=tuple(queue),
            audio_features=features,
            genres=genres,
            playlist_id=cache.playlist_id,
            playlist_track_ids=cache.playlist_track_ids,
        )
    )

    return _build_snapshot(
        status=PlaybackStatus.PLAYING,
        track=track,
        progress_ms=playback.progress_ms,
        duration_ms=playback.duration_ms,
        queue=queue,
        features=features,
        genres=genres,
        active_playlist_id=playlist_id,
        context=context,
        settings=settings,
    )


def _paused_snapshot(context: ReconciliationContext, playback: Paused, settings: Settings) -> PlaybackSnapshot:
    """Snapshot rebuilt from the cache; nothing is fetched while paused."""
    cache = context.cache
    track = cache.current_track
    duration_ms = track.duration_ms if track else 0

    return _build_snapshot(
        status=PlaybackStatus.PAUSED,
        track=track,
        progress_ms=min(playback.progress_ms, duration_ms),
        duration_ms=duration_ms,
        queue=list(cache.queue),
        features=cache.audio_features,
        genres=cache.genres,
        active_playlist_id=cache.playlist_id,
        context=context,
        settings=settings,
    )


def _empty_snapshot(status: PlaybackStatus, settings: Settings, error_code: int | None = None) -> PlaybackSnapshot:
    return PlaybackSnapshot(
        status=status,
        background_color=settings.error_background_color,
        next_poll_delay_ms=compute_next_poll_delay(False, 0, 0, settings),
        error_code=error_code,
    )


def _build_snapshot(
    *,
    status: PlaybackStatus,
    track: Track | None,
    progress_ms: int,
    duration_ms: int,
    queue: list[Track],
    features: dict[str, AudioFeatures] | None,
    genres: dict[str, list[str]] | None,
    active_playlist_id: str | None,
    context: ReconciliationContext,
    settings: Settings,
) -> PlaybackSnapshot:
    is_playing = status == PlaybackStatus.PLAYING

    metrics = None
    if features is not None and context.capabilities.audio_features_enabled:
        metrics = {track_id: TrackMetrics.from_features(value) for track_id, value in features.items()}

    return PlaybackSnapshot(
        status=status,
        is_playing=is_playing,
        current_track=track,
        progress_ms=progress_ms,
        duration_ms=duration_ms,
        queue=queue,
        audio_features=metrics,
        genres=genres if context.capabilities.genres_enabled else None,
        active_playlist_id=active_playlist_id,
        background_color=settings.background_color,
        next_poll_delay_ms=compute_next_poll_delay(is_playing, duration_ms, progress_ms, settings),
    )


async def _refresh_playlist_membership(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    context: ReconciliationContext,
    settings: Settings,
    playlist_id: str,
) -> bool:
    """Make sure the cached membership belongs to playlist_id.

    Returns:
        False when membership is unknown for this cycle (fetch failed)
    """
    cache = context.cache
    if cache.playlist_id == playlist_id:
        return True

    log_with_context(
        logger,
        "info",
        "Playlist changed",
        previous_playlist_id=cache.playlist_id,
        playlist_id=playlist_id,
        event_type="playlist_changed",
    )
    playlist = await spotify_service.get_playlist(client, auth_manager, settings, playlist_id)
    if playlist is None:
        return False

    context.replace_cache(
        context.cache.model_copy(
            update={"playlist_id": playlist_id, "playlist_track_ids": frozenset(playlist.track_ids)}
        )
    )
    return True


def _overlaps_playlist(queue: list[Track], playlist_track_ids: frozenset[str]) -> bool:
    return any(track.id in playlist_track_ids for track in queue)


async def _fetch_audio_features(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    context: ReconciliationContext,
    settings: Settings,
    tracks: list[Track],
) -> dict[str, AudioFeatures] | None:
    """Audio features keyed by track id, or None when disabled or rate limited."""
    if not context.capabilities.audio_features_enabled:
        return None

    features: dict[str, AudioFeatures] = {}
    for track in tracks:
        if track.id in features:
            continue
        try:
            value = await spotify_service.get_audio_features(
                client, auth_manager, settings, track.id, context.capabilities
            )
        except SpotifyRateLimitException:
            log_with_context(
                logger,
                "warning",
                "Rate limited while fetching audio features, dropping them",
                track_id=track.id,
                event_type="audio_features_rate_limited",
            )
            return None
        except SpotifyAPIException as e:
            log_with_context(
                logger,
                "warning",
                "No audio features for track",
                track_id=track.id,
                error=e.message,
                event_type="audio_features_missing",
            )
            continue
        if value is not None:
            features[track.id] = value
    return features


async def _fetch_genres(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    context: ReconciliationContext,
    settings: Settings,
    tracks: list[Track],
) -> dict[str, list[str]] | None:
    """Genres keyed by track id, from one deduplicated artist lookup."""
    if not context.capabilities.genres_enabled:
        return None

    artist_genres = await spotify_service.get_artist_genres(
        client,
        auth_manager,
        settings,
        [artist_id for track in tracks for artist_id in track.artist_ids],
    )
    return {
        track.id: list(
            dict.fromkeys(genre for artist_id in track.artist_ids for genre in artist_genres.get(artist_id, []))
        )
        for track in tracks
    }
