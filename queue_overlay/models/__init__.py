"""Queue Overlay models"""

from queue_overlay.models.base_models import HealthResponse
from queue_overlay.models.snapshot import CachedState, PlaybackSnapshot, PlaybackStatus, TrackMetrics
from queue_overlay.models.spotify import (
    Artist,
    AudioFeatures,
    Paused,
    PlaybackContext,
    PlaybackResult,
    Playing,
    Playlist,
    Track,
    Unavailable,
)

__all__ = [
    "Artist",
    "AudioFeatures",
    "CachedState",
    "HealthResponse",
    "Paused",
    "PlaybackContext",
    "PlaybackResult",
    "PlaybackSnapshot",
    "PlaybackStatus",
    "Playing",
    "Playlist",
    "Track",
    "TrackMetrics",
    "Unavailable",
]
