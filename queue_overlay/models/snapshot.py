"""Pydantic models for the reconciled view model and the cross-cycle cache."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from queue_overlay.models.spotify import AudioFeatures, Track, round_half_up


class PlaybackStatus(str, Enum):
    """Outcome of one reconciliation cycle."""

    PLAYING = "playing"
    PAUSED = "paused"
    IDLE = "idle"
    UNAVAILABLE = "unavailable"


class TrackMetrics(BaseModel):
    """Audio features in display form (percentages except BPM)."""

    bpm: int
    energy: int = Field(ge=0, le=100)
    danceability: int = Field(ge=0, le=100)
    happiness: int = Field(ge=0, le=100)

    @classmethod
    def from_features(cls, features: AudioFeatures) -> "TrackMetrics":
        return cls(
            bpm=features.tempo,
            energy=round_half_up(features.energy * 100),
            danceability=round_half_up(features.danceability * 100),
            happiness=round_half_up(features.valence * 100),
        )


class PlaybackSnapshot(BaseModel):
    """Everything the renderer needs for one page."""

    status: PlaybackStatus
    is_playing: bool = False
    current_track: Track | None = None
    progress_ms: int = Field(default=0, ge=0)
    duration_ms: int = Field(default=0, ge=0)
    queue: list[Track] = Field(default_factory=list)
    audio_features: dict[str, TrackMetrics] | None = None
    genres: dict[str, list[str]] | None = None
    active_playlist_id: str | None = None
    background_color: str
    next_poll_delay_ms: int = Field(gt=0)
    error_code: int | None = None


class CachedState(BaseModel):
    """Last known active-playback data, reused while playback is paused.

    Instances are frozen; the engine swaps in a new instance instead of
    editing fields, so a half-written cache is never observable.
    """

    model_config = ConfigDict(frozen=True)

    current_track: Track | None = None
    queue: tuple[Track, ...] = ()
    audio_features: dict[str, AudioFeatures] | None = None
    genres: dict[str, list[str]] | None = None
    playlist_id: str | None = None
    playlist_track_ids: frozenset[str] = frozenset()

    @property
    def has_active_session(self) -> bool:
        """True once any playing cycle has been committed."""
        return self.current_track is not None
