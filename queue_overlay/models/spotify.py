"""Pydantic models for Spotify Web API payloads and fetch outcomes."""

import math
from typing import Any

from pydantic import BaseModel, Field


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


class Artist(BaseModel):
    """Artist reference attached to a track."""

    id: str
    name: str


class Track(BaseModel):
    """A playable track as shown in the overlay."""

    id: str
    name: str
    artists: list[Artist] = Field(default_factory=list)
    duration_ms: int = Field(default=0, ge=0)
    album_name: str | None = None
    album_image_url: str | None = None

    @property
    def artist_names(self) -> str:
        """Comma separated artist names for display."""
        return ", ".join(artist.name for artist in self.artists)

    @property
    def artist_ids(self) -> list[str]:
        return [artist.id for artist in self.artists if artist.id]

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Track":
        """Build a Track from a Spotify track object.

        The medium album image (index 1 of the usual 640/300/64 set) is
        preferred; the first image is used when fewer are returned.
        """
        album = item.get("album") or {}
        images = album.get("images") or []
        image_url = None
        if len(images) > 1:
            image_url = images[1].get("url")
        elif images:
            image_url = images[0].get("url")

        return cls(
            id=item["id"],
            name=item.get("name") or "",
            artists=[
                Artist(id=artist.get("id") or "", name=artist.get("name") or "")
                for artist in item.get("artists") or []
            ],
            duration_ms=item.get("duration_ms") or 0,
            album_name=album.get("name"),
            album_image_url=image_url,
        )


class PlaybackContext(BaseModel):
    """Where the current track is being played from."""

    type: str | None = None
    uri: str | None = None

    @property
    def playlist_id(self) -> str | None:
        """Playlist id when playing from a playlist, else None."""
        if self.type != "playlist" or not self.uri:
            return None
        return self.uri.split(":")[-1] or None


class AudioFeatures(BaseModel):
    """Audio descriptors for a single track, in Spotify's native scale."""

    tempo: int
    energy: float = Field(ge=0, le=1)
    danceability: float = Field(ge=0, le=1)
    valence: float = Field(ge=0, le=1)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "AudioFeatures":
        return cls(
            tempo=round_half_up(float(data["tempo"])),
            energy=data["energy"],
            danceability=data["danceability"],
            valence=data["valence"],
        )


class Playlist(BaseModel):
    """Playlist metadata with its ordered member track ids."""

    id: str
    name: str = ""
    track_ids: list[str] = Field(default_factory=list)


class Playing(BaseModel):
    """Playback is active."""

    track: Track
    progress_ms: int = Field(ge=0)
    duration_ms: int = Field(ge=0)
    context: PlaybackContext | None = None


class Paused(BaseModel):
    """Service reachable but nothing is playing.

    device_active is False when Spotify answered 204 (no active device).
    """

    device_active: bool
    progress_ms: int = Field(default=0, ge=0)


class Unavailable(BaseModel):
    """Playback state could not be retrieved."""

    status_code: int | None = None
    reason: str = ""


PlaybackResult = Playing | Paused | Unavailable
