"""Pytest configuration and shared fixtures."""

import os

# Credentials must exist before the app module builds its settings
os.environ.setdefault("SPOTIFY_CLIENT_ID", "test-spotify-client-id")
os.environ.setdefault("SPOTIFY_CLIENT_SECRET", "test-spotify-client-secret")

from collections.abc import Callable  # noqa: E402
from typing import Any  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from queue_overlay.config import Settings  # noqa: E402
from queue_overlay.state_managers import ReconciliationContext, SpotifyAuthManager  # noqa: E402


class FakeClock:
    """Settable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSpotify:
    """In-memory Spotify: routes requests by URL path to canned responses.

    A route is either (status_code, json_payload, headers), a callable taking
    the request, or an exception instance to raise. Unknown paths answer 404.
    """

    def __init__(self):
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def set(self, path: str, status_code: int = 200, json: Any = None, headers: dict[str, str] | None = None) -> None:
        self.routes[path] = (status_code, json, headers or {})

    def set_handler(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[path] = handler

    def fail(self, path: str, exc: Exception) -> None:
        self.routes[path] = exc

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": {"status": 404, "message": "Not found"}})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        status_code, payload, headers = route
        if payload is None:
            return httpx.Response(status_code, headers=headers)
        return httpx.Response(status_code, json=payload, headers=headers)

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def calls_starting_with(self, prefix: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path.startswith(prefix)]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def mock_settings():
    """Settings instance with test values."""
    return Settings(
        api_host="127.0.0.1",
        api_port=3000,
        spotify_client_id="test-spotify-client-id",
        spotify_client_secret="test-spotify-client-secret",
        spotify_redirect_uri="http://localhost:3000/callback",
        nbr_tracks=3,
        page_refresh_ms=10000,
        min_poll_delay_ms=500,
        background_color="rgba(255, 255, 255, .5)",
        error_background_color="rgba(255, 0, 0, .5)",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def auth_manager(clock):
    """Unauthenticated SpotifyAuthManager driven by the fake clock."""
    return SpotifyAuthManager(clock=clock)


@pytest.fixture
def reconciliation_context(mock_settings):
    return ReconciliationContext.from_settings(mock_settings)


@pytest.fixture
def fake_spotify():
    return FakeSpotify()


@pytest.fixture
def track_payload():
    """Factory for Spotify track objects."""

    def _make(
        track_id: str,
        name: str | None = None,
        duration_ms: int = 200000,
        artists: list[tuple[str, str]] | None = None,
    ) -> dict[str, Any]:
        artists = artists if artists is not None else [(f"artist-{track_id}", f"Artist {track_id}")]
        return {
            "id": track_id,
            "type": "track",
            "name": name or f"Song {track_id}",
            "duration_ms": duration_ms,
            "artists": [{"id": artist_id, "name": artist_name} for artist_id, artist_name in artists],
            "album": {
                "name": f"Album {track_id}",
                "images": [
                    {"url": f"https://i.scdn.co/image/{track_id}-640"},
                    {"url": f"https://i.scdn.co/image/{track_id}-300"},
                    {"url": f"https://i.scdn.co/image/{track_id}-64"},
                ],
            },
        }

    return _make


@pytest.fixture
def playback_payload():
    """Factory for /me/player responses."""

    def _make(
        item: dict[str, Any] | None,
        progress_ms: int = 150000,
        is_playing: bool = True,
        playlist_id: str | None = None,
    ) -> dict[str, Any]:
        context = None
        if playlist_id:
            context = {"type": "playlist", "uri": f"spotify:playlist:{playlist_id}"}
        return {
            "is_playing": is_playing,
            "progress_ms": progress_ms,
            "item": item,
            "context": context,
            "device": {"id": "device-1", "is_active": True, "name": "Desktop"},
        }

    return _make


@pytest.fixture
def audio_features_payload():
    """Factory for /audio-features/{id} responses."""

    def _make(tempo: float = 120.4, energy: float = 0.837, danceability: float = 0.5, valence: float = 0.25):
        return {"tempo": tempo, "energy": energy, "danceability": danceability, "valence": valence}

    return _make
