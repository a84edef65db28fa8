"""Unit tests for the overlay templates."""

import pytest
from starlette.requests import Request

from queue_overlay.models import PlaybackSnapshot, PlaybackStatus, Track, TrackMetrics
from queue_overlay.models.spotify import Artist
from queue_overlay.views.template_renderer import TemplateRenderer, format_duration


@pytest.fixture
def request_scope():
    return Request({"type": "http", "method": "GET", "path": "/queue", "headers": [], "query_string": b""})


@pytest.fixture
def playing_snapshot():
    current = Track(
        id="t1",
        name="Current Song",
        artists=[Artist(id="a1", name="Current Artist")],
        duration_ms=200000,
        album_image_url="https://i.scdn.co/image/t1-300",
    )
    queued = Track(id="q1", name="Next Song", artists=[Artist(id="a2", name="Next Artist")], duration_ms=185000)
    return PlaybackSnapshot(
        status=PlaybackStatus.PLAYING,
        is_playing=True,
        current_track=current,
        progress_ms=65000,
        duration_ms=200000,
        queue=[queued],
        audio_features={
            "t1": TrackMetrics(bpm=96, energy=70, danceability=61, happiness=42),
            "q1": TrackMetrics(bpm=128, energy=84, danceability=50, happiness=25),
        },
        genres={"t1": ["synthwave"], "q1": ["indie", "pop"]},
        background_color="rgba(1, 2, 3, .5)",
        next_poll_delay_ms=135000,
    )


@pytest.mark.parametrize("duration_ms, expected", [(0, "0:00"), (65000, "1:05"), (185999, "3:05"), (None, "0:00")])
def test_format_duration(duration_ms, expected):
    assert format_duration(duration_ms) == expected


def test_render_playing(request_scope, playing_snapshot, mock_settings):
    """Test the playing page shows track, queue, metrics and genres."""
    response = TemplateRenderer.render_queue(request_scope, playing_snapshot, mock_settings)
    html = response.body.decode()

    assert response.status_code == 200
    assert "Now playing:" in html
    assert "Current Song" in html
    assert "Current Artist" in html
    assert "Next Song" in html
    assert "128 BPM" in html
    assert "Energy 84%" in html
    assert "indie, pop" in html
    assert "1:05" in html
    assert "3:20" in html
    assert "135000" in html
    assert "rgba(1, 2, 3, .5)" in html


def test_render_respects_display_toggles(request_scope, playing_snapshot, mock_settings):
    settings = mock_settings.model_copy(update={"display_bpm": False, "show_time": False})

    html = TemplateRenderer.render_queue(request_scope, playing_snapshot, settings).body.decode()

    assert "BPM" not in html
    assert 'id="time-elapsed"' not in html
    assert "Energy 84%" in html


def test_render_paused(request_scope, playing_snapshot, mock_settings):
    snapshot = playing_snapshot.model_copy(update={"status": PlaybackStatus.PAUSED, "is_playing": False})

    html = TemplateRenderer.render_queue(request_scope, snapshot, mock_settings).body.decode()

    assert "Paused:" in html
    assert "Now playing:" not in html


def test_render_idle(request_scope, mock_settings):
    snapshot = PlaybackSnapshot(
        status=PlaybackStatus.IDLE,
        background_color=mock_settings.error_background_color,
        next_poll_delay_ms=10000,
    )

    html = TemplateRenderer.render_queue(request_scope, snapshot, mock_settings).body.decode()

    assert "Spotify is Not Available or Timed Out." in html
    assert mock_settings.error_background_color in html


def test_render_unavailable_with_code(request_scope, mock_settings):
    snapshot = PlaybackSnapshot(
        status=PlaybackStatus.UNAVAILABLE,
        background_color=mock_settings.error_background_color,
        next_poll_delay_ms=10000,
        error_code=401,
    )

    html = TemplateRenderer.render_queue(request_scope, snapshot, mock_settings).body.decode()

    assert "Encountered an Unexpected ERROR : 401" in html


def test_render_error(request_scope):
    response = TemplateRenderer.render_error(request_scope, "Internal server error", status_code=500)

    assert response.status_code == 500
    assert "Internal server error" in response.body.decode()


def test_render_current_track_details(request_scope, playing_snapshot, mock_settings):
    """Test the current track shows its own metrics and genres."""
    html = TemplateRenderer.render_queue(request_scope, playing_snapshot, mock_settings).body.decode()

    current_block = html.split('class="progress-container"')[0]
    assert "96 BPM" in current_block
    assert "Happy 42%" in current_block
    assert "synthwave" in current_block
    assert "128 BPM" not in current_block


def test_render_without_features(request_scope, playing_snapshot, mock_settings):
    snapshot = playing_snapshot.model_copy(update={"audio_features": None, "genres": None})

    html = TemplateRenderer.render_queue(request_scope, snapshot, mock_settings).body.decode()

    assert "BPM" not in html
    assert "synthwave" not in html
    assert "Next Song" in html
