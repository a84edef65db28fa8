"""Unit tests for configuration."""

import pytest
from pydantic import ValidationError

from queue_overlay import config
from queue_overlay.config import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    """Remove overlay variables so only explicit values apply."""
    for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "SPOTIFY_REDIRECT_URI", "API_PORT", "NBR_TRACKS"):
        monkeypatch.delenv(name, raising=False)


def test_settings_defaults(clean_env):
    """Test Settings model has correct defaults."""
    settings = Settings(_env_file=None, spotify_client_id="id", spotify_client_secret="secret")

    assert settings.api_host == "127.0.0.1"
    assert settings.api_port == 3000
    assert settings.nbr_tracks == 5
    assert settings.page_refresh_ms == 10000
    assert settings.min_poll_delay_ms == 500
    assert settings.error_background_color == "rgba(255, 0, 0, .5)"
    assert settings.add_audio_features is True


def test_settings_missing_credentials(clean_env):
    """Test missing Spotify credentials fail validation."""
    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None)

    fields = {error["loc"][0] for error in exc_info.value.errors()}
    assert {"spotify_client_id", "spotify_client_secret"} <= fields


def test_settings_blank_credentials(clean_env):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, spotify_client_id="   ", spotify_client_secret="secret")


def test_settings_credentials_stripped(clean_env):
    settings = Settings(_env_file=None, spotify_client_id="  id  ", spotify_client_secret="secret\n")

    assert settings.spotify_client_id == "id"
    assert settings.spotify_client_secret == "secret"


def test_settings_from_environment(clean_env, monkeypatch):
    """Test environment variables are read case-insensitively."""
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "env-id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "env-secret")
    monkeypatch.setenv("NBR_TRACKS", "8")

    settings = Settings(_env_file=None)

    assert settings.spotify_client_id == "env-id"
    assert settings.nbr_tracks == 8


def test_redirect_uri_defaults_to_local_callback(clean_env):
    settings = Settings(_env_file=None, spotify_client_id="id", spotify_client_secret="secret", api_port=4000)

    assert settings.redirect_uri == "http://localhost:4000/callback"


def test_redirect_uri_explicit(mock_settings):
    assert mock_settings.redirect_uri == "http://localhost:3000/callback"


def test_redirect_uri_must_be_http(clean_env):
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            spotify_client_id="id",
            spotify_client_secret="secret",
            spotify_redirect_uri="ftp://localhost/callback",
        )


@pytest.mark.parametrize("nbr_tracks", [0, 51])
def test_nbr_tracks_bounds(clean_env, nbr_tracks):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, spotify_client_id="id", spotify_client_secret="secret", nbr_tracks=nbr_tracks)


def test_audio_features_wanted(mock_settings):
    """Test features are wanted only if enabled and some metric is shown."""
    assert mock_settings.audio_features_wanted is True
    assert mock_settings.model_copy(update={"add_audio_features": False}).audio_features_wanted is False
    only_bpm = mock_settings.model_copy(
        update={"display_energy": False, "display_danceability": False, "display_happiness": False}
    )
    assert only_bpm.audio_features_wanted is True


def test_genres_wanted(mock_settings):
    assert mock_settings.genres_wanted is True
    assert mock_settings.model_copy(update={"display_genres": False}).genres_wanted is False


def test_get_settings_singleton(monkeypatch):
    """Test get_settings caches its instance."""
    monkeypatch.setattr(config, "_settings_instance", None)

    first = get_settings()
    second = get_settings()

    assert first is second


def test_log_level_normalized(clean_env, monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    settings = Settings(_env_file=None, spotify_client_id="id", spotify_client_secret="secret", log_level=" debug ")

    assert settings.log_level == "DEBUG"


def test_log_level_invalid(clean_env):
    with pytest.raises(ValidationError, match="log_level"):
        Settings(_env_file=None, spotify_client_id="id", spotify_client_secret="secret", log_level="LOUD")


def test_log_level_from_appconfig(clean_env, monkeypatch, tmp_path):
    """Test appconfig.json values reach Settings when the environment is silent."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    appconfig = tmp_path / "appconfig.json"
    appconfig.write_text('{"log_level": "warning", "nbr_tracks": 2}', encoding="utf-8")
    monkeypatch.setitem(Settings.model_config, "json_file", appconfig)

    settings = Settings(_env_file=None, spotify_client_id="id", spotify_client_secret="secret")

    assert settings.log_level == "WARNING"
    assert settings.nbr_tracks == 2
