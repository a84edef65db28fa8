"""Unit tests for the application entry point."""

import importlib
from unittest.mock import patch

from queue_overlay import config, main
from queue_overlay.config import Settings


def test_logging_uses_settings_log_level(monkeypatch):
    """Test the root log level comes from Settings, not a separate env lookup."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    settings = Settings(
        _env_file=None,
        spotify_client_id="test-spotify-client-id",
        spotify_client_secret="test-spotify-client-secret",
        log_level="DEBUG",
    )
    monkeypatch.setattr(config, "_settings_instance", settings)

    with patch("queue_overlay.logging_config.setup_logging") as mock_setup:
        reloaded = importlib.reload(main)

    mock_setup.assert_called_once_with("DEBUG")
    assert reloaded.settings is settings


def test_run_skips_when_port_taken():
    with (
        patch("queue_overlay.utils.port_check.is_port_available", return_value=False),
        patch("uvicorn.run") as mock_run,
    ):
        main.run()

    mock_run.assert_not_called()
