from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

BASE_DIR = Path(__file__).resolve().parent.parent  # queue-overlay/
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings with validation.

    Spotify credentials are required and raise validation errors if missing,
    which stops the server before it binds its port. Display options may come
    from environment variables, the .env file or an optional appconfig.json
    (snake_case keys) next to the package.
    """

    # Server
    api_host: str = Field(default="127.0.0.1", min_length=1, description="Server host")
    api_port: int = Field(ge=1, le=65535, default=3000, description="Server port")
    log_level: str = Field(default="INFO", description="Root log level")

    # Spotify API - required
    spotify_client_id: str = Field(min_length=1, description="Spotify OAuth client ID")
    spotify_client_secret: str = Field(min_length=1, description="Spotify OAuth client secret")
    spotify_redirect_uri: str = Field(
        default="",
        description="Spotify OAuth redirect URI (defaults to http://localhost:{api_port}/callback)",
    )

    # Polling
    nbr_tracks: int = Field(default=5, ge=1, le=50, description="Number of queued tracks to show")
    page_refresh_ms: int = Field(default=10000, gt=0, description="Poll interval when not playing")
    min_poll_delay_ms: int = Field(default=500, gt=0, description="Floor for the next poll delay")
    request_timeout_seconds: float = Field(default=10.0, gt=0, description="Per-call Spotify request deadline")

    # Feature toggles
    add_audio_features: bool = True
    add_genre: bool = True
    show_time: bool = True
    display_bpm: bool = True
    display_energy: bool = True
    display_danceability: bool = True
    display_happiness: bool = True
    display_genres: bool = True

    # Theme (consumed by the renderer only)
    font_family: str = "'Roboto', sans-serif"
    background_color: str = "rgba(255, 255, 255, .5)"
    error_background_color: str = "rgba(255, 0, 0, .5)"
    border_color: str = "rgba(0, 0, 0, .2)"
    header_color: str = "#333333"
    progress_bar_color: str = "#dddddd"
    progress_color: str = "#1db954"
    curr_song_color: str = "#000000"
    curr_artist_color: str = "#333333"
    curr_time_color: str = "#333333"
    queue_song_color: str = "#000000"
    queue_artist_color: str = "#555555"
    queue_time_color: str = "#555555"

    model_config = SettingsConfigDict(
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        json_file=Path(BASE_DIR / "appconfig.json"),
        json_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment wins over appconfig.json so secrets never live in the JSON file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @property
    def redirect_uri(self) -> str:
        """OAuth redirect URI registered with the Spotify app."""
        return self.spotify_redirect_uri or f"http://localhost:{self.api_port}/callback"

    @property
    def audio_features_wanted(self) -> bool:
        """Audio features are only fetched when at least one metric is displayed."""
        return self.add_audio_features and (
            self.display_bpm or self.display_energy or self.display_danceability or self.display_happiness
        )

    @property
    def genres_wanted(self) -> bool:
        return self.add_genre and self.display_genres

    @field_validator("spotify_client_id", "spotify_client_secret", mode="after")
    @classmethod
    def validate_credential(cls, v: str) -> str:
        """Ensure credentials are not whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Spotify credentials must not be empty")
        return v

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @field_validator("spotify_redirect_uri", mode="after")
    @classmethod
    def validate_spotify_redirect_uri(cls, v: str) -> str:
        """Ensure an explicit redirect URI is an http(s) URL."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("spotify_redirect_uri must be a valid http:// or https:// URL")
        return v


# Singleton settings instance (cached for performance)
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance for dependency injection.

    Reading the .env file once avoids re-validating configuration on every
    request. Use this with FastAPI's Depends().

    Returns:
        Cached Settings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
