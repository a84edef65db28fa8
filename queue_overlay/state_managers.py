"""State managers for handling application-wide mutable state.

The overlay serves one Spotify session per process. Everything that must
survive between requests lives in the managers below, created once in the
application lifespan and handed to routes through dependency injection.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from queue_overlay.config import Settings
from queue_overlay.logging_config import get_logger, log_with_context
from queue_overlay.models.snapshot import CachedState

logger = get_logger(__name__)

# Tokens are treated as expired this long before Spotify says they are
TOKEN_EXPIRY_MARGIN_SECONDS = 60


class StateManager(ABC):
    """Base class for all state managers.

    All subclasses must implement lifecycle methods.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the state manager (called during app startup)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup resources (called during app shutdown)."""
        pass


class SpotifyAuthManager(StateManager):
    """Owns the Spotify session: access token, refresh token and expiry.

    The expiry stored here is always TOKEN_EXPIRY_MARGIN_SECONDS earlier than
    the real one so a refresh finishes before Spotify rejects the token.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """Initialize the Spotify auth manager.

        Args:
            clock: Source of the current epoch time in seconds
        """
        self._clock = clock
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._token_expires_at: float = 0
        self._lock = asyncio.Lock()
        # Held for the whole check-and-refresh sequence so overlapping
        # requests never start a second refresh
        self.refresh_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the Spotify auth manager."""
        pass

    async def cleanup(self) -> None:
        """Drop the session on shutdown."""
        async with self._lock:
            self._access_token = None
            self._refresh_token = None
            self._token_expires_at = 0

    @property
    def is_authenticated(self) -> bool:
        """True once an authorization code has been exchanged."""
        return self._refresh_token is not None

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    @property
    def token_expires_at(self) -> float:
        return self._token_expires_at

    def now(self) -> float:
        return self._clock()

    def needs_refresh(self) -> bool:
        """True when the access token has reached its (early) expiry."""
        return self.now() >= self._token_expires_at

    async def set_tokens(self, access_token: str, expires_in: int, refresh_token: str | None = None) -> None:
        """Store a new access token and optionally a new refresh token.

        Args:
            access_token: The access token string
            expires_in: Lifetime reported by Spotify, in seconds
            refresh_token: Replacement refresh token, if Spotify issued one
        """
        async with self._lock:
            self._access_token = access_token
            self._token_expires_at = self.now() + (expires_in - TOKEN_EXPIRY_MARGIN_SECONDS)
            if refresh_token:
                self._refresh_token = refresh_token


class SessionCapabilities:
    """Runtime feature switches derived from settings.

    Unlike Settings these can change while the process runs, but only in
    one direction: a tripped switch is never turned back on.
    """

    def __init__(self, audio_features_enabled: bool, genres_enabled: bool):
        self._audio_features_enabled = audio_features_enabled
        self._genres_enabled = genres_enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionCapabilities":
        return cls(
            audio_features_enabled=settings.audio_features_wanted,
            genres_enabled=settings.genres_wanted,
        )

    @property
    def audio_features_enabled(self) -> bool:
        return self._audio_features_enabled

    @property
    def genres_enabled(self) -> bool:
        return self._genres_enabled

    def disable_audio_features(self) -> None:
        """Turn audio feature fetching off for the rest of the session."""
        if self._audio_features_enabled:
            log_with_context(
                logger,
                "warning",
                "Audio features disabled for the rest of the session",
                event_type="audio_features_disabled",
            )
        self._audio_features_enabled = False


class ReconciliationContext(StateManager):
    """Cross-cycle state of the reconciliation engine.

    Holds the cached playback data used while paused, the session
    capabilities and a lock that lets only one reconciliation cycle run at a
    time.
    """

    def __init__(self, capabilities: SessionCapabilities):
        self.capabilities = capabilities
        self._cache = CachedState()
        self.lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReconciliationContext":
        return cls(SessionCapabilities.from_settings(settings))

    async def initialize(self) -> None:
        """Initialize the reconciliation context."""
        pass

    async def cleanup(self) -> None:
        """Nothing to release; cached playback is process-lifetime only."""
        pass

    @property
    def cache(self) -> CachedState:
        return self._cache

    def replace_cache(self, cache: CachedState) -> None:
        """Swap in a new cache instance wholesale."""
        self._cache = cache
