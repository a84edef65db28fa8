"""Delay until the overlay page asks for the next reconciliation cycle."""

from queue_overlay.config import Settings


def compute_next_poll_delay(is_playing: bool, duration_ms: int, progress_ms: int, settings: Settings) -> int:
    """Milliseconds the page should wait before reloading.

    While a track plays the reload is timed for the moment it ends, so the
    next poll lands on the track change. Otherwise the fixed page refresh
    interval applies. The result is never below settings.min_poll_delay_ms,
    which keeps a track that is about to end from causing a reload storm.
    """
    if not is_playing:
        return max(settings.page_refresh_ms, settings.min_poll_delay_ms)
    return max(duration_ms - progress_ms, settings.min_poll_delay_ms)
