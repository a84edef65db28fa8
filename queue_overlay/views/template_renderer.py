"""Template rendering utilities for HTML views."""

from pathlib import Path

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from queue_overlay.config import Settings
from queue_overlay.models.snapshot import PlaybackSnapshot, PlaybackStatus

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def format_duration(duration_ms: int | None) -> str:
    """Format milliseconds as m:ss."""
    total_seconds = max(duration_ms or 0, 0) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


templates.env.filters["mmss"] = format_duration


class TemplateRenderer:
    """Handles rendering of Jinja2 templates for the overlay."""

    @staticmethod
    def render_queue(request: Request, snapshot: PlaybackSnapshot, settings: Settings) -> HTMLResponse:
        """Render the now playing page for one snapshot.

        Args:
            request: FastAPI request object
            snapshot: Result of the reconciliation cycle
            settings: Settings instance (theme and display toggles)

        Returns:
            HTMLResponse with the rendered page
        """
        return templates.TemplateResponse(
            request,
            "queue.html",
            {
                "snapshot": snapshot,
                "settings": settings,
                "background_color": snapshot.background_color,
                "has_track": snapshot.status in (PlaybackStatus.PLAYING, PlaybackStatus.PAUSED),
                "show_metrics": snapshot.audio_features is not None,
                "show_genres": snapshot.genres is not None,
            },
        )

    @staticmethod
    def render_error(
        request: Request,
        message: str,
        status_code: int = 500,
        settings: Settings | None = None,
        error_code: str | None = None,
    ) -> HTMLResponse:
        """Render a full-page error in place of the overlay.

        Args:
            request: FastAPI request object
            message: Human readable error message (never a traceback)
            status_code: HTTP status code of the response
            settings: Settings instance for theming, if available
            error_code: ErrorCode value shown under the message
        """
        return templates.TemplateResponse(
            request,
            "error.html",
            {"message": message, "settings": settings, "error_code": error_code},
            status_code=status_code,
        )
