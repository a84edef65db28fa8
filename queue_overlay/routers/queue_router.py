"""Now playing page: one reconciliation cycle per request."""

from typing import Literal

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from queue_overlay.config import Settings, get_settings
from queue_overlay.dependencies import get_http_client, get_reconciliation_context, get_spotify_auth_manager
from queue_overlay.logging_config import get_logger, log_with_context
from queue_overlay.services import auth_service, reconciliation_service
from queue_overlay.state_managers import ReconciliationContext, SpotifyAuthManager
from queue_overlay.views.template_renderer import TemplateRenderer

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = get_logger(__name__)


@router.get("/")
async def index():
    """The overlay window may open the root URL."""
    return RedirectResponse(url="/queue")


@router.get(
    "/queue",
    summary="Now playing page",
    description="""
    Runs one reconciliation cycle and renders the current track, progress
    and upcoming queue. The page reloads itself when the current track is
    expected to end, or after the configured refresh interval otherwise.

    Redirects to /login until Spotify authorization has completed.
    """,
)
@limiter.limit("120/minute")
async def queue_page(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    auth_manager: SpotifyAuthManager = Depends(get_spotify_auth_manager),
    context: ReconciliationContext = Depends(get_reconciliation_context),
    settings: Settings = Depends(get_settings),
    format: Literal["json", "html"] = Query(default="html", description="Response format"),
):
    """Render the overlay page, or the raw snapshot with format=json.

    Args:
        request: FastAPI request object
        client: HTTP client from dependency injection
        auth_manager: Spotify auth manager from dependency injection
        context: Reconciliation context from dependency injection
        format: Response format - 'html' for the overlay window, 'json' for the snapshot
    """
    if not auth_manager.is_authenticated:
        log_with_context(
            logger,
            "info",
            "No Spotify session yet, redirecting to login",
            event_type="spotify_login_required",
        )
        return RedirectResponse(url="/login")

    await auth_service.ensure_valid(client, auth_manager, settings)
    snapshot = await reconciliation_service.reconcile(client, auth_manager, context, settings)

    if format == "json":
        return snapshot

    return TemplateRenderer.render_queue(request, snapshot, settings)
