"""Health endpoint used by the desktop shell to confirm the server is up."""

from fastapi import APIRouter

from queue_overlay import __version__
from queue_overlay.models import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health check endpoint."""
    return HealthResponse(status="ok", version=__version__)
