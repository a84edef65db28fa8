"""Main FastAPI application entry point."""

from pathlib import Path

from dotenv import load_dotenv
from fastapi.responses import Response

from queue_overlay.core.app_factory import create_app, load_settings
from queue_overlay.logging_config import get_logger, log_with_context, setup_logging

# Load environment variables from .env file
load_dotenv(Path(__file__).parent.parent / ".env")

# Configure structured logging (JSON to file + console)
settings = load_settings()
setup_logging(settings.log_level)

logger = get_logger(__name__)

# Create application
app = create_app()


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    """Return empty favicon to prevent 404 errors."""
    return Response(content=b"", media_type="image/x-icon")


def run() -> None:
    """Start the server unless another overlay already holds the port."""
    import uvicorn

    from queue_overlay.utils.port_check import is_port_available

    if not is_port_available(settings.api_host, settings.api_port):
        log_with_context(
            logger,
            "info",
            "Port already in use, expected if the overlay is already running",
            host=settings.api_host,
            port=settings.api_port,
            event_type="port_in_use",
        )
        return

    log_with_context(
        logger,
        "info",
        "Open the login page to connect Spotify",
        login_url=f"http://localhost:{settings.api_port}/login",
        event_type="server_starting",
    )
    uvicorn.run(
        "queue_overlay.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    run()
