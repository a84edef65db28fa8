"""Exception handlers for the application.

Failures are rendered as an HTML page in place of the overlay, never as a
stack trace.
"""

from fastapi import Request
from fastapi.responses import HTMLResponse

from queue_overlay.exceptions import ErrorCode, OverlayException
from queue_overlay.logging_config import get_logger, log_with_context
from queue_overlay.views.template_renderer import TemplateRenderer

logger = get_logger(__name__)


async def overlay_exception_handler(request: Request, exc: OverlayException) -> HTMLResponse:
    """Handle custom overlay exceptions with their HTTP status codes."""
    log_with_context(
        logger,
        "warning",
        "Overlay error",
        error_code=exc.code.value,
        error_message=exc.message,
        status_code=exc.status_code,
        method=request.method,
        url=str(request.url.path),
        event_type="overlay_error",
    )
    return TemplateRenderer.render_error(request, exc.message, status_code=exc.status_code, error_code=exc.code.value)


async def general_exception_handler(request: Request, exc: Exception) -> HTMLResponse:
    """Handle unexpected exceptions with logging."""
    log_with_context(
        logger,
        "error",
        "Unhandled exception",
        error_code=ErrorCode.INTERNAL_ERROR.value,
        error=str(exc),
        error_type=type(exc).__name__,
        method=request.method,
        url=str(request.url.path),
        event_type="unhandled_error",
    )
    logger.error("Exception traceback:", exc_info=exc)

    # Don't expose internal error details to the overlay window
    return TemplateRenderer.render_error(
        request, "Internal server error", status_code=500, error_code=ErrorCode.INTERNAL_ERROR.value
    )


def register_error_handlers(app) -> None:
    """Register all exception handlers with the application.

    Args:
        app: FastAPI application instance
    """
    from slowapi import _rate_limit_exceeded_handler
    from slowapi.errors import RateLimitExceeded

    app.add_exception_handler(OverlayException, overlay_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
