from fastapi import Request
import logging
from typing import Any

from rich.logging import RichHandler

from ytmerge.config.settings import LoggingConfig

logger = logging.getLogger("ytmerge")
_configured = False

def setup_logging(settings: LoggingConfig) -> None:
    """Configure the root logger once per process."""
    global _configured
    if _configured:
        return

    if settings.enable_rich:
        handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(settings.format))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(settings.level)
    _configured = True

def log_with_context(
    request: Request,
    level: int,
    message: str,
    **kwargs: Any
) -> None:
    """
    Log with the request id and path attached as record attributes.
    """
    extra = {
        "request_id": getattr(request.state, "request_id", "unknown"),
        "path": request.scope.get("path"),
        **kwargs
    }
    logger.log(level, message, extra=extra)

def log_info(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.INFO, message, **kwargs)

def log_error(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.ERROR, message, **kwargs)

def log_warning(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.WARNING, message, **kwargs)

def log_debug(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.DEBUG, message, **kwargs)
