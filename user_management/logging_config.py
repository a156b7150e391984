"""
Structured logging for the user management service.

Log records from the standard library (uvicorn, asyncpg) and from structlog
loggers share one stdout handler. Production renders JSON lines, other
environments a readable console format.
"""

import logging
import sys
from typing import Optional

import structlog


def setup_logging(
    log_level: str = "INFO",
    service_name: str = "user-management",
    json_logs: Optional[bool] = None,
) -> None:
    """
    Configure structlog and the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Bound to every event as ``service``
        json_logs: Force JSON rendering; defaults to the production setting
    """
    if json_logs is None:
        from .config import settings

        json_logs = settings.is_production

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    def add_service(logger, method_name, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_service,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to ``name`` (usually __name__)."""
    return structlog.get_logger(name)
