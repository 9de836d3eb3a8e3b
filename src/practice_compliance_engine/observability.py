"""Structured logging setup.

Every module obtains its logger with ``get_logger(__name__)`` and logs an event
message plus keyword context, e.g.::

    logger.info("Compliance records aggregated", entity_id=12, service_count=4)
"""

import logging
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog processors and the stdlib root level.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Render JSON lines when True, console output otherwise.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(format="%(message)s", level=log_level)

    renderer: Any = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to a module name.

    Args:
        name: Usually the calling module's ``__name__``.

    Returns:
        A structlog bound logger.
    """
    return structlog.get_logger(name)
