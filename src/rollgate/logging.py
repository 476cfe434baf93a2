"""
Simple structured logging setup using structlog directly.

No wrappers, just standard structlog configuration.
"""

import logging

import structlog

from rollgate.settings import Settings, get_settings


def setup_logging(settings: Settings | None = None, level: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    Uses settings from centralized configuration unless given explicitly.
    """
    settings = settings or get_settings()
    level = (level or settings.observability.log_level.value).upper()
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Use JSON or console output based on settings
    if settings.observability.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name, defaults to caller's module name

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)
