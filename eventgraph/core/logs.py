"""Logging setup for hosts embedding the event graph runtime."""

import logging

from eventgraph.configs import EventGraphSettings, get_settings

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings: EventGraphSettings | None = None) -> logging.Logger:
    """
    Apply ``log_level`` to the ``eventgraph`` logger.

    A stream handler is installed only when the root logger has none, so a
    host that already configured logging keeps its own handlers.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {settings.log_level}")

    if not logging.getLogger().handlers:
        logging.basicConfig(format=LOG_FORMAT)

    package_logger = logging.getLogger("eventgraph")
    package_logger.setLevel(level)
    return package_logger


__all__ = ["LOG_FORMAT", "configure_logging"]
