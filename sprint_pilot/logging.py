"""Logging helpers for the sprint_pilot package."""

from __future__ import annotations

import logging

_LOGGER_NAME = "sprint_pilot"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the sprint_pilot hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(*, verbose: bool = False, level: str | None = None) -> logging.Logger:
    """Attach a console handler to the package logger."""
    if level:
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(resolved)
    logger.propagate = False

    # Reset handlers so repeated app factories do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(resolved)
    stream_handler.setFormatter(
        logging.Formatter("%(asctime)s [sprint-pilot] %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(stream_handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
