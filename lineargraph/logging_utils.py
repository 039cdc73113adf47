"""Logging configuration helpers."""

from __future__ import annotations

import logging

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that report every subprocess call at DEBUG.
_CHATTY_LOGGERS = ("graphviz",)


def resolve_level(level: str) -> int:
    normalized = level.strip().upper()
    if normalized not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{level}'; expected one of {', '.join(LOG_LEVELS)}")
    return getattr(logging, normalized)


def configure_logging(level: str = "INFO") -> int:
    """Configure root logging for a CLI run and return the numeric level.

    Library loggers in ``_CHATTY_LOGGERS`` stay at WARNING unless DEBUG was
    requested.
    """
    resolved = resolve_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)
    chatty_level = logging.DEBUG if resolved == logging.DEBUG else max(resolved, logging.WARNING)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)
    return resolved
