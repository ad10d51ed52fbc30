"""Logging helpers for texlink entry points."""

from __future__ import annotations

import logging
import sys


BASE_LOGGER_NAME = "texlink"
_HANDLER_NAME = "texlink_stdout"
_LOG_FORMAT = "[TexLink] %(levelname)s: %(message)s"


def _ensure_stdout_handler(base_logger: logging.Logger) -> None:
    for handler in base_logger.handlers:
        if getattr(handler, "name", None) == _HANDLER_NAME:
            return

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(logging.DEBUG)
    stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    stream_handler.name = _HANDLER_NAME
    base_logger.addHandler(stream_handler)


def parse_log_level(value: str) -> int:
    """Translate a level name such as ``debug`` into a logging level."""
    level = logging.getLevelName(str(value).strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    base_logger = logging.getLogger(BASE_LOGGER_NAME)
    _ensure_stdout_handler(base_logger)
    base_logger.setLevel(level)
    base_logger.propagate = False
    return base_logger


def set_base_log_level(level: int) -> None:
    logging.getLogger(BASE_LOGGER_NAME).setLevel(level)
