"""Shared logging setup: one stream handler on the root logger, UTC timestamps."""

from __future__ import annotations

import logging
import os
import time

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_HANDLER_NAME = "derivsignal-root-handler"

# Frame-level chatter from the transport library
_NOISY_LOGGERS = ("websockets", "asyncio")


def _level_from(value: str | int | None) -> int:
    if value is None:
        value = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(value, int):
        return value
    resolved = getattr(logging, value.upper(), None)
    return resolved if isinstance(resolved, int) else logging.INFO


def _find_handler(root: logging.Logger) -> logging.Handler | None:
    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler
    return None


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """Install the shared handler once; later calls only change the level."""
    root = logging.getLogger()
    resolved = _level_from(level)

    handler = _find_handler(root)
    if handler is None:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        formatter.converter = time.gmtime
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(resolved)
    handler.setLevel(resolved)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
    return root


def get_logger(name: str) -> logging.Logger:
    if _find_handler(logging.getLogger()) is None:
        setup_logging()
    return logging.getLogger(name)
