"""Logging setup shared by the API and the autosave client.

Every module asks for a child of the ``handover`` logger.  The root
``handover`` logger gets one stdout handler the first time it is requested;
the level comes from ``HANDOVER_LOG_LEVEL``.
"""
from __future__ import annotations

import json
import logging
import os
import sys

ROOT_LOGGER = "handover"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if getattr(root, "_handover_configured", False):
        return root

    level = os.getenv("HANDOVER_LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, level, logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root._handover_configured = True  # type: ignore[attr-defined]
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``handover`` or one of its children, configuring output once."""

    root = _configure_root()
    if not name or name == ROOT_LOGGER:
        return root
    if name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return root.getChild(name)


def log_event(logger: logging.Logger, level: int, message: str, **context: object) -> None:
    """Log ``message`` with optional key/value context rendered as JSON."""

    if context:
        message = f"{message} | Context: {json.dumps(context, default=str, sort_keys=True)}"
    logger.log(level, message)


__all__ = ["get_logger", "log_event"]
