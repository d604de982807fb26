"""Logger setup shared by the scrcpy mirror widget helpers."""
from __future__ import annotations

import logging
import os
from typing import Any, Optional

from version import DEV_MODE_ENV_VAR, __version__ as MIRROR_VERSION, is_dev_build

PLUGIN_NAME = "ScrcpyMirror"
LOGGER_NAME = PLUGIN_NAME
LOG_TAG = PLUGIN_NAME
LOG_LEVEL_ENV_VAR = "SCRCPY_MIRROR_LOG_LEVEL"

_LEVEL_NAME_MAP = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": logging.DEBUG,
}


def child_logger(suffix: str) -> logging.Logger:
    """Return a logger nested under the plugin logger."""
    return logging.getLogger(f"{LOGGER_NAME}.{suffix}")


def _coerce_level(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        token = raw.strip().upper()
        if not token:
            return None
        if token.isdigit():
            return int(token)
        return _LEVEL_NAME_MAP.get(token)
    return None


def resolve_log_level(level: Any = None) -> int:
    """Pick the level for the plugin logger.

    An explicit ``level`` wins, then the ``SCRCPY_MIRROR_LOG_LEVEL``
    environment variable, then DEBUG for dev builds and INFO otherwise.
    """

    explicit = _coerce_level(level)
    if explicit is not None:
        return explicit
    env_level = _coerce_level(os.getenv(LOG_LEVEL_ENV_VAR))
    if env_level is not None:
        return env_level
    return logging.DEBUG if is_dev_build(MIRROR_VERSION) else logging.INFO


def configure_logger(level: Any = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_log_level(level))
    if not any(getattr(handler, "_mirror_handler", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler._mirror_handler = True  # type: ignore[attr-defined]
        formatter = logging.Formatter(f"[%(asctime)s] [{LOG_TAG}] %(message)s", "%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    if logger.isEnabledFor(logging.DEBUG) and is_dev_build(MIRROR_VERSION):
        logger.debug(
            "Running scrcpy mirror dev build (%s); override via %s=0 to force release behaviour.",
            MIRROR_VERSION,
            DEV_MODE_ENV_VAR,
        )
    return logger
