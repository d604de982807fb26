"""Config store adapter for the scrcpy mirror widget.

The host widget persists everything as opaque text under string keys. This
module wraps that store with JSON encode/decode helpers that never raise:
reads fall back to a caller-supplied value and writes fall back to a
caller-supplied text payload.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from PyQt6.QtCore import QSettings

from .logging_support import child_logger

CONFIG_PREFIX = "scrcpy_mirror."
REGISTRY_KEY = f"{CONFIG_PREFIX}instance_registry"
NAME_MAP_KEY = f"{CONFIG_PREFIX}name_map"
DEVICE_FLAGS_KEY = f"{CONFIG_PREFIX}device_flag_configs"
TEMPLATES_KEY = f"{CONFIG_PREFIX}templates"

LOGGER = child_logger("ConfigStore")


class ConfigStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...


class MemoryConfigStore:
    """Dict-backed store used by tests and headless tools."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self.store: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.store.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.store[key] = value


class QSettingsConfigStore:
    """Store backed by ``QSettings``; values are always kept as text."""

    def __init__(self, settings: QSettings) -> None:
        self._settings = settings

    @classmethod
    def from_ini(cls, path: Union[str, Path]) -> "QSettingsConfigStore":
        return cls(QSettings(str(path), QSettings.Format.IniFormat))

    def get(self, key: str, default: Any = None) -> Any:
        try:
            value = self._settings.value(key, default)
        except (TypeError, ValueError, RuntimeError):
            LOGGER.debug("QSettings read failed for %s", key, exc_info=True)
            return default
        # INI backends hand unquoted comma-separated text back as a list.
        if isinstance(value, list):
            value = ",".join(str(item) for item in value)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        self._settings.setValue(key, "" if value is None else str(value))
        self._settings.sync()


def safe_json_parse(serialized: Any, fallback: Any) -> Any:
    """Parse stored JSON text, returning ``fallback`` on empty or corrupt input."""
    if serialized is None:
        return fallback
    if isinstance(serialized, (bytes, bytearray)):
        try:
            serialized = serialized.decode("utf-8")
        except UnicodeDecodeError:
            return fallback
    if not isinstance(serialized, str) or not serialized:
        return fallback
    try:
        return json.loads(serialized)
    except (json.JSONDecodeError, RecursionError):
        return fallback


def safe_json_stringify(value: Any, fallback: Optional[str] = None) -> str:
    """Serialize ``value`` to compact JSON, returning ``fallback`` (default ``"{}"``) on failure."""
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as exc:
        LOGGER.debug("JSON serialization failed (%s); writing fallback", exc)
        return "{}" if fallback is None else fallback


def config_get(store: ConfigStore, key: str, fallback: Any) -> Any:
    """Read ``key`` from ``store`` as JSON.

    When ``fallback`` is a list or dict, a decoded value of a different shape
    is treated as corrupt and the fallback is returned instead.
    """

    try:
        raw = store.get(key, "")
    except Exception:
        LOGGER.debug("Config store read failed for %s", key, exc_info=True)
        return fallback
    value = safe_json_parse(raw, fallback)
    if value is fallback:
        if raw not in (None, ""):
            LOGGER.debug("Stored value for %s is not valid JSON; using fallback", key)
        return fallback
    if isinstance(fallback, list) and not isinstance(value, list):
        LOGGER.debug("Stored value for %s is not a list; using fallback", key)
        return fallback
    if isinstance(fallback, dict) and not isinstance(value, dict):
        LOGGER.debug("Stored value for %s is not an object; using fallback", key)
        return fallback
    return value


def config_set(store: ConfigStore, key: str, value: Any, fallback: str = "{}") -> None:
    payload = safe_json_stringify(value, fallback)
    try:
        store.set(key, payload)
    except Exception:
        LOGGER.warning("Failed to persist %s into the config store", key, exc_info=True)
