"""Stable identity, sequence numbers and display names for scrcpy instances.

Each running scrcpy process is keyed by ``pid:startticks:uid``. The registry
tracks which keys are active plus the number handed out to each key. A
number is only "in use" while its key is active, so numbers of vanished
processes are recycled smallest-first.

Persisted registry shape (kept compatible with older widget versions)::

    {"<key>": true, ..., "_numbers": {"<key>": 1, ...}}
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Set

from .config_store import NAME_MAP_KEY, REGISTRY_KEY, ConfigStore, config_get, config_set
from .helper_output import ProcessRecord
from .localization import I18nFunc, qt_i18n
from .logging_support import child_logger

LOGGER = child_logger("Registry")
NUMBERS_FIELD = "_numbers"
DEFAULT_NAME_TEMPLATE = "scrcpy instance %1"
OUTSIDE_NAME_TEMPLATE = "scrcpy instance (outside) %1"


def instance_key(record: ProcessRecord) -> str:
    return f"{_format_field(record.pid)}:{record.startticks}:{_format_field(record.uid)}"


def _format_field(value: Any) -> str:
    if isinstance(value, float) and value != value:
        return "nan"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    if isinstance(value, int) and value > 0:
        return value
    return None


@dataclass
class Registry:
    """Active instance keys and their allocated sequence numbers."""

    active: Set[str] = field(default_factory=set)
    numbers: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "Registry":
        registry = cls()
        if not isinstance(payload, Mapping):
            return registry
        for key, value in payload.items():
            if key == NUMBERS_FIELD:
                continue
            if value:
                registry.active.add(str(key))
        raw_numbers = payload.get(NUMBERS_FIELD)
        if isinstance(raw_numbers, Mapping):
            for key, value in raw_numbers.items():
                number = _positive_int(value)
                if number is None:
                    LOGGER.debug("Dropping invalid instance number %r for %s", value, key)
                    continue
                registry.numbers[str(key)] = number
        return registry

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {key: True for key in sorted(self.active)}
        payload[NUMBERS_FIELD] = dict(self.numbers)
        return payload

    def is_active(self, key: str) -> bool:
        return key in self.active

    def mark_active(self, keys: Iterable[str]) -> None:
        """Replace the active set with ``keys``; numbers are left untouched."""
        self.active = set(keys)


def load_registry(store: ConfigStore) -> Registry:
    return Registry.from_payload(config_get(store, REGISTRY_KEY, {}))


def save_registry(store: ConfigStore, registry: Registry) -> None:
    config_set(store, REGISTRY_KEY, registry.to_payload(), "{}")


def next_free_instance_number_in(registry: Registry, exclude_key: Optional[str] = None) -> int:
    """Return the smallest positive number not held by another active key."""
    used = {
        number
        for key, number in registry.numbers.items()
        if key != exclude_key and registry.is_active(key) and number > 0
    }
    candidate = 1
    while candidate in used:
        candidate += 1
    return candidate


def ensure_number_for_instance_in(registry: Registry, key: str) -> int:
    existing = registry.numbers.get(key)
    if existing:
        return existing
    number = next_free_instance_number_in(registry, key)
    registry.numbers[key] = number
    LOGGER.debug("Allocated instance number %d for %s", number, key)
    return number


def default_instance_name_in(
    registry: Registry,
    key: str,
    is_outside: bool,
    i18n: Optional[I18nFunc] = None,
) -> str:
    translate = i18n or qt_i18n
    number = ensure_number_for_instance_in(registry, key)
    if is_outside:
        return translate(OUTSIDE_NAME_TEMPLATE, number)
    return translate(DEFAULT_NAME_TEMPLATE, number)


def get_name_map(store: ConfigStore) -> Dict[str, str]:
    return config_get(store, NAME_MAP_KEY, {})


def set_name_map(store: ConfigStore, name_map: Mapping[str, str]) -> None:
    config_set(store, NAME_MAP_KEY, dict(name_map), "{}")


def custom_name_for(name_map: Mapping[str, Any], key: str) -> Optional[str]:
    value = name_map.get(key)
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def get_display_name_in(
    registry: Registry,
    store: ConfigStore,
    key: str,
    is_outside: bool,
    i18n: Optional[I18nFunc] = None,
    *,
    name_map: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return the custom name for ``key`` or the generated default.

    Pass ``name_map`` to reuse a map already read from ``store``.
    """

    names = get_name_map(store) if name_map is None else name_map
    custom = custom_name_for(names, key)
    if custom is not None:
        return custom
    return default_instance_name_in(registry, key, is_outside, i18n)


def set_custom_name(store: ConfigStore, key: str, name: Any) -> None:
    name_map = get_name_map(store)
    normalized = str(name or "").strip()
    if normalized:
        name_map[key] = normalized
    else:
        name_map.pop(key, None)
    set_name_map(store, name_map)
