"""Turn a process scan into named instance views for the widget."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Collection, Iterable, Optional, Tuple

from .cmdline_introspection import extract_flags_from_cmdline, extract_serial_from_cmdline, infer_conn_type_from_serial
from .config_store import ConfigStore
from .helper_output import ProcessRecord, parse_scan_output
from .instance_registry import (
    custom_name_for,
    ensure_number_for_instance_in,
    get_display_name_in,
    get_name_map,
    instance_key,
    load_registry,
    save_registry,
    set_name_map,
)
from .localization import I18nFunc
from .logging_support import child_logger

LOGGER = child_logger("Tracker")


@dataclass(frozen=True)
class InstanceView:
    key: str
    pid: int
    serial: str
    conn_type: str
    flags: Tuple[str, ...]
    display_name: str
    outside: bool
    custom_name: Optional[str] = None


def identifiable_records(records: Iterable[ProcessRecord]) -> list[ProcessRecord]:
    """Drop records whose pid/uid did not parse; they cannot be named or numbered."""
    kept: list[ProcessRecord] = []
    for record in records:
        if not record.identifiable:
            LOGGER.debug("Ignoring unidentifiable scan record (%s)", instance_key(record))
            continue
        kept.append(record)
    return kept


def refresh_instances(
    store: ConfigStore,
    scan_stdout: Any,
    known_serials: Collection[str],
    i18n: Optional[I18nFunc] = None,
) -> list[InstanceView]:
    """Reconcile the registry with a fresh scan and return one view per instance.

    The registry is read once, its active set replaced by the keys in this
    scan, numbers ensured in scan order, and written back once.
    """

    records = identifiable_records(parse_scan_output(scan_stdout))
    registry = load_registry(store)
    keyed: list[tuple[str, ProcessRecord]] = []
    seen: set[str] = set()
    for record in records:
        key = instance_key(record)
        if key in seen:
            continue
        seen.add(key)
        keyed.append((key, record))
    registry.mark_active(key for key, _record in keyed)

    name_map = get_name_map(store)
    views: list[InstanceView] = []
    for key, record in keyed:
        ensure_number_for_instance_in(registry, key)
        serial = extract_serial_from_cmdline(record.cmdline)
        outside = not serial or serial not in known_serials
        views.append(
            InstanceView(
                key=key,
                pid=int(record.pid),
                serial=serial,
                conn_type=infer_conn_type_from_serial(serial),
                flags=tuple(extract_flags_from_cmdline(record.cmdline)),
                display_name=get_display_name_in(registry, store, key, outside, i18n, name_map=name_map),
                outside=outside,
                custom_name=custom_name_for(name_map, key),
            )
        )
    save_registry(store, registry)
    LOGGER.debug("Tracked %d scrcpy instance(s)", len(views))
    return views


def prune_registry(store: ConfigStore, keep_keys: Collection[str]) -> int:
    """Forget numbers and active flags for keys not in ``keep_keys``; returns removed count."""
    registry = load_registry(store)
    stale = (set(registry.numbers) | registry.active) - set(keep_keys)
    for key in stale:
        registry.numbers.pop(key, None)
        registry.active.discard(key)
    save_registry(store, registry)
    return len(stale)


def prune_name_map(store: ConfigStore, keep_keys: Collection[str]) -> int:
    name_map = get_name_map(store)
    stale = [key for key in name_map if key not in keep_keys]
    for key in stale:
        del name_map[key]
    set_name_map(store, name_map)
    return len(stale)
