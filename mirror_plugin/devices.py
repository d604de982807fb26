"""ADB device listing, device cards and per-device default flags."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol

from .config_store import DEVICE_FLAGS_KEY, ConfigStore, config_get, config_set
from .logging_support import child_logger

LOGGER = child_logger("Devices")

ADB_HEADER_PREFIX = "List of devices"
ONLINE_STATE = "device"
DEVICE_ICON = "smartphone"
UNKNOWN_DEVICE_GROUP = "__UNKNOWN__"
_MODEL_PREFIX = "model:"


@dataclass(frozen=True)
class ParsedDevice:
    serial: str
    state: str
    model: str = ""


@dataclass(frozen=True)
class DeviceCard:
    id: str
    title: str
    icon: str = DEVICE_ICON


class _HasSerial(Protocol):
    serial: str


def parse_adb_devices_list(stdout: Any) -> list[ParsedDevice]:
    """Parse ``adb devices -l`` output.

    The header line and lines without a state column are skipped. A
    ``model:`` attribute becomes the model with underscores shown as spaces.
    """

    devices: list[ParsedDevice] = []
    for raw_line in str(stdout or "").split("\n"):
        line = raw_line.strip()
        if not line or line.startswith(ADB_HEADER_PREFIX):
            continue
        parts = line.split()
        if len(parts) < 2:
            LOGGER.debug("Skipping adb line without state: %s", line)
            continue
        serial, state = parts[0], parts[1]
        model = ""
        for part in parts[2:]:
            if part.startswith(_MODEL_PREFIX):
                model = part[len(_MODEL_PREFIX) :].replace("_", " ")
        devices.append(ParsedDevice(serial=serial, state=state, model=model))
    return devices


def build_devices_from_adb(device_list: Optional[Iterable[Optional[ParsedDevice]]]) -> list[DeviceCard]:
    """Project online devices into cards; unauthorized/offline ones are left out."""
    cards: list[DeviceCard] = []
    for device in device_list or ():
        if device is None or device.state != ONLINE_STATE:
            continue
        cards.append(DeviceCard(id=device.serial, title=device.model or device.serial))
    return cards


def group_instances_by_device(instances: Optional[Iterable[_HasSerial]]) -> Dict[str, list[Any]]:
    """Bucket instances by serial; instances without one land in ``__UNKNOWN__``."""
    grouped: Dict[str, list[Any]] = {}
    for instance in instances or ():
        key = getattr(instance, "serial", "") or UNKNOWN_DEVICE_GROUP
        grouped.setdefault(key, []).append(instance)
    return grouped


def join_instances_to_devices(
    devices: Iterable[ParsedDevice],
    instances: Optional[Iterable[_HasSerial]],
) -> tuple[Dict[str, list[Any]], Dict[str, list[Any]]]:
    """Split grouped instances into known-device groups and orphan groups.

    Orphans are instances whose serial is not currently listed by adb (or
    is empty); they are kept rather than dropped.
    """

    known = {device.serial for device in devices}
    attached: Dict[str, list[Any]] = {}
    orphans: Dict[str, list[Any]] = {}
    for serial, members in group_instances_by_device(instances).items():
        target = attached if serial in known else orphans
        target[serial] = members
    return attached, orphans


def get_device_flags(store: ConfigStore) -> Dict[str, Any]:
    return config_get(store, DEVICE_FLAGS_KEY, {})


def set_device_flags(store: ConfigStore, flags_map: Mapping[str, Any]) -> None:
    config_set(store, DEVICE_FLAGS_KEY, dict(flags_map), "{}")


def get_device_default_flags(store: ConfigStore, serial: str) -> Dict[str, Any]:
    value = get_device_flags(store).get(serial)
    return dict(value) if isinstance(value, Mapping) and value else {}


def set_device_default_flags(store: ConfigStore, serial: str, flags: Mapping[str, Any]) -> None:
    flags_map = get_device_flags(store)
    flags_map[serial] = dict(flags)
    set_device_flags(store, flags_map)
