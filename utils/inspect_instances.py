#!/usr/bin/env python3
"""Inspect helper output the way the widget does (debugging aid).

Feeds captured process-scan and ``adb devices -l`` text through the same
parsing, naming and flag validation the widget uses, without launching
anything.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from mirror_plugin.config_store import MemoryConfigStore, QSettingsConfigStore  # noqa: E402
from mirror_plugin.devices import build_devices_from_adb, join_instances_to_devices, parse_adb_devices_list  # noqa: E402
from mirror_plugin.flag_validation import validate_additional_flags_input  # noqa: E402
from mirror_plugin.instance_tracker import refresh_instances  # noqa: E402
from mirror_plugin.logging_support import configure_logger  # noqa: E402


def _read_text(path: Optional[str]) -> str:
    if not path:
        return ""
    if path == "-":
        return sys.stdin.read()
    return Path(path).expanduser().read_text(encoding="utf-8")


def _flag_report(raw: str) -> Dict[str, Any]:
    result = validate_additional_flags_input(raw)
    return {
        "ok": result.ok,
        "args": list(result.args),
        "sanitized": result.sanitized,
        "error_code": result.error_code.value,
        "forbidden_flag": result.forbidden_flag,
    }


def _instance_report(args: argparse.Namespace) -> Dict[str, Any]:
    store = QSettingsConfigStore.from_ini(args.settings) if args.settings else MemoryConfigStore()
    devices = parse_adb_devices_list(_read_text(args.adb_file))
    known = {device.serial for device in devices}
    views = refresh_instances(store, _read_text(args.scan_file), known)
    attached, orphans = join_instances_to_devices(devices, views)
    return {
        "devices": [asdict(card) for card in build_devices_from_adb(devices)],
        "instances": [asdict(view) for view in views],
        "attached": {serial: [view.key for view in members] for serial, members in attached.items()},
        "orphans": {serial: [view.key for view in members] for serial, members in orphans.items()},
    }


def _print_text(report: Dict[str, Any]) -> None:
    if "flags" in report:
        flags = report["flags"]
        if flags["ok"]:
            print(f"Flags OK: {flags['args']}")
        elif flags["forbidden_flag"]:
            print(f"Flags rejected ({flags['error_code']}): {flags['forbidden_flag']}")
        else:
            print(f"Flags rejected ({flags['error_code']})")
    if "devices" in report:
        print(f"Found {len(report['devices'])} online device(s):")
        for card in report["devices"]:
            print(f"- {card['title']} [{card['id']}]")
        print(f"Found {len(report['instances'])} scrcpy instance(s):")
        for view in report["instances"]:
            suffix = f" ({view['conn_type']}, {view['serial']})" if view["serial"] else ""
            print(f"- {view['display_name']}{suffix}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Parse captured helper output and validate scrcpy flags like the widget does.",
    )
    parser.add_argument("--scan-file", help="Process-scan helper output ('-' for stdin).")
    parser.add_argument("--adb-file", help="Captured 'adb devices -l' output.")
    parser.add_argument("--settings", help="INI file used as the persistent config store.")
    parser.add_argument("--check-flags", help="Advanced flag text to validate.")
    parser.add_argument("--log-level", help="Logger level name or number.")
    parser.add_argument("--json", action="store_true", help="Emit JSON output instead of plain text.")
    args = parser.parse_args(argv)

    configure_logger(args.log_level)

    report: Dict[str, Any] = {}
    if args.check_flags is not None:
        report["flags"] = _flag_report(args.check_flags)
    if args.scan_file or args.adb_file:
        report.update(_instance_report(args))
    if not report:
        parser.error("nothing to inspect; pass --scan-file/--adb-file or --check-flags")

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        _print_text(report)
    flags = report.get("flags")
    return 1 if flags is not None and not flags["ok"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
