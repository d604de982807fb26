"""Recover device targeting and flags from a running scrcpy command line.

The command lines inspected here were built by :mod:`mirror_plugin.launch_args`,
so plain whitespace splitting is enough; no shell quoting is undone.
"""
from __future__ import annotations

import re
from typing import Any

CONN_WIFI = "wifi"
CONN_USB = "usb"
CONN_UNKNOWN = "unknown"

SERIAL_FLAG = "--serial"
SERIAL_SHORT_FLAG = "-s"
_SERIAL_INLINE_PREFIX = f"{SERIAL_FLAG}="
_WIFI_SERIAL_RE = re.compile(r"\d{1,3}(\.\d{1,3}){3}:\d+", re.ASCII)


def _split_argv(cmdline: Any) -> list[str]:
    return str(cmdline or "").split()


def extract_serial_from_cmdline(cmdline: Any) -> str:
    argv = _split_argv(cmdline)
    for index, argument in enumerate(argv):
        if argument in (SERIAL_FLAG, SERIAL_SHORT_FLAG) and index + 1 < len(argv):
            return argv[index + 1]
        if argument.startswith(_SERIAL_INLINE_PREFIX):
            return argument[len(_SERIAL_INLINE_PREFIX) :]
    return ""


def infer_conn_type_from_serial(serial: Any) -> str:
    """Classify a serial as ``wifi`` (``a.b.c.d:port``), ``usb`` or ``unknown``."""
    text = str(serial or "")
    if not text:
        return CONN_UNKNOWN
    if _WIFI_SERIAL_RE.fullmatch(text):
        return CONN_WIFI
    return CONN_USB


def extract_flags_from_cmdline(cmdline: Any) -> list[str]:
    """Return the ``--`` flags of a command line minus device selection."""
    argv = _split_argv(cmdline)
    flags: list[str] = []
    skip_next = False
    for argument in argv:
        if skip_next:
            skip_next = False
            continue
        if not argument.startswith("--"):
            continue
        if argument == SERIAL_FLAG:
            skip_next = True
            continue
        if argument.startswith(_SERIAL_INLINE_PREFIX):
            continue
        flags.append(argument)
    return flags
