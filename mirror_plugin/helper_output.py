"""Parsers for the text emitted by the widget's helper scripts."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union

from version import coerce_bool

from .logging_support import child_logger

LOGGER = child_logger("HelperOutput")
SCAN_FIELD_COUNT = 6

Number = Union[int, float]


@dataclass(frozen=True)
class ProcessRecord:
    """One row of process-scan output.

    ``startticks`` and ``cmdhash`` stay opaque strings. ``pid`` and ``uid`` are
    ``math.nan`` when the helper emitted something non-numeric.
    """

    pid: Number
    uid: Number
    startticks: str
    exe: str
    cmdhash: str
    cmdline: str

    @property
    def identifiable(self) -> bool:
        return isinstance(self.pid, int) and isinstance(self.uid, int)


def _parse_number(text: str) -> Number:
    token = text.strip()
    # int()/float() accept digit separators; the helper never emits them.
    if not token or "_" in token:
        return math.nan
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        return math.nan


def parse_scan_output(stdout: Any) -> list[ProcessRecord]:
    """Parse tab-separated ``pid uid startticks exe cmdhash cmdline...`` rows.

    Rows with fewer than six fields are skipped. Everything after the fifth
    tab is the command line, which may itself contain tabs.
    """

    records: list[ProcessRecord] = []
    for raw_line in str(stdout or "").split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        parts = line.split("\t")
        if len(parts) < SCAN_FIELD_COUNT:
            LOGGER.debug("Skipping malformed scan row with %d fields", len(parts))
            continue
        pid, uid, startticks, exe, cmdhash, *rest = parts
        records.append(
            ProcessRecord(
                pid=_parse_number(pid),
                uid=_parse_number(uid),
                startticks=startticks,
                exe=exe,
                cmdhash=cmdhash,
                cmdline="\t".join(rest),
            )
        )
    return records


def parse_kv_output(stdout: Any) -> Dict[str, str]:
    """Parse ``key=value`` lines; values are kept verbatim, later keys win."""
    output: Dict[str, str] = {}
    for line in str(stdout or "").split("\n"):
        delimiter = line.find("=")
        if delimiter <= 0:
            continue
        key = line[:delimiter].strip()
        output[key] = line[delimiter + 1 :]
    return output


def kv_bool(kv: Mapping[str, str], key: str, default: bool) -> bool:
    coerced = coerce_bool(kv.get(key))
    return default if coerced is None else coerced


def kv_int(kv: Mapping[str, str], key: str, default: int) -> int:
    value = kv.get(key)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default
