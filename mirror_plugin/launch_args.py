"""Build the scrcpy argument vector for a device from user flag text."""
from __future__ import annotations

from typing import Any, Iterable

from .cmdline_introspection import SERIAL_FLAG
from .flag_validation import FlagValidationResult, validate_additional_flags_input

DEFAULT_EXECUTABLE = "scrcpy"


def compose_flag_text(*parts: Any) -> str:
    """Join flag texts with single spaces for display, skipping blank parts."""
    return " ".join(text for text in (str(part or "") for part in parts) if text.strip())


def _require_target(serial: str, executable: str) -> None:
    if not serial:
        raise ValueError("A device serial is required to build a launch command.")
    if not executable:
        raise ValueError("A scrcpy executable is required to build a launch command.")


def build_launch_command(
    serial: str,
    raw_flags: Any,
    *,
    executable: str = DEFAULT_EXECUTABLE,
) -> tuple[list[str], FlagValidationResult]:
    """Return ``(argv, result)`` for launching scrcpy against ``serial``.

    ``raw_flags`` always goes through :func:`validate_additional_flags_input`.
    When validation fails ``argv`` is empty and ``result`` says why.
    """

    _require_target(serial, executable)
    result = validate_additional_flags_input(raw_flags)
    if not result.ok:
        return [], result
    return [executable, SERIAL_FLAG, serial, *result.args], result


def validate_flag_parts(flag_parts: Iterable[Any]) -> FlagValidationResult:
    """Validate each part (template, user text, ...) on its own.

    The first failing part is returned as is. Otherwise the arguments are
    concatenated in order and ``sanitized`` joins the sanitized parts.
    """

    args: list[str] = []
    sanitized: list[str] = []
    for part in flag_parts:
        result = validate_additional_flags_input(part)
        if not result.ok:
            return result
        args.extend(result.args)
        sanitized.append(result.sanitized)
    return FlagValidationResult(ok=True, args=tuple(args), sanitized=compose_flag_text(*sanitized))


def build_launch_command_from_parts(
    serial: str,
    flag_parts: Iterable[Any],
    *,
    executable: str = DEFAULT_EXECUTABLE,
) -> tuple[list[str], FlagValidationResult]:
    _require_target(serial, executable)
    result = validate_flag_parts(flag_parts)
    if not result.ok:
        return [], result
    return [executable, SERIAL_FLAG, serial, *result.args], result
