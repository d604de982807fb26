from __future__ import annotations

import pytest

from mirror_plugin.cmdline_introspection import extract_flags_from_cmdline, extract_serial_from_cmdline
from mirror_plugin.flag_validation import FlagErrorCode
from mirror_plugin.launch_args import build_launch_command, build_launch_command_from_parts, compose_flag_text


def test_build_launch_command_targets_serial() -> None:
    argv, result = build_launch_command("R58M123ABC", "--max-size=800 --window-title 'My phone'")

    assert result.ok is True
    assert argv == ["scrcpy", "--serial", "R58M123ABC", "--max-size=800", "--window-title", "My phone"]


def test_build_launch_command_is_inverted_by_introspection() -> None:
    argv, _result = build_launch_command("192.168.1.5:5555", "--no-audio --stay-awake", executable="/opt/scrcpy")
    cmdline = " ".join(argv)

    assert extract_serial_from_cmdline(cmdline) == "192.168.1.5:5555"
    assert extract_flags_from_cmdline(cmdline) == ["--no-audio", "--stay-awake"]


def test_build_launch_command_refuses_retargeting() -> None:
    argv, result = build_launch_command("R58M123ABC", "--fullscreen -s OTHER")

    assert argv == []
    assert result.error_code is FlagErrorCode.FORBIDDEN_FLAG
    assert result.forbidden_flag == "-s"


def test_build_launch_command_reports_parse_errors() -> None:
    argv, result = build_launch_command("R58M123ABC", "--window-title 'oops")

    assert argv == []
    assert result.error_code is FlagErrorCode.UNTERMINATED_QUOTE


@pytest.mark.parametrize("serial, executable", [("", "scrcpy"), ("A", "")])
def test_build_launch_command_requires_target_and_executable(serial: str, executable: str) -> None:
    with pytest.raises(ValueError):
        build_launch_command(serial, "", executable=executable)


def test_compose_flag_text_skips_blank_parts() -> None:
    assert compose_flag_text("--max-fps 60", None, "", "  ", "--no-audio") == "--max-fps 60 --no-audio"


def test_template_and_user_flags_are_validated_together() -> None:
    argv, result = build_launch_command_from_parts("A", ["--max-fps 60", "--tcpip=1.2.3.4"])

    assert argv == []
    assert result.forbidden_flag == "--tcpip=1.2.3.4"


def test_escaped_trailing_space_survives_in_its_own_part() -> None:
    argv, result = build_launch_command_from_parts("A", ["", "--window-title a\\ "])

    assert result.ok is True
    assert argv == ["scrcpy", "--serial", "A", "--window-title", "a "]


def test_broken_template_is_not_closed_by_user_flags() -> None:
    argv, result = build_launch_command_from_parts("A", ["--window-title 'My", "phone'"])

    assert argv == []
    assert result.error_code is FlagErrorCode.UNTERMINATED_QUOTE


def test_template_trailing_escape_is_reported() -> None:
    _argv, result = build_launch_command_from_parts("A", ["--max-fps 60\\", "--no-audio"])

    assert result.error_code is FlagErrorCode.TRAILING_ESCAPE


def test_parts_are_concatenated_in_order() -> None:
    argv, result = build_launch_command_from_parts("A", ["--max-fps 60", None, "--window-title 'My phone'"])

    assert argv == ["scrcpy", "--serial", "A", "--max-fps", "60", "--window-title", "My phone"]
    assert result.sanitized == "--max-fps 60 --window-title 'My phone'"
