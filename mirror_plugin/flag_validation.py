"""Tokenize and vet free-text scrcpy flags before they reach a launcher.

User-typed "advanced flags" are split with a small shell-like tokenizer
(quotes and backslash escapes, no expansion of any kind) and then checked
against a deny-list of flags that would change which device or transport a
session targets. Targeting is owned by the widget's device picker, so any
such flag rejects the whole input.

The output is always an argument list for ``subprocess`` style launchers;
nothing here ever builds a shell string.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Tuple

from .logging_support import child_logger

LOGGER = child_logger("Flags")

_NEWLINE_TAB_RUN_RE = re.compile(r"[\r\n\t]+")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


class FlagErrorCode(str, Enum):
    NONE = ""
    TRAILING_ESCAPE = "trailing_escape"
    UNTERMINATED_QUOTE = "unterminated_quote"
    FORBIDDEN_FLAG = "forbidden_flag"


@dataclass(frozen=True)
class TokenizeResult:
    ok: bool
    args: Tuple[str, ...] = ()
    error_code: FlagErrorCode = FlagErrorCode.NONE


@dataclass(frozen=True)
class FlagValidationResult:
    ok: bool
    args: Tuple[str, ...] = ()
    sanitized: str = ""
    error_code: FlagErrorCode = FlagErrorCode.NONE
    forbidden_flag: str = ""


def sanitize_flags_input(raw: Any) -> str:
    """Fold CR/LF/TAB runs into one space and drop other ASCII control characters."""
    text = "" if raw is None else str(raw)
    text = _NEWLINE_TAB_RUN_RE.sub(" ", text)
    return _CONTROL_CHARS_RE.sub("", text)


# Tokenizer ----------------------------------------------------------------


class TokenizerState(Enum):
    NORMAL = "normal"
    ESCAPED = "escaped"
    SINGLE_QUOTED = "single_quoted"
    DOUBLE_QUOTED = "double_quoted"


class _Tokenizer:
    def __init__(self) -> None:
        self.state = TokenizerState.NORMAL
        self.args: list[str] = []
        self._token: list[str] = []

    def feed(self, ch: str) -> None:
        self._TRANSITIONS[self.state](self, ch)

    def finish(self) -> TokenizeResult:
        if self.state is TokenizerState.ESCAPED:
            return TokenizeResult(ok=False, error_code=FlagErrorCode.TRAILING_ESCAPE)
        if self.state in (TokenizerState.SINGLE_QUOTED, TokenizerState.DOUBLE_QUOTED):
            return TokenizeResult(ok=False, error_code=FlagErrorCode.UNTERMINATED_QUOTE)
        self._flush()
        return TokenizeResult(ok=True, args=tuple(self.args))

    def _flush(self) -> None:
        if self._token:
            self.args.append("".join(self._token))
            self._token = []

    def _normal(self, ch: str) -> None:
        if ch == "\\":
            self.state = TokenizerState.ESCAPED
        elif ch == "'":
            self.state = TokenizerState.SINGLE_QUOTED
        elif ch == '"':
            self.state = TokenizerState.DOUBLE_QUOTED
        elif ch.isspace():
            self._flush()
        else:
            self._token.append(ch)

    def _escaped(self, ch: str) -> None:
        self._token.append(ch)
        self.state = TokenizerState.NORMAL

    def _single_quoted(self, ch: str) -> None:
        if ch == "'":
            self.state = TokenizerState.NORMAL
        else:
            self._token.append(ch)

    def _double_quoted(self, ch: str) -> None:
        if ch == '"':
            self.state = TokenizerState.NORMAL
        else:
            self._token.append(ch)

    _TRANSITIONS: dict[TokenizerState, Callable[["_Tokenizer", str], None]] = {
        TokenizerState.NORMAL: _normal,
        TokenizerState.ESCAPED: _escaped,
        TokenizerState.SINGLE_QUOTED: _single_quoted,
        TokenizerState.DOUBLE_QUOTED: _double_quoted,
    }


def tokenize_flags_input(text: Any) -> TokenizeResult:
    """Split ``text`` into arguments with shell-like quoting.

    A backslash outside quotes takes the next character literally. Inside
    quotes only the matching quote is special. Empty tokens are never
    produced. A dangling backslash or quote fails the whole parse.
    """

    tokenizer = _Tokenizer()
    for ch in "" if text is None else str(text):
        tokenizer.feed(ch)
    return tokenizer.finish()


# Forbidden flags ----------------------------------------------------------


class MatchKind(Enum):
    EXACT = "exact"
    # Flag followed by at least one more character, e.g. ``-sSERIAL``.
    PREFIX = "prefix"
    # Bare flag or ``flag=value``.
    OPTION = "option"
    # Shortened long option, e.g. ``--seri=X`` or ``--tcp``.
    ABBREVIATION = "abbreviation"
    # Short flag inside a cluster, e.g. ``-Sd``.
    SHORT_CLUSTER = "short_cluster"


# Short options that consume the rest of a cluster as their value.
SHORT_OPTIONS_WITH_VALUE = frozenset("bmprsV")


@dataclass(frozen=True)
class ForbiddenRule:
    kind: MatchKind
    flag: str

    def matches(self, arg: str) -> bool:
        if self.kind is MatchKind.EXACT:
            return arg == self.flag
        if self.kind is MatchKind.PREFIX:
            return arg.startswith(self.flag) and len(arg) > len(self.flag)
        if self.kind is MatchKind.ABBREVIATION:
            name = arg.split("=", 1)[0]
            return 2 < len(name) < len(self.flag) and self.flag.startswith(name)
        if self.kind is MatchKind.SHORT_CLUSTER:
            return _in_short_cluster(arg, self.flag[1])
        return arg == self.flag or arg.startswith(f"{self.flag}=")


def _in_short_cluster(arg: str, letter: str) -> bool:
    if len(arg) < 3 or not arg.startswith("-") or arg.startswith("--"):
        return False
    for ch in arg[1:]:
        if ch == letter:
            return True
        if ch in SHORT_OPTIONS_WITH_VALUE:
            return False
    return False


FORBIDDEN_FLAG_RULES: Tuple[ForbiddenRule, ...] = (
    ForbiddenRule(MatchKind.EXACT, "-s"),
    ForbiddenRule(MatchKind.PREFIX, "-s"),
    ForbiddenRule(MatchKind.OPTION, "--serial"),
    ForbiddenRule(MatchKind.EXACT, "-d"),
    ForbiddenRule(MatchKind.EXACT, "-e"),
    ForbiddenRule(MatchKind.EXACT, "--select-usb"),
    ForbiddenRule(MatchKind.EXACT, "--select-tcpip"),
    ForbiddenRule(MatchKind.OPTION, "--tcpip"),
    ForbiddenRule(MatchKind.OPTION, "--tunnel-host"),
    ForbiddenRule(MatchKind.OPTION, "--tunnel-port"),
    ForbiddenRule(MatchKind.SHORT_CLUSTER, "-s"),
    ForbiddenRule(MatchKind.SHORT_CLUSTER, "-d"),
    ForbiddenRule(MatchKind.SHORT_CLUSTER, "-e"),
    ForbiddenRule(MatchKind.ABBREVIATION, "--serial"),
    ForbiddenRule(MatchKind.ABBREVIATION, "--select-usb"),
    ForbiddenRule(MatchKind.ABBREVIATION, "--select-tcpip"),
    ForbiddenRule(MatchKind.ABBREVIATION, "--tcpip"),
    ForbiddenRule(MatchKind.ABBREVIATION, "--tunnel-host"),
    ForbiddenRule(MatchKind.ABBREVIATION, "--tunnel-port"),
)


def detect_forbidden_flag(
    args: Optional[Iterable[str]],
    rules: Iterable[ForbiddenRule] = FORBIDDEN_FLAG_RULES,
) -> str:
    """Return the first argument matched by any rule, or ``""``."""
    rule_list = tuple(rules)
    for arg in args or ():
        for rule in rule_list:
            if rule.matches(arg):
                return arg
    return ""


def validate_additional_flags_input(raw_input: Any) -> FlagValidationResult:
    sanitized = sanitize_flags_input(raw_input)
    parsed = tokenize_flags_input(sanitized)
    if not parsed.ok:
        LOGGER.info("Rejected advanced flags: %s", parsed.error_code.value)
        return FlagValidationResult(ok=False, sanitized=sanitized, error_code=parsed.error_code)

    forbidden = detect_forbidden_flag(parsed.args)
    if forbidden:
        LOGGER.info("Rejected advanced flags: %s (%s)", FlagErrorCode.FORBIDDEN_FLAG.value, forbidden)
        return FlagValidationResult(
            ok=False,
            sanitized=sanitized,
            error_code=FlagErrorCode.FORBIDDEN_FLAG,
            forbidden_flag=forbidden,
        )

    return FlagValidationResult(ok=True, args=parsed.args, sanitized=sanitized)
