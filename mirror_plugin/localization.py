"""Qt-backed translation hook used for generated instance names."""
from __future__ import annotations

from typing import Any, Callable

from PyQt6.QtCore import QCoreApplication

TRANSLATION_CONTEXT = "ScrcpyMirror"

I18nFunc = Callable[..., str]


def substitute_placeholders(text: str, *args: Any) -> str:
    """Replace Qt-style ``%1``..``%N`` markers, highest index first."""
    result = text
    for index in range(len(args), 0, -1):
        result = result.replace(f"%{index}", str(args[index - 1]))
    return result


def qt_i18n(source: str, *args: Any) -> str:
    translated = QCoreApplication.translate(TRANSLATION_CONTEXT, source)
    return substitute_placeholders(translated or source, *args)
