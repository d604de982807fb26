"""Version identifier and dev-mode switch for the scrcpy mirror widget core."""
from __future__ import annotations

import os
import re
from typing import Optional

__all__ = ["__version__", "DEV_MODE_ENV_VAR", "coerce_bool", "is_dev_build"]

__version__ = "0.4.2-dev"
DEV_MODE_ENV_VAR = "SCRCPY_MIRROR_DEV_MODE"

_TRUE_TOKENS = frozenset({"1", "true", "yes", "on"})
_FALSE_TOKENS = frozenset({"0", "false", "no", "off"})
# "dev" as its own segment, optionally numbered: 1.0-dev, 1.0.dev3, 1.0-dev-rc1
_DEV_SEGMENT_RE = re.compile(r"(?:^|[.\-+])dev\d*(?=$|[.\-+])")


def coerce_bool(value: Optional[str]) -> Optional[bool]:
    """Map on/off style text to a bool; ``None`` when it is neither."""
    if value is None:
        return None
    token = str(value).strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    return None


def is_dev_build(version: Optional[str] = None) -> bool:
    """Dev mode comes from the environment override, else from the version.

    An empty ``version`` means the running build's ``__version__``.
    """

    override = coerce_bool(os.getenv(DEV_MODE_ENV_VAR))
    if override is not None:
        return override
    identifier = (version or __version__).strip().lower()
    return bool(_DEV_SEGMENT_RE.search(identifier))
