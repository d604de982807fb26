from __future__ import annotations

import math
from pathlib import Path

import pytest

from mirror_plugin import config_store as cs


class _ExplodingStore:
    """Store stub whose reads and writes always fail."""

    def get(self, key: str, default: object | None = None) -> object | None:
        raise RuntimeError("backend offline")

    def set(self, key: str, value: object) -> None:
        raise RuntimeError("backend offline")


@pytest.mark.parametrize("raw", [None, "", "{not json", b"\xff\xfe", 42])
def test_safe_json_parse_returns_fallback_for_bad_input(raw: object) -> None:
    fallback = {"sentinel": True}
    assert cs.safe_json_parse(raw, fallback) is fallback


def test_safe_json_parse_decodes_bytes_and_text() -> None:
    assert cs.safe_json_parse('{"a": 1}', {}) == {"a": 1}
    assert cs.safe_json_parse(b'[1, 2]', []) == [1, 2]


def test_safe_json_stringify_uses_fallback_on_failure() -> None:
    assert cs.safe_json_stringify({"value": object()}) == "{}"
    assert cs.safe_json_stringify([object()], "[]") == "[]"
    assert cs.safe_json_stringify({"n": math.nan}) == "{}"


def test_safe_json_stringify_is_compact() -> None:
    assert cs.safe_json_stringify({"a": [1, "b"]}) == '{"a":[1,"b"]}'


def test_config_get_falls_back_on_shape_mismatch() -> None:
    store = cs.MemoryConfigStore({cs.TEMPLATES_KEY: '{"name": "x"}', cs.NAME_MAP_KEY: "[1]"})

    assert cs.config_get(store, cs.TEMPLATES_KEY, []) == []
    assert cs.config_get(store, cs.NAME_MAP_KEY, {}) == {}


def test_config_get_missing_key_returns_fallback() -> None:
    store = cs.MemoryConfigStore()
    fallback: dict[str, object] = {}

    assert cs.config_get(store, cs.REGISTRY_KEY, fallback) is fallback


def test_config_set_writes_fallback_when_value_cannot_serialize() -> None:
    store = cs.MemoryConfigStore({cs.REGISTRY_KEY: '{"old": true}'})

    cs.config_set(store, cs.REGISTRY_KEY, {"bad": object()}, "{}")

    assert store.store[cs.REGISTRY_KEY] == "{}"


def test_config_helpers_never_raise_on_broken_store() -> None:
    store = _ExplodingStore()

    assert cs.config_get(store, cs.REGISTRY_KEY, {"x": 1}) == {"x": 1}
    cs.config_set(store, cs.REGISTRY_KEY, {"x": 1})


def test_qsettings_store_round_trips_through_ini(tmp_path: Path) -> None:
    path = tmp_path / "widget.ini"
    store = cs.QSettingsConfigStore.from_ini(path)

    cs.config_set(store, cs.NAME_MAP_KEY, {"1:2:3": "Pixel mirror"})

    reopened = cs.QSettingsConfigStore.from_ini(path)
    assert cs.config_get(reopened, cs.NAME_MAP_KEY, {}) == {"1:2:3": "Pixel mirror"}
    assert cs.config_get(reopened, cs.TEMPLATES_KEY, []) == []
