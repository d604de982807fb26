from __future__ import annotations

import json

from mirror_plugin.config_store import TEMPLATES_KEY, MemoryConfigStore
from mirror_plugin.templates import Template, find_template, get_templates, remove_template, upsert_template


def test_upsert_updates_in_place_and_keeps_order() -> None:
    store = MemoryConfigStore()
    upsert_template(store, "Low latency", "--max-fps 60")
    upsert_template(store, "Recording", "--record out.mp4")

    upsert_template(store, "  Low latency ", "--max-fps 30")

    assert get_templates(store) == [
        Template(name="Low latency", flags="--max-fps 30"),
        Template(name="Recording", flags="--record out.mp4"),
    ]


def test_upsert_appends_new_and_ignores_blank_names() -> None:
    store = MemoryConfigStore()
    upsert_template(store, "A", "--a")
    upsert_template(store, "   ", "--ignored")
    upsert_template(store, "B", None)

    assert [template.name for template in get_templates(store)] == ["A", "B"]
    assert find_template(store, "B") == Template(name="B", flags="")


def test_remove_template_by_trimmed_name() -> None:
    store = MemoryConfigStore()
    upsert_template(store, "A", "--a")
    upsert_template(store, "B", "--b")

    remove_template(store, " A ")
    remove_template(store, "")

    assert get_templates(store) == [Template(name="B", flags="--b")]
    assert find_template(store, "A") is None


def test_templates_persist_as_json_list() -> None:
    store = MemoryConfigStore()
    upsert_template(store, "A", "--a")

    assert json.loads(store.store[TEMPLATES_KEY]) == [{"name": "A", "flags": "--a"}]


def test_corrupt_or_malformed_templates_are_skipped() -> None:
    store = MemoryConfigStore({TEMPLATES_KEY: '[{"name": "ok", "flags": "--x"}, {"name": "  "}, 3, null]'})

    assert get_templates(store) == [Template(name="ok", flags="--x")]

    store.set(TEMPLATES_KEY, '{"name": "not a list"}')
    assert get_templates(store) == []
