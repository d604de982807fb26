"""Named flag presets the user can apply when starting an instance."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional, Sequence

from .config_store import TEMPLATES_KEY, ConfigStore, config_get, config_set


@dataclass(frozen=True)
class Template:
    name: str
    flags: str

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Template"]:
        if not isinstance(payload, Mapping):
            return None
        name = str(payload.get("name") or "").strip()
        if not name:
            return None
        flags = payload.get("flags")
        return cls(name=name, flags="" if flags is None else str(flags))


def get_templates(store: ConfigStore) -> list[Template]:
    templates: list[Template] = []
    for entry in config_get(store, TEMPLATES_KEY, []):
        template = Template.from_payload(entry)
        if template is not None:
            templates.append(template)
    return templates


def set_templates(store: ConfigStore, templates: Sequence[Template]) -> None:
    config_set(store, TEMPLATES_KEY, [asdict(template) for template in templates], "[]")


def find_template(store: ConfigStore, name: Any) -> Optional[Template]:
    template_name = str(name or "").strip()
    for template in get_templates(store):
        if template.name == template_name:
            return template
    return None


def upsert_template(store: ConfigStore, name: Any, flags: Any) -> None:
    """Insert or replace a template by trimmed name, keeping its list position."""
    template_name = str(name or "").strip()
    if not template_name:
        return
    updated = Template(name=template_name, flags=str(flags or ""))
    templates = get_templates(store)
    for index, template in enumerate(templates):
        if template.name == template_name:
            templates[index] = updated
            break
    else:
        templates.append(updated)
    set_templates(store, templates)


def remove_template(store: ConfigStore, name: Any) -> None:
    template_name = str(name or "").strip()
    if not template_name:
        return
    set_templates(store, [template for template in get_templates(store) if template.name != template_name])
