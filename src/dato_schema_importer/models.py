"""Data models for a schema import run.

An ImportPlan is computed upstream by diffing the exported schema against
the destination project. It lists, per entity class, which entities must be
created (with their full source payloads) and which source ids map onto
entities that already exist in the destination. The plan is never mutated
by the importer.

Entity payloads are kept as the raw JSON:API dicts returned by the Content
Management API, since they are sent back to it almost unchanged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidPlanError

if TYPE_CHECKING:
    from collections.abc import Mapping


def _empty_ids() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Rename:
    """New display name and api key for an item type being created."""

    name: str
    api_key: str


@dataclass(frozen=True)
class ItemTypeToCreate:
    """An item type to create, together with the fields and fieldsets it owns."""

    entity: dict[str, Any]
    fields: tuple[dict[str, Any], ...] = ()
    fieldsets: tuple[dict[str, Any], ...] = ()
    rename: Rename | None = None


@dataclass(frozen=True)
class ItemTypesPlan:
    entities_to_create: tuple[ItemTypeToCreate, ...] = ()
    ids_to_reuse: Mapping[str, str] = field(default_factory=_empty_ids)


@dataclass(frozen=True)
class PluginsPlan:
    entities_to_create: tuple[dict[str, Any], ...] = ()
    ids_to_reuse: Mapping[str, str] = field(default_factory=_empty_ids)


@dataclass(frozen=True)
class ImportPlan:
    """Everything a single import run has to create or reuse."""

    item_types: ItemTypesPlan = field(default_factory=ItemTypesPlan)
    plugins: PluginsPlan = field(default_factory=PluginsPlan)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ImportPlan:
        """Build a plan from its JSON document form.

        Expected shape::

            {
              "item_types": {
                "entities_to_create": [
                  {"entity": {...}, "fields": [...], "fieldsets": [...],
                   "rename": {"name": "...", "api_key": "..."}}
                ],
                "ids_to_reuse": {"<source id>": "<destination id>"}
              },
              "plugins": {"entities_to_create": [...], "ids_to_reuse": {...}}
            }

        Raises:
            InvalidPlanError: If the document does not have this shape
        """
        if not isinstance(data, dict):
            msg = f"Import plan must be a JSON object, got {type(data).__name__}"
            raise InvalidPlanError(msg)

        item_types_data = _section(data, "item_types")
        plugins_data = _section(data, "plugins")

        try:
            item_types = ItemTypesPlan(
                entities_to_create=tuple(
                    _item_type_to_create(entry) for entry in item_types_data.get("entities_to_create", [])
                ),
                ids_to_reuse=_ids_to_reuse(item_types_data, "item_types"),
            )
            plugins = PluginsPlan(
                entities_to_create=tuple(
                    _entity(entry, "plugin") for entry in plugins_data.get("entities_to_create", [])
                ),
                ids_to_reuse=_ids_to_reuse(plugins_data, "plugins"),
            )
        except (TypeError, AttributeError) as e:
            msg = f"Malformed import plan: {e}"
            raise InvalidPlanError(msg) from e

        return cls(item_types=item_types, plugins=plugins)

    @classmethod
    def from_file(cls, path: str | Path) -> ImportPlan:
        """Load a plan from a JSON file."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            msg = f"Could not read import plan {path}: {e}"
            raise InvalidPlanError(msg) from e
        return cls.from_dict(data)


def _section(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        msg = f"'{key}' must be an object"
        raise InvalidPlanError(msg)
    return section


def _ids_to_reuse(section: Mapping[str, Any], name: str) -> Mapping[str, str]:
    ids = section.get("ids_to_reuse") or {}
    if not isinstance(ids, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in ids.items()):
        msg = f"'{name}.ids_to_reuse' must map string ids to string ids"
        raise InvalidPlanError(msg)
    return MappingProxyType(dict(ids))


def _entity(entry: object, entity_type: str) -> dict[str, Any]:
    if not isinstance(entry, dict) or "id" not in entry:
        msg = f"Every {entity_type} to create needs an 'id'"
        raise InvalidPlanError(msg)
    return entry


def _item_type_to_create(entry: Mapping[str, Any]) -> ItemTypeToCreate:
    rename_data = entry.get("rename")
    rename = None
    if rename_data:
        try:
            rename = Rename(name=rename_data["name"], api_key=rename_data["api_key"])
        except KeyError as e:
            msg = f"Item type rename is missing {e}"
            raise InvalidPlanError(msg) from e

    return ItemTypeToCreate(
        entity=_entity(entry.get("entity"), "item type"),
        fields=tuple(_entity(f, "field") for f in entry.get("fields", [])),
        fieldsets=tuple(_entity(f, "fieldset") for f in entry.get("fieldsets", [])),
        rename=rename,
    )
