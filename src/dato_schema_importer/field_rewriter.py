"""Rewriting of field payloads from source ids to destination ids.

A field is the entity with the most outgoing references: its fieldset, the
item types listed by its link and block validators, the sibling field that
feeds a slug, and the plugins providing its editor and addons. All of them
must be translated through the id tables before the field can be created in
the destination project. References to entities outside the import plan are
dropped, except for the slug title field which must always resolve.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import UnresolvedReferenceError
from .field_types import reference_validators

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .id_mapping import IdTables
    from .protocols import FieldTypeCatalog, SchemaClient

logger: logging.Logger = logging.getLogger(__name__)

# Deprecated misspelled twin of "appearance" still present in old exports
_LEGACY_APPEARANCE_ATTRIBUTE = "appeareance"


@dataclass(frozen=True)
class FieldImportContext:
    """Everything needed to rewrite and create fields during one run."""

    client: SchemaClient
    locales: Sequence[str]
    tables: IdTables
    catalog: FieldTypeCatalog


def rewrite_field(
    source_field: Mapping[str, Any],
    tables: IdTables,
    locales: Sequence[str],
    catalog: FieldTypeCatalog,
) -> dict[str, Any]:
    """Return a copy of a source field payload that only uses destination ids.

    The source payload is left untouched, so rewriting the same field twice
    against the same tables yields identical results.

    Raises:
        UnresolvedReferenceError: If the field or its slug title field has no mapping
    """
    source_attributes: Mapping[str, Any] = source_field["attributes"]
    field_type: str = source_attributes["field_type"]

    field_id = tables.fields.resolve(source_field["id"])
    if field_id is None:
        msg = f"Field {source_field['id']} has no destination id"
        raise UnresolvedReferenceError(msg)

    attributes: dict[str, Any] = copy.deepcopy(dict(source_attributes))
    attributes.setdefault("validators", {})

    data: dict[str, Any] = {
        **{key: value for key, value in source_field.items() if key not in ("attributes", "relationships")},
        "id": field_id,
        "attributes": attributes,
        "relationships": {"fieldset": {"data": _fieldset_linkage(source_field, tables)}},
    }

    for validator in reference_validators(field_type):
        linked_item_type_ids = _get_path(attributes["validators"], validator)
        if not isinstance(linked_item_type_ids, list):
            continue
        new_ids = [
            item_type_id
            for item_type_id in map(tables.item_types.resolve, linked_item_type_ids)
            if item_type_id is not None
        ]
        _set_path(attributes["validators"], validator, new_ids)

    slug_title_field = attributes["validators"].get("slug_title_field")
    if slug_title_field:
        title_field_id = tables.fields.resolve(slug_title_field["title_field_id"])
        if title_field_id is None:
            msg = (
                f"Slug field {source_field['id']} references title field "
                f"{slug_title_field['title_field_id']} which is not part of the import"
            )
            raise UnresolvedReferenceError(msg)
        attributes["validators"]["slug_title_field"] = {"title_field_id": title_field_id}

    attributes.pop(_LEGACY_APPEARANCE_ATTRIBUTE, None)

    source_appearance: Mapping[str, Any] = source_attributes.get("appearance") or {}
    editor = source_appearance.get("editor")
    if editor is not None and not catalog.is_builtin_editor(editor):
        plugin_id = tables.plugins.resolve(editor)
        if plugin_id is not None:
            attributes["appearance"]["editor"] = plugin_id
        else:
            logger.debug(f"Plugin editor {editor} of field {source_field['id']} is not imported, using default")
            attributes["appearance"] = catalog.default_appearance(field_type)

    if source_attributes.get("localized"):
        old_default_values: Mapping[str, Any] = source_attributes.get("default_value") or {}
        attributes["default_value"] = {locale: old_default_values.get(locale) for locale in locales}

    appearance = attributes.setdefault("appearance", {})
    appearance["addons"] = [
        {**addon, "id": tables.plugins.resolve(addon["id"])}
        for addon in source_appearance.get("addons", [])
        if addon["id"] in tables.plugins
    ]

    return data


async def import_field(source_field: Mapping[str, Any], context: FieldImportContext) -> dict[str, Any]:
    """Rewrite a field and create it in the destination project.

    Any failure is logged together with the rewritten payload, then re-raised.
    """
    data: dict[str, Any] | None = None
    try:
        data = rewrite_field(source_field, context.tables, context.locales, context.catalog)
        item_type_id = context.tables.item_types.resolve(source_field["relationships"]["item_type"]["data"]["id"])
        if item_type_id is None:
            msg = f"Item type of field {source_field['id']} has no destination id"
            raise UnresolvedReferenceError(msg)

        created = await context.client.create_field(item_type_id, data)
    except Exception:
        logger.exception(f"Failed to create field {source_field['id']} with payload {data!r}")
        raise

    logger.debug(f"Created field {data['attributes'].get('api_key')} ({data['id']})")
    return created


def _fieldset_linkage(source_field: Mapping[str, Any], tables: IdTables) -> dict[str, str] | None:
    linkage = (source_field.get("relationships") or {}).get("fieldset", {}).get("data")
    if not linkage:
        return None

    fieldset_id = tables.fieldsets.resolve(linkage["id"])
    if fieldset_id is None:
        msg = f"Fieldset {linkage['id']} of field {source_field['id']} has no destination id"
        raise UnresolvedReferenceError(msg)
    return {"type": "fieldset", "id": fieldset_id}


def _get_path(container: Mapping[str, Any], path: str) -> Any:  # noqa: ANN401 - validator shapes vary
    current: Any = container
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _set_path(container: dict[str, Any], path: str, value: object) -> None:
    *parents, last = path.split(".")
    current = container
    for key in parents:
        current = current.setdefault(key, {})
    current[last] = value
