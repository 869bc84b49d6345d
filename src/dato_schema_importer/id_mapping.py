"""Identifier mapping tables from source ids to destination ids.

Every entity class taking part in an import (item types, fields, fieldsets
and plugins) gets its own table. Entities the plan creates get a freshly
generated id, entities the plan reuses get the id that already exists in the
destination project. Once built, both kinds of entries look the same to
consumers.
"""

from __future__ import annotations

import base64
import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exceptions import DuplicateIdentifierError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from .models import ImportPlan

logger: logging.Logger = logging.getLogger(__name__)


def generate_id() -> str:
    """Generate a DatoCMS-style entity id (URL-safe base64 of a random UUID)."""
    return base64.urlsafe_b64encode(uuid.uuid4().bytes).rstrip(b"=").decode("ascii")


class IdMapping:
    """Mapping from source ids to destination ids for one entity class."""

    def __init__(self, entity_class: str, id_generator: Callable[[], str] = generate_id) -> None:
        self.entity_class: str = entity_class
        self._id_generator: Callable[[], str] = id_generator
        self._mapping: dict[str, str] = {}
        self._destination_ids: set[str] = set()

    def allocate(self, source_id: str) -> str:
        """Generate and record a new destination id for source_id."""
        self._ensure_unmapped(source_id)

        destination_id = self._id_generator()
        if destination_id in self._destination_ids:
            msg = f"Generated {self.entity_class} id {destination_id} is already in use"
            raise DuplicateIdentifierError(msg)

        self._record(source_id, destination_id)
        return destination_id

    def reuse(self, source_id: str, destination_id: str) -> None:
        """Record an id that already exists in the destination project."""
        self._ensure_unmapped(source_id)
        self._record(source_id, destination_id)

    def resolve(self, source_id: str) -> str | None:
        return self._mapping.get(source_id)

    def destination_ids(self) -> frozenset[str]:
        return frozenset(self._destination_ids)

    def as_dict(self) -> dict[str, str]:
        return dict(self._mapping)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def _ensure_unmapped(self, source_id: str) -> None:
        if source_id in self._mapping:
            msg = f"{self.entity_class} {source_id} is already mapped to {self._mapping[source_id]}"
            raise DuplicateIdentifierError(msg)

    def _record(self, source_id: str, destination_id: str) -> None:
        self._mapping[source_id] = destination_id
        self._destination_ids.add(destination_id)


@dataclass
class IdTables:
    """The four identifier tables shared by every phase of an import."""

    item_types: IdMapping = field(default_factory=lambda: IdMapping("item_type"))
    fields: IdMapping = field(default_factory=lambda: IdMapping("field"))
    fieldsets: IdMapping = field(default_factory=lambda: IdMapping("fieldset"))
    plugins: IdMapping = field(default_factory=lambda: IdMapping("plugin"))

    @classmethod
    def build(cls, plan: ImportPlan, id_generator: Callable[[], str] = generate_id) -> IdTables:
        """Build all tables for a plan before any entity exists remotely.

        Reused ids are recorded first so that freshly generated ids can be
        checked against them.
        """
        tables = cls(
            item_types=IdMapping("item_type", id_generator),
            fields=IdMapping("field", id_generator),
            fieldsets=IdMapping("fieldset", id_generator),
            plugins=IdMapping("plugin", id_generator),
        )

        _reuse_all(tables.item_types, plan.item_types.ids_to_reuse)
        _reuse_all(tables.plugins, plan.plugins.ids_to_reuse)

        for to_create in plan.item_types.entities_to_create:
            tables.item_types.allocate(to_create.entity["id"])

            for source_field in to_create.fields:
                tables.fields.allocate(source_field["id"])

            for fieldset in to_create.fieldsets:
                tables.fieldsets.allocate(fieldset["id"])

        for plugin in plan.plugins.entities_to_create:
            tables.plugins.allocate(plugin["id"])

        logger.debug(
            f"Built id tables: {len(tables.item_types)} item types, {len(tables.fields)} fields, "
            f"{len(tables.fieldsets)} fieldsets, {len(tables.plugins)} plugins"
        )
        return tables


def _reuse_all(mapping: IdMapping, ids_to_reuse: Mapping[str, str]) -> None:
    for source_id, destination_id in ids_to_reuse.items():
        mapping.reuse(source_id, destination_id)
