"""Protocols defining the contracts of the importer's collaborators.

The import architecture separates concerns into:

1. SchemaClient: Talks to the destination project's Content Management API
2. FieldTypeCatalog: Knows which editors are built in and how a field type
   looks by default
3. EventSubscriber: Observes API side effects for the duration of a run
4. SchemaImporter (importer.py): Orchestrates the run, owns id remapping,
   reference rewriting and progress tracking

This separation allows:
- Testing the orchestration with in-memory fakes that record call order
- Swapping the HTTP transport (retries, auth) without touching the importer
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping


class SchemaClient(Protocol):
    """Protocol for creating schema entities in the destination project.

    Every method sends a raw JSON:API payload and returns the entity the API
    responded with, or raises when the API rejects the request. Retries, if
    any, are the implementation's concern.
    """

    async def fetch_locales(self) -> list[str]:
        """Return the destination project's locales, in project order."""
        ...

    async def create_plugin(self, data: Mapping[str, Any]) -> dict[str, Any]:
        ...

    async def update_plugin(self, plugin_id: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        ...

    async def create_item_type(self, data: Mapping[str, Any]) -> dict[str, Any]:
        ...

    async def create_fieldset(self, item_type_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        ...

    async def create_field(self, item_type_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        ...

    async def update_fieldset(self, fieldset_id: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        ...

    async def update_field(self, field_id: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        ...


class FieldTypeCatalog(Protocol):
    """Protocol for field type metadata lookups."""

    def is_builtin_editor(self, editor_id: str) -> bool:
        """Return True if the editor ships with DatoCMS (i.e. is not a plugin)."""
        ...

    def default_appearance(self, field_type: str) -> dict[str, Any]:
        """Return a fresh appearance descriptor suitable for the field type."""
        ...


class EventSubscription(Protocol):
    async def close(self) -> None:
        ...


class EventSubscriber(Protocol):
    """Protocol for observing change notifications on the destination project.

    The importer opens exactly one subscription when a run starts and closes
    it when the run ends, whatever the outcome.
    """

    async def subscribe(self) -> EventSubscription:
        ...
