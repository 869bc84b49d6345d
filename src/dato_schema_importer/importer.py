"""Schema importer that replays an import plan against a DatoCMS project.

The SchemaImporter is the central coordinator of an import run. It:
1. Builds the id tables for every entity the plan creates or reuses
2. Creates entities in dependency order, so nothing is created before the
   entities it references exist
3. Restores the original ordering of fields and fieldsets
4. Reports progress for every remote call it makes

Import Flow
-----------
The run proceeds in strictly ordered phases. Inside a phase, operations that
do not depend on each other are scheduled together and awaited as a group;
a phase only starts once the previous one has fully settled.

Phase 1: Preflight
    - Open the events subscription (if any)
    - Fetch destination locales (needed for localized default values)
    - Allocate destination ids for everything to create, record ids to reuse
      (This lets fields reference item types that are created later)

Phase 2: Plugins
    - Create plugins, selecting attributes by plugin version
    - Best-effort update of plugin parameters

Phase 3: Item types
    - Create item types, applying renames

Phase 4: Fieldsets and fields (all item types concurrently)
    For each item type:
        a. Create its fieldsets
        b. Create its non-slug fields
        c. Create its slug fields, which may reference fields from (b)

Phase 5: Positions
    - Re-apply the source position of every fieldset and field, one call
      at a time, in sorted order

Error Handling
--------------
- Plugin parameter updates: failures are swallowed, legacy parameter shapes
  may be invalid
- Field creation: failures are logged with the rewritten payload, then
  re-raised
- Anything else propagates unchanged once every operation of its group has
  settled. There is no retry and no partial success: a run either completes
  every phase or fails.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from .field_rewriter import FieldImportContext, import_field
from .field_types import StaticFieldTypeCatalog
from .id_mapping import IdTables, generate_id
from .progress import ImportProgress, ProgressTracker

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence

    from .models import ImportPlan, ItemTypeToCreate
    from .protocols import EventSubscriber, EventSubscription, FieldTypeCatalog, SchemaClient

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

LEGACY_PLUGIN_VERSION: Final[str] = "2"

_MODERN_PLUGIN_OMITTED_ATTRIBUTES: Final[frozenset[str]] = frozenset(
    {"parameter_definitions", "field_types", "plugin_type", "parameters"}
)


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a successful import run."""

    item_type_ids: dict[str, str]
    field_ids: dict[str, str]
    fieldset_ids: dict[str, str]
    plugin_ids: dict[str, str]
    progress: ImportProgress


async def _gather_all(aws: Iterable[Awaitable[object]]) -> None:
    """Await every operation of a group, then raise the first failure.

    Siblings of a failed operation still run to completion, so nothing is
    left in flight once the group returns.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result


def plugin_create_attributes(plugin: Mapping[str, Any]) -> dict[str, Any]:
    """Select the attributes sent when creating a plugin.

    Plugins installed from npm only need their package name. Legacy plugins
    send everything but their parameters; modern private plugins also leave
    out the attributes the API derives from the plugin manifest.
    """
    attributes: Mapping[str, Any] = plugin["attributes"]

    if attributes.get("package_name"):
        return {"package_name": attributes["package_name"]}

    if (plugin.get("meta") or {}).get("version") == LEGACY_PLUGIN_VERSION:
        return {key: value for key, value in attributes.items() if key != "parameters"}

    return {key: value for key, value in attributes.items() if key not in _MODERN_PLUGIN_OMITTED_ATTRIBUTES}


def item_type_create_attributes(to_create: ItemTypeToCreate) -> dict[str, Any]:
    """Select the attributes sent when creating an item type."""
    attributes = {key: value for key, value in to_create.entity["attributes"].items() if key != "has_singleton_item"}

    if to_create.rename:
        attributes["name"] = to_create.rename.name
        attributes["api_key"] = to_create.rename.api_key

    return attributes


class SchemaImporter:
    """Runs one import plan against a destination project.

    Usage:
        importer = SchemaImporter(plan, client, on_progress=print)
        result = await importer.run()

    An importer instance is meant for a single run: the id tables and
    progress counters it builds are only valid for that run.
    """

    def __init__(
        self,
        plan: ImportPlan,
        client: SchemaClient,
        on_progress: Callable[[ImportProgress], None],
        *,
        catalog: FieldTypeCatalog | None = None,
        events: EventSubscriber | None = None,
        id_generator: Callable[[], str] = generate_id,
    ) -> None:
        self.plan: ImportPlan = plan
        self.client: SchemaClient = client
        self.catalog: FieldTypeCatalog = catalog or StaticFieldTypeCatalog()
        self.events: EventSubscriber | None = events
        self.progress: ProgressTracker = ProgressTracker(on_progress)
        self._id_generator: Callable[[], str] = id_generator
        self._tables: IdTables | None = None
        self._locales: list[str] = []

    @property
    def tables(self) -> IdTables:
        if self._tables is None:
            msg = "Id tables not built yet. Call run() first."
            raise RuntimeError(msg)
        return self._tables

    async def run(self) -> ImportResult:
        """Execute every phase of the import.

        Raises:
            SchemaImportError: If the plan is inconsistent
            Exception: Whatever the client raised for the first failed call
        """
        subscription: EventSubscription | None = await self.events.subscribe() if self.events else None
        try:
            await self._preflight()
            await self._create_plugins()
            await self._create_item_types()
            await self._create_fields_and_fieldsets()
            await self._reorder_fields_and_fieldsets()
        finally:
            if subscription is not None:
                await subscription.close()

        logger.info(f"Schema import completed ({self.progress.finished} operations)")
        return ImportResult(
            item_type_ids=self.tables.item_types.as_dict(),
            field_ids=self.tables.fields.as_dict(),
            fieldset_ids=self.tables.fieldsets.as_dict(),
            plugin_ids=self.tables.plugins.as_dict(),
            progress=self.progress.snapshot(),
        )

    async def _preflight(self) -> None:
        self._locales = await self.client.fetch_locales()
        logger.info(f"Destination locales: {', '.join(self._locales)}")

        self._tables = IdTables.build(self.plan, self._id_generator)

    async def _create_plugins(self) -> None:
        plugins = self.plan.plugins.entities_to_create
        logger.info(f"Creating {len(plugins)} plugins")
        await _gather_all(self.progress.track(self._create_plugin)(plugin) for plugin in plugins)

    async def _create_plugin(self, plugin: Mapping[str, Any]) -> None:
        plugin_id = self._destination_id(self.tables.plugins.resolve(plugin["id"]))
        data = {"type": "plugin", "id": plugin_id, "attributes": plugin_create_attributes(plugin)}

        await self.client.create_plugin(data)
        logger.debug(f"Created plugin {plugin['id']} -> {plugin_id}")

        parameters = plugin["attributes"].get("parameters")
        if parameters:
            try:
                await self.client.update_plugin(plugin_id, {"parameters": parameters})
            except Exception as e:  # noqa: BLE001 - legacy plugin parameters might be invalid
                logger.debug(f"Ignoring invalid parameters of plugin {plugin_id}: {e}")

    async def _create_item_types(self) -> None:
        to_create = self.plan.item_types.entities_to_create
        logger.info(f"Creating {len(to_create)} item types")
        await _gather_all(self.progress.track(self._create_item_type)(entry) for entry in to_create)

    async def _create_item_type(self, to_create: ItemTypeToCreate) -> None:
        item_type_id = self._destination_id(self.tables.item_types.resolve(to_create.entity["id"]))
        data = {"type": "item_type", "id": item_type_id, "attributes": item_type_create_attributes(to_create)}

        await self.client.create_item_type(data)
        logger.debug(f"Created item type {data['attributes'].get('api_key')} ({item_type_id})")

    async def _create_fields_and_fieldsets(self) -> None:
        logger.info("Creating fieldsets and fields")
        context = FieldImportContext(
            client=self.client,
            locales=tuple(self._locales),
            tables=self.tables,
            catalog=self.catalog,
        )
        await _gather_all(
            self._create_item_type_contents(entry, context) for entry in self.plan.item_types.entities_to_create
        )

    async def _create_item_type_contents(self, to_create: ItemTypeToCreate, context: FieldImportContext) -> None:
        item_type_id = self._destination_id(self.tables.item_types.resolve(to_create.entity["id"]))

        create_fieldset = self.progress.track(self._create_fieldset)
        await _gather_all(create_fieldset(item_type_id, fieldset) for fieldset in to_create.fieldsets)

        create_field = self.progress.track(import_field)
        non_slug_fields = [f for f in to_create.fields if f["attributes"]["field_type"] != "slug"]
        await _gather_all(create_field(f, context) for f in non_slug_fields)

        # Slug fields may point at a sibling title field, which must exist first
        slug_fields = [f for f in to_create.fields if f["attributes"]["field_type"] == "slug"]
        await _gather_all(create_field(f, context) for f in slug_fields)

    async def _create_fieldset(self, item_type_id: str, fieldset: Mapping[str, Any]) -> None:
        fieldset_id = self._destination_id(self.tables.fieldsets.resolve(fieldset["id"]))
        data = {key: value for key, value in fieldset.items() if key != "relationships"}
        data["id"] = fieldset_id

        await self.client.create_fieldset(item_type_id, data)
        logger.debug(f"Created fieldset {fieldset_id} in item type {item_type_id}")

    async def _reorder_fields_and_fieldsets(self) -> None:
        logger.info("Restoring field and fieldset positions")
        for to_create in self.plan.item_types.entities_to_create:
            all_entities: Sequence[Mapping[str, Any]] = [*to_create.fieldsets, *to_create.fields]

            if len(all_entities) <= 1:
                continue

            for entity in sorted(all_entities, key=lambda e: e["attributes"]["position"]):
                await self.progress.track(self._update_position)(entity)

    async def _update_position(self, entity: Mapping[str, Any]) -> None:
        attributes = {"position": entity["attributes"]["position"]}
        if entity.get("type") == "fieldset":
            fieldset_id = self._destination_id(self.tables.fieldsets.resolve(entity["id"]))
            await self.client.update_fieldset(fieldset_id, attributes)
        else:
            field_id = self._destination_id(self.tables.fields.resolve(entity["id"]))
            await self.client.update_field(field_id, attributes)

    @staticmethod
    def _destination_id(destination_id: str | None) -> str:
        # Entities to create are always allocated during preflight
        assert destination_id is not None
        return destination_id


async def import_schema(
    plan: ImportPlan,
    client: SchemaClient,
    on_progress: Callable[[ImportProgress], None],
    *,
    catalog: FieldTypeCatalog | None = None,
    events: EventSubscriber | None = None,
    id_generator: Callable[[], str] = generate_id,
) -> ImportResult:
    """Import a schema plan into the destination project.

    Args:
        plan: Entities to create and ids to reuse
        client: Client for the destination project
        on_progress: Called synchronously every time an operation is scheduled or settles
        catalog: Field type metadata, defaults to the static DatoCMS catalog
        events: Optional change notification subscriber, open for the whole run
        id_generator: Generator for destination ids of new entities

    Returns:
        ImportResult with the id mappings used and the final progress
    """
    importer = SchemaImporter(
        plan,
        client,
        on_progress,
        catalog=catalog,
        events=events,
        id_generator=id_generator,
    )
    return await importer.run()
