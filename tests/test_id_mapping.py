"""
Tests for identifier mapping tables.
"""

import re

import pytest

from dato_schema_importer import DuplicateIdentifierError, IdMapping, IdTables, ImportPlan, generate_id
from dato_schema_importer.models import ItemTypesPlan, ItemTypeToCreate, PluginsPlan

from payloads import make_field, make_fieldset, make_item_type, make_plugin


@pytest.mark.unit
class TestGenerateId:
    def test_format(self) -> None:
        assert re.fullmatch(r"[A-Za-z0-9_-]{22}", generate_id())

    def test_unique(self) -> None:
        assert len({generate_id() for _ in range(1000)}) == 1000


@pytest.mark.unit
class TestIdMapping:
    def test_allocate_records_generated_id(self) -> None:
        mapping = IdMapping("field", lambda: "dest-1")

        assert mapping.allocate("src-1") == "dest-1"
        assert mapping.resolve("src-1") == "dest-1"
        assert "src-1" in mapping
        assert len(mapping) == 1

    def test_allocate_twice_fails(self) -> None:
        ids = iter(["dest-1", "dest-2"])
        mapping = IdMapping("field", lambda: next(ids))
        mapping.allocate("src-1")

        with pytest.raises(DuplicateIdentifierError, match="field src-1 is already mapped"):
            mapping.allocate("src-1")

    def test_allocate_rejects_colliding_generated_id(self) -> None:
        mapping = IdMapping("item_type", lambda: "existing")
        mapping.reuse("src-1", "existing")

        with pytest.raises(DuplicateIdentifierError, match="already in use"):
            mapping.allocate("src-2")

    def test_reuse_is_indistinguishable_from_allocation(self) -> None:
        mapping = IdMapping("plugin", lambda: "fresh")
        mapping.reuse("src-1", "existing")
        mapping.allocate("src-2")

        assert mapping.as_dict() == {"src-1": "existing", "src-2": "fresh"}
        assert mapping.destination_ids() == {"existing", "fresh"}

    def test_reuse_of_mapped_id_fails(self) -> None:
        mapping = IdMapping("plugin")
        mapping.reuse("src-1", "existing")

        with pytest.raises(DuplicateIdentifierError):
            mapping.reuse("src-1", "other")

    def test_resolve_unknown_returns_none(self) -> None:
        assert IdMapping("field").resolve("missing") is None


@pytest.mark.unit
class TestIdTablesBuild:
    def test_builds_all_four_tables(self, id_generator) -> None:
        plan = ImportPlan(
            item_types=ItemTypesPlan(
                entities_to_create=(
                    ItemTypeToCreate(
                        entity=make_item_type("it-1", "article"),
                        fields=(make_field("f-1", "it-1"), make_field("f-2", "it-1")),
                        fieldsets=(make_fieldset("fs-1", "it-1"),),
                    ),
                ),
                ids_to_reuse={"it-2": "dest-it-2"},
            ),
            plugins=PluginsPlan(entities_to_create=(make_plugin("p-1"),), ids_to_reuse={"p-2": "dest-p-2"}),
        )

        tables = IdTables.build(plan, id_generator)

        assert tables.item_types.as_dict() == {"it-2": "dest-it-2", "it-1": "new-1"}
        assert tables.fields.as_dict() == {"f-1": "new-2", "f-2": "new-3"}
        assert tables.fieldsets.as_dict() == {"fs-1": "new-4"}
        assert tables.plugins.as_dict() == {"p-2": "dest-p-2", "p-1": "new-5"}

    def test_created_ids_are_unique_and_distinct_from_reused(self) -> None:
        plan = ImportPlan(
            item_types=ItemTypesPlan(
                entities_to_create=tuple(
                    ItemTypeToCreate(
                        entity=make_item_type(f"it-{i}", f"type_{i}"),
                        fields=tuple(make_field(f"f-{i}-{j}", f"it-{i}") for j in range(5)),
                    )
                    for i in range(10)
                ),
                ids_to_reuse={"other": "reused-id"},
            ),
        )

        tables = IdTables.build(plan)

        created = [v for k, v in tables.item_types.as_dict().items() if k != "other"]
        created += list(tables.fields.as_dict().values())
        assert len(created) == len(set(created)) == 60
        assert "reused-id" not in created

    def test_item_type_both_created_and_reused_is_rejected(self, id_generator) -> None:
        plan = ImportPlan(
            item_types=ItemTypesPlan(
                entities_to_create=(ItemTypeToCreate(entity=make_item_type("it-1", "article")),),
                ids_to_reuse={"it-1": "dest-it-1"},
            ),
        )

        with pytest.raises(DuplicateIdentifierError):
            IdTables.build(plan, id_generator)
