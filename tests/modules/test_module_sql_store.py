"""
Tests for the SQLAlchemy catalog store against in-memory SQLite.
"""

from unittest.mock import patch

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from clinicflow.platform.modules.definitions import (
    CLINICAL_BASIC,
    IMAGING,
    INSURANCE,
    REFERENCE_MODULES,
    SCHEDULING,
    TELEDENTISTRY,
)
from clinicflow.platform.modules.exceptions import (
    DuplicateModuleError,
    ModuleValidationError,
    UnknownModuleError,
    VersionConflictError,
)
from clinicflow.platform.modules.models import ModuleFilters, ModuleType, ModuleUpdateRequest
from clinicflow.platform.modules.sql_store import ModuleTable
from clinicflow.platform.modules.store import DEFAULT_DEPRECATION_NOTICE, InMemoryCatalogStore

pytestmark = [pytest.mark.asyncio, pytest.mark.integration]


@pytest_asyncio.fixture
async def seeded_store(sql_store):
    await sql_store.create_many(REFERENCE_MODULES)
    return sql_store


class TestCreate:
    """Test inserting module rows."""

    async def test_round_trip_preserves_definition(self, sql_store):
        original = next(m for m in REFERENCE_MODULES if m.code == TELEDENTISTRY)
        await sql_store.create(original)

        loaded = await sql_store.find_by_code(TELEDENTISTRY)
        assert loaded.model_dump() == original.model_dump()
        assert loaded.optional_dependencies == (CLINICAL_BASIC,)
        assert loaded.pricing.usage_based

    async def test_duplicate_code(self, sql_store, module_factory):
        await sql_store.create(module_factory("REPORTS"))
        with pytest.raises(DuplicateModuleError):
            await sql_store.create(module_factory("REPORTS", name="Other"))

    async def test_create_many_batch(self, sql_store):
        created = await sql_store.create_many(REFERENCE_MODULES)
        assert len(created) == 12

    async def test_create_many_skips_existing(self, seeded_store, module_factory):
        created = await seeded_store.create_many(
            [module_factory(IMAGING), module_factory("REPORTS")]
        )
        assert [m.code for m in created] == ["REPORTS"]
        assert len(await seeded_store.find_all()) == 13

    async def test_create_many_duplicate_within_batch(self, sql_store, module_factory):
        created = await sql_store.create_many(
            [module_factory("REPORTS"), module_factory("REPORTS", name="Again")]
        )
        assert [m.name for m in created] == ["Reports"]

    async def test_create_many_empty(self, sql_store):
        assert await sql_store.create_many([]) == []

    async def test_constraint_failure_is_not_reported_as_duplicate(
        self, sql_store, module_factory
    ):
        def without_name(module):
            return {**module.model_dump(mode="json"), "name": None}

        with patch("clinicflow.platform.modules.sql_store._row_values", side_effect=without_name):
            with pytest.raises(IntegrityError):
                await sql_store.create(module_factory("REPORTS"))

        assert await sql_store.find_by_code("REPORTS") is None


class TestReads:
    """Test queries over stored rows."""

    async def test_find_by_codes_keeps_input_order(self, seeded_store):
        modules = await seeded_store.find_by_codes([INSURANCE, "UNKNOWN", SCHEDULING])
        assert [m.code for m in modules] == [INSURANCE, SCHEDULING]
        assert await seeded_store.find_by_codes([]) == []

    async def test_find_all_ordering_and_filters(self, seeded_store):
        everything = await seeded_store.find_all()
        assert [m.code for m in everything] == [m.code for m in REFERENCE_MODULES]

        core = await seeded_store.find_all(ModuleFilters(module_type=ModuleType.CORE))
        assert len(core) == 4

        clinical = await seeded_store.find_all(ModuleFilters(category="Clinical", limit=2))
        assert [m.code for m in clinical] == [CLINICAL_BASIC, "CLINICAL_ADVANCED"]

        page = await seeded_store.find_all(ModuleFilters(offset=11))
        assert len(page) == 1

    async def test_search_name_description_and_features(self, seeded_store):
        assert [m.code for m in await seeded_store.search("dicom")] == [IMAGING]
        assert [m.code for m in await seeded_store.search("Odontogram")] == [CLINICAL_BASIC]
        assert [m.code for m in await seeded_store.search("TELEDENTISTRY")] == [TELEDENTISTRY]

    async def test_search_escapes_wildcards(self, seeded_store):
        assert await seeded_store.search("100%") == []
        assert await seeded_store.search("_") == []

    async def test_search_non_ascii_text(self, sql_store, module_factory):
        radiology = module_factory(
            "RADIO",
            name="Radiología Dental",
            features=("Radiografía panorámica",),
        )
        await sql_store.create(radiology)
        memory_store = InMemoryCatalogStore([radiology])

        for query in ("panorámica", "PANORÁMICA", "radiología dental"):
            assert [m.code for m in await sql_store.search(query)] == ["RADIO"]
            assert [m.code for m in await memory_store.search(query)] == ["RADIO"]

    async def test_search_applies_filters(self, seeded_store):
        premium = ModuleFilters(module_type=ModuleType.PREMIUM)
        assert await seeded_store.search("Odontogram", premium) == []

    async def test_blank_search(self, seeded_store):
        with pytest.raises(ModuleValidationError):
            await seeded_store.search("")

    async def test_snapshot(self, seeded_store):
        catalog = await seeded_store.snapshot()
        assert len(catalog) == 12


class TestUpdate:
    """Test compare-and-swap updates."""

    async def test_update(self, seeded_store):
        updated = await seeded_store.update(
            IMAGING, ModuleUpdateRequest(features=("DICOM viewer",)), expected_version=1
        )
        assert updated.version == 2
        stored = await seeded_store.find_by_code(IMAGING)
        assert stored.features == ("DICOM viewer",)
        assert stored.version == 2

    async def test_stale_version(self, seeded_store):
        await seeded_store.update(IMAGING, ModuleUpdateRequest(icon="camera"), expected_version=1)
        with pytest.raises(VersionConflictError):
            await seeded_store.update(
                IMAGING, ModuleUpdateRequest(icon="scan"), expected_version=1
            )
        assert (await seeded_store.find_by_code(IMAGING)).icon == "camera"

    async def test_unknown_code(self, seeded_store):
        with pytest.raises(UnknownModuleError):
            await seeded_store.update("UNKNOWN", ModuleUpdateRequest(icon="x"), expected_version=1)

    async def test_row_written(self, seeded_store, session_factory):
        await seeded_store.update(
            IMAGING, ModuleUpdateRequest(display_order=99), expected_version=1
        )
        async with session_factory() as session:
            row = (
                await session.execute(select(ModuleTable).where(ModuleTable.code == IMAGING))
            ).scalar_one()
        assert row.display_order == 99
        assert row.version == 2


class TestSoftDelete:
    """Test deprecation of stored modules."""

    async def test_soft_delete(self, seeded_store):
        deleted = await seeded_store.soft_delete(IMAGING)
        assert deleted.deprecation_notice == DEFAULT_DEPRECATION_NOTICE

        stored = await seeded_store.find_by_code(IMAGING)
        assert not stored.is_active
        assert stored.is_deprecated

        active = await seeded_store.find_all(ModuleFilters(is_active=True))
        assert IMAGING not in [m.code for m in active]

    async def test_soft_delete_version_check(self, seeded_store):
        with pytest.raises(VersionConflictError):
            await seeded_store.soft_delete(IMAGING, "Retired", expected_version=5)

    async def test_soft_delete_unknown(self, seeded_store):
        with pytest.raises(UnknownModuleError):
            await seeded_store.soft_delete("UNKNOWN")
