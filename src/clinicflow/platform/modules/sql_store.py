"""
SQLAlchemy-backed catalog store.

Modules live in the global ``platform_modules`` table (catalog rows are
not tenant scoped). List-valued and nested fields are stored as JSON.
Updates are conditional on the stored ``version`` so concurrent edits
fail with :class:`VersionConflictError` instead of overwriting each other.
"""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import JSON, Boolean, Integer, String, Text, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import Select

from clinicflow.platform.db import Base, TimestampMixin, get_session_factory
from clinicflow.platform.logging import get_logger
from clinicflow.platform.modules.catalog import normalize_query, select_modules
from clinicflow.platform.modules.exceptions import DuplicateModuleError
from clinicflow.platform.modules.models import (
    Module,
    ModuleCode,
    ModuleFilters,
    ModuleUpdateRequest,
)
from clinicflow.platform.modules.store import (
    CatalogStore,
    apply_patch,
    deprecation_patch,
    not_found,
    prepare_new_module,
    version_conflict,
)

logger = get_logger(__name__)


class ModuleTable(Base, TimestampMixin):
    """SQLAlchemy table for catalog modules."""

    __tablename__ = "platform_modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    # Presentation
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    module_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    icon: Mapped[str | None] = mapped_column(String(100), nullable=True)
    marketing_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Grants and graph (JSON)
    features: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    pricing: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    dependencies: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Lifecycle
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    is_deprecated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deprecation_notice: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<ModuleTable(code={self.code}, version={self.version})>"


def _row_values(module: Module) -> dict[str, Any]:
    return module.model_dump(mode="json")


def _to_module(row: ModuleTable) -> Module:
    return Module.model_validate(
        {
            "code": row.code,
            "name": row.name,
            "description": row.description or "",
            "module_type": row.module_type,
            "category": row.category,
            "display_order": row.display_order,
            "icon": row.icon,
            "marketing_description": row.marketing_description,
            "features": row.features or [],
            "permissions": row.permissions or [],
            "pricing": row.pricing or {},
            "dependencies": row.dependencies or [],
            "is_active": row.is_active,
            "is_deprecated": row.is_deprecated,
            "deprecation_notice": row.deprecation_notice,
            "version": row.version,
        }
    )


def _apply_filters(stmt: Select[Any], filters: ModuleFilters) -> Select[Any]:
    if filters.module_type is not None:
        stmt = stmt.where(ModuleTable.module_type == filters.module_type.value)
    if filters.category is not None:
        stmt = stmt.where(ModuleTable.category == filters.category)
    if filters.is_active is not None:
        stmt = stmt.where(ModuleTable.is_active.is_(filters.is_active))
    if filters.is_deprecated is not None:
        stmt = stmt.where(ModuleTable.is_deprecated.is_(filters.is_deprecated))
    return stmt


class SQLCatalogStore(CatalogStore):
    """Catalog store backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory or get_session_factory()

    async def find_by_code(self, code: str) -> Module | None:
        async with self._session_factory() as session:
            row = await self._get_row(session, code)
            return _to_module(row) if row is not None else None

    @staticmethod
    async def _get_row(session: AsyncSession, code: str) -> ModuleTable | None:
        result = await session.execute(select(ModuleTable).where(ModuleTable.code == code))
        return result.scalar_one_or_none()

    async def find_by_codes(self, codes: Iterable[str]) -> list[Module]:
        unique = list(dict.fromkeys(codes))
        if not unique:
            return []

        async with self._session_factory() as session:
            result = await session.execute(
                select(ModuleTable).where(ModuleTable.code.in_(unique))
            )
            by_code = {row.code: _to_module(row) for row in result.scalars()}
        return [by_code[code] for code in unique if code in by_code]

    async def find_all(self, filters: ModuleFilters | None = None) -> list[Module]:
        filters = filters or ModuleFilters()
        stmt = _apply_filters(select(ModuleTable), filters).order_by(
            ModuleTable.display_order, ModuleTable.code
        )
        if filters.offset:
            stmt = stmt.offset(filters.offset)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_module(row) for row in result.scalars()]

    async def search(self, query: str, filters: ModuleFilters | None = None) -> list[Module]:
        needle = normalize_query(query)
        filters = filters or ModuleFilters()

        # Text matching happens in Module.matches; SQL LIKE folds ASCII only
        stmt = _apply_filters(select(ModuleTable), filters)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            candidates = [_to_module(row) for row in result.scalars()]
        return select_modules(candidates, filters, needle)

    async def create(self, module: Module) -> Module:
        stored = prepare_new_module(module)
        async with self._session_factory() as session:
            session.add(ModuleTable(**_row_values(stored)))
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if await self._get_row(session, stored.code) is None:
                    logger.error(
                        "module_store.create_failed", module_code=stored.code, error=str(exc)
                    )
                    raise
                raise DuplicateModuleError(
                    f"Module {stored.code} already exists", module_code=stored.code
                ) from exc

        logger.info("module_store.created", module_code=stored.code)
        return stored

    async def create_many(self, modules: Iterable[Module]) -> list[Module]:
        prepared = [prepare_new_module(module) for module in modules]
        if not prepared:
            return []

        async with self._session_factory() as session:
            session.add_all([ModuleTable(**_row_values(m)) for m in prepared])
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.warning(
                    "module_store.batch_conflict",
                    modules=len(prepared),
                    fallback="individual_inserts",
                )
            else:
                logger.info("module_store.batch_created", modules=len(prepared))
                return prepared

        created: list[Module] = []
        for module in prepared:
            try:
                created.append(await self.create(module))
            except DuplicateModuleError:
                logger.warning("module_store.duplicate_skipped", module_code=module.code)
        return created

    async def update(
        self, code: str, patch: ModuleUpdateRequest, expected_version: int
    ) -> Module:
        return await self._apply(code, patch, expected_version)

    async def soft_delete(
        self, code: str, reason: str | None = None, expected_version: int | None = None
    ) -> Module:
        return await self._apply(code, deprecation_patch(reason), expected_version)

    async def _apply(
        self, code: str, patch: ModuleUpdateRequest, expected_version: int | None
    ) -> Module:
        async with self._session_factory() as session:
            row = await self._get_row(session, code)
            if row is None:
                raise not_found(code)
            current = _to_module(row)
            if expected_version is not None and current.version != expected_version:
                raise version_conflict(code, expected_version, current.version)

            updated = apply_patch(current, patch)
            values = _row_values(updated)
            values.pop("code")

            # Compare-and-swap on the version read above
            result = await session.execute(
                update(ModuleTable)
                .where(ModuleTable.code == ModuleCode(code))
                .where(ModuleTable.version == current.version)
                .values(**values)
            )
            if result.rowcount == 0:
                await session.rollback()
                latest = await self._get_row(session, code)
                if latest is None:
                    raise not_found(code)
                raise version_conflict(code, current.version, latest.version)

            await session.commit()

        logger.info(
            "module_store.updated",
            module_code=code,
            version=updated.version,
            fields=sorted(patch.changes()),
        )
        return updated
