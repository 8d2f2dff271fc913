"""
Catalog persistence contract.

A ``CatalogStore`` keeps module definitions keyed by code and hands out
immutable :class:`ModuleCatalog` snapshots. Updates are compare-and-swap
on the module ``version``; modules are never destroyed, only deprecated.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Iterable

import structlog

from clinicflow.platform.modules.catalog import (
    ModuleCatalog,
    normalize_query,
    select_modules,
    validate_module_definition,
)
from clinicflow.platform.modules.exceptions import (
    DuplicateModuleError,
    UnknownModuleError,
    VersionConflictError,
)
from clinicflow.platform.modules.models import (
    Module,
    ModuleCode,
    ModuleFilters,
    ModuleUpdateRequest,
)

logger = structlog.get_logger(__name__)

DEFAULT_DEPRECATION_NOTICE = "Module has been deprecated"


def deprecation_patch(reason: str | None = None) -> ModuleUpdateRequest:
    """Patch applied by a soft delete."""
    return ModuleUpdateRequest(
        is_active=False,
        is_deprecated=True,
        deprecation_notice=reason or DEFAULT_DEPRECATION_NOTICE,
    )


def prepare_new_module(module: Module) -> Module:
    """Check a definition for insertion and reset its version."""
    validate_module_definition(module)
    if module.version == 1:
        return module
    return module.model_copy(update={"version": 1})


def apply_patch(current: Module, patch: ModuleUpdateRequest) -> Module:
    """Apply a patch and check the resulting definition."""
    updated = patch.apply_to(current)
    validate_module_definition(updated)
    return updated


def not_found(code: str) -> UnknownModuleError:
    return UnknownModuleError(f"Module {code} not found in catalog", module_code=code)


def version_conflict(code: str, expected: int, current: int) -> VersionConflictError:
    return VersionConflictError(
        f"Module {code} was modified concurrently (expected version {expected}, found {current})",
        module_code=code,
        expected_version=expected,
        current_version=current,
    )


class CatalogStore(ABC):
    """Async persistence for module definitions."""

    @abstractmethod
    async def find_by_code(self, code: str) -> Module | None:
        """Get a module by code or ``None``."""

    @abstractmethod
    async def find_by_codes(self, codes: Iterable[str]) -> list[Module]:
        """Get modules in input order, omitting unknown codes."""

    @abstractmethod
    async def find_all(self, filters: ModuleFilters | None = None) -> list[Module]:
        """List modules ordered by display order then code."""

    @abstractmethod
    async def search(self, query: str, filters: ModuleFilters | None = None) -> list[Module]:
        """Substring search over name, description and features."""

    @abstractmethod
    async def create(self, module: Module) -> Module:
        """Insert a module at version 1.

        Raises:
            DuplicateModuleError: If the code already exists
        """

    @abstractmethod
    async def create_many(self, modules: Iterable[Module]) -> list[Module]:
        """Insert modules, skipping codes that already exist."""

    @abstractmethod
    async def update(
        self, code: str, patch: ModuleUpdateRequest, expected_version: int
    ) -> Module:
        """Apply ``patch`` if the stored version equals ``expected_version``.

        Raises:
            UnknownModuleError: If the code does not exist
            VersionConflictError: If the stored version differs
        """

    @abstractmethod
    async def soft_delete(
        self, code: str, reason: str | None = None, expected_version: int | None = None
    ) -> Module:
        """Deactivate and deprecate a module."""

    async def exists(self, code: str) -> bool:
        return await self.find_by_code(code) is not None

    async def snapshot(self, revision: int = 0) -> ModuleCatalog:
        """Build a validated catalog from every stored module."""
        return ModuleCatalog(await self.find_all(), revision=revision)


class InMemoryCatalogStore(CatalogStore):
    """Dictionary-backed store for tests and the reference catalog."""

    def __init__(self, modules: Iterable[Module] = ()) -> None:
        self._modules: dict[ModuleCode, Module] = {}
        self._lock = asyncio.Lock()
        for module in modules:
            if module.code in self._modules:
                raise DuplicateModuleError(
                    f"Module {module.code} already exists", module_code=module.code
                )
            self._modules[module.code] = prepare_new_module(module)

    async def find_by_code(self, code: str) -> Module | None:
        return self._modules.get(ModuleCode(code))

    async def find_by_codes(self, codes: Iterable[str]) -> list[Module]:
        return [
            self._modules[ModuleCode(code)]
            for code in dict.fromkeys(codes)
            if code in self._modules
        ]

    async def find_all(self, filters: ModuleFilters | None = None) -> list[Module]:
        return select_modules(self._modules.values(), filters)

    async def search(self, query: str, filters: ModuleFilters | None = None) -> list[Module]:
        return select_modules(self._modules.values(), filters, normalize_query(query))

    async def create(self, module: Module) -> Module:
        async with self._lock:
            return self._insert(module)

    def _insert(self, module: Module) -> Module:
        if module.code in self._modules:
            raise DuplicateModuleError(
                f"Module {module.code} already exists", module_code=module.code
            )
        stored = prepare_new_module(module)
        self._modules[stored.code] = stored
        logger.info("module_store.created", module_code=stored.code)
        return stored

    async def create_many(self, modules: Iterable[Module]) -> list[Module]:
        created: list[Module] = []
        async with self._lock:
            for module in modules:
                try:
                    created.append(self._insert(module))
                except DuplicateModuleError:
                    logger.warning("module_store.duplicate_skipped", module_code=module.code)
        return created

    async def update(
        self, code: str, patch: ModuleUpdateRequest, expected_version: int
    ) -> Module:
        async with self._lock:
            return self._apply(code, patch, expected_version)

    async def soft_delete(
        self, code: str, reason: str | None = None, expected_version: int | None = None
    ) -> Module:
        async with self._lock:
            return self._apply(code, deprecation_patch(reason), expected_version)

    def _apply(
        self, code: str, patch: ModuleUpdateRequest, expected_version: int | None
    ) -> Module:
        current = self._modules.get(ModuleCode(code))
        if current is None:
            raise not_found(code)
        if expected_version is not None and current.version != expected_version:
            raise version_conflict(code, expected_version, current.version)

        updated = apply_patch(current, patch)
        self._modules[current.code] = updated
        logger.info(
            "module_store.updated",
            module_code=code,
            version=updated.version,
            fields=sorted(patch.changes()),
        )
        return updated
