"""
Module catalog service.

Async facade over a :class:`CatalogStore`. Reads go through a cached
catalog snapshot; every mutation is checked against the catalog it would
produce, written through the store and then invalidates the snapshot.
"""

from collections.abc import Iterable, Mapping, MutableMapping, Sequence

from cachetools import TTLCache

from clinicflow.platform.logging import get_logger, log_audit_event
from clinicflow.platform.modules.catalog import ModuleCatalog, validate_module_definition
from clinicflow.platform.modules.comparison import ComparisonEngine
from clinicflow.platform.modules.definitions import REFERENCE_MODULES
from clinicflow.platform.modules.entitlements import EntitlementService
from clinicflow.platform.modules.exceptions import (
    CatalogIntegrityError,
    DuplicateModuleError,
    ModuleValidationError,
)
from clinicflow.platform.modules.models import (
    BillingCycle,
    DependencyCheck,
    Entitlement,
    EntitlementPreview,
    Module,
    ModuleCode,
    ModuleComparison,
    ModuleFilters,
    ModulePricing,
    ModuleSetValidation,
    ModuleStats,
    ModuleUpdateRequest,
    PricingResult,
    RemovalCheck,
)
from clinicflow.platform.modules.permissions import PermissionAggregator
from clinicflow.platform.modules.pricing import PricingEngine
from clinicflow.platform.modules.recommendations import RecommendationEngine
from clinicflow.platform.modules.resolver import DependencyResolver
from clinicflow.platform.modules.store import CatalogStore, not_found
from clinicflow.platform.settings import PermissionEnforcement, get_settings

logger = get_logger(__name__)

CATALOG_CACHE_KEY = "module_catalog:snapshot"


class ModuleService:
    """
    Catalog queries, entitlement computations and administrative changes.

    Args:
        store: Backing catalog store
        cache_ttl: Seconds a snapshot is reused, ``0`` disables caching.
            Defaults to ``settings.modules.catalog_cache_ttl``.
        enforcement: Permission check mode, defaults to settings
        affinity: Recommendation table, defaults to the reference table
    """

    def __init__(
        self,
        store: CatalogStore,
        *,
        cache_ttl: int | None = None,
        enforcement: PermissionEnforcement | None = None,
        affinity: Mapping[ModuleCode, Sequence[ModuleCode]] | None = None,
    ) -> None:
        config = get_settings().modules
        self.store = store
        self.enforcement = enforcement or config.permission_enforcement
        self.affinity = affinity
        self.default_cycle = BillingCycle(config.default_billing_cycle)
        self.featured_limit = config.featured_limit

        ttl = config.catalog_cache_ttl if cache_ttl is None else cache_ttl
        self._cache: MutableMapping[str, ModuleCatalog] | None = (
            TTLCache(maxsize=config.catalog_cache_size, ttl=ttl) if ttl > 0 else None
        )
        self._revision = 0

    # ---------------------------------------------------------------
    # Snapshot
    # ---------------------------------------------------------------

    async def get_catalog(self) -> ModuleCatalog:
        """Current catalog snapshot, loaded from the store when not cached."""
        if self._cache is not None:
            cached = self._cache.get(CATALOG_CACHE_KEY)
            if cached is not None:
                return cached

        catalog = await self.store.snapshot(revision=self._revision)
        logger.debug(
            "module_service.catalog_loaded", revision=catalog.revision, modules=len(catalog)
        )
        if self._cache is not None:
            self._cache[CATALOG_CACHE_KEY] = catalog
        return catalog

    def invalidate(self) -> None:
        """Drop the cached snapshot so the next read reloads the store."""
        self._revision += 1
        if self._cache is not None:
            self._cache.clear()

    # ---------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------

    async def get_module(self, code: str) -> Module:
        return (await self.get_catalog()).get_by_code(code)

    async def get_modules_by_codes(self, codes: Iterable[str]) -> list[Module]:
        return (await self.get_catalog()).get_by_codes(codes)

    async def module_exists(self, code: str) -> bool:
        return code in await self.get_catalog()

    async def list_modules(self, filters: ModuleFilters | None = None) -> list[Module]:
        return (await self.get_catalog()).list(filters)

    async def search_modules(
        self, query: str, filters: ModuleFilters | None = None
    ) -> list[Module]:
        return (await self.get_catalog()).search(query, filters)

    async def get_categories(self) -> list[str]:
        return (await self.get_catalog()).categories()

    async def get_stats(self) -> ModuleStats:
        return (await self.get_catalog()).stats()

    async def get_featured(self, limit: int | None = None) -> list[Module]:
        return (await self.get_catalog()).featured(limit or self.featured_limit)

    async def get_dependents(self, code: str) -> list[Module]:
        return (await self.get_catalog()).dependents_of(code)

    async def get_modules_granting(self, permission: str) -> list[Module]:
        return (await self.get_catalog()).modules_granting(permission)

    # ---------------------------------------------------------------
    # Resolution and entitlements
    # ---------------------------------------------------------------

    async def get_resolver(self) -> DependencyResolver:
        return DependencyResolver(await self.get_catalog())

    async def closure(self, code: str) -> list[ModuleCode]:
        return (await self.get_resolver()).closure(code)

    async def check_dependencies(self, enabled: Iterable[str], candidate: str) -> DependencyCheck:
        return (await self.get_resolver()).check_dependencies(enabled, candidate)

    async def ensure_can_enable(self, enabled: Iterable[str], candidate: str) -> None:
        (await self.get_resolver()).ensure_can_enable(enabled, candidate)

    async def validate_module_set(self, requested: Iterable[str]) -> ModuleSetValidation:
        return (await self.get_resolver()).validate_module_set(requested)

    async def can_remove_module(self, code: str, current: Iterable[str]) -> RemovalCheck:
        return (await self.get_resolver()).can_remove_module(code, current)

    async def ensure_can_remove(self, code: str, current: Iterable[str]) -> None:
        (await self.get_resolver()).ensure_can_remove(code, current)

    async def calculate_pricing(
        self, codes: Iterable[str], cycle: BillingCycle | str | None = None
    ) -> PricingResult:
        return PricingEngine(await self.get_catalog()).calculate(codes, cycle or self.default_cycle)

    async def get_permissions(self, codes: Iterable[str]) -> frozenset[str]:
        return self._permissions(await self.get_catalog()).permissions_for(codes)

    async def is_permitted(self, permission: str, codes: Iterable[str]) -> bool:
        return self._permissions(await self.get_catalog()).is_permitted(permission, codes)

    def _permissions(self, catalog: ModuleCatalog) -> PermissionAggregator:
        return PermissionAggregator(catalog, self.enforcement)

    async def recommend(self, enabled: Iterable[str]) -> list[Module]:
        return RecommendationEngine(await self.get_catalog(), self.affinity).recommend(enabled)

    async def compare(self, code_a: str, code_b: str) -> ModuleComparison:
        return ComparisonEngine(await self.get_catalog()).compare(code_a, code_b)

    async def resolve_entitlement(
        self, requested: Iterable[str], cycle: BillingCycle | str | None = None
    ) -> Entitlement:
        service = EntitlementService(await self.get_catalog(), self.enforcement)
        return service.resolve(requested, cycle or self.default_cycle)

    async def preview_entitlement(
        self, requested: Iterable[str], cycle: BillingCycle | str | None = None
    ) -> EntitlementPreview:
        service = EntitlementService(await self.get_catalog(), self.enforcement)
        return service.preview(requested, cycle or self.default_cycle)

    # ---------------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------------

    async def _check_candidate(self, module: Module) -> None:
        """Reject a definition that would corrupt the catalog graph."""
        validate_module_definition(module)
        current = await self.store.snapshot(revision=self._revision)
        try:
            candidate = current.replaced(module)
        except CatalogIntegrityError as exc:
            raise ModuleValidationError(
                f"Module {module.code} would corrupt the catalog: {'; '.join(exc.violations)}",
                context={"module_code": module.code, "violations": exc.violations},
                recovery_hint="Create missing dependencies first",
            ) from exc
        DependencyResolver(candidate).ensure_acyclic()

    async def create_module(self, module: Module, actor: str | None = None) -> Module:
        """
        Add a module to the catalog.

        Raises:
            DuplicateModuleError: If the code already exists
            ModuleValidationError: If a dependency target is unknown or
                the definition breaks a pricing rule
            DependencyCycleError: If the new edges close a cycle
        """
        if await self.store.exists(module.code):
            raise DuplicateModuleError(
                f"Module {module.code} already exists", module_code=module.code
            )
        await self._check_candidate(module)

        created = await self.store.create(module)
        self.invalidate()
        log_audit_event("module.created", resource_id=created.code, actor=actor)
        return created

    async def seed_catalog(
        self, modules: Iterable[Module] = REFERENCE_MODULES, actor: str | None = None
    ) -> list[Module]:
        """Insert catalog definitions, skipping codes that already exist."""
        definitions = list(modules)
        created = await self.store.create_many(definitions)
        self.invalidate()

        logger.info(
            "module_service.catalog_seeded",
            requested=len(definitions),
            created=len(created),
        )
        log_audit_event(
            "catalog.seeded",
            actor=actor,
            created=[m.code for m in created],
            skipped=len(definitions) - len(created),
        )
        return created

    async def update_module(
        self,
        code: str,
        patch: ModuleUpdateRequest,
        expected_version: int,
        actor: str | None = None,
    ) -> Module:
        """
        Apply a partial update conditioned on ``expected_version``.

        Raises:
            UnknownModuleError: If the code does not exist
            VersionConflictError: If the module changed since it was read
            DependencyCycleError: If new dependencies close a cycle
        """
        current = await self.store.find_by_code(code)
        if current is not None:
            await self._check_candidate(patch.apply_to(current))

        updated = await self.store.update(code, patch, expected_version)
        self.invalidate()
        log_audit_event(
            "module.updated",
            resource_id=updated.code,
            actor=actor,
            version=updated.version,
            fields=sorted(patch.changes()),
        )
        return updated

    async def upsert_module(self, module: Module, actor: str | None = None) -> Module:
        """Create ``module`` or overwrite the stored definition with the same code."""
        current = await self.store.find_by_code(module.code)
        if current is None:
            return await self.create_module(module, actor=actor)

        patch = ModuleUpdateRequest(**module.model_dump(exclude={"code", "version"}))
        return await self.update_module(module.code, patch, current.version, actor=actor)

    async def update_pricing(
        self,
        code: str,
        pricing: ModulePricing,
        expected_version: int | None = None,
        actor: str | None = None,
    ) -> Module:
        current = await self._require(code)
        return await self.update_module(
            code,
            ModuleUpdateRequest(pricing=pricing),
            current.version if expected_version is None else expected_version,
            actor=actor,
        )

    async def add_permission(self, code: str, permission: str, actor: str | None = None) -> Module:
        current = await self._require(code)
        if permission in current.permissions:
            return current
        return await self._edit_grants(
            current, permissions=current.permissions + (permission,), actor=actor
        )

    async def remove_permission(
        self, code: str, permission: str, actor: str | None = None
    ) -> Module:
        current = await self._require(code)
        if permission not in current.permissions:
            return current
        kept = tuple(p for p in current.permissions if p != permission)
        return await self._edit_grants(current, permissions=kept, actor=actor)

    async def add_feature(self, code: str, feature: str, actor: str | None = None) -> Module:
        current = await self._require(code)
        if feature in current.features:
            return current
        return await self._edit_grants(current, features=current.features + (feature,), actor=actor)

    async def remove_feature(self, code: str, feature: str, actor: str | None = None) -> Module:
        current = await self._require(code)
        if feature not in current.features:
            return current
        kept = tuple(f for f in current.features if f != feature)
        return await self._edit_grants(current, features=kept, actor=actor)

    async def _require(self, code: str) -> Module:
        current = await self.store.find_by_code(code)
        if current is None:
            raise not_found(code)
        return current

    async def _edit_grants(
        self, current: Module, actor: str | None = None, **changes: tuple[str, ...]
    ) -> Module:
        return await self.update_module(
            current.code, ModuleUpdateRequest(**changes), current.version, actor=actor
        )

    async def soft_delete_module(
        self,
        code: str,
        reason: str | None = None,
        expected_version: int | None = None,
        actor: str | None = None,
    ) -> Module:
        """Deactivate and deprecate a module. Existing closures still resolve it."""
        deleted = await self.store.soft_delete(code, reason, expected_version)
        self.invalidate()
        log_audit_event(
            "module.deprecated",
            resource_id=deleted.code,
            actor=actor,
            reason=deleted.deprecation_notice,
        )
        return deleted

    async def activate_module(
        self,
        code: str,
        expected_version: int | None = None,
        restore: bool = False,
        actor: str | None = None,
    ) -> Module:
        """Mark a module active; ``restore`` also lifts a deprecation."""
        patch = (
            ModuleUpdateRequest(is_active=True, is_deprecated=False, deprecation_notice=None)
            if restore
            else ModuleUpdateRequest(is_active=True)
        )
        return await self._set_lifecycle(code, patch, expected_version, "module.activated", actor)

    async def deactivate_module(
        self, code: str, expected_version: int | None = None, actor: str | None = None
    ) -> Module:
        patch = ModuleUpdateRequest(is_active=False)
        return await self._set_lifecycle(
            code, patch, expected_version, "module.deactivated", actor
        )

    async def _set_lifecycle(
        self,
        code: str,
        patch: ModuleUpdateRequest,
        expected_version: int | None,
        action: str,
        actor: str | None,
    ) -> Module:
        if expected_version is None:
            expected_version = (await self._require(code)).version

        updated = await self.store.update(code, patch, expected_version)
        self.invalidate()
        log_audit_event(action, resource_id=updated.code, actor=actor, version=updated.version)
        return updated
