"""
Immutable module catalog snapshot.

A ``ModuleCatalog`` is built once from a list of module definitions,
checked for integrity and then shared by reference with every engine.
Construction fails with :class:`CatalogIntegrityError` rather than
dropping a broken edge.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import structlog

from clinicflow.platform.modules.exceptions import (
    CatalogIntegrityError,
    InvalidPricingError,
    ModuleValidationError,
    UnknownModuleError,
)
from clinicflow.platform.modules.models import (
    Module,
    ModuleCode,
    ModuleFilters,
    ModuleStats,
    ModuleType,
)

logger = structlog.get_logger(__name__)

DEFAULT_FEATURED_LIMIT = 6


def check_module_definition(module: Module) -> list[str]:
    """Return the rule violations of a single module definition."""
    violations: list[str] = []
    pricing = module.pricing

    if any(dep.module_code == module.code for dep in module.dependencies):
        violations.append(f"Module {module.code} depends on itself")
    if pricing.monthly_price < 0 or pricing.yearly_price < 0 or pricing.trial_days < 0:
        violations.append(f"Module {module.code} has negative pricing values")
    if pricing.yearly_price > pricing.annualized_monthly:
        violations.append(
            f"Module {module.code} yearly price {pricing.yearly_price} exceeds "
            f"twelve monthly payments ({pricing.annualized_monthly})"
        )
    if module.module_type is ModuleType.CORE and (pricing.monthly_price or pricing.yearly_price):
        violations.append(f"Core module {module.code} must not carry a price")

    return violations


def validate_module_definition(module: Module) -> None:
    """Raise the first applicable validation error for a module definition."""
    pricing = module.pricing
    if any(dep.module_code == module.code for dep in module.dependencies):
        raise ModuleValidationError(
            f"Module {module.code} cannot depend on itself",
            context={"module_code": module.code},
        )

    violations = check_module_definition(module)
    if violations:
        raise InvalidPricingError(
            violations[0],
            module_code=module.code,
            monthly_price=pricing.monthly_price,
            yearly_price=pricing.yearly_price,
        )


def _sort_key(module: Module) -> tuple[int, str]:
    return (module.display_order, module.code)


def normalize_query(query: str | None) -> str:
    """Strip a search query.

    Raises:
        ModuleValidationError: If the query is empty or blank
    """
    needle = (query or "").strip()
    if not needle:
        raise ModuleValidationError(
            "Search query cannot be empty",
            recovery_hint="Provide at least one non-whitespace character",
        )
    return needle


def select_modules(
    modules: Iterable[Module],
    filters: ModuleFilters | None = None,
    query: str | None = None,
) -> list[Module]:
    """Filter, order and paginate modules; ``query`` must already be normalized."""
    filters = filters or ModuleFilters()
    selected = sorted(
        (
            m
            for m in modules
            if filters.accepts(m) and (query is None or m.matches(query))
        ),
        key=_sort_key,
    )
    end = None if filters.limit is None else filters.offset + filters.limit
    return selected[filters.offset : end]


class ModuleCatalog:
    """Validated, read-only registry of module definitions."""

    def __init__(self, modules: Iterable[Module], revision: int = 0) -> None:
        definitions = list(modules)
        violations = self._collect_violations(definitions)
        if violations:
            logger.error(
                "module_catalog.integrity_failed",
                violations=violations,
                revision=revision,
            )
            raise CatalogIntegrityError(
                f"Module catalog failed integrity checks ({len(violations)} violations)",
                violations=violations,
            )

        self._revision = revision
        self._modules: dict[ModuleCode, Module] = {m.code: m for m in definitions}
        self._ordered: tuple[Module, ...] = tuple(sorted(definitions, key=_sort_key))

        # Reverse index of required edges, in catalog order
        self._dependents: dict[ModuleCode, list[ModuleCode]] = {}
        for module in self._ordered:
            for edge in module.edges():
                if edge.required:
                    self._dependents.setdefault(edge.to_code, []).append(edge.from_code)

        logger.debug("module_catalog.loaded", modules=len(self._modules), revision=revision)

    @staticmethod
    def _collect_violations(definitions: list[Module]) -> list[str]:
        violations: list[str] = []
        seen: set[ModuleCode] = set()
        for module in definitions:
            if module.code in seen:
                violations.append(f"Duplicate module code {module.code}")
            seen.add(module.code)
            violations.extend(check_module_definition(module))

        for module in definitions:
            for edge in module.edges():
                if edge.to_code != edge.from_code and edge.to_code not in seen:
                    violations.append(
                        f"Module {edge.from_code} depends on unknown module {edge.to_code}"
                    )
        return violations

    # ---------------------------------------------------------------
    # Container protocol
    # ---------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._ordered)

    def __contains__(self, code: object) -> bool:
        return code in self._modules

    def __repr__(self) -> str:
        return f"ModuleCatalog(modules={len(self)}, revision={self._revision})"

    @property
    def revision(self) -> int:
        """Snapshot counter, bumped by the service on every catalog change."""
        return self._revision

    @property
    def modules(self) -> tuple[Module, ...]:
        """All modules ordered by display order then code."""
        return self._ordered

    def replaced(self, module: Module) -> ModuleCatalog:
        """Return a new catalog with ``module`` added or substituted."""
        definitions = {m.code: m for m in self._ordered}
        definitions[module.code] = module
        return ModuleCatalog(definitions.values(), revision=self._revision + 1)

    # ---------------------------------------------------------------
    # Lookups
    # ---------------------------------------------------------------

    def find(self, code: str) -> Module | None:
        return self._modules.get(ModuleCode(code))

    def get_by_code(self, code: str) -> Module:
        """Get a module by code.

        Raises:
            UnknownModuleError: If the code is not in the catalog
        """
        module = self.find(code)
        if module is None:
            raise UnknownModuleError(f"Module {code} not found in catalog", module_code=code)
        return module

    def get_by_codes(self, codes: Iterable[str]) -> list[Module]:
        """Resolve codes in input order, skipping duplicates and unknown codes."""
        result: list[Module] = []
        seen: set[str] = set()
        for code in codes:
            if code in seen:
                continue
            seen.add(code)
            module = self.find(code)
            if module is not None:
                result.append(module)
        return result

    def list(self, filters: ModuleFilters | None = None) -> list[Module]:
        """List modules matching ``filters`` ordered by display order then code."""
        return select_modules(self._ordered, filters)

    def search(self, query: str, filters: ModuleFilters | None = None) -> list[Module]:
        """Case-insensitive substring search over name, description and features.

        Raises:
            ModuleValidationError: If the query is empty or blank
        """
        return select_modules(self._ordered, filters, normalize_query(query))

    # ---------------------------------------------------------------
    # Derived views
    # ---------------------------------------------------------------

    def categories(self) -> list[str]:
        """Distinct categories in catalog order."""
        return list(dict.fromkeys(m.category for m in self._ordered if m.category))

    def dependents_of(self, code: str) -> list[Module]:
        """Modules that declare ``code`` as a required dependency."""
        return [self._modules[c] for c in self._dependents.get(ModuleCode(code), [])]

    def modules_granting(self, permission: str) -> list[Module]:
        """Active modules whose grant includes ``permission``."""
        return [m for m in self._ordered if m.is_active and permission in m.permissions]

    def featured(self, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Module]:
        """Available premium modules for marketing surfaces."""
        return self.list(
            ModuleFilters(
                module_type=ModuleType.PREMIUM,
                is_active=True,
                is_deprecated=False,
                limit=limit,
            )
        )

    def stats(self) -> ModuleStats:
        counts: dict[str, int] = {}
        for module in self._ordered:
            if module.category:
                counts[module.category] = counts.get(module.category, 0) + 1

        return ModuleStats(
            total=len(self._ordered),
            core=sum(1 for m in self._ordered if m.module_type is ModuleType.CORE),
            premium=sum(1 for m in self._ordered if m.module_type is ModuleType.PREMIUM),
            active=sum(1 for m in self._ordered if m.is_active),
            deprecated=sum(1 for m in self._ordered if m.is_deprecated),
            categories=counts,
        )
