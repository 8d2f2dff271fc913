"""
Feature module models.

Pydantic models for catalog entries and for the results produced by the
resolution, pricing, permission and comparison engines. All monetary
values are integers in the smallest currency unit (cents).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, NewType

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# Opaque, catalog-defined identifier. New codes need no code change.
ModuleCode = NewType("ModuleCode", str)


class ModuleType(str, Enum):
    """Commercial kind of a module."""

    CORE = "core"  # Included in the base subscription, always free
    PREMIUM = "premium"  # Paid add-on


class ModuleStatus(str, Enum):
    """Lifecycle state derived from the active/deprecated flags."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DEPRECATED = "deprecated"


class BillingCycle(str, Enum):
    """Billing cycle used to pick the amount due."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


class CatalogModel(BaseModel):
    """Base model for immutable catalog values."""

    model_config = ConfigDict(from_attributes=True, frozen=True)


class ResultModel(BaseModel):
    """Base model for engine results."""

    model_config = ConfigDict(from_attributes=True)


# ============================================================
# Catalog entries
# ============================================================


class ModulePricing(CatalogModel):
    """Per-module pricing in minor units."""

    monthly_price: int = Field(0, ge=0, description="Monthly price in cents")
    yearly_price: int = Field(0, ge=0, description="Yearly price in cents")
    usage_based: bool = Field(False, description="Metered charges may apply on top")
    trial_days: int = Field(0, ge=0, description="Free trial length")

    @property
    def annualized_monthly(self) -> int:
        """Cost of paying monthly for a full year."""
        return self.monthly_price * 12

    def price_for(self, cycle: "BillingCycle") -> int:
        """Price charged for one period of ``cycle``."""
        if cycle is BillingCycle.YEARLY:
            return self.yearly_price
        return self.monthly_price


class ModuleDependency(CatalogModel):
    """Directed dependency on another module."""

    module_code: ModuleCode = Field(min_length=1)
    optional: bool = False
    reason: str = ""

    @property
    def required(self) -> bool:
        return not self.optional


@dataclass(frozen=True)
class DependencyEdge:
    """Edge of the module dependency graph."""

    from_code: ModuleCode
    to_code: ModuleCode
    required: bool


class Module(CatalogModel):
    """A subscribable feature module (catalog node)."""

    code: ModuleCode = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    module_type: ModuleType = ModuleType.PREMIUM
    category: str = "General"
    display_order: int = 0
    icon: str | None = None
    marketing_description: str | None = None

    features: tuple[str, ...] = ()
    permissions: tuple[str, ...] = ()
    pricing: ModulePricing = Field(default_factory=ModulePricing)
    dependencies: tuple[ModuleDependency, ...] = ()

    is_active: bool = True
    is_deprecated: bool = False
    deprecation_notice: str | None = None

    version: int = Field(1, ge=1)

    @field_validator("permissions", "features")
    @classmethod
    def dedupe(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Drop repeated entries, keeping declaration order."""
        return tuple(dict.fromkeys(v))

    @property
    def status(self) -> ModuleStatus:
        if self.is_deprecated:
            return ModuleStatus.DEPRECATED
        if self.is_active:
            return ModuleStatus.ACTIVE
        return ModuleStatus.INACTIVE

    @property
    def is_available(self) -> bool:
        """Whether new tenants may subscribe to this module."""
        return self.is_active and not self.is_deprecated

    @property
    def is_core(self) -> bool:
        return self.module_type is ModuleType.CORE

    @property
    def required_dependencies(self) -> tuple[ModuleCode, ...]:
        return tuple(d.module_code for d in self.dependencies if d.required)

    @property
    def optional_dependencies(self) -> tuple[ModuleCode, ...]:
        return tuple(d.module_code for d in self.dependencies if d.optional)

    def edges(self) -> list[DependencyEdge]:
        """Outgoing dependency edges in declaration order."""
        return [DependencyEdge(self.code, d.module_code, d.required) for d in self.dependencies]

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name, description or any feature."""
        needle = query.casefold()
        if needle in self.name.casefold() or needle in self.description.casefold():
            return True
        return any(needle in feature.casefold() for feature in self.features)


class ModuleFilters(BaseModel):
    """Filters for catalog listing and search. ``None`` disables a filter."""

    module_type: ModuleType | None = None
    category: str | None = None
    is_active: bool | None = None
    is_deprecated: bool | None = None
    offset: int = Field(0, ge=0)
    limit: int | None = Field(None, ge=1)

    def accepts(self, module: Module) -> bool:
        if self.module_type is not None and module.module_type is not self.module_type:
            return False
        if self.category is not None and module.category != self.category:
            return False
        if self.is_active is not None and module.is_active != self.is_active:
            return False
        if self.is_deprecated is not None and module.is_deprecated != self.is_deprecated:
            return False
        return True


class ModuleUpdateRequest(BaseModel):
    """Partial update of a catalog entry. Unset fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    module_type: ModuleType | None = None
    category: str | None = None
    display_order: int | None = None
    icon: str | None = None
    marketing_description: str | None = None
    features: tuple[str, ...] | None = None
    permissions: tuple[str, ...] | None = None
    pricing: ModulePricing | None = None
    dependencies: tuple[ModuleDependency, ...] | None = None
    is_active: bool | None = None
    is_deprecated: bool | None = None
    deprecation_notice: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)

    def apply_to(self, module: Module) -> Module:
        """Return the updated module with its version bumped."""
        data = module.model_dump()
        data.update(self.changes())
        data["version"] = module.version + 1
        return Module.model_validate(data)


# ============================================================
# Engine results
# ============================================================


class DependencyCheck(ResultModel):
    """Result of checking a single candidate against an enabled set."""

    module_code: ModuleCode
    valid: bool
    missing_dependencies: list[ModuleCode] = Field(default_factory=list)
    required_modules: list[ModuleCode] = Field(default_factory=list)


class ModuleSetIssueKind(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    DEPRECATED = "deprecated"
    CYCLE = "cycle"


class ModuleSetIssue(ResultModel):
    module_code: ModuleCode
    kind: ModuleSetIssueKind
    message: str


class ModuleSetValidation(ResultModel):
    """Validated union of closures for a requested module set."""

    requested: list[ModuleCode] = Field(default_factory=list)
    ordered_modules: list[ModuleCode] = Field(default_factory=list)
    issues: list[ModuleSetIssue] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues]

    @computed_field  # type: ignore[misc]
    @property
    def valid(self) -> bool:
        return not self.issues


class RemovalCheck(ResultModel):
    module_code: ModuleCode
    can_remove: bool
    blocked_by: list[ModuleCode] = Field(default_factory=list)
    reason: str | None = None


class PricingLineItem(ResultModel):
    code: ModuleCode
    name: str
    monthly_price: int
    yearly_price: int
    usage_based: bool = False
    trial_days: int = 0


class PricingResult(ResultModel):
    """Aggregate price of a module set."""

    module_codes: list[ModuleCode]
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    monthly_total: int = 0
    yearly_total: int = 0
    yearly_savings: int = 0
    yearly_savings_percent: int = 0
    breakdown: list[PricingLineItem] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def amount_due(self) -> int:
        """Amount charged per period of the selected cycle."""
        if self.billing_cycle is BillingCycle.YEARLY:
            return self.yearly_total
        return self.monthly_total


class SetDelta(ResultModel):
    only_a: list[str] = Field(default_factory=list)
    only_b: list[str] = Field(default_factory=list)
    common: list[str] = Field(default_factory=list)


class PriceDelta(ResultModel):
    """Price of B minus price of A."""

    monthly: int
    yearly: int


class ModuleComparison(ResultModel):
    module_a: Module
    module_b: Module
    price_delta: PriceDelta
    feature_delta: SetDelta
    permission_delta: SetDelta


class Entitlement(ResultModel):
    """Price and permission grant for a validated module set."""

    ordered_modules: list[ModuleCode]
    pricing: PricingResult
    permissions: frozenset[str]


class EntitlementPreview(ResultModel):
    """Entitlement computed without rejecting an invalid set."""

    validation: ModuleSetValidation
    pricing: PricingResult
    permissions: frozenset[str]


class ModuleStats(ResultModel):
    total: int
    core: int
    premium: int
    active: int
    deprecated: int
    categories: dict[str, int] = Field(default_factory=dict)
