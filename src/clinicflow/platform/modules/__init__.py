"""
Feature module catalog.

Dependency resolution, pricing, permission aggregation, recommendations
and comparison over an immutable catalog snapshot, plus async stores and
a service facade for catalog administration.
"""

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.comparison import ComparisonEngine
from clinicflow.platform.modules.definitions import (
    DEFAULT_AFFINITY,
    REFERENCE_MODULES,
    build_default_catalog,
)
from clinicflow.platform.modules.entitlements import EntitlementService
from clinicflow.platform.modules.exceptions import (
    CatalogIntegrityError,
    DependencyCycleError,
    DuplicateModuleError,
    InvalidPricingError,
    ModuleCatalogError,
    ModuleConflictError,
    ModuleDependencyError,
    ModuleSetValidationError,
    ModuleValidationError,
    UnknownModuleError,
    VersionConflictError,
)
from clinicflow.platform.modules.models import (
    BillingCycle,
    DependencyCheck,
    DependencyEdge,
    Entitlement,
    EntitlementPreview,
    Module,
    ModuleCode,
    ModuleComparison,
    ModuleDependency,
    ModuleFilters,
    ModulePricing,
    ModuleSetIssue,
    ModuleSetIssueKind,
    ModuleSetValidation,
    ModuleStats,
    ModuleStatus,
    ModuleType,
    ModuleUpdateRequest,
    PriceDelta,
    PricingLineItem,
    PricingResult,
    RemovalCheck,
    SetDelta,
)
from clinicflow.platform.modules.permissions import PermissionAggregator
from clinicflow.platform.modules.pricing import PricingEngine
from clinicflow.platform.modules.recommendations import RecommendationEngine
from clinicflow.platform.modules.resolver import DependencyResolver
from clinicflow.platform.modules.service import ModuleService
from clinicflow.platform.modules.store import CatalogStore, InMemoryCatalogStore

__all__ = [
    # Catalog
    "ModuleCatalog",
    "REFERENCE_MODULES",
    "DEFAULT_AFFINITY",
    "build_default_catalog",
    # Engines
    "DependencyResolver",
    "PricingEngine",
    "PermissionAggregator",
    "RecommendationEngine",
    "ComparisonEngine",
    "EntitlementService",
    # Persistence and service
    "CatalogStore",
    "InMemoryCatalogStore",
    "ModuleService",
    # Models
    "BillingCycle",
    "DependencyCheck",
    "DependencyEdge",
    "Entitlement",
    "EntitlementPreview",
    "Module",
    "ModuleCode",
    "ModuleComparison",
    "ModuleDependency",
    "ModuleFilters",
    "ModulePricing",
    "ModuleSetIssue",
    "ModuleSetIssueKind",
    "ModuleSetValidation",
    "ModuleStats",
    "ModuleStatus",
    "ModuleType",
    "ModuleUpdateRequest",
    "PriceDelta",
    "PricingLineItem",
    "PricingResult",
    "RemovalCheck",
    "SetDelta",
    # Exceptions
    "ModuleCatalogError",
    "UnknownModuleError",
    "ModuleValidationError",
    "InvalidPricingError",
    "CatalogIntegrityError",
    "ModuleSetValidationError",
    "ModuleConflictError",
    "DuplicateModuleError",
    "VersionConflictError",
    "ModuleDependencyError",
    "DependencyCycleError",
]
