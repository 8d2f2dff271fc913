"""
Entitlement computation.

Validates a requested module set, then prices it and aggregates its
permissions in activation order.
"""

from collections.abc import Iterable

import structlog

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.exceptions import ModuleSetValidationError
from clinicflow.platform.modules.models import BillingCycle, Entitlement, EntitlementPreview
from clinicflow.platform.modules.permissions import PermissionAggregator
from clinicflow.platform.modules.pricing import PricingEngine
from clinicflow.platform.modules.resolver import DependencyResolver
from clinicflow.platform.settings import PermissionEnforcement

logger = structlog.get_logger(__name__)


class EntitlementService:
    """Validate, price and grant permissions for a requested module set."""

    def __init__(
        self,
        catalog: ModuleCatalog,
        enforcement: PermissionEnforcement | None = None,
    ) -> None:
        self.catalog = catalog
        self.resolver = DependencyResolver(catalog)
        self.pricing = PricingEngine(catalog)
        self.permissions = PermissionAggregator(catalog, enforcement)

    def preview(
        self,
        requested: Iterable[str],
        cycle: BillingCycle | str = BillingCycle.MONTHLY,
    ) -> EntitlementPreview:
        """Compute the entitlement without rejecting an invalid set."""
        validation = self.resolver.validate_module_set(requested)
        return EntitlementPreview(
            validation=validation,
            pricing=self.pricing.calculate(validation.ordered_modules, cycle),
            permissions=self.permissions.permissions_for(validation.ordered_modules),
        )

    def resolve(
        self,
        requested: Iterable[str],
        cycle: BillingCycle | str = BillingCycle.MONTHLY,
    ) -> Entitlement:
        """
        Compute the entitlement for an installable module set.

        Raises:
            ModuleSetValidationError: With every problem found, if any
                module in the closure is unknown, inactive or deprecated,
                or if the dependencies form a cycle
        """
        preview = self.preview(requested, cycle)
        validation = preview.validation
        if not validation.valid:
            raise ModuleSetValidationError(
                f"Requested module set is not installable: {'; '.join(validation.errors)}",
                errors=validation.errors,
                ordered_modules=list(validation.ordered_modules),
            )

        logger.info(
            "module_entitlement.resolved",
            modules=validation.ordered_modules,
            billing_cycle=preview.pricing.billing_cycle.value,
            amount_due=preview.pricing.amount_due,
            permissions=len(preview.permissions),
        )
        return Entitlement(
            ordered_modules=validation.ordered_modules,
            pricing=preview.pricing,
            permissions=preview.permissions,
        )
