"""
Module set pricing.

All arithmetic is done on integer minor units. Both cycle totals are
always computed; the requested cycle only selects ``amount_due``.
"""

from collections.abc import Iterable

import structlog

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.models import (
    BillingCycle,
    ModuleCode,
    PricingLineItem,
    PricingResult,
)

logger = structlog.get_logger(__name__)


def savings_percent(savings: int, annualized_monthly: int) -> int:
    """Yearly savings as a whole percentage, rounded half up.

    Returns 0 when there is nothing to annualize.
    """
    if annualized_monthly <= 0:
        return 0
    return (200 * savings + annualized_monthly) // (2 * annualized_monthly)


class PricingEngine:
    """Aggregate monthly and yearly prices for a module set."""

    def __init__(self, catalog: ModuleCatalog) -> None:
        self.catalog = catalog

    def calculate(
        self,
        codes: Iterable[str],
        cycle: BillingCycle | str = BillingCycle.MONTHLY,
    ) -> PricingResult:
        """
        Price a module set.

        Unknown codes are skipped and repeated codes are charged once. The
        breakdown follows input order.
        """
        cycle = BillingCycle(cycle)
        requested = [ModuleCode(code) for code in codes]
        modules = self.catalog.get_by_codes(requested)

        breakdown = [
            PricingLineItem(
                code=m.code,
                name=m.name,
                monthly_price=m.pricing.monthly_price,
                yearly_price=m.pricing.yearly_price,
                usage_based=m.pricing.usage_based,
                trial_days=m.pricing.trial_days,
            )
            for m in modules
        ]
        monthly_total = sum(item.monthly_price for item in breakdown)
        yearly_total = sum(item.yearly_price for item in breakdown)
        annualized = monthly_total * 12
        savings = annualized - yearly_total

        if len(modules) != len(set(requested)):
            logger.debug(
                "module_pricing.codes_skipped",
                requested=len(requested),
                priced=len(modules),
            )

        return PricingResult(
            module_codes=requested,
            billing_cycle=cycle,
            monthly_total=monthly_total,
            yearly_total=yearly_total,
            yearly_savings=savings,
            yearly_savings_percent=savings_percent(savings, annualized),
            breakdown=breakdown,
        )

    def price_of(self, code: str, cycle: BillingCycle | str = BillingCycle.MONTHLY) -> int:
        """Price of one module for one period of ``cycle``.

        Raises:
            UnknownModuleError: If the code is not in the catalog
        """
        return self.catalog.get_by_code(code).pricing.price_for(BillingCycle(cycle))
