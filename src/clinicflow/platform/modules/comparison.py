"""Side-by-side module comparison for upgrade and downgrade decisions."""

from collections.abc import Sequence

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.models import ModuleComparison, PriceDelta, SetDelta


def set_delta(a: Sequence[str], b: Sequence[str]) -> SetDelta:
    """Split two sequences into only-A, only-B and common, keeping A then B order."""
    a_set, b_set = set(a), set(b)
    return SetDelta(
        only_a=[item for item in a if item not in b_set],
        only_b=[item for item in b if item not in a_set],
        common=[item for item in a if item in b_set],
    )


class ComparisonEngine:
    def __init__(self, catalog: ModuleCatalog) -> None:
        self.catalog = catalog

    def compare(self, code_a: str, code_b: str) -> ModuleComparison:
        """
        Compare module B against module A.

        Price deltas are B minus A, so a positive value is an upgrade cost.

        Raises:
            UnknownModuleError: If either code is not in the catalog
        """
        module_a = self.catalog.get_by_code(code_a)
        module_b = self.catalog.get_by_code(code_b)

        return ModuleComparison(
            module_a=module_a,
            module_b=module_b,
            price_delta=PriceDelta(
                monthly=module_b.pricing.monthly_price - module_a.pricing.monthly_price,
                yearly=module_b.pricing.yearly_price - module_a.pricing.yearly_price,
            ),
            feature_delta=set_delta(module_a.features, module_b.features),
            permission_delta=set_delta(module_a.permissions, module_b.permissions),
        )
