"""
Tests for recommendations and module comparison.
"""

import pytest

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.comparison import ComparisonEngine, set_delta
from clinicflow.platform.modules.definitions import (
    ANALYTICS_ADVANCED,
    BILLING_BASIC,
    CLINICAL_ADVANCED,
    CLINICAL_BASIC,
    IMAGING,
    INSURANCE,
    MARKETING,
    SCHEDULING,
    TELEDENTISTRY,
)
from clinicflow.platform.modules.exceptions import UnknownModuleError
from clinicflow.platform.modules.recommendations import RecommendationEngine

pytestmark = pytest.mark.unit


class TestRecommendations:
    """Test affinity-based suggestions."""

    def test_suggestions_in_affinity_order(self, reference_catalog):
        engine = RecommendationEngine(reference_catalog)
        suggested = engine.recommend([CLINICAL_BASIC, SCHEDULING])
        assert [m.code for m in suggested] == [
            CLINICAL_ADVANCED,
            IMAGING,
            TELEDENTISTRY,
            MARKETING,
        ]

    def test_enabled_modules_not_suggested(self, reference_catalog):
        engine = RecommendationEngine(reference_catalog)
        assert [m.code for m in engine.recommend([CLINICAL_BASIC, IMAGING])] == [
            CLINICAL_ADVANCED
        ]

    def test_billing_suggestions(self, reference_catalog):
        engine = RecommendationEngine(reference_catalog)
        assert [m.code for m in engine.recommend([BILLING_BASIC])] == [
            INSURANCE,
            ANALYTICS_ADVANCED,
        ]

    def test_no_affinity(self, reference_catalog):
        assert RecommendationEngine(reference_catalog).recommend([ANALYTICS_ADVANCED]) == []

    def test_unavailable_modules_skipped(self, reference_catalog):
        imaging = reference_catalog.get_by_code(IMAGING)
        catalog = reference_catalog.replaced(imaging.model_copy(update={"is_deprecated": True}))
        suggested = RecommendationEngine(catalog).recommend([CLINICAL_BASIC])
        assert [m.code for m in suggested] == [CLINICAL_ADVANCED]

    def test_custom_affinity(self, module_factory):
        catalog = ModuleCatalog([module_factory("A"), module_factory("B")])
        engine = RecommendationEngine(catalog, affinity={"A": ("B", "MISSING")})
        assert [m.code for m in engine.recommend(["A"])] == ["B"]


class TestSetDelta:
    """Test ordered set differences."""

    def test_split_keeps_order(self):
        delta = set_delta(["x", "y", "z"], ["z", "w", "x"])
        assert delta.only_a == ["y"]
        assert delta.only_b == ["w"]
        assert delta.common == ["x", "z"]


class TestComparison:
    """Test side-by-side comparison."""

    def test_upgrade_cost_is_b_minus_a(self, reference_catalog):
        comparison = ComparisonEngine(reference_catalog).compare(
            CLINICAL_BASIC, CLINICAL_ADVANCED
        )
        assert comparison.price_delta.monthly == 7900
        assert comparison.price_delta.yearly == 79000
        assert comparison.permission_delta.common == []
        assert comparison.feature_delta.only_a == list(comparison.module_a.features)

    def test_downgrade_is_negative(self, reference_catalog):
        comparison = ComparisonEngine(reference_catalog).compare(IMAGING, CLINICAL_BASIC)
        assert comparison.price_delta.monthly == -9900

    def test_same_price(self, reference_catalog):
        comparison = ComparisonEngine(reference_catalog).compare(IMAGING, ANALYTICS_ADVANCED)
        assert comparison.price_delta.monthly == 0
        assert comparison.price_delta.yearly == 0

    def test_shared_permissions(self, module_factory):
        catalog = ModuleCatalog(
            [
                module_factory("A", permissions=("r.read", "r.write")),
                module_factory("B", permissions=("r.read", "r.export")),
            ]
        )
        delta = ComparisonEngine(catalog).compare("A", "B").permission_delta
        assert delta.only_a == ["r.write"]
        assert delta.only_b == ["r.export"]
        assert delta.common == ["r.read"]

    def test_unknown_module(self, reference_catalog):
        with pytest.raises(UnknownModuleError):
            ComparisonEngine(reference_catalog).compare(IMAGING, "UNKNOWN")
