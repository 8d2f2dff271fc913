"""
Tests for entitlement computation.
"""

import pytest

from clinicflow.platform.modules.definitions import (
    CLINICAL_BASIC,
    IMAGING,
    MARKETING,
    PATIENT_MANAGEMENT,
)
from clinicflow.platform.modules.entitlements import EntitlementService
from clinicflow.platform.modules.exceptions import ModuleSetValidationError
from clinicflow.platform.modules.models import BillingCycle
from clinicflow.platform.settings import PermissionEnforcement

pytestmark = pytest.mark.unit


@pytest.fixture
def entitlements(reference_catalog) -> EntitlementService:
    return EntitlementService(reference_catalog, PermissionEnforcement.ENFORCE)


class TestResolve:
    """Test resolving installable module sets."""

    def test_resolves_closure(self, entitlements):
        entitlement = entitlements.resolve([IMAGING])

        assert entitlement.ordered_modules == [PATIENT_MANAGEMENT, CLINICAL_BASIC, IMAGING]
        assert entitlement.pricing.monthly_total == 9900
        assert entitlement.pricing.amount_due == 9900
        assert "imaging.capture" in entitlement.permissions
        assert "patient.profile.read" in entitlement.permissions
        assert "clinical.notes.create" in entitlement.permissions

    def test_pricing_covers_closure(self, entitlements):
        entitlement = entitlements.resolve([IMAGING, MARKETING], BillingCycle.YEARLY)
        assert entitlement.pricing.module_codes == entitlement.ordered_modules
        assert entitlement.pricing.amount_due == 99000 + 89000

    def test_rejects_unknown_module(self, entitlements):
        with pytest.raises(ModuleSetValidationError) as exc_info:
            entitlements.resolve(["UNKNOWN"])
        assert exc_info.value.errors == ["Module UNKNOWN not found in catalog"]
        assert exc_info.value.error_code == "MODULE_SET_INVALID"

    def test_rejects_deprecated_dependency(self, reference_catalog):
        basic = reference_catalog.get_by_code(CLINICAL_BASIC)
        catalog = reference_catalog.replaced(
            basic.model_copy(update={"is_deprecated": True, "deprecation_notice": "Retired"})
        )
        with pytest.raises(ModuleSetValidationError) as exc_info:
            EntitlementService(catalog, PermissionEnforcement.ENFORCE).resolve([IMAGING])
        assert exc_info.value.errors == ["Module CLINICAL_BASIC is deprecated: Retired"]
        assert exc_info.value.context["ordered_modules"] == [
            PATIENT_MANAGEMENT,
            CLINICAL_BASIC,
            IMAGING,
        ]

    def test_rejects_cycle(self, cyclic_catalog):
        with pytest.raises(ModuleSetValidationError, match="Dependency cycle detected"):
            EntitlementService(cyclic_catalog, PermissionEnforcement.ENFORCE).resolve(["A"])


class TestPreview:
    """Test previews of possibly invalid sets."""

    def test_preview_reports_without_raising(self, entitlements):
        preview = entitlements.preview(["UNKNOWN", IMAGING])
        assert not preview.validation.valid
        assert preview.pricing.monthly_total == 9900
        assert "imaging.capture" in preview.permissions

    def test_preview_of_valid_set(self, entitlements):
        preview = entitlements.preview([MARKETING], "yearly")
        assert preview.validation.valid
        assert preview.pricing.amount_due == 89000
