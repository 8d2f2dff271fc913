"""
Reference module catalog.

The module definitions shipped with the platform and the affinity table
used for recommendations. ``build_default_catalog()`` turns them into a
validated :class:`~clinicflow.platform.modules.catalog.ModuleCatalog`;
``seed_catalog`` on the service writes them to a store.
"""

from collections.abc import Mapping

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.models import (
    Module,
    ModuleCode,
    ModuleDependency,
    ModulePricing,
    ModuleType,
)

# Reference module codes. Catalogs may define any other code.
SCHEDULING = ModuleCode("SCHEDULING")
PATIENT_MANAGEMENT = ModuleCode("PATIENT_MANAGEMENT")
CLINICAL_BASIC = ModuleCode("CLINICAL_BASIC")
BILLING_BASIC = ModuleCode("BILLING_BASIC")
CLINICAL_ADVANCED = ModuleCode("CLINICAL_ADVANCED")
IMAGING = ModuleCode("IMAGING")
INVENTORY = ModuleCode("INVENTORY")
MARKETING = ModuleCode("MARKETING")
INSURANCE = ModuleCode("INSURANCE")
TELEDENTISTRY = ModuleCode("TELEDENTISTRY")
ANALYTICS_ADVANCED = ModuleCode("ANALYTICS_ADVANCED")
MULTI_LOCATION = ModuleCode("MULTI_LOCATION")


def _requires(code: ModuleCode, reason: str) -> ModuleDependency:
    return ModuleDependency(module_code=code, optional=False, reason=reason)


def _suggests(code: ModuleCode, reason: str) -> ModuleDependency:
    return ModuleDependency(module_code=code, optional=True, reason=reason)


def _premium(monthly: int, yearly: int, usage_based: bool = False) -> ModulePricing:
    return ModulePricing(
        monthly_price=monthly, yearly_price=yearly, usage_based=usage_based, trial_days=14
    )


# ============================================================
# Core modules (included in the base subscription)
# ============================================================

_CORE_MODULES: tuple[Module, ...] = (
    Module(
        code=SCHEDULING,
        name="Appointment Scheduling",
        description="Complete appointment management with calendar, reminders, and waitlist",
        module_type=ModuleType.CORE,
        category="Operations",
        icon="calendar",
        display_order=1,
        features=(
            "Multi-provider calendar view",
            "Drag-and-drop appointment scheduling",
            "Online patient booking portal",
            "Automated appointment reminders (SMS/Email)",
            "Waitlist management",
            "Recurring appointments",
            "Appointment conflict detection",
            "No-show tracking",
            "Block scheduling for time off",
            "Treatment duration templates",
        ),
        permissions=(
            "scheduling.appointment.create",
            "scheduling.appointment.read",
            "scheduling.appointment.update",
            "scheduling.appointment.delete",
            "scheduling.appointment.confirm",
            "scheduling.appointment.cancel",
            "scheduling.appointment.reschedule",
            "scheduling.calendar.view",
            "scheduling.availability.manage",
            "scheduling.waitlist.view",
            "scheduling.waitlist.manage",
            "scheduling.block.create",
            "scheduling.block.manage",
            "scheduling.reminder.configure",
            "scheduling.online-booking.configure",
        ),
        marketing_description=(
            "Streamline practice operations with intelligent appointment scheduling, "
            "automated reminders and smart waitlist management."
        ),
    ),
    Module(
        code=PATIENT_MANAGEMENT,
        name="Patient Management (Patient360)",
        description="Comprehensive patient profiles, demographics, and relationship management",
        module_type=ModuleType.CORE,
        category="Patient Care",
        icon="users",
        display_order=2,
        features=(
            "Complete patient demographics",
            "Medical history tracking",
            "Allergy and medication tracking",
            "Insurance information management",
            "Emergency contact management",
            "Guardian/dependent relationships",
            "Patient consent management",
            "Patient document uploads",
            "Patient tags and segmentation",
            "Duplicate patient detection",
            "Patient merge capabilities",
        ),
        permissions=(
            "patient.profile.create",
            "patient.profile.read",
            "patient.profile.update",
            "patient.profile.delete",
            "patient.medical-history.read",
            "patient.medical-history.update",
            "patient.insurance.read",
            "patient.insurance.update",
            "patient.documents.upload",
            "patient.documents.view",
            "patient.documents.delete",
            "patient.relationships.manage",
            "patient.consent.manage",
            "patient.search",
            "patient.merge",
            "patient.communications.view",
            "patient.tags.manage",
        ),
        marketing_description=(
            "Build stronger patient relationships with complete patient history, "
            "preferences and interactions in one unified view."
        ),
    ),
    Module(
        code=CLINICAL_BASIC,
        name="Clinical Documentation (Basic)",
        description="Essential clinical notes, treatment plans, and dental charting",
        module_type=ModuleType.CORE,
        category="Clinical",
        icon="clipboard-medical",
        display_order=3,
        features=(
            "Digital dental charting (Odontogram)",
            "Clinical notes and SOAP notes",
            "Treatment plan creation",
            "Procedure code library",
            "Tooth-level charting",
            "Perio charting (basic)",
            "Clinical alerts and flags",
            "Diagnosis recording",
            "Clinical templates",
            "Treatment acceptance tracking",
        ),
        permissions=(
            "clinical.chart.read",
            "clinical.chart.update",
            "clinical.notes.create",
            "clinical.notes.read",
            "clinical.notes.update",
            "clinical.treatment-plan.create",
            "clinical.treatment-plan.read",
            "clinical.treatment-plan.update",
            "clinical.treatment-plan.present",
            "clinical.treatment-plan.accept",
            "clinical.procedure.record",
            "clinical.diagnosis.create",
            "clinical.alerts.manage",
            "clinical.templates.use",
        ),
        dependencies=(
            _requires(PATIENT_MANAGEMENT, "Clinical documentation requires patient profiles"),
        ),
        marketing_description=(
            "Digital charting, treatment planning and clinical notes designed for "
            "modern dental practices."
        ),
    ),
    Module(
        code=BILLING_BASIC,
        name="Billing & Payments (Basic)",
        description="Essential billing, invoicing, and payment processing",
        module_type=ModuleType.CORE,
        category="Financial",
        icon="dollar-sign",
        display_order=4,
        features=(
            "Invoice generation",
            "Payment processing (card, cash, check)",
            "Payment plans and installments",
            "Account statements",
            "Outstanding balance tracking",
            "Refund processing",
            "Write-off management",
            "Basic financial reports",
            "Partial payment support",
            "Payment reminders",
        ),
        permissions=(
            "billing.invoice.create",
            "billing.invoice.read",
            "billing.invoice.send",
            "billing.payment.process",
            "billing.payment.record",
            "billing.payment.refund",
            "billing.payment-plan.create",
            "billing.payment-plan.manage",
            "billing.statement.generate",
            "billing.adjustment.apply",
            "billing.discount.apply",
            "billing.write-off.process",
            "billing.reports.basic",
        ),
        dependencies=(_requires(PATIENT_MANAGEMENT, "Billing requires patient profiles"),),
        marketing_description=(
            "Accept payments, create payment plans and track outstanding balances effortlessly."
        ),
    ),
)


# ============================================================
# Premium modules (paid add-ons)
# ============================================================

_PREMIUM_MODULES: tuple[Module, ...] = (
    Module(
        code=CLINICAL_ADVANCED,
        name="Advanced Clinical Features",
        description=(
            "Advanced perio charting, implant planning, treatment simulation, "
            "and clinical analytics"
        ),
        category="Clinical",
        icon="microscope",
        display_order=10,
        features=(
            "Advanced periodontal charting",
            "Implant planning and tracking",
            "Orthodontic treatment tracking",
            "Endodontic charting",
            "Treatment simulation and visualization",
            "Clinical decision support",
            "Risk assessment tools",
            "Outcome tracking and analytics",
            "Clinical benchmarking",
        ),
        permissions=(
            "clinical.advanced.perio-chart",
            "clinical.advanced.implant-planning",
            "clinical.advanced.orthodontic-tracking",
            "clinical.advanced.endodontic-chart",
            "clinical.advanced.treatment-simulation",
            "clinical.advanced.decision-support",
            "clinical.advanced.risk-assessment",
            "clinical.advanced.quality-metrics",
            "clinical.advanced.outcomes-tracking",
            "clinical.advanced.protocols",
            "clinical.advanced.benchmarking",
        ),
        pricing=_premium(7900, 79000),
        dependencies=(
            _requires(
                CLINICAL_BASIC,
                "Advanced clinical features require basic clinical documentation",
            ),
        ),
        marketing_description=(
            "Specialty tools and analytics for multi-specialty practices and "
            "evidence-based treatment planning."
        ),
    ),
    Module(
        code=IMAGING,
        name="Imaging & Radiology",
        description="Digital imaging, X-rays, CBCT, intraoral cameras, and DICOM integration",
        category="Clinical",
        icon="x-ray",
        display_order=11,
        features=(
            "Digital X-ray integration",
            "Intraoral camera integration",
            "CBCT/3D imaging support",
            "Image annotation and markup",
            "Image comparison (side-by-side)",
            "Tooth-level image attachment",
            "DICOM viewer",
            "Image sharing with patients",
            "Radiation dose tracking",
            "Cloud-based image storage",
        ),
        permissions=(
            "imaging.capture",
            "imaging.view",
            "imaging.annotate",
            "imaging.compare",
            "imaging.enhance",
            "imaging.attach-to-chart",
            "imaging.share",
            "imaging.export",
            "imaging.delete",
            "imaging.dicom.view",
            "imaging.dicom.import",
            "imaging.protocols.configure",
            "imaging.dose.track",
            "imaging.qc.perform",
        ),
        pricing=_premium(9900, 99000),
        dependencies=(
            _requires(CLINICAL_BASIC, "Imaging must be attached to clinical records"),
            _requires(PATIENT_MANAGEMENT, "Images are associated with patient records"),
        ),
        marketing_description=(
            "Integrate digital sensors, enhance diagnostics and improve patient "
            "communication with visual aids."
        ),
    ),
    Module(
        code=INVENTORY,
        name="Inventory Management",
        description="Comprehensive inventory tracking, ordering, and supplier management",
        category="Operations",
        icon="boxes",
        display_order=12,
        features=(
            "Product catalog management",
            "Real-time stock tracking",
            "Low stock alerts and notifications",
            "Automatic reorder points",
            "Purchase order management",
            "Supplier management",
            "Expiration date tracking",
            "Batch/lot tracking",
            "Usage tracking per procedure",
            "Supplier performance analytics",
        ),
        permissions=(
            "inventory.product.create",
            "inventory.product.read",
            "inventory.product.update",
            "inventory.product.delete",
            "inventory.stock.view",
            "inventory.stock.adjust",
            "inventory.stock.transfer",
            "inventory.purchase-order.create",
            "inventory.purchase-order.approve",
            "inventory.purchase-order.receive",
            "inventory.supplier.manage",
            "inventory.alerts.configure",
            "inventory.reports.view",
            "inventory.usage.track",
        ),
        pricing=_premium(6900, 69000),
        marketing_description=(
            "Automate inventory management with smart reordering, supplier tracking "
            "and real-time stock visibility."
        ),
    ),
    Module(
        code=MARKETING,
        name="Marketing & Patient Engagement",
        description="Marketing campaigns, patient recalls, newsletters, and engagement automation",
        category="Growth",
        icon="megaphone",
        display_order=13,
        features=(
            "Automated recall campaigns",
            "Reactivation campaigns",
            "Email marketing",
            "SMS marketing",
            "Newsletter builder and distribution",
            "Patient segmentation",
            "Campaign analytics and ROI",
            "Referral program management",
            "Online review requests",
            "Lead capture forms",
        ),
        permissions=(
            "marketing.campaign.create",
            "marketing.campaign.manage",
            "marketing.campaign.send",
            "marketing.campaign.analytics",
            "marketing.recall.configure",
            "marketing.recall.send",
            "marketing.newsletter.create",
            "marketing.newsletter.send",
            "marketing.segment.create",
            "marketing.segment.manage",
            "marketing.referral.manage",
            "marketing.review-request.send",
            "marketing.landing-page.create",
            "marketing.lead.manage",
        ),
        # SMS and email volume is metered
        pricing=_premium(8900, 89000, usage_based=True),
        dependencies=(
            _requires(PATIENT_MANAGEMENT, "Marketing campaigns target patient records"),
        ),
        marketing_description=(
            "Re-engage dormant patients, automate recalls and drive new patient "
            "acquisition with data-driven campaigns."
        ),
    ),
    Module(
        code=INSURANCE,
        name="Insurance & Claims Management",
        description=(
            "Insurance verification, claims submission, ERA/EOB processing, "
            "and eligibility checks"
        ),
        category="Financial",
        icon="shield-check",
        display_order=14,
        features=(
            "Real-time insurance eligibility verification",
            "Electronic claims submission (ADA 2019)",
            "ERA (Electronic Remittance Advice) processing",
            "EOB (Explanation of Benefits) management",
            "Claim status tracking",
            "Pre-authorization management",
            "Secondary insurance billing",
            "Fee schedule management by plan",
            "Estimated patient portion calculation",
            "Clearinghouse integration",
        ),
        permissions=(
            "insurance.eligibility.check",
            "insurance.claim.create",
            "insurance.claim.submit",
            "insurance.claim.track",
            "insurance.claim.resubmit",
            "insurance.era.process",
            "insurance.eob.view",
            "insurance.pre-auth.create",
            "insurance.pre-auth.track",
            "insurance.plan.manage",
            "insurance.fee-schedule.manage",
            "insurance.estimate.calculate",
            "insurance.attachment.add",
            "insurance.reports.view",
        ),
        pricing=_premium(12900, 129000),
        dependencies=(
            _requires(BILLING_BASIC, "Insurance claims are part of the billing workflow"),
            _requires(
                PATIENT_MANAGEMENT, "Insurance information is stored with patient profiles"
            ),
        ),
        marketing_description=(
            "Maximize reimbursements and reduce claim denials from eligibility checks "
            "to ERA processing."
        ),
    ),
    Module(
        code=TELEDENTISTRY,
        name="Teledentistry",
        description=(
            "Virtual consultations, remote patient monitoring, and secure video conferencing"
        ),
        category="Patient Care",
        icon="video",
        display_order=15,
        features=(
            "HIPAA-compliant video conferencing",
            "Virtual waiting room",
            "Screen sharing",
            "Session recording (with consent)",
            "Virtual consultation scheduling",
            "Remote patient monitoring",
            "Patient-submitted photos/videos",
            "Digital consent forms",
            "Telehealth billing codes",
            "Follow-up scheduling from virtual visits",
        ),
        permissions=(
            "teledentistry.session.create",
            "teledentistry.session.join",
            "teledentistry.session.record",
            "teledentistry.monitoring.view",
            "teledentistry.monitoring.configure",
            "teledentistry.patient-content.view",
            "teledentistry.consent.obtain",
            "teledentistry.prescription.write",
            "teledentistry.notes.create",
            "teledentistry.billing.code",
        ),
        # Sessions may be metered per minute
        pricing=_premium(5900, 59000, usage_based=True),
        dependencies=(
            _requires(SCHEDULING, "Virtual appointments must be scheduled"),
            _requires(
                PATIENT_MANAGEMENT, "Virtual consultations are associated with patient records"
            ),
            _suggests(
                CLINICAL_BASIC, "Virtual consultation notes should integrate with clinical charts"
            ),
        ),
        marketing_description=(
            "Offer convenient virtual consultations, triage emergencies remotely and "
            "increase patient access to care."
        ),
    ),
    Module(
        code=ANALYTICS_ADVANCED,
        name="Advanced Analytics & Reporting",
        description="Business intelligence, custom reports, dashboards, and predictive analytics",
        category="Insights",
        icon="chart-line",
        display_order=16,
        features=(
            "Customizable dashboards",
            "Production and collection reports",
            "Provider performance analytics",
            "Patient retention analytics",
            "Revenue cycle analytics",
            "Predictive analytics",
            "Custom report builder",
            "Scheduled report delivery",
            "KPI tracking and alerts",
            "Export to Excel/PDF",
        ),
        permissions=(
            "analytics.dashboard.view",
            "analytics.dashboard.create",
            "analytics.dashboard.customize",
            "analytics.report.run",
            "analytics.report.create",
            "analytics.report.schedule",
            "analytics.report.export",
            "analytics.production.view",
            "analytics.collections.view",
            "analytics.provider-performance.view",
            "analytics.patient-retention.view",
            "analytics.treatment-acceptance.view",
            "analytics.predictive.view",
            "analytics.benchmarking.view",
            "analytics.kpi.configure",
        ),
        pricing=_premium(9900, 99000),
        marketing_description=(
            "Track KPIs, identify trends and optimize practice performance with "
            "business intelligence."
        ),
    ),
    Module(
        code=MULTI_LOCATION,
        name="Multi-Location Management",
        description="Enterprise features for managing multiple practice locations",
        category="Enterprise",
        icon="building",
        display_order=17,
        features=(
            "Centralized multi-location view",
            "Cross-location scheduling",
            "Patient access across locations",
            "Location-level permissions",
            "Consolidated financial reporting",
            "Location performance comparison",
            "Shared inventory across locations",
            "Cross-location patient referrals",
            "Location hierarchy management",
            "Enterprise-wide analytics",
        ),
        permissions=(
            "multi-location.view-all",
            "multi-location.switch-location",
            "multi-location.location.create",
            "multi-location.location.manage",
            "multi-location.cross-location-schedule",
            "multi-location.transfer-patient",
            "multi-location.reporting.consolidated",
            "multi-location.inventory.transfer",
            "multi-location.analytics.enterprise",
            "multi-location.permissions.configure",
        ),
        pricing=_premium(19900, 199000),
        marketing_description=(
            "Enterprise-grade multi-location management that keeps locations "
            "consistent while preserving local autonomy."
        ),
    ),
)

REFERENCE_MODULES: tuple[Module, ...] = _CORE_MODULES + _PREMIUM_MODULES

# Complementary suggestions keyed by an enabled module.
DEFAULT_AFFINITY: Mapping[ModuleCode, tuple[ModuleCode, ...]] = {
    CLINICAL_BASIC: (CLINICAL_ADVANCED, IMAGING),
    SCHEDULING: (TELEDENTISTRY, MARKETING),
    PATIENT_MANAGEMENT: (MARKETING,),
    BILLING_BASIC: (INSURANCE, ANALYTICS_ADVANCED),
    IMAGING: (CLINICAL_ADVANCED,),
}


def build_default_catalog() -> ModuleCatalog:
    """Build the validated reference catalog."""
    return ModuleCatalog(REFERENCE_MODULES)


__all__ = [
    "REFERENCE_MODULES",
    "DEFAULT_AFFINITY",
    "build_default_catalog",
    "SCHEDULING",
    "PATIENT_MANAGEMENT",
    "CLINICAL_BASIC",
    "BILLING_BASIC",
    "CLINICAL_ADVANCED",
    "IMAGING",
    "INVENTORY",
    "MARKETING",
    "INSURANCE",
    "TELEDENTISTRY",
    "ANALYTICS_ADVANCED",
    "MULTI_LOCATION",
]
