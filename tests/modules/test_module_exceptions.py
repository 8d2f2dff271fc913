"""
Tests for module catalog exceptions.
"""

import pytest

from clinicflow.platform.modules.exceptions import (
    CatalogIntegrityError,
    DependencyCycleError,
    DuplicateModuleError,
    InvalidPricingError,
    ModuleCatalogError,
    ModuleConflictError,
    ModuleDependencyError,
    ModuleValidationError,
    UnknownModuleError,
    VersionConflictError,
)

pytestmark = pytest.mark.unit


class TestExceptionHierarchy:
    """Test error kinds and status codes."""

    @pytest.mark.parametrize(
        ("error", "parent", "status_code", "error_code"),
        [
            (
                UnknownModuleError("missing", module_code="X"),
                ModuleCatalogError,
                404,
                "MODULE_NOT_FOUND",
            ),
            (ModuleValidationError("bad"), ModuleCatalogError, 400, "MODULE_VALIDATION_ERROR"),
            (
                InvalidPricingError("bad price", "X", 100, 5000),
                ModuleValidationError,
                400,
                "INVALID_MODULE_PRICING",
            ),
            (
                CatalogIntegrityError("corrupt", violations=["v"]),
                ModuleValidationError,
                500,
                "CATALOG_INTEGRITY_ERROR",
            ),
            (
                DuplicateModuleError("dup", module_code="X"),
                ModuleConflictError,
                409,
                "DUPLICATE_MODULE",
            ),
            (
                VersionConflictError("stale", "X", expected_version=1, current_version=2),
                ModuleConflictError,
                409,
                "MODULE_VERSION_CONFLICT",
            ),
            (
                ModuleDependencyError("blocked", module_code="X", blocked_by=["Y"]),
                ModuleCatalogError,
                409,
                "MODULE_DEPENDENCY_ERROR",
            ),
            (
                DependencyCycleError("A", ["A", "B", "A"]),
                ModuleCatalogError,
                422,
                "DEPENDENCY_CYCLE",
            ),
        ],
    )
    def test_kind(self, error, parent, status_code, error_code):
        assert isinstance(error, parent)
        assert error.status_code == status_code
        assert error.error_code == error_code


class TestErrorContext:
    """Test context and serialization."""

    def test_to_dict(self):
        error = UnknownModuleError("Module X not found in catalog", module_code="X")
        assert error.to_dict() == {
            "error_code": "MODULE_NOT_FOUND",
            "message": "Module X not found in catalog",
            "status_code": 404,
            "context": {"module_code": "X"},
            "recovery_hint": "Verify the module code against the catalog",
        }

    def test_cycle_message(self):
        error = DependencyCycleError("A", ["A", "B", "A"], root="ROOT")
        assert str(error) == "Dependency cycle detected: A -> B -> A"
        assert error.context == {"module_code": "A", "cycle": ["A", "B", "A"], "root": "ROOT"}

    def test_cycle_root_defaults_to_repeated_code(self):
        error = DependencyCycleError("A", ["A", "B", "A"])
        assert error.root == "A"
        assert "root" not in error.context

    def test_dependency_error_hints(self):
        missing = ModuleDependencyError("m", module_code="X", missing_dependencies=["Y"])
        blocked = ModuleDependencyError("b", module_code="X", blocked_by=["Z"])
        assert missing.recovery_hint == "Enable the missing modules first"
        assert blocked.recovery_hint == "Remove the dependent modules first"
        assert "blocked_by" not in missing.context
        assert blocked.context["blocked_by"] == ["Z"]

    def test_version_conflict_context(self):
        error = VersionConflictError("stale", "X", expected_version=1, current_version=3)
        assert error.context["expected_version"] == 1
        assert error.context["current_version"] == 3
