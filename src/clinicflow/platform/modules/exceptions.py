"""
Module catalog exceptions.

Custom exceptions for catalog, resolution and entitlement operations.
Every error carries a machine-readable code, an HTTP-style status, the
offending module codes in ``context`` and a recovery hint so callers can
render an actionable message.
"""

from collections.abc import Iterable
from typing import Any


class ModuleCatalogError(Exception):
    """
    Base module catalog error with enhanced context.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for API responses
        status_code: HTTP status code for this error type
        context: Additional context data about the error
        recovery_hint: Suggested action to resolve the error
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = 400,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        self.message = message
        self.error_code = error_code or "MODULE_CATALOG_ERROR"
        self.status_code = status_code
        self.context = context or {}
        self.recovery_hint = recovery_hint
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "context": self.context,
            "recovery_hint": self.recovery_hint,
        }


# ============================================================
# NotFound
# ============================================================


class UnknownModuleError(ModuleCatalogError):
    """Module code is absent from the catalog."""

    def __init__(self, message: str, module_code: str | None = None) -> None:
        context = {}
        if module_code:
            context["module_code"] = module_code

        super().__init__(
            message,
            "MODULE_NOT_FOUND",
            status_code=404,
            context=context,
            recovery_hint="Verify the module code against the catalog",
        )


# ============================================================
# Validation
# ============================================================


class ModuleValidationError(ModuleCatalogError):
    """Malformed input or module definition."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(
            message,
            "MODULE_VALIDATION_ERROR",
            status_code=400,
            context=context,
            recovery_hint=recovery_hint,
        )


class InvalidPricingError(ModuleValidationError):
    """Module pricing breaks a pricing invariant."""

    def __init__(
        self, message: str, module_code: str, monthly_price: int, yearly_price: int
    ) -> None:
        super().__init__(
            message,
            context={
                "module_code": module_code,
                "monthly_price": monthly_price,
                "yearly_price": yearly_price,
            },
            recovery_hint=(
                "Yearly price must not exceed twelve monthly payments; core modules are free"
            ),
        )
        self.error_code = "INVALID_MODULE_PRICING"


class CatalogIntegrityError(ModuleValidationError):
    """Catalog graph is corrupt and must not be loaded."""

    def __init__(self, message: str, violations: list[str]) -> None:
        super().__init__(
            message,
            context={"violations": violations},
            recovery_hint="Fix the listed module definitions before loading the catalog",
        )
        self.error_code = "CATALOG_INTEGRITY_ERROR"
        self.status_code = 500
        self.violations = violations


class ModuleSetValidationError(ModuleValidationError):
    """A requested module set cannot be installed as-is."""

    def __init__(self, message: str, errors: list[str], ordered_modules: list[str]) -> None:
        super().__init__(
            message,
            context={"errors": errors, "ordered_modules": ordered_modules},
            recovery_hint=(
                "Remove unavailable modules from the request or restore them in the catalog"
            ),
        )
        self.error_code = "MODULE_SET_INVALID"
        self.errors = errors


# ============================================================
# Conflict
# ============================================================


class ModuleConflictError(ModuleCatalogError):
    """Write conflicts with the current catalog state."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(
            message,
            "MODULE_CONFLICT",
            status_code=409,
            context=context,
            recovery_hint=recovery_hint,
        )


class DuplicateModuleError(ModuleConflictError):
    """Module code already exists."""

    def __init__(self, message: str, module_code: str) -> None:
        super().__init__(
            message,
            context={"module_code": module_code},
            recovery_hint="Use a unique module code or update the existing module",
        )
        self.error_code = "DUPLICATE_MODULE"


class VersionConflictError(ModuleConflictError):
    """Module changed since the caller read it."""

    def __init__(
        self, message: str, module_code: str, expected_version: int, current_version: int
    ) -> None:
        super().__init__(
            message,
            context={
                "module_code": module_code,
                "expected_version": expected_version,
                "current_version": current_version,
            },
            recovery_hint="Reload the module and reapply the change",
        )
        self.error_code = "MODULE_VERSION_CONFLICT"


# ============================================================
# Dependency
# ============================================================


class ModuleDependencyError(ModuleCatalogError):
    """Enabling or removing a module would break the dependency graph."""

    def __init__(
        self,
        message: str,
        module_code: str,
        missing_dependencies: Iterable[str] = (),
        blocked_by: Iterable[str] = (),
    ) -> None:
        missing = list(missing_dependencies)
        blockers = list(blocked_by)
        context: dict[str, Any] = {"module_code": module_code}
        if missing:
            context["missing_dependencies"] = missing
        if blockers:
            context["blocked_by"] = blockers

        super().__init__(
            message,
            "MODULE_DEPENDENCY_ERROR",
            status_code=409,
            context=context,
            recovery_hint=(
                "Enable the missing modules first"
                if missing
                else "Remove the dependent modules first"
            ),
        )
        self.missing_dependencies = missing
        self.blocked_by = blockers


class DependencyCycleError(ModuleCatalogError):
    """Dependency closure re-entered a module still being expanded."""

    def __init__(self, module_code: str, cycle: list[str], root: str | None = None) -> None:
        context: dict[str, Any] = {"module_code": module_code, "cycle": cycle}
        if root is not None and root != module_code:
            context["root"] = root
        super().__init__(
            f"Dependency cycle detected: {' -> '.join(cycle)}",
            "DEPENDENCY_CYCLE",
            status_code=422,
            context=context,
            recovery_hint="Remove one of the required dependencies on the cycle",
        )
        self.module_code = module_code
        self.cycle = cycle
        self.root = root or module_code
