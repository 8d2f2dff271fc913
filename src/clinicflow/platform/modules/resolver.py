"""
Dependency resolution over a catalog snapshot.

All operations are pure: they read the catalog passed at construction and
never mutate it. Only required edges take part in closure and removal
checks; optional dependencies are informational.
"""

from collections.abc import Iterable, Iterator

import structlog

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.exceptions import DependencyCycleError, ModuleDependencyError
from clinicflow.platform.modules.models import (
    DependencyCheck,
    ModuleCode,
    ModuleSetIssue,
    ModuleSetIssueKind,
    ModuleSetValidation,
    RemovalCheck,
)

logger = structlog.get_logger(__name__)


class DependencyResolver:
    """Closure, enablement and removal checks for module sets."""

    def __init__(self, catalog: ModuleCatalog) -> None:
        self.catalog = catalog

    def _required(self, code: ModuleCode) -> tuple[ModuleCode, ...]:
        module = self.catalog.find(code)
        if module is None:
            return ()
        return module.required_dependencies

    # ---------------------------------------------------------------
    # Closure
    # ---------------------------------------------------------------

    def closure(self, code: str) -> list[ModuleCode]:
        """
        Transitive required dependencies of ``code``, dependencies first.

        Dependencies are visited in declaration order, so the result is
        deterministic for a given catalog. The result always ends with
        ``code`` itself. Codes missing from the catalog are emitted without
        expansion.

        Raises:
            DependencyCycleError: If expansion re-enters a module still on
                the current path. ``module_code`` is the repeated code
                and ``cycle`` holds the path from it back to itself.
        """
        root = ModuleCode(code)
        order: list[ModuleCode] = []
        resolved: set[ModuleCode] = set()
        on_path: set[ModuleCode] = set()
        path: list[ModuleCode] = []
        stack: list[tuple[ModuleCode, Iterator[ModuleCode]]] = []

        def enter(node: ModuleCode) -> None:
            on_path.add(node)
            path.append(node)
            stack.append((node, iter(self._required(node))))

        enter(root)
        while stack:
            node, pending = stack[-1]
            for dep in pending:
                if dep in resolved:
                    continue
                if dep in on_path:
                    cycle = path[path.index(dep) :] + [dep]
                    logger.warning("module_resolver.cycle_detected", root=root, cycle=cycle)
                    raise DependencyCycleError(dep, cycle, root=root)
                enter(dep)
                break
            else:
                stack.pop()
                path.pop()
                on_path.discard(node)
                resolved.add(node)
                order.append(node)

        return order

    def closure_many(self, codes: Iterable[str]) -> list[ModuleCode]:
        """Ordered union of the closures of ``codes``."""
        ordered: dict[ModuleCode, None] = {}
        for code in codes:
            for member in self.closure(code):
                ordered.setdefault(member, None)
        return list(ordered)

    def ensure_acyclic(self) -> None:
        """Raise :class:`DependencyCycleError` if any required edge forms a cycle."""
        for module in self.catalog:
            self.closure(module.code)

    # ---------------------------------------------------------------
    # Enablement
    # ---------------------------------------------------------------

    def validate_dependencies(self, enabled: Iterable[str], candidate: str) -> list[ModuleCode]:
        """
        Required direct dependencies of ``candidate`` absent from ``enabled``.

        Raises:
            UnknownModuleError: If ``candidate`` is not in the catalog
        """
        module = self.catalog.get_by_code(candidate)
        enabled_set = set(enabled)
        return [code for code in module.required_dependencies if code not in enabled_set]

    def check_dependencies(self, enabled: Iterable[str], candidate: str) -> DependencyCheck:
        missing = self.validate_dependencies(enabled, candidate)
        return DependencyCheck(
            module_code=ModuleCode(candidate),
            valid=not missing,
            missing_dependencies=missing,
            required_modules=self.closure(candidate),
        )

    def ensure_can_enable(self, enabled: Iterable[str], candidate: str) -> None:
        missing = self.validate_dependencies(enabled, candidate)
        if missing:
            raise ModuleDependencyError(
                f"Cannot enable {candidate} because it requires: {', '.join(missing)}",
                module_code=candidate,
                missing_dependencies=missing,
            )

    def validate_module_set(self, requested: Iterable[str]) -> ModuleSetValidation:
        """
        Validate a requested module set.

        Expands every requested code to its closure and reports each code
        that is unknown, inactive or deprecated. Problems are accumulated
        rather than raised; a cycle yields a single issue and an empty
        activation order.
        """
        requested_codes = [ModuleCode(code) for code in dict.fromkeys(requested)]
        try:
            ordered = self.closure_many(requested_codes)
        except DependencyCycleError as exc:
            return ModuleSetValidation(
                requested=requested_codes,
                ordered_modules=[],
                issues=[
                    ModuleSetIssue(
                        module_code=exc.module_code,
                        kind=ModuleSetIssueKind.CYCLE,
                        message=exc.message,
                    )
                ],
            )

        issues: list[ModuleSetIssue] = []
        for code in ordered:
            module = self.catalog.find(code)
            if module is None:
                issues.append(
                    ModuleSetIssue(
                        module_code=code,
                        kind=ModuleSetIssueKind.NOT_FOUND,
                        message=f"Module {code} not found in catalog",
                    )
                )
                continue
            if not module.is_active:
                issues.append(
                    ModuleSetIssue(
                        module_code=code,
                        kind=ModuleSetIssueKind.INACTIVE,
                        message=f"Module {code} is not active",
                    )
                )
            if module.is_deprecated:
                notice = module.deprecation_notice or "No longer supported"
                issues.append(
                    ModuleSetIssue(
                        module_code=code,
                        kind=ModuleSetIssueKind.DEPRECATED,
                        message=f"Module {code} is deprecated: {notice}",
                    )
                )

        if issues:
            logger.info(
                "module_resolver.set_invalid",
                requested=requested_codes,
                issues=[issue.message for issue in issues],
            )
        return ModuleSetValidation(
            requested=requested_codes, ordered_modules=ordered, issues=issues
        )

    # ---------------------------------------------------------------
    # Removal
    # ---------------------------------------------------------------

    def can_remove_module(self, code: str, current: Iterable[str]) -> RemovalCheck:
        """Whether ``code`` can leave ``current`` without orphaning a dependent."""
        others = set(current) - {code}
        blocked_by = [m.code for m in self.catalog.dependents_of(code) if m.code in others]
        if blocked_by:
            return RemovalCheck(
                module_code=ModuleCode(code),
                can_remove=False,
                blocked_by=blocked_by,
                reason=f"Cannot remove {code} because it is required by: {', '.join(blocked_by)}",
            )
        return RemovalCheck(module_code=ModuleCode(code), can_remove=True)

    def ensure_can_remove(self, code: str, current: Iterable[str]) -> None:
        check = self.can_remove_module(code, current)
        if not check.can_remove:
            raise ModuleDependencyError(
                check.reason or f"Cannot remove {code}",
                module_code=code,
                blocked_by=check.blocked_by,
            )
