"""Permission aggregation for module sets."""

from collections.abc import Iterable

import structlog

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.models import ModuleCode
from clinicflow.platform.settings import PermissionEnforcement, get_settings

logger = structlog.get_logger(__name__)


class PermissionAggregator:
    """Union of the permissions granted by a module set.

    ``enforcement`` defaults to ``settings.modules.permission_enforcement``.
    With ``allow_all`` every check passes; the aggregated set itself is
    unaffected.
    """

    def __init__(
        self,
        catalog: ModuleCatalog,
        enforcement: PermissionEnforcement | None = None,
    ) -> None:
        self.catalog = catalog
        self.enforcement = enforcement or get_settings().modules.permission_enforcement

    def permissions_for(self, codes: Iterable[str]) -> frozenset[str]:
        granted: set[str] = set()
        for module in self.catalog.get_by_codes(codes):
            granted.update(module.permissions)
        return frozenset(granted)

    def permissions_by_module(self, codes: Iterable[str]) -> dict[ModuleCode, tuple[str, ...]]:
        return {module.code: module.permissions for module in self.catalog.get_by_codes(codes)}

    def is_permitted(self, permission: str, codes: Iterable[str]) -> bool:
        if self.enforcement is PermissionEnforcement.ALLOW_ALL:
            logger.debug("module_permissions.allow_all", permission=permission)
            return True
        return permission in self.permissions_for(codes)
