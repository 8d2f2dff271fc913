"""Complementary module suggestions."""

from collections.abc import Iterable, Mapping, Sequence

from clinicflow.platform.modules.catalog import ModuleCatalog
from clinicflow.platform.modules.definitions import DEFAULT_AFFINITY
from clinicflow.platform.modules.models import Module, ModuleCode


class RecommendationEngine:
    """Suggest modules from a static affinity table.

    Only available modules (active and not deprecated) are suggested.
    """

    def __init__(
        self,
        catalog: ModuleCatalog,
        affinity: Mapping[ModuleCode, Sequence[ModuleCode]] | None = None,
    ) -> None:
        self.catalog = catalog
        self.affinity = DEFAULT_AFFINITY if affinity is None else affinity

    def recommend(self, enabled: Iterable[str]) -> list[Module]:
        enabled_codes = list(dict.fromkeys(enabled))
        enabled_set = set(enabled_codes)

        suggested: dict[ModuleCode, None] = {}
        for code in enabled_codes:
            for suggestion in self.affinity.get(ModuleCode(code), ()):
                if suggestion not in enabled_set:
                    suggested.setdefault(suggestion, None)

        return [m for m in self.catalog.get_by_codes(suggested) if m.is_available]
