"""
Global pytest configuration and fixtures for ClinicFlow platform tests.
"""

import os

# Settings are read on first import, so the environment is fixed up front.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("OBSERVABILITY__LOG_LEVEL", "WARNING")
os.environ.pop("MODULES__PERMISSION_ENFORCEMENT", None)

import pytest  # noqa: E402

from clinicflow.platform.modules.catalog import ModuleCatalog  # noqa: E402
from clinicflow.platform.modules.definitions import (  # noqa: E402
    REFERENCE_MODULES,
    build_default_catalog,
)
from clinicflow.platform.modules.models import (  # noqa: E402
    Module,
    ModuleDependency,
    ModulePricing,
    ModuleType,
)


def make_module(
    code: str,
    *,
    requires: tuple[str, ...] = (),
    optional: tuple[str, ...] = (),
    monthly: int = 0,
    yearly: int = 0,
    module_type: ModuleType = ModuleType.PREMIUM,
    **overrides,
) -> Module:
    """Build a module definition with sensible defaults for tests."""
    dependencies = tuple(ModuleDependency(module_code=c) for c in requires) + tuple(
        ModuleDependency(module_code=c, optional=True) for c in optional
    )
    data = {
        "code": code,
        "name": overrides.pop("name", code.replace("_", " ").title()),
        "module_type": module_type,
        "pricing": ModulePricing(monthly_price=monthly, yearly_price=yearly),
        "dependencies": dependencies,
    }
    data.update(overrides)
    return Module(**data)


@pytest.fixture
def module_factory():
    """Factory for ad hoc module definitions."""
    return make_module


@pytest.fixture
def reference_modules() -> tuple[Module, ...]:
    return REFERENCE_MODULES


@pytest.fixture
def reference_catalog() -> ModuleCatalog:
    """The shipped catalog, validated."""
    return build_default_catalog()


@pytest.fixture
def cyclic_catalog() -> ModuleCatalog:
    """A requires B and B requires A."""
    return ModuleCatalog(
        [
            make_module("A", requires=("B",)),
            make_module("B", requires=("A",)),
        ]
    )
