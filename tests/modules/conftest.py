"""
Fixtures for module catalog tests.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from clinicflow.platform.db import Base
from clinicflow.platform.modules.definitions import REFERENCE_MODULES
from clinicflow.platform.modules.resolver import DependencyResolver
from clinicflow.platform.modules.service import ModuleService
from clinicflow.platform.modules.sql_store import SQLCatalogStore
from clinicflow.platform.modules.store import InMemoryCatalogStore
from clinicflow.platform.settings import PermissionEnforcement


@pytest.fixture
def resolver(reference_catalog) -> DependencyResolver:
    return DependencyResolver(reference_catalog)


@pytest.fixture
def memory_store() -> InMemoryCatalogStore:
    """In-memory store seeded with the reference catalog."""
    return InMemoryCatalogStore(REFERENCE_MODULES)


@pytest.fixture
def module_service(memory_store: InMemoryCatalogStore) -> ModuleService:
    """Service over the reference catalog with caching enabled."""
    return ModuleService(
        memory_store, cache_ttl=300, enforcement=PermissionEnforcement.ENFORCE
    )


@pytest_asyncio.fixture
async def session_factory():
    """Create an in-memory database with the catalog table."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def sql_store(session_factory) -> SQLCatalogStore:
    return SQLCatalogStore(session_factory)
