"""
Tests for application settings.
"""

import pytest
from pydantic import ValidationError

from clinicflow.platform.settings import (
    Environment,
    PermissionEnforcement,
    Settings,
    get_settings,
    reset_settings,
)

pytestmark = pytest.mark.unit


class TestModuleSettings:
    """Test module catalog configuration."""

    def test_defaults(self):
        modules = Settings().modules
        assert modules.catalog_cache_ttl == 300
        assert modules.permission_enforcement is PermissionEnforcement.ENFORCE
        assert modules.default_billing_cycle == "monthly"
        assert modules.currency == "USD"
        assert modules.featured_limit == 6

    def test_nested_environment_variables(self, monkeypatch):
        monkeypatch.setenv("MODULES__PERMISSION_ENFORCEMENT", "allow_all")
        monkeypatch.setenv("MODULES__CATALOG_CACHE_TTL", "0")

        modules = Settings().modules
        assert modules.permission_enforcement is PermissionEnforcement.ALLOW_ALL
        assert modules.catalog_cache_ttl == 0

    def test_billing_cycle_normalized(self):
        settings = Settings(modules={"default_billing_cycle": "YEARLY"})
        assert settings.modules.default_billing_cycle == "yearly"

    def test_invalid_billing_cycle(self):
        with pytest.raises(ValidationError):
            Settings(modules={"default_billing_cycle": "weekly"})

    def test_negative_cache_ttl_rejected(self):
        with pytest.raises(ValidationError):
            Settings(modules={"catalog_cache_ttl": -1})


class TestEnvironment:
    """Test environment helpers."""

    def test_environment_case_insensitive(self):
        settings = Settings(environment="PRODUCTION")
        assert settings.environment is Environment.PRODUCTION
        assert settings.is_production

    def test_testing_flag(self):
        assert Settings(environment="development", testing=True).is_testing
        assert Settings(environment="test", testing=False).is_testing

    def test_get_settings_is_cached(self):
        reset_settings()
        first = get_settings()
        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
