"""
Tests for price rendering.
"""

from decimal import Decimal

import pytest

from clinicflow.platform.modules.money import MoneyFormatter, format_minor_units

pytestmark = pytest.mark.unit


class TestMoneyFormatter:
    """Test minor-unit conversion and formatting."""

    def test_from_minor_units(self):
        money = MoneyFormatter("USD", "en_US").from_minor_units(9900)
        assert money.amount == Decimal("99.00")
        assert money.currency.code == "USD"

    @pytest.mark.parametrize(
        ("minor_units", "expected"),
        [(9900, "$99.00"), (0, "$0.00"), (199000, "$1,990.00"), (-7900, "-$79.00")],
    )
    def test_format_usd(self, minor_units, expected):
        assert MoneyFormatter("USD", "en_US").format(minor_units) == expected

    def test_zero_decimal_currency(self):
        assert MoneyFormatter("JPY", "en_US").format(500) == "¥500"

    def test_currency_code_case_insensitive(self):
        assert MoneyFormatter("usd", "en_US").currency.code == "USD"

    def test_invalid_currency(self):
        with pytest.raises(ValueError, match="Invalid currency code"):
            MoneyFormatter("NOPE", "en_US")

    def test_invalid_locale_falls_back(self):
        assert MoneyFormatter("USD", "not_a_locale").locale == "en_US"

    def test_defaults_from_settings(self):
        formatter = MoneyFormatter()
        assert formatter.currency.code == "USD"
        assert formatter.locale == "en_US"

    def test_format_minor_units_helper(self):
        assert format_minor_units(12900, "USD", "en_US") == "$129.00"
