"""
Money rendering for catalog prices using py-moneyed and Babel.

Catalog prices are integer minor units; these helpers turn them into
``Money`` values and locale-aware strings for presentation only.
"""

from decimal import Decimal

from babel import Locale
from babel.core import UnknownLocaleError
from babel.numbers import format_currency, get_currency_precision
from moneyed import Currency, Money, get_currency
from moneyed.classes import CurrencyDoesNotExist

from clinicflow.platform.settings import get_settings

DEFAULT_LOCALE = "en_US"


class MoneyFormatter:
    """Convert and format minor-unit amounts in one currency."""

    def __init__(self, currency: str | None = None, locale: str | None = None) -> None:
        config = get_settings().modules
        self.currency = self._validate_currency(currency or config.currency)
        self.locale = self._validate_locale(locale or config.locale)

    @staticmethod
    def _validate_currency(currency_code: str) -> Currency:
        try:
            return get_currency(currency_code.upper())
        except CurrencyDoesNotExist:
            raise ValueError(f"Invalid currency code: {currency_code}")

    @staticmethod
    def _validate_locale(locale_code: str) -> str:
        try:
            Locale.parse(locale_code)
            return locale_code
        except (UnknownLocaleError, ValueError):
            return DEFAULT_LOCALE

    def from_minor_units(self, minor_units: int) -> Money:
        """Create Money from minor units (e.g. cents)."""
        precision = get_currency_precision(self.currency.code)
        return Money(amount=Decimal(minor_units) / Decimal(10**precision), currency=self.currency)

    def format(self, minor_units: int) -> str:
        """Render minor units, e.g. ``9900`` -> ``$99.00`` for USD/en_US."""
        money = self.from_minor_units(minor_units)
        return format_currency(money.amount, money.currency.code, locale=self.locale)


def format_minor_units(
    minor_units: int, currency: str | None = None, locale: str | None = None
) -> str:
    return MoneyFormatter(currency, locale).format(minor_units)
