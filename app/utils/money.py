"""
Currency formatting for the whole project (Babel).

One CurrencyFormatter is created at application start and injected where
amounts are rendered.

Usage:
    formatter = CurrencyFormatter()
    formatter.format(15.99, "USD")   -> "$15.99"
    formatter.format(1200, "JPY")    -> "￥1,200"
"""
import math
from decimal import Decimal

from babel import Locale
from babel.numbers import format_currency

DEFAULT_LOCALE = "en_US"

# Currencies rendered in their home locale instead of the default one
LOCALE_OVERRIDES = {
    "IDR": "id_ID",
    "JPY": "ja_JP",
    "CNY": "zh_CN",
    "KRW": "ko_KR",
    "THB": "th_TH",
}

SUPPORTED_CURRENCIES = (
    "USD", "EUR", "GBP", "JPY", "CAD", "AUD", "CHF", "CNY",
    "INR", "MXN", "BRL", "ZAR", "SEK", "NOK", "DKK", "SGD",
    "HKD", "NZD", "KRW", "TRY", "RUB", "PLN", "THB", "IDR",
    "MYR", "PHP", "CZK", "ILS", "CLP", "PKR", "EGP", "VND",
)


def is_supported_currency(code: str) -> bool:
    return code.upper() in SUPPORTED_CURRENCIES


class CurrencyFormatter:
    """
    Locale-aware currency formatter

    Resolved (locale, currency) pairs are kept in an instance-owned cache;
    the cache lives as long as the formatter.
    """

    def __init__(self, default_currency: str = "USD", default_locale: str = DEFAULT_LOCALE):
        self.default_currency = default_currency.upper()
        self.default_locale = default_locale
        self._cache: dict[str, Locale] = {}

    def _resolve(self, currency: str) -> tuple[Locale, str]:
        code = currency.upper()
        locale_name = LOCALE_OVERRIDES.get(code, self.default_locale)
        key = f"{locale_name}|{code}"
        if key not in self._cache:
            self._cache[key] = Locale.parse(locale_name)
        return self._cache[key], code

    def format(self, amount: float | int | Decimal, currency: str | None = None) -> str:
        """
        Format an amount with the currency symbol and its standard fraction digits

        Non-finite amounts are returned as plain text.
        """
        if isinstance(amount, float) and not math.isfinite(amount):
            return str(amount)
        locale, code = self._resolve(currency or self.default_currency)
        return format_currency(amount, code, locale=locale)

    @property
    def cached_keys(self) -> list[str]:
        return list(self._cache)
