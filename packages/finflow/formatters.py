"""Currency and date display helpers.

The currency table is keyed by ISO region code with a ``DEFAULT`` entry (US
dollar). Formatting is US-English style: grouped thousands, at most two
fraction digits, currency symbol first.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class CurrencyInfo:
    code: str
    symbol: str
    name: str


CURRENCIES: MappingProxyType[str, CurrencyInfo] = MappingProxyType(
    {
        "US": CurrencyInfo("USD", "$", "US Dollar"),
        "IN": CurrencyInfo("INR", "₹", "Indian Rupee"),
        "GB": CurrencyInfo("GBP", "£", "British Pound"),
        "EU": CurrencyInfo("EUR", "€", "Euro"),
        "JP": CurrencyInfo("JPY", "¥", "Japanese Yen"),
        "CA": CurrencyInfo("CAD", "C$", "Canadian Dollar"),
        "AU": CurrencyInfo("AUD", "A$", "Australian Dollar"),
        "CN": CurrencyInfo("CNY", "¥", "Chinese Yuan"),
        "KR": CurrencyInfo("KRW", "₩", "South Korean Won"),
        "SG": CurrencyInfo("SGD", "S$", "Singapore Dollar"),
        "HK": CurrencyInfo("HKD", "HK$", "Hong Kong Dollar"),
        "CH": CurrencyInfo("CHF", "CHF", "Swiss Franc"),
        "SE": CurrencyInfo("SEK", "kr", "Swedish Krona"),
        "NO": CurrencyInfo("NOK", "kr", "Norwegian Krone"),
        "DK": CurrencyInfo("DKK", "kr", "Danish Krone"),
        "BR": CurrencyInfo("BRL", "R$", "Brazilian Real"),
        "MX": CurrencyInfo("MXN", "$", "Mexican Peso"),
        "RU": CurrencyInfo("RUB", "₽", "Russian Ruble"),
        "ZA": CurrencyInfo("ZAR", "R", "South African Rand"),
        "AE": CurrencyInfo("AED", "د.إ", "UAE Dirham"),
        "SA": CurrencyInfo("SAR", "﷼", "Saudi Riyal"),
        "TH": CurrencyInfo("THB", "฿", "Thai Baht"),
        "MY": CurrencyInfo("MYR", "RM", "Malaysian Ringgit"),
        "ID": CurrencyInfo("IDR", "Rp", "Indonesian Rupiah"),
        "PH": CurrencyInfo("PHP", "₱", "Philippine Peso"),
        "VN": CurrencyInfo("VND", "₫", "Vietnamese Dong"),
        "BD": CurrencyInfo("BDT", "৳", "Bangladeshi Taka"),
        "PK": CurrencyInfo("PKR", "₨", "Pakistani Rupee"),
        "LK": CurrencyInfo("LKR", "₨", "Sri Lankan Rupee"),
        "NP": CurrencyInfo("NPR", "₨", "Nepalese Rupee"),
        "EG": CurrencyInfo("EGP", "£", "Egyptian Pound"),
        "NG": CurrencyInfo("NGN", "₦", "Nigerian Naira"),
        "KE": CurrencyInfo("KES", "KSh", "Kenyan Shilling"),
        "GH": CurrencyInfo("GHS", "₵", "Ghanaian Cedi"),
        "TZ": CurrencyInfo("TZS", "TSh", "Tanzanian Shilling"),
        "UG": CurrencyInfo("UGX", "USh", "Ugandan Shilling"),
        "ZM": CurrencyInfo("ZMW", "ZK", "Zambian Kwacha"),
        "ZW": CurrencyInfo("ZWL", "Z$", "Zimbabwean Dollar"),
        "DEFAULT": CurrencyInfo("USD", "$", "US Dollar"),
    }
)

DEFAULT_CURRENCY = CURRENCIES["DEFAULT"]

# Language prefixes checked when the locale tag has no known region.
_LOCALE_FALLBACKS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("en-in", "hi"), "IN"),
    (("en-gb",), "GB"),
    (("ja",), "JP"),
    (("zh",), "CN"),
    (("ko",), "KR"),
    (("de", "fr", "es", "it"), "EU"),
)


def currency_for_region(code: str | None) -> CurrencyInfo:
    """Currency for an ISO region code; unknown or missing codes give the default."""

    if not code:
        return DEFAULT_CURRENCY
    return CURRENCIES.get(code.strip().upper(), DEFAULT_CURRENCY)


def currency_from_locale(tag: str | None) -> CurrencyInfo:
    """Currency for a locale tag such as ``en-IN`` or ``de_DE.UTF-8``.

    The region subtag wins when it is in the table; otherwise a few language
    prefixes map to a region; otherwise the default.
    """

    if not tag:
        return DEFAULT_CURRENCY
    norm = tag.split(".", 1)[0].replace("_", "-")
    parts = norm.split("-")
    if len(parts) > 1 and parts[1].upper() in CURRENCIES:
        return CURRENCIES[parts[1].upper()]
    lowered = norm.lower()
    for prefixes, region in _LOCALE_FALLBACKS:
        if lowered.startswith(prefixes):
            return CURRENCIES[region]
    return DEFAULT_CURRENCY


def currency_from_env() -> CurrencyInfo:
    """Currency from ``FINFLOW_CURRENCY_REGION``, else from ``LANG``."""

    region = os.getenv("FINFLOW_CURRENCY_REGION")
    if region:
        return currency_for_region(region)
    return currency_from_locale(os.getenv("LANG"))


def format_currency(amount: Decimal | float | int, currency: CurrencyInfo | None = None) -> str:
    """Format ``amount`` as e.g. ``$1,234.5`` or ``-₹2,500``."""

    cur = currency or DEFAULT_CURRENCY
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    text = f"{abs(value):,.2f}".rstrip("0").rstrip(".")
    return f"{sign}{cur.symbol}{text}"


def _as_date(value: date | str) -> date:
    return value if isinstance(value, date) else date.fromisoformat(value[:10])


def format_date(value: date | str) -> str:
    """``Jan 5, 2025``"""

    d = _as_date(value)
    return f"{d:%b} {d.day}, {d.year}"


def format_short_date(value: date | str) -> str:
    """``Jan 5``"""

    d = _as_date(value)
    return f"{d:%b} {d.day}"


__all__ = [
    "CurrencyInfo",
    "CURRENCIES",
    "DEFAULT_CURRENCY",
    "currency_for_region",
    "currency_from_locale",
    "currency_from_env",
    "format_currency",
    "format_date",
    "format_short_date",
]
