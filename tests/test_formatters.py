from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from finflow.formatters import (
    CURRENCIES,
    DEFAULT_CURRENCY,
    currency_for_region,
    currency_from_env,
    currency_from_locale,
    format_currency,
    format_date,
    format_short_date,
)


@pytest.mark.parametrize(
    ("amount", "region", "expected"),
    [
        (Decimal("1234.5"), "US", "$1,234.5"),
        (2500, "IN", "₹2,500"),
        (Decimal("1234567.891"), "GB", "£1,234,567.89"),
        (Decimal("-12.345"), "US", "-$12.35"),
        (0, "US", "$0"),
        (100, "US", "$100"),
    ],
)
def test_format_currency(amount, region, expected):
    assert format_currency(amount, currency_for_region(region)) == expected


def test_format_currency_defaults_to_usd():
    assert format_currency(Decimal("9.90")) == "$9.9"


def test_currency_for_region():
    assert currency_for_region("in").code == "INR"
    assert currency_for_region("ZZ") is DEFAULT_CURRENCY
    assert currency_for_region(None) is DEFAULT_CURRENCY


@pytest.mark.parametrize(
    ("tag", "code"),
    [
        ("en-IN", "INR"),
        ("pt-BR", "BRL"),
        ("en_GB.UTF-8", "GBP"),
        ("hi", "INR"),
        ("de-DE", "EUR"),
        ("fr", "EUR"),
        ("ja", "JPY"),
        ("ko-KR", "KRW"),
        ("xx", "USD"),
        ("C.UTF-8", "USD"),
        (None, "USD"),
    ],
)
def test_currency_from_locale(tag, code):
    assert currency_from_locale(tag).code == code


def test_currency_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FINFLOW_CURRENCY_REGION", "JP")
    assert currency_from_env() is CURRENCIES["JP"]
    monkeypatch.delenv("FINFLOW_CURRENCY_REGION")
    monkeypatch.setenv("LANG", "en_IN.UTF-8")
    assert currency_from_env().code == "INR"


def test_date_formats():
    assert format_date(date(2025, 1, 5)) == "Jan 5, 2025"
    assert format_date("2025-12-31T08:00:00Z") == "Dec 31, 2025"
    assert format_short_date("2025-01-05") == "Jan 5"
