"""통화/지역 유틸리티 테스트"""

import pytest

from ghost_setup.utils.currency import (
    convert_currency,
    format_price,
    get_country_code_from_currency,
    get_currency_for_region,
    get_region_from_currency,
    guess_currency,
    is_within_budget,
)


@pytest.mark.parametrize(
    "currency,region,country",
    [("USD", "US", "us"), ("GBP", "UK", "gb"), ("EUR", "EU", "de"), ("XYZ", "US", "us")],
)
def test_region_and_country(currency, region, country):
    assert get_region_from_currency(currency) == region
    assert get_country_code_from_currency(currency) == country


def test_currency_for_region():
    assert get_currency_for_region("IN") == "INR"
    assert get_currency_for_region("ZZ") == "USD"


def test_convert_currency_via_usd():
    assert convert_currency(100, "USD", "USD") == 100
    assert convert_currency(100, "USD", "GBP") == 73.0
    assert convert_currency(85, "EUR", "USD") == 100.0


def test_is_within_budget_tolerance():
    """기본 5% 초과까지 허용"""
    assert is_within_budget(315, 300)
    assert not is_within_budget(315.01, 300)
    assert not is_within_budget(301, 300, tolerance=0)


@pytest.mark.parametrize(
    "text,expected",
    [("C$12.00", "CAD"), ("$12.00", "USD"), ("£9", "GBP"), ("12.00", "USD"), (None, "USD")],
)
def test_guess_currency(text, expected):
    assert guess_currency(text) == expected


def test_format_price():
    assert format_price(1299, "USD") == "$1,299"
    assert format_price(19.5, "GBP") == "£19.50"
