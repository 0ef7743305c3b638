"""통화/지역 변환 유틸리티

환율은 근사치(USD 기준)이며 예산 비교용으로만 사용합니다.
"""
from typing import Optional

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "CAD": "C$",
    "AUD": "A$",
    "JPY": "¥",
    "CNY": "¥",
    "BRL": "R$",
    "MXN": "$",
}

EXCHANGE_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.85,
    "GBP": 0.73,
    "INR": 83.0,
    "CAD": 1.35,
    "AUD": 1.52,
    "JPY": 150.0,
    "CNY": 7.3,
    "BRL": 5.0,
    "MXN": 17.0,
}

_CURRENCY_TO_REGION: dict[str, str] = {
    "USD": "US",
    "EUR": "EU",
    "GBP": "UK",
    "INR": "IN",
    "CAD": "CA",
    "AUD": "AU",
    "JPY": "JP",
    "CNY": "CN",
    "BRL": "BR",
    "MXN": "MX",
}

# Google Shopping gl 파라미터 (EU는 독일로 대체)
_CURRENCY_TO_COUNTRY: dict[str, str] = {
    "USD": "us",
    "EUR": "de",
    "GBP": "gb",
    "INR": "in",
    "CAD": "ca",
    "AUD": "au",
    "JPY": "jp",
    "CNY": "cn",
    "BRL": "br",
    "MXN": "mx",
}


def get_region_from_currency(currency: str) -> str:
    return _CURRENCY_TO_REGION.get(currency, "US")


def get_currency_for_region(region: str) -> str:
    for currency, mapped in _CURRENCY_TO_REGION.items():
        if mapped == region:
            return currency
    return "USD"


def get_country_code_from_currency(currency: str) -> str:
    return _CURRENCY_TO_COUNTRY.get(currency, "us")


def convert_currency(amount: float, from_currency: str, to_currency: str) -> float:
    """USD를 거쳐 환산 (소수 둘째 자리 반올림)"""
    if from_currency == to_currency:
        return amount
    usd_amount = amount / EXCHANGE_RATES[from_currency]
    return round(usd_amount * EXCHANGE_RATES[to_currency], 2)


def is_within_budget(amount: float, budget: float, tolerance: float = 0.05) -> bool:
    """budget × (1 + tolerance) 이하인지"""
    return amount <= budget * (1 + tolerance)


def guess_currency(price_text: Optional[str], default: str = "USD") -> str:
    """가격 문자열의 기호로 통화 추정"""
    if not price_text:
        return default
    # 접두어가 긴 기호부터 확인 (C$, A$, R$ 가 $보다 먼저)
    for symbol, currency in (("C$", "CAD"), ("A$", "AUD"), ("R$", "BRL"), ("€", "EUR"), ("£", "GBP"), ("₹", "INR"), ("¥", "JPY")):
        if symbol in price_text:
            return currency
    if "$" in price_text:
        return "USD"
    return default


def format_price(amount: float, currency: str) -> str:
    """표시용 가격 문자열 (정수면 소수점 생략)"""
    text = f"{amount:,.2f}"
    if text.endswith(".00"):
        text = text[:-3]
    return f"{CURRENCY_SYMBOLS.get(currency, '')}{text}"
