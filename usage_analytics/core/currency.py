"""
Currency resolution and formatting.

Maps locale identifiers to ISO 4217 codes and renders cent amounts for
display. No conversion happens here: an amount is only stamped with a code.
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

DEFAULT_CURRENCY_CODE = "USD"

# Fixed region -> currency table. Regions not listed resolve to None.
REGION_CURRENCIES: Dict[str, str] = {
    "US": "USD", "CA": "CAD", "MX": "MXN", "BR": "BRL", "AR": "ARS",
    "GB": "GBP", "IE": "EUR", "DE": "EUR", "FR": "EUR", "ES": "EUR",
    "IT": "EUR", "NL": "EUR", "BE": "EUR", "AT": "EUR", "PT": "EUR",
    "FI": "EUR", "GR": "EUR", "LU": "EUR", "CH": "CHF", "SE": "SEK",
    "NO": "NOK", "DK": "DKK", "PL": "PLN", "CZ": "CZK", "HU": "HUF",
    "TR": "TRY", "RU": "RUB", "UA": "UAH", "IL": "ILS", "AE": "AED",
    "SA": "SAR", "IN": "INR", "CN": "CNY", "HK": "HKD", "TW": "TWD",
    "JP": "JPY", "KR": "KRW", "SG": "SGD", "AU": "AUD", "NZ": "NZD",
    "ZA": "ZAR",
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "CNY": "¥",
    "KRW": "₩", "INR": "₹", "BRL": "R$", "CAD": "CA$", "AUD": "A$",
    "NZD": "NZ$", "HKD": "HK$", "MXN": "MX$", "TWD": "NT$", "ILS": "₪",
    "UAH": "₴", "TRY": "₺", "RUB": "₽",
}

# Currencies without a minor unit; everything else uses two decimals.
ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW"})

_CURRENCY_KEYWORD = re.compile(r"@.*\bcurrency=([A-Za-z]{3})")
_REGION_SUBTAG = re.compile(r"^[A-Za-z]{2,3}(?:[_-][A-Za-z]{4})?[_-]([A-Za-z]{2}|\d{3})(?:[._@-]|$)")


def currency_for_locale(identifier: Optional[str]) -> Optional[str]:
    """Resolve the currency code used in a locale.

    Understands ``en_US``, ``en-US``, ``zh_Hant_TW``, ``de_DE.UTF-8`` and an
    explicit ``@currency=XXX`` keyword, which takes precedence.

    Returns:
        ISO 4217 code, or None if the locale carries no known region
    """
    if not identifier:
        return None

    keyword = _CURRENCY_KEYWORD.search(identifier)
    if keyword:
        return keyword.group(1).upper()

    match = _REGION_SUBTAG.match(identifier)
    if not match:
        return None
    return REGION_CURRENCIES.get(match.group(1).upper())


def format_currency(cents: int, currency_code: str) -> str:
    """Format an amount in cents for display.

    Args:
        cents: Amount in the currency's hundredths
        currency_code: ISO 4217 code the amount is stamped with

    Returns:
        Amount with symbol (or code) prefix and thousands separators,
        rounded half-up to the currency's minor unit
    """
    code = currency_code.upper()
    amount = Decimal(cents) / Decimal(100)
    if code in ZERO_DECIMAL_CURRENCIES:
        text = f"{amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP):,}"
    else:
        text = f"{amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,}"

    sign = "-" if amount < 0 else ""
    text = text.lstrip("-")
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {text}"
    return f"{sign}{symbol}{text}"
