"""ISO 4217 codes to display symbols."""
from __future__ import annotations

from typing import List

DEFAULT_CURRENCY = "USD"

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "CA$",
    "BRL": "R$",
    "MXN": "MX$",
    "EUR": "€",
    "GBP": "£",
    "CHF": "Fr",
    "SEK": "kr",
    "NOK": "kr",
    "DKK": "kr",
    "PLN": "zł",
    "CZK": "Kč",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
    "KRW": "₩",
    "SGD": "S$",
    "HKD": "HK$",
    "AUD": "A$",
    "NZD": "NZ$",
    "ILS": "₪",
    "ZAR": "R",
    "TRY": "₺",
}


def normalize(code: str) -> str:
    code = (code or "").strip().upper()
    return code if code in CURRENCY_SYMBOLS else DEFAULT_CURRENCY


def is_supported(code: str) -> bool:
    return (code or "").strip().upper() in CURRENCY_SYMBOLS


def get_symbol(code: str) -> str:
    return CURRENCY_SYMBOLS[normalize(code)]


def supported_currencies() -> List[str]:
    return sorted(CURRENCY_SYMBOLS)


def format_currency(amount: float, code: str) -> str:
    """``format_currency(99.99, "eur")`` -> ``"€99.99"``; unknown codes use USD."""
    return f"{get_symbol(code)}{amount:.2f}"
