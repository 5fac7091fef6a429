from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from ..models.cell import number_to_text

"""Locale-aware money and date formatting for rendered invoices.

Unknown locales fall back to en-US conventions; unknown currencies fall back
to the plain numeric string. Formatting never raises for numeric input.
"""

__all__ = [
    "format_money",
    "format_quantity",
    "format_issue_date",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _LocaleConv:
    group_sep: str
    decimal_sep: str
    symbol_first: bool
    symbol_space: bool  # space between amount and symbol
    date_format: str


_LOCALES: dict[str, _LocaleConv] = {
    "en-US": _LocaleConv(",", ".", True, False, "%m/%d/%Y"),
    "en-GB": _LocaleConv(",", ".", True, False, "%d/%m/%Y"),
    "vi-VN": _LocaleConv(".", ",", False, True, "%d/%m/%Y"),
    "de-DE": _LocaleConv(".", ",", False, True, "%d.%m.%Y"),
    "fr-FR": _LocaleConv(" ", ",", False, True, "%d/%m/%Y"),
}
_DEFAULT_LOCALE = "en-US"

# code -> (symbol, minor units)
_CURRENCIES: dict[str, tuple[str, int]] = {
    "USD": ("$", 2),
    "EUR": ("€", 2),
    "GBP": ("£", 2),
    "VND": ("₫", 0),
    "JPY": ("¥", 0),
}


def _conv(locale: str | None) -> _LocaleConv:
    conv = _LOCALES.get(locale or "")
    if conv is None:
        conv = _LOCALES[_DEFAULT_LOCALE]
    return conv


def _group_digits(digits: str, sep: str) -> str:
    parts = []
    while len(digits) > 3:
        parts.insert(0, digits[-3:])
        digits = digits[:-3]
    parts.insert(0, digits)
    return sep.join(parts)


def format_money(amount: float, currency: str | None = "USD", locale: str | None = "en-US") -> str:
    """Format an amount as currency, e.g. 1234.5 USD en-US -> "$1,234.50"."""
    amount = float(amount or 0)
    code = (currency or "USD").upper()
    spec = _CURRENCIES.get(code)
    if spec is None:
        logger.debug("unsupported currency %r; plain number used", currency)
        return number_to_text(amount)
    symbol, places = spec
    conv = _conv(locale)

    fixed = f"{abs(amount):.{places}f}"
    whole, _, frac = fixed.partition(".")
    body = _group_digits(whole, conv.group_sep)
    if frac:
        body = f"{body}{conv.decimal_sep}{frac}"
    sign = "-" if amount < 0 and float(fixed) != 0 else ""

    if conv.symbol_first:
        return f"{sign}{symbol}{' ' if conv.symbol_space else ''}{body}"
    return f"{sign}{body}{' ' if conv.symbol_space else ''}{symbol}"


def format_quantity(quantity: float) -> str:
    return number_to_text(float(quantity))


def format_issue_date(value: date, locale: str | None = "en-US") -> str:
    return value.strftime(_conv(locale).date_format)
