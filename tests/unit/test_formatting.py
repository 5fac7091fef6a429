from __future__ import annotations

from datetime import date

import pytest

from invoicer.layout.formatting import format_issue_date, format_money, format_quantity


@pytest.mark.parametrize(
    "amount,currency,locale,expected",
    [
        (1234.5, "USD", "en-US", "$1,234.50"),
        (0, "USD", "en-US", "$0.00"),
        (-1234, "USD", "en-US", "-$1,234.00"),
        (-0.001, "USD", "en-US", "$0.00"),
        (1234567.891, "GBP", "en-GB", "£1,234,567.89"),
        (1234.5, "EUR", "de-DE", "1.234,50 €"),
        (1234.5, "EUR", "fr-FR", "1 234,50 €"),
        (1234567, "VND", "vi-VN", "1.234.567 ₫"),
        (1234, "JPY", "en-US", "¥1,234"),
        (12.5, "usd", "en-US", "$12.50"),
    ],
)
def test_format_money(amount, currency, locale, expected):
    assert format_money(amount, currency, locale) == expected


def test_unknown_locale_falls_back_to_en_us():
    assert format_money(1000, "USD", "xx-XX") == "$1,000.00"
    assert format_money(1000, "USD", None) == "$1,000.00"


def test_unknown_currency_gives_plain_number():
    assert format_money(1234.5, "XYZ", "en-US") == "1234.5"
    assert format_money(20, "XYZ", "de-DE") == "20"


def test_format_quantity():
    assert format_quantity(2.0) == "2"
    assert format_quantity(1.5) == "1.5"


def test_format_issue_date_per_locale():
    d = date(2024, 5, 1)
    assert format_issue_date(d, "en-US") == "05/01/2024"
    assert format_issue_date(d, "en-GB") == "01/05/2024"
    assert format_issue_date(d, "de-DE") == "01.05.2024"
    assert format_issue_date(d, "zz") == "05/01/2024"
