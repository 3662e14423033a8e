"""Tests for value display strings."""

import pytest

from notecalc.formatter import (
    DecimalPrecision,
    FormattingConfig,
    crypto_decimals,
    format_currency,
    format_duration,
    format_number,
    format_value,
)
from notecalc.keywords import SPANISH_DURATION
from notecalc.models import Value
from notecalc.units import Currency, Unit

NO_SEPARATOR = FormattingConfig(use_thousands_separator=False)
TWO_PLACES = FormattingConfig(decimal_precision=DecimalPrecision.TWO)
FOUR_PLACES = FormattingConfig(decimal_precision=DecimalPrecision.FOUR)


@pytest.mark.parametrize("number, config, expected", [
    (5, FormattingConfig(), "5"),
    (1234567, FormattingConfig(), "1,234,567"),
    (1234567, NO_SEPARATOR, "1234567"),
    (3.14159265, FormattingConfig(), "3.141593"),
    (2.5, FormattingConfig(), "2.5"),
    (3.14159265, TWO_PLACES, "3.14"),
    (2.5, FOUR_PLACES, "2.5000"),
    (1234.5, TWO_PLACES, "1,234.50"),
    (-0.0000001, FormattingConfig(), "0"),
    (-42, FormattingConfig(), "-42"),
    (float("nan"), FormattingConfig(), "NaN"),
    (float("inf"), FormattingConfig(), "∞"),
])
def test_format_number(number, config, expected):
    assert format_number(number, config) == expected


@pytest.mark.parametrize("number, code, expected", [
    (102, "USD", "$102.00"),
    (1234.5, "USD", "$1,234.50"),
    (-5, "USD", "-$5.00"),
    (92, "EUR", "€92.00"),
    (10, "CHF", "CHF 10.00"),
    (10, "MXN", "MXN 10.00"),
    (0.5, "BTC", "₿0.50"),
    (0.12345678, "BTC", "₿0.12345678"),
    (1.25, "ETH", "Ξ1.25"),
    (1000, "SATS", "1,000 SATS"),
    (5, "USDT", "5.00 USDT"),
    (12.5, "SOL", "12.50 SOL"),
])
def test_format_currency(number, code, expected):
    assert format_currency(number, code) == expected


def test_fixed_precision_applies_to_currency():
    assert format_currency(0.5, "BTC", TWO_PLACES) == "₿0.50"
    assert format_currency(1.5, "USD", FOUR_PLACES) == "$1.5000"


@pytest.mark.parametrize("code, amount, decimals", [
    ("BTC", 1, 8),
    ("ETH", 1, 6),
    ("SATS", 100, 0),
    ("DAI", 1, 2),
    ("SHIB", 0.5, 10),
    ("SOL", 0.001, 8),
    ("SOL", 0.5, 6),
    ("SOL", 50, 4),
    ("SOL", 500, 2),
])
def test_crypto_decimals(code, amount, decimals):
    assert crypto_decimals(code, amount) == decimals


@pytest.mark.parametrize("seconds, expected", [
    (30, "30 seconds"),
    (90, "1.5 minutes"),
    (7200, "2 hours"),
    (3 * 86400, "3 days"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_duration_words_are_localized():
    assert format_duration(2 * 86400, FormattingConfig(duration_words=SPANISH_DURATION)) == "2 días"


@pytest.mark.parametrize("value, expected", [
    (Value(25, Unit.PERCENT), "25%"),
    (Value(255, Unit.HEX), "0xFF"),
    (Value(10, Unit.BINARY), "0b1010"),
    (Value(8, Unit.OCTAL), "0o10"),
    (Value(1.5e10, Unit.SCIENTIFIC), "1.5E10"),
    (Value(62.137, Unit.MILE), "62.137 mi"),
    (Value(100, Unit.KILOMETERS_PER_HOUR), "100 km/h"),
    (Value(102, Currency("USD")), "$102.00"),
    (Value(42), "42"),
])
def test_format_value(value, expected):
    assert format_value(value) == expected


def test_format_date():
    text = format_value(Value(0, Unit.DATE))
    assert "1970" in text or "1969" in text


@pytest.mark.parametrize("setting, precision", [
    (None, DecimalPrecision.AUTO),
    ("auto", DecimalPrecision.AUTO),
    (2, DecimalPrecision.TWO),
    ("6", DecimalPrecision.SIX),
])
def test_parse_precision(setting, precision):
    assert DecimalPrecision.parse(setting) is precision


def test_parse_bad_precision():
    with pytest.raises(ValueError):
        DecimalPrecision.parse("3")
