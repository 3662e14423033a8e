"""Display strings for computed values."""
import datetime
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from notecalc.keywords import ENGLISH_DURATION, DurationWords
from notecalc.models import Value
from notecalc.units import Currency, Unit, is_crypto, symbol_of

MAX_GROUPED_INTEGER = 1e15
AUTO_DECIMALS = 6
SCIENTIFIC_DECIMALS = 6

FIAT_SYMBOLS = {
    "USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥",
    "CAD": "CA$", "AUD": "A$", "CHF": "CHF ", "CNY": "¥",
    "KRW": "₩", "RUB": "₽",
}
CRYPTO_PREFIXES = {"BTC": "₿", "ETH": "Ξ"}
STABLECOINS = frozenset({"USDT", "USDC", "DAI"})
MEME_COINS = frozenset({"SHIB", "PEPE"})

DAY = 86400
HOUR = 3600
MINUTE = 60


class DecimalPrecision(Enum):
    AUTO = "auto"
    TWO = "2"
    FOUR = "4"
    SIX = "6"

    @property
    def places(self) -> Optional[int]:
        return None if self is DecimalPrecision.AUTO else int(self.value)

    @classmethod
    def parse(cls, setting: Union[str, int, None]) -> "DecimalPrecision":
        """Accepts "auto", 2, "4" and so on; raises ValueError otherwise."""
        if setting is None:
            return cls.AUTO
        return cls(str(setting).strip().lower())


@dataclass(frozen=True)
class FormattingConfig:
    use_thousands_separator: bool = True
    decimal_precision: DecimalPrecision = DecimalPrecision.AUTO
    duration_words: DurationWords = ENGLISH_DURATION


DEFAULT_CONFIG = FormattingConfig()


def format_decimal(number: float, max_decimals: int, min_decimals: int, grouping: bool) -> str:
    text = f"{number:,.{max_decimals}f}" if grouping else f"{number:.{max_decimals}f}"
    if max_decimals > min_decimals and "." in text:
        whole, fraction = text.split(".")
        fraction = fraction.rstrip("0").ljust(min_decimals, "0")
        text = f"{whole}.{fraction}" if fraction else whole
    if text.startswith("-") and not any(ch in "123456789" for ch in text):
        text = text[1:]
    return text


def format_number(number: float, config: FormattingConfig = DEFAULT_CONFIG) -> str:
    if not math.isfinite(number):
        return _non_finite(number)
    places = config.decimal_precision.places
    if places is None:
        if number == math.floor(number) and abs(number) < MAX_GROUPED_INTEGER:
            return format_decimal(number, 0, 0, config.use_thousands_separator)
        return format_decimal(number, AUTO_DECIMALS, 0, config.use_thousands_separator)
    return format_decimal(number, places, places, config.use_thousands_separator)


def _non_finite(number: float) -> str:
    if math.isnan(number):
        return "NaN"
    return "∞" if number > 0 else "-∞"


def crypto_decimals(code: str, amount: float) -> int:
    magnitude = abs(amount)
    if code == "BTC":
        return 8
    if code == "ETH":
        return 6
    if code == "SATS":
        return 0
    if code in STABLECOINS:
        return 2
    if code in MEME_COINS:
        return 10 if magnitude < 1 else 2
    if magnitude < 0.01:
        return 8
    if magnitude < 1:
        return 6
    if magnitude < 100:
        return 4
    return 2


def format_currency(number: float, code: str, config: FormattingConfig = DEFAULT_CONFIG) -> str:
    if not math.isfinite(number):
        return f"{_non_finite(number)} {code}"
    places = config.decimal_precision.places
    grouping = config.use_thousands_separator

    if is_crypto(code):
        auto = crypto_decimals(code, number)
        if places is None:
            text = format_decimal(abs(number), auto, min(2, auto), grouping)
        else:
            text = format_decimal(abs(number), places, places, grouping)
    else:
        decimals = 2 if places is None else places
        text = format_decimal(abs(number), decimals, decimals, grouping)

    # A sign only when the rounded amount is not zero
    sign = "-" if number < 0 and any(ch in "123456789" for ch in text) else ""
    if is_crypto(code):
        prefix = CRYPTO_PREFIXES.get(code)
        if prefix:
            return f"{sign}{prefix}{text}"
        return f"{sign}{text} {code}"
    return f"{sign}{FIAT_SYMBOLS.get(code, code + ' ')}{text}"


def format_duration(seconds: float, config: FormattingConfig = DEFAULT_CONFIG) -> str:
    words = config.duration_words
    magnitude = abs(seconds)
    if magnitude >= DAY:
        amount, word = seconds / DAY, words.days
    elif magnitude >= HOUR:
        amount, word = seconds / HOUR, words.hours
    elif magnitude >= MINUTE:
        amount, word = seconds / MINUTE, words.minutes
    else:
        amount, word = seconds, words.seconds
    return f"{format_decimal(amount, 2, 0, config.use_thousands_separator)} {word}"


def format_radix(number: float, unit: Unit) -> str:
    integer = int(number)
    sign = "-" if integer < 0 else ""
    integer = abs(integer)
    if unit is Unit.HEX:
        return f"{sign}0x{integer:X}"
    if unit is Unit.BINARY:
        return f"{sign}0b{integer:b}"
    return f"{sign}0o{integer:o}"


def format_scientific(number: float, config: FormattingConfig = DEFAULT_CONFIG) -> str:
    places = config.decimal_precision.places
    decimals = SCIENTIFIC_DECIMALS if places is None else places
    mantissa, exponent = f"{number:.{decimals}e}".split("e")
    if places is None and "." in mantissa:
        mantissa = mantissa.rstrip("0").rstrip(".")
    return f"{mantissa}E{int(exponent)}"


def format_date(timestamp: float) -> str:
    try:
        moment = datetime.datetime.fromtimestamp(timestamp)
    except (OverflowError, ValueError, OSError):
        return format_number(timestamp)
    return f"{moment:%b} {moment.day}, {moment.year}, {moment:%I:%M %p}"


def format_value(value: Value, config: FormattingConfig = DEFAULT_CONFIG) -> str:
    """Render a value for display, honouring the formatting preferences."""
    number, unit = value.number, value.unit
    if unit is None:
        return format_number(number, config)
    if isinstance(unit, Currency):
        return format_currency(number, unit.code, config)
    if not math.isfinite(number):
        return f"{_non_finite(number)} {symbol_of(unit)}"
    if unit is Unit.PERCENT:
        return f"{format_number(number, config)}%"
    if unit in (Unit.HEX, Unit.BINARY, Unit.OCTAL):
        return format_radix(number, unit)
    if unit is Unit.SCIENTIFIC:
        return format_scientific(number, config)
    if unit is Unit.DATE:
        return format_date(number)
    if unit is Unit.DURATION:
        return format_duration(number, config)
    return f"{format_number(number, config)} {symbol_of(unit)}"
