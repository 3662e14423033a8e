"""Unit model and conversions.

Each convertible unit belongs to a category and carries a ratio to that
category's base unit. The ratios come from pint so the numbers match a
well-known unit database rather than hand-typed constants. Temperature goes
through pint's offset quantities; currency goes through a rate table that is
supplied at call time.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple, Union

from pint import UnitRegistry

from notecalc.errors import GenericError, IncompatibleUnitsError

logger = logging.getLogger(__name__)

DEFAULT_EM_SIZE = 16.0
SATS_PER_BTC = 1e8

FIAT_CODES = (
    "USD", "EUR", "GBP", "JPY", "CAD", "AUD", "CHF", "CNY",
    "KRW", "RUB", "INR", "BRL", "MXN", "ZAR", "SEK", "NOK",
    "DKK", "NZD", "SGD", "HKD", "TRY", "PLN", "THB", "IDR",
    "HUF", "CZK", "ILS", "CLP", "PHP", "AED", "COP", "SAR",
    "MYR", "RON", "TWD", "ARS", "NGN", "UAH", "VND", "PKR",
    "EGP", "BDT", "QAR", "KWD", "BHD", "OMR",
)
CRYPTO_CODES = (
    "BTC", "ETH", "SOL", "BNB", "XRP", "ADA",
    "DOGE", "DOT", "AVAX", "MATIC", "LINK", "UNI",
    "LTC", "ATOM", "XLM", "ALGO", "NEAR", "FTM",
    "AAVE", "ARB", "OP", "APT", "SUI", "SEI",
    "SHIB", "PEPE", "USDT", "USDC", "DAI", "SATS",
)
CURRENCY_CODES = frozenset(FIAT_CODES + CRYPTO_CODES)


class Category(Enum):
    LENGTH = "length"
    WEIGHT = "weight"
    TEMPERATURE = "temperature"
    AREA = "area"
    VOLUME = "volume"
    TIME = "time"
    DATA = "data"
    ANGLE = "angle"
    SPEED = "speed"
    PRESSURE = "pressure"
    ENERGY = "energy"
    CSS = "css"
    CURRENCY = "currency"


class Unit(Enum):
    # Length
    METER = "meter"
    KILOMETER = "kilometer"
    CENTIMETER = "centimeter"
    MILLIMETER = "millimeter"
    MICROMETER = "micrometer"
    NANOMETER = "nanometer"
    INCH = "inch"
    FOOT = "foot"
    YARD = "yard"
    MILE = "mile"
    NAUTICAL_MILE = "nautical_mile"
    # Weight
    GRAM = "gram"
    KILOGRAM = "kilogram"
    MILLIGRAM = "milligram"
    TONNE = "tonne"
    POUND = "pound"
    OUNCE = "ounce"
    STONE = "stone"
    CARAT = "carat"
    # Temperature
    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"
    KELVIN = "kelvin"
    # Area
    SQUARE_METER = "square_meter"
    SQUARE_KILOMETER = "square_kilometer"
    SQUARE_FOOT = "square_foot"
    SQUARE_INCH = "square_inch"
    SQUARE_YARD = "square_yard"
    SQUARE_MILE = "square_mile"
    HECTARE = "hectare"
    ACRE = "acre"
    # Volume
    CUBIC_METER = "cubic_meter"
    LITER = "liter"
    MILLILITER = "milliliter"
    GALLON = "gallon"
    QUART = "quart"
    PINT = "pint"
    CUP = "cup"
    TABLESPOON = "tablespoon"
    TEASPOON = "teaspoon"
    CUBIC_FOOT = "cubic_foot"
    CUBIC_INCH = "cubic_inch"
    # Time
    SECOND = "second"
    MILLISECOND = "millisecond"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    # Data
    BIT = "bit"
    BYTE = "byte"
    KILOBYTE = "kilobyte"
    MEGABYTE = "megabyte"
    GIGABYTE = "gigabyte"
    TERABYTE = "terabyte"
    KIBIBYTE = "kibibyte"
    MEBIBYTE = "mebibyte"
    GIBIBYTE = "gibibyte"
    TEBIBYTE = "tebibyte"
    KILOBIT = "kilobit"
    MEGABIT = "megabit"
    GIGABIT = "gigabit"
    # Angle
    RADIAN = "radian"
    DEGREE = "degree"
    # Speed
    METERS_PER_SECOND = "meters_per_second"
    KILOMETERS_PER_HOUR = "kilometers_per_hour"
    MILES_PER_HOUR = "miles_per_hour"
    KNOT = "knot"
    FEET_PER_SECOND = "feet_per_second"
    # Pressure
    PASCAL = "pascal"
    KILOPASCAL = "kilopascal"
    BAR = "bar"
    ATMOSPHERE = "atmosphere"
    PSI = "psi"
    MMHG = "mmhg"
    TORR = "torr"
    # Energy
    JOULE = "joule"
    KILOJOULE = "kilojoule"
    CALORIE = "calorie"
    KILOCALORIE = "kilocalorie"
    WATT_HOUR = "watt_hour"
    KILOWATT_HOUR = "kilowatt_hour"
    BTU = "btu"
    ELECTRONVOLT = "electronvolt"
    # CSS
    PIXEL = "pixel"
    POINT = "point"
    EM = "em"
    # Display-only
    PERCENT = "percent"
    HEX = "hex"
    BINARY = "binary"
    OCTAL = "octal"
    SCIENTIFIC = "scientific"
    DATE = "date"
    DURATION = "duration"


@dataclass(frozen=True)
class Currency:
    """A fiat or crypto currency identified by its upper-case code."""

    code: str

    @property
    def symbol(self) -> str:
        return self.code


UnitLike = Union[Unit, Currency]

# unit: (symbol, category, pint expression)
UNIT_TABLE: Dict[Unit, Tuple[str, Category, str]] = {
    Unit.METER: ("m", Category.LENGTH, "meter"),
    Unit.KILOMETER: ("km", Category.LENGTH, "kilometer"),
    Unit.CENTIMETER: ("cm", Category.LENGTH, "centimeter"),
    Unit.MILLIMETER: ("mm", Category.LENGTH, "millimeter"),
    Unit.MICROMETER: ("µm", Category.LENGTH, "micrometer"),
    Unit.NANOMETER: ("nm", Category.LENGTH, "nanometer"),
    Unit.INCH: ("in", Category.LENGTH, "inch"),
    Unit.FOOT: ("ft", Category.LENGTH, "foot"),
    Unit.YARD: ("yd", Category.LENGTH, "yard"),
    Unit.MILE: ("mi", Category.LENGTH, "mile"),
    Unit.NAUTICAL_MILE: ("nmi", Category.LENGTH, "nautical_mile"),
    Unit.GRAM: ("g", Category.WEIGHT, "gram"),
    Unit.KILOGRAM: ("kg", Category.WEIGHT, "kilogram"),
    Unit.MILLIGRAM: ("mg", Category.WEIGHT, "milligram"),
    Unit.TONNE: ("t", Category.WEIGHT, "metric_ton"),
    Unit.POUND: ("lb", Category.WEIGHT, "pound"),
    Unit.OUNCE: ("oz", Category.WEIGHT, "ounce"),
    Unit.STONE: ("st", Category.WEIGHT, "stone"),
    Unit.CARAT: ("ct", Category.WEIGHT, "carat"),
    Unit.CELSIUS: ("°C", Category.TEMPERATURE, "degC"),
    Unit.FAHRENHEIT: ("°F", Category.TEMPERATURE, "degF"),
    Unit.KELVIN: ("K", Category.TEMPERATURE, "kelvin"),
    Unit.SQUARE_METER: ("m²", Category.AREA, "meter ** 2"),
    Unit.SQUARE_KILOMETER: ("km²", Category.AREA, "kilometer ** 2"),
    Unit.SQUARE_FOOT: ("ft²", Category.AREA, "foot ** 2"),
    Unit.SQUARE_INCH: ("in²", Category.AREA, "inch ** 2"),
    Unit.SQUARE_YARD: ("yd²", Category.AREA, "yard ** 2"),
    Unit.SQUARE_MILE: ("mi²", Category.AREA, "mile ** 2"),
    Unit.HECTARE: ("ha", Category.AREA, "hectare"),
    Unit.ACRE: ("ac", Category.AREA, "acre"),
    Unit.CUBIC_METER: ("m³", Category.VOLUME, "meter ** 3"),
    Unit.LITER: ("L", Category.VOLUME, "liter"),
    Unit.MILLILITER: ("mL", Category.VOLUME, "milliliter"),
    Unit.GALLON: ("gal", Category.VOLUME, "gallon"),
    Unit.QUART: ("qt", Category.VOLUME, "quart"),
    Unit.PINT: ("pint", Category.VOLUME, "pint"),
    Unit.CUP: ("cup", Category.VOLUME, "cup"),
    Unit.TABLESPOON: ("tbsp", Category.VOLUME, "tablespoon"),
    Unit.TEASPOON: ("tsp", Category.VOLUME, "teaspoon"),
    Unit.CUBIC_FOOT: ("ft³", Category.VOLUME, "foot ** 3"),
    Unit.CUBIC_INCH: ("in³", Category.VOLUME, "inch ** 3"),
    Unit.SECOND: ("s", Category.TIME, "second"),
    Unit.MILLISECOND: ("ms", Category.TIME, "millisecond"),
    Unit.MINUTE: ("min", Category.TIME, "minute"),
    Unit.HOUR: ("hr", Category.TIME, "hour"),
    Unit.DAY: ("days", Category.TIME, "day"),
    Unit.WEEK: ("weeks", Category.TIME, "week"),
    Unit.MONTH: ("months", Category.TIME, "fixed_month"),
    Unit.YEAR: ("years", Category.TIME, "fixed_year"),
    Unit.BIT: ("b", Category.DATA, "bit"),
    Unit.BYTE: ("B", Category.DATA, "byte"),
    Unit.KILOBYTE: ("KB", Category.DATA, "kilobyte"),
    Unit.MEGABYTE: ("MB", Category.DATA, "megabyte"),
    Unit.GIGABYTE: ("GB", Category.DATA, "gigabyte"),
    Unit.TERABYTE: ("TB", Category.DATA, "terabyte"),
    Unit.KIBIBYTE: ("KiB", Category.DATA, "kibibyte"),
    Unit.MEBIBYTE: ("MiB", Category.DATA, "mebibyte"),
    Unit.GIBIBYTE: ("GiB", Category.DATA, "gibibyte"),
    Unit.TEBIBYTE: ("TiB", Category.DATA, "tebibyte"),
    Unit.KILOBIT: ("Kb", Category.DATA, "kilobit"),
    Unit.MEGABIT: ("Mb", Category.DATA, "megabit"),
    Unit.GIGABIT: ("Gb", Category.DATA, "gigabit"),
    Unit.RADIAN: ("rad", Category.ANGLE, "radian"),
    Unit.DEGREE: ("°", Category.ANGLE, "degree"),
    Unit.METERS_PER_SECOND: ("m/s", Category.SPEED, "meter / second"),
    Unit.KILOMETERS_PER_HOUR: ("km/h", Category.SPEED, "kilometer / hour"),
    Unit.MILES_PER_HOUR: ("mph", Category.SPEED, "mile / hour"),
    Unit.KNOT: ("kn", Category.SPEED, "knot"),
    Unit.FEET_PER_SECOND: ("ft/s", Category.SPEED, "foot / second"),
    Unit.PASCAL: ("Pa", Category.PRESSURE, "pascal"),
    Unit.KILOPASCAL: ("kPa", Category.PRESSURE, "kilopascal"),
    Unit.BAR: ("bar", Category.PRESSURE, "bar"),
    Unit.ATMOSPHERE: ("atm", Category.PRESSURE, "atmosphere"),
    Unit.PSI: ("psi", Category.PRESSURE, "psi"),
    Unit.MMHG: ("mmHg", Category.PRESSURE, "mmHg"),
    Unit.TORR: ("Torr", Category.PRESSURE, "torr"),
    Unit.JOULE: ("J", Category.ENERGY, "joule"),
    Unit.KILOJOULE: ("kJ", Category.ENERGY, "kilojoule"),
    Unit.CALORIE: ("cal", Category.ENERGY, "calorie"),
    Unit.KILOCALORIE: ("kcal", Category.ENERGY, "kilocalorie"),
    Unit.WATT_HOUR: ("Wh", Category.ENERGY, "watt_hour"),
    Unit.KILOWATT_HOUR: ("kWh", Category.ENERGY, "kilowatt_hour"),
    Unit.BTU: ("BTU", Category.ENERGY, "Btu"),
    Unit.ELECTRONVOLT: ("eV", Category.ENERGY, "electron_volt"),
    Unit.PIXEL: ("px", Category.CSS, "screen_pixel"),
    Unit.POINT: ("pt", Category.CSS, "screen_point"),
    Unit.EM: ("em", Category.CSS, "screen_em"),
}

DISPLAY_SYMBOLS: Dict[Unit, str] = {
    Unit.PERCENT: "%",
    Unit.HEX: "hex",
    Unit.BINARY: "bin",
    Unit.OCTAL: "oct",
    Unit.SCIENTIFIC: "sci",
    Unit.DATE: "date",
    Unit.DURATION: "duration",
}

BASE_UNITS: Dict[Category, str] = {
    Category.LENGTH: "meter",
    Category.WEIGHT: "gram",
    Category.AREA: "meter ** 2",
    Category.VOLUME: "meter ** 3",
    Category.TIME: "second",
    Category.DATA: "bit",
    Category.ANGLE: "radian",
    Category.SPEED: "meter / second",
    Category.PRESSURE: "pascal",
    Category.ENERGY: "joule",
    Category.CSS: "screen_pixel",
}

ureg = UnitRegistry()
ureg.define("fixed_year = 365 * day")
ureg.define("fixed_month = fixed_year / 12")
ureg.define("screen_pixel = [screen_length]")
ureg.define("screen_point = 4 / 3 * screen_pixel")
ureg.define(f"screen_em = {DEFAULT_EM_SIZE} * screen_pixel")


def _ratio_to_base(expression: str, category: Category) -> float:
    return float(ureg.Quantity(1, expression).to(BASE_UNITS[category]).magnitude)


RATIOS: Dict[Unit, float] = {
    unit: _ratio_to_base(expression, category)
    for unit, (_, category, expression) in UNIT_TABLE.items()
    if category is not Category.TEMPERATURE
}


def category_of(unit: Optional[UnitLike]) -> Optional[Category]:
    """Conversion category, or None for display-only units and no unit."""
    if unit is None:
        return None
    if isinstance(unit, Currency):
        return Category.CURRENCY
    entry = UNIT_TABLE.get(unit)
    return entry[1] if entry else None


def symbol_of(unit: UnitLike) -> str:
    if isinstance(unit, Currency):
        return unit.symbol
    entry = UNIT_TABLE.get(unit)
    return entry[0] if entry else DISPLAY_SYMBOLS[unit]


def is_crypto(code: str) -> bool:
    return code in CRYPTO_CODES


def ratio_to_base(unit: Unit, em_size: float = DEFAULT_EM_SIZE) -> float:
    if unit is Unit.EM:
        return em_size
    return RATIOS[unit]


def convert_temperature(value: float, source: Unit, target: Unit) -> float:
    quantity = ureg.Quantity(value, UNIT_TABLE[source][2])
    return float(quantity.to(UNIT_TABLE[target][2]).magnitude)


def convert_currency(amount: float, source: str, target: str, rates: Mapping[str, float]) -> float:
    """Convert through USD: rates hold units-per-USD for every code."""
    if source == target:
        return amount
    try:
        from_rate = rates[source]
        to_rate = rates[target]
    except KeyError as error:
        logger.debug(f"No exchange rate for {error.args[0]}")
        raise GenericError(f"no rate for {error.args[0]}") from error
    if from_rate == 0:
        raise GenericError(f"no rate for {source}")
    return amount / from_rate * to_rate


def convert(
    value: float,
    source: UnitLike,
    target: UnitLike,
    rates: Optional[Mapping[str, float]] = None,
    em_size: float = DEFAULT_EM_SIZE,
) -> float:
    """Convert a number between two units of the same category."""
    if source == target:
        return value
    category = category_of(source)
    if category is None or category is not category_of(target):
        raise IncompatibleUnitsError(symbol_of(source), symbol_of(target))
    if category is Category.TEMPERATURE:
        return convert_temperature(value, source, target)
    if category is Category.CURRENCY:
        return convert_currency(value, source.code, target.code, rates or {})
    return value * ratio_to_base(source, em_size) / ratio_to_base(target, em_size)
