"""Per-language keyword registry.

English is always the base. A language overlay is merged on top of it, so
English syntax keeps parsing whatever language is active. Merged bundles are
immutable and built once per language.
"""
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple, Union

from notecalc.units import Unit


class Language(Enum):
    ENGLISH = "en"
    SPANISH = "es"
    PORTUGUESE = "pt"

    @property
    def display_name(self) -> str:
        return LANGUAGE_NAMES[self]


LANGUAGE_NAMES = {
    Language.ENGLISH: "English",
    Language.SPANISH: "Español",
    Language.PORTUGUESE: "Português",
}


class Operator(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    POWER = "^"
    MODULO = "mod"
    BITWISE_AND = "&"
    BITWISE_OR = "|"
    BITWISE_XOR = "xor"
    BITWISE_NOT = "~"
    SHIFT_LEFT = "<<"
    SHIFT_RIGHT = ">>"
    ASSIGN = "="


PRECEDENCE = {
    Operator.ASSIGN: 0,
    Operator.BITWISE_OR: 1,
    Operator.BITWISE_XOR: 2,
    Operator.BITWISE_AND: 3,
    Operator.SHIFT_LEFT: 4,
    Operator.SHIFT_RIGHT: 4,
    Operator.ADD: 5,
    Operator.SUBTRACT: 5,
    Operator.MULTIPLY: 6,
    Operator.DIVIDE: 6,
    Operator.MODULO: 6,
    Operator.POWER: 7,
    Operator.BITWISE_NOT: 7,
}


class Keyword(Enum):
    IN = "in"
    AS = "as"
    TO = "to"
    OF = "of"
    ON = "on"
    OFF = "off"
    WHAT = "what"
    IS = "is"
    TODAY = "today"
    NOW = "now"
    PREV = "prev"
    SUM = "sum"
    TOTAL = "total"
    AVERAGE = "average"
    AVG = "avg"
    PI = "pi"
    E = "e"
    SPEED_OF_LIGHT = "speedoflight"
    GRAVITY = "gravity"
    AVOGADRO = "avogadro"
    PLANCK = "planck"
    BOLTZMANN = "boltzmann"
    ECHARGE = "echarge"
    PHI = "phi"
    TAU = "tau"
    SPLIT = "split"
    BETWEEN = "between"
    AMONG = "among"
    WAYS = "ways"
    PEOPLE = "people"
    TIP = "tip"
    TAX = "tax"


@dataclass(frozen=True)
class DurationWords:
    days: str
    hours: str
    minutes: str
    seconds: str


ENGLISH_DURATION = DurationWords("days", "hours", "minutes", "seconds")
SPANISH_DURATION = DurationWords("días", "horas", "minutos", "segundos")
PORTUGUESE_DURATION = DurationWords("dias", "horas", "minutos", "segundos")


@dataclass(frozen=True)
class ParserKeywords:
    operator_words: Mapping[str, Operator]
    divided_by: Tuple[Tuple[str, str], ...]
    keywords: Mapping[str, Keyword]
    unit_names: Mapping[str, Unit]
    currency_names: Mapping[str, str]
    leading_noise_words: FrozenSet[str]
    leading_noise_variables: FrozenSet[str]
    trailing_noise_keywords: FrozenSet[Keyword]
    error_messages: Mapping[str, str]
    duration_words: DurationWords
    display_format_words: Mapping[str, Unit]
    suggestion_keywords: Tuple[str, ...]


def _bundle(**fields) -> ParserKeywords:
    for name in ("operator_words", "keywords", "unit_names", "currency_names",
                 "error_messages", "display_format_words"):
        fields[name] = MappingProxyType(dict(fields[name]))
    for name in ("leading_noise_words", "leading_noise_variables", "trailing_noise_keywords"):
        fields[name] = frozenset(fields[name])
    fields["divided_by"] = tuple(fields["divided_by"])
    fields["suggestion_keywords"] = tuple(fields["suggestion_keywords"])
    return ParserKeywords(**fields)


ENGLISH = _bundle(
    operator_words={
        "plus": Operator.ADD,
        "minus": Operator.SUBTRACT,
        "times": Operator.MULTIPLY,
        "mod": Operator.MODULO,
        "xor": Operator.BITWISE_XOR,
        "not": Operator.BITWISE_NOT,
    },
    divided_by=[("divided", "by")],
    keywords={
        "in": Keyword.IN, "into": Keyword.IN,
        "as": Keyword.AS, "to": Keyword.TO,
        "of": Keyword.OF, "on": Keyword.ON, "off": Keyword.OFF,
        "what": Keyword.WHAT, "is": Keyword.IS,
        "today": Keyword.TODAY, "now": Keyword.NOW,
        "prev": Keyword.PREV, "previous": Keyword.PREV,
        "sum": Keyword.SUM, "total": Keyword.TOTAL,
        "average": Keyword.AVERAGE, "avg": Keyword.AVG,
        "pi": Keyword.PI, "e": Keyword.E,
        "speedoflight": Keyword.SPEED_OF_LIGHT, "lightspeed": Keyword.SPEED_OF_LIGHT,
        "gravity": Keyword.GRAVITY,
        "avogadro": Keyword.AVOGADRO, "na": Keyword.AVOGADRO,
        "planck": Keyword.PLANCK,
        "boltzmann": Keyword.BOLTZMANN,
        "echarge": Keyword.ECHARGE,
        "phi": Keyword.PHI, "golden": Keyword.PHI,
        "tau": Keyword.TAU,
        "split": Keyword.SPLIT,
        "between": Keyword.BETWEEN, "among": Keyword.AMONG,
        "ways": Keyword.WAYS, "people": Keyword.PEOPLE,
        "tip": Keyword.TIP, "tax": Keyword.TAX,
    },
    # English unit names live in the tokenizer's phrase table.
    unit_names={},
    currency_names={
        "dollar": "USD", "dollars": "USD",
        "euro": "EUR", "euros": "EUR",
        "yen": "JPY",
    },
    leading_noise_words={"what", "is"},
    leading_noise_variables={"s", "whats"},
    trailing_noise_keywords={Keyword.WAYS, Keyword.PEOPLE},
    error_messages={
        "division_by_zero": "÷ by 0",
        "invalid_expression": "invalid",
        "incompatible_units": "bad units",
        "domain_error": "out of range",
        "generic_error": "error",
    },
    duration_words=ENGLISH_DURATION,
    display_format_words={
        "sci": Unit.SCIENTIFIC, "scientific": Unit.SCIENTIFIC,
        "hex": Unit.HEX,
        "binary": Unit.BINARY, "bin": Unit.BINARY,
        "octal": Unit.OCTAL, "oct": Unit.OCTAL,
    },
    suggestion_keywords=[
        "pi", "e", "tau", "phi", "sum", "total", "average", "avg",
        "today", "now", "prev", "split", "between", "among",
        "ways", "people", "tip", "tax",
        "speedoflight", "lightspeed", "gravity", "avogadro",
        "planck", "boltzmann", "echarge",
    ],
)

SPANISH = _bundle(
    operator_words={
        "más": Operator.ADD, "mas": Operator.ADD,
        "menos": Operator.SUBTRACT,
        "por": Operator.MULTIPLY,
    },
    divided_by=[("dividido", "entre"), ("dividido", "por")],
    keywords={
        "en": Keyword.IN, "como": Keyword.AS, "a": Keyword.TO,
        "de": Keyword.OF, "sobre": Keyword.ON,
        "qué": Keyword.WHAT, "que": Keyword.WHAT,
        "es": Keyword.IS,
        "hoy": Keyword.TODAY, "ahora": Keyword.NOW,
        "anterior": Keyword.PREV, "previo": Keyword.PREV,
        "suma": Keyword.SUM,
        "promedio": Keyword.AVERAGE,
        "dividir": Keyword.SPLIT, "repartir": Keyword.SPLIT,
        "entre": Keyword.BETWEEN,
        "partes": Keyword.WAYS, "formas": Keyword.WAYS,
        "personas": Keyword.PEOPLE,
        "propina": Keyword.TIP, "impuesto": Keyword.TAX,
    },
    unit_names={
        "kilómetros": Unit.KILOMETER, "kilometros": Unit.KILOMETER,
        "kilómetro": Unit.KILOMETER, "kilometro": Unit.KILOMETER,
        "metros": Unit.METER, "metro": Unit.METER,
        "centímetros": Unit.CENTIMETER, "centimetros": Unit.CENTIMETER,
        "centímetro": Unit.CENTIMETER, "centimetro": Unit.CENTIMETER,
        "milímetros": Unit.MILLIMETER, "milimetros": Unit.MILLIMETER,
        "milímetro": Unit.MILLIMETER, "milimetro": Unit.MILLIMETER,
        "pulgadas": Unit.INCH, "pulgada": Unit.INCH,
        "pies": Unit.FOOT, "pie": Unit.FOOT,
        "yardas": Unit.YARD, "yarda": Unit.YARD,
        "millas": Unit.MILE, "milla": Unit.MILE,
        "kilogramos": Unit.KILOGRAM, "kilogramo": Unit.KILOGRAM,
        "kilos": Unit.KILOGRAM, "kilo": Unit.KILOGRAM,
        "gramos": Unit.GRAM, "gramo": Unit.GRAM,
        "miligramos": Unit.MILLIGRAM, "miligramo": Unit.MILLIGRAM,
        "toneladas": Unit.TONNE, "tonelada": Unit.TONNE,
        "libras": Unit.POUND, "libra": Unit.POUND,
        "onzas": Unit.OUNCE, "onza": Unit.OUNCE,
        "grados": Unit.DEGREE,
        "hectáreas": Unit.HECTARE, "hectareas": Unit.HECTARE,
        "hectárea": Unit.HECTARE, "hectarea": Unit.HECTARE,
        "litros": Unit.LITER, "litro": Unit.LITER,
        "mililitros": Unit.MILLILITER, "mililitro": Unit.MILLILITER,
        "galones": Unit.GALLON, "galón": Unit.GALLON, "galon": Unit.GALLON,
        "tazas": Unit.CUP, "taza": Unit.CUP,
        "cucharadas": Unit.TABLESPOON, "cucharada": Unit.TABLESPOON,
        "cucharaditas": Unit.TEASPOON, "cucharadita": Unit.TEASPOON,
        "años": Unit.YEAR, "año": Unit.YEAR,
        "meses": Unit.MONTH, "mes": Unit.MONTH,
        "semanas": Unit.WEEK, "semana": Unit.WEEK,
        "días": Unit.DAY, "día": Unit.DAY, "dias": Unit.DAY, "dia": Unit.DAY,
        "horas": Unit.HOUR, "hora": Unit.HOUR,
        "minutos": Unit.MINUTE, "minuto": Unit.MINUTE,
        "segundos": Unit.SECOND, "segundo": Unit.SECOND,
        "radianes": Unit.RADIAN, "radián": Unit.RADIAN, "radian": Unit.RADIAN,
        "nudos": Unit.KNOT, "nudo": Unit.KNOT,
        "calorías": Unit.CALORIE, "calorias": Unit.CALORIE,
        "caloría": Unit.CALORIE, "caloria": Unit.CALORIE,
        "kilocalorías": Unit.KILOCALORIE, "kilocalorias": Unit.KILOCALORIE,
        "atmósferas": Unit.ATMOSPHERE, "atmosferas": Unit.ATMOSPHERE,
        "atmósfera": Unit.ATMOSPHERE, "atmosfera": Unit.ATMOSPHERE,
        "octetos": Unit.BYTE, "octeto": Unit.BYTE,
    },
    # "libra" as a unit name wins in the tokenizer, so this only documents intent.
    currency_names={
        "dólar": "USD", "dolar": "USD", "dólares": "USD", "dolares": "USD",
        "euros": "EUR",
        "libra": "GBP",
    },
    leading_noise_words={"qué", "que", "es", "cuál", "cual", "cuánto", "cuanto"},
    leading_noise_variables=set(),
    trailing_noise_keywords={Keyword.WAYS, Keyword.PEOPLE},
    error_messages={
        "division_by_zero": "÷ por 0",
        "invalid_expression": "inválido",
        "incompatible_units": "unidades incompatibles",
        "domain_error": "fuera de rango",
        "generic_error": "error",
    },
    duration_words=SPANISH_DURATION,
    display_format_words={
        "hexadecimal": Unit.HEX,
        "binario": Unit.BINARY,
        "octal": Unit.OCTAL,
        "científica": Unit.SCIENTIFIC, "cientifica": Unit.SCIENTIFIC,
    },
    suggestion_keywords=[
        "más", "menos", "por", "dividido",
        "suma", "promedio", "hoy", "ahora", "anterior",
        "dividir", "repartir", "entre",
        "partes", "personas", "propina", "impuesto",
        "kilómetros", "metros", "kilogramos", "gramos",
        "libras", "onzas", "pulgadas", "millas",
        "litros", "galones", "grados",
        "horas", "minutos", "segundos", "días",
        "dólar", "dólares", "euros",
    ],
)

PORTUGUESE = _bundle(
    operator_words={
        "mais": Operator.ADD,
        "menos": Operator.SUBTRACT,
        "vezes": Operator.MULTIPLY,
    },
    divided_by=[("dividido", "por")],
    keywords={
        "em": Keyword.IN, "como": Keyword.AS, "para": Keyword.TO,
        "de": Keyword.OF, "sobre": Keyword.ON,
        "qual": Keyword.WHAT,
        "é": Keyword.IS,
        "hoje": Keyword.TODAY, "agora": Keyword.NOW,
        "anterior": Keyword.PREV, "prévio": Keyword.PREV, "previo": Keyword.PREV,
        "soma": Keyword.SUM,
        "média": Keyword.AVERAGE, "media": Keyword.AVERAGE,
        "dividir": Keyword.SPLIT, "repartir": Keyword.SPLIT,
        "entre": Keyword.BETWEEN,
        "partes": Keyword.WAYS, "formas": Keyword.WAYS,
        "pessoas": Keyword.PEOPLE,
        "gorjeta": Keyword.TIP, "imposto": Keyword.TAX,
    },
    unit_names={
        "quilômetros": Unit.KILOMETER, "quilometros": Unit.KILOMETER,
        "quilômetro": Unit.KILOMETER, "quilometro": Unit.KILOMETER,
        "metros": Unit.METER, "metro": Unit.METER,
        "centímetros": Unit.CENTIMETER, "centimetros": Unit.CENTIMETER,
        "centímetro": Unit.CENTIMETER, "centimetro": Unit.CENTIMETER,
        "milímetros": Unit.MILLIMETER, "milimetros": Unit.MILLIMETER,
        "milímetro": Unit.MILLIMETER, "milimetro": Unit.MILLIMETER,
        "polegadas": Unit.INCH, "polegada": Unit.INCH,
        "pés": Unit.FOOT, "pes": Unit.FOOT, "pé": Unit.FOOT, "pe": Unit.FOOT,
        "jardas": Unit.YARD, "jarda": Unit.YARD,
        "milhas": Unit.MILE, "milha": Unit.MILE,
        "quilogramas": Unit.KILOGRAM, "quilograma": Unit.KILOGRAM,
        "quilos": Unit.KILOGRAM, "quilo": Unit.KILOGRAM,
        "gramas": Unit.GRAM, "grama": Unit.GRAM,
        "miligramas": Unit.MILLIGRAM, "miligrama": Unit.MILLIGRAM,
        "toneladas": Unit.TONNE, "tonelada": Unit.TONNE,
        "libras": Unit.POUND, "libra": Unit.POUND,
        "onças": Unit.OUNCE, "oncas": Unit.OUNCE, "onça": Unit.OUNCE, "onca": Unit.OUNCE,
        "graus": Unit.DEGREE,
        "hectares": Unit.HECTARE, "hectare": Unit.HECTARE,
        "litros": Unit.LITER, "litro": Unit.LITER,
        "mililitros": Unit.MILLILITER, "mililitro": Unit.MILLILITER,
        "galões": Unit.GALLON, "galoes": Unit.GALLON, "galão": Unit.GALLON, "galao": Unit.GALLON,
        "xícaras": Unit.CUP, "xicaras": Unit.CUP, "xícara": Unit.CUP, "xicara": Unit.CUP,
        "colheres": Unit.TABLESPOON, "colher": Unit.TABLESPOON,
        "colherinhas": Unit.TEASPOON, "colherinha": Unit.TEASPOON,
        "anos": Unit.YEAR, "ano": Unit.YEAR,
        "meses": Unit.MONTH, "mês": Unit.MONTH, "mes": Unit.MONTH,
        "semanas": Unit.WEEK, "semana": Unit.WEEK,
        "dias": Unit.DAY, "dia": Unit.DAY,
        "horas": Unit.HOUR, "hora": Unit.HOUR,
        "minutos": Unit.MINUTE, "minuto": Unit.MINUTE,
        "segundos": Unit.SECOND, "segundo": Unit.SECOND,
        "radianos": Unit.RADIAN, "radiano": Unit.RADIAN,
        "nós": Unit.KNOT, "nos": Unit.KNOT,
        "calorias": Unit.CALORIE, "caloria": Unit.CALORIE,
        "quilocalorias": Unit.KILOCALORIE, "quilocaloria": Unit.KILOCALORIE,
        "atmosferas": Unit.ATMOSPHERE, "atmosfera": Unit.ATMOSPHERE,
        "octetos": Unit.BYTE, "octeto": Unit.BYTE,
    },
    currency_names={
        "dólar": "USD", "dolar": "USD", "dólares": "USD", "dolares": "USD",
        "euros": "EUR",
        "real": "BRL", "reais": "BRL",
        "libra": "GBP",
    },
    leading_noise_words={"o que", "qual", "é", "quanto", "quão"},
    leading_noise_variables=set(),
    trailing_noise_keywords={Keyword.WAYS, Keyword.PEOPLE},
    error_messages={
        "division_by_zero": "÷ por 0",
        "invalid_expression": "inválido",
        "incompatible_units": "unidades incompatíveis",
        "domain_error": "fora do intervalo",
        "generic_error": "erro",
    },
    duration_words=PORTUGUESE_DURATION,
    display_format_words={
        "hexadecimal": Unit.HEX,
        "binário": Unit.BINARY, "binario": Unit.BINARY,
        "octal": Unit.OCTAL,
        "científica": Unit.SCIENTIFIC, "cientifica": Unit.SCIENTIFIC,
    },
    suggestion_keywords=[
        "mais", "menos", "vezes", "dividido",
        "soma", "média", "hoje", "agora", "anterior",
        "dividir", "repartir", "entre",
        "partes", "pessoas", "gorjeta", "imposto",
        "quilômetros", "metros", "quilogramas", "gramas",
        "libras", "onças", "polegadas", "milhas",
        "litros", "galões", "graus",
        "horas", "minutos", "segundos", "dias",
        "dólar", "dólares", "euros", "real", "reais",
    ],
)

OVERLAYS = {
    Language.SPANISH: SPANISH,
    Language.PORTUGUESE: PORTUGUESE,
}


def merge_keywords(base: ParserKeywords, overlay: ParserKeywords) -> ParserKeywords:
    """Overlay maps win on collision, sets union, lists concatenate."""
    return _bundle(
        operator_words={**base.operator_words, **overlay.operator_words},
        divided_by=base.divided_by + overlay.divided_by,
        keywords={**base.keywords, **overlay.keywords},
        unit_names={**base.unit_names, **overlay.unit_names},
        currency_names={**base.currency_names, **overlay.currency_names},
        leading_noise_words=base.leading_noise_words | overlay.leading_noise_words,
        leading_noise_variables=base.leading_noise_variables | overlay.leading_noise_variables,
        trailing_noise_keywords=base.trailing_noise_keywords | overlay.trailing_noise_keywords,
        error_messages={**base.error_messages, **overlay.error_messages},
        duration_words=overlay.duration_words,
        display_format_words={**base.display_format_words, **overlay.display_format_words},
        suggestion_keywords=base.suggestion_keywords + overlay.suggestion_keywords,
    )


def resolve_language(language: Union[Language, str, None]) -> Language:
    """Accept a Language or its code; raises ValueError for unknown codes."""
    if language is None:
        return Language.ENGLISH
    if isinstance(language, Language):
        return language
    return Language(language.strip().lower())


@lru_cache(maxsize=None)
def _keywords_for(language: Language) -> ParserKeywords:
    overlay = OVERLAYS.get(language)
    return ENGLISH if overlay is None else merge_keywords(ENGLISH, overlay)


def parser_keywords(language: Union[Language, str, None] = None) -> ParserKeywords:
    return _keywords_for(resolve_language(language))
