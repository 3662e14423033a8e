"""Line tokenizer.

Turns one line of note text into tokens. The same scan also produces
highlight ranges, one per token and in the same order, so an editor can color
the line without re-implementing the lexical rules.
"""
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, List, Mapping, Optional, Tuple

from notecalc.keywords import Language, Operator, ParserKeywords, parser_keywords
from notecalc.units import CURRENCY_CODES, Currency, Unit


class TokenKind(Enum):
    NUMBER = "number"
    UNIT = "unit"
    OPERATOR = "operator"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    VARIABLE = "variable"
    FUNCTION = "function"
    KEYWORD = "keyword"
    COMMA = ","
    WORD = "word"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: Any = None
    text: str = field(default="", compare=False)


class HighlightKind(Enum):
    KEYWORD = "keyword"
    FUNCTION = "function"
    VARIABLE = "variable"
    NUMBER = "number"
    OPERATOR = "operator"
    UNIT = "unit"
    COMMENT = "comment"
    PLAIN = "plain"


@dataclass(frozen=True)
class TokenRange:
    kind: HighlightKind
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


FUNCTION_NAMES = frozenset({
    "sqrt", "cbrt", "abs", "log", "ln", "log2", "log10",
    "sin", "cos", "tan", "asin", "acos", "atan",
    "arcsin", "arccos", "arctan",
    "sinh", "cosh", "tanh",
    "round", "ceil", "floor", "fact",
    "fromunix",
})

CURRENCY_SYMBOLS = {
    "$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY",
    "₩": "KRW", "₽": "RUB", "₹": "INR",
    "₿": "BTC", "Ξ": "ETH",
}
STANDALONE_CURRENCY_SYMBOLS = frozenset({"₿", "Ξ"})

CRYPTO_NAMES = {
    "bitcoin": "BTC", "btc": "BTC",
    "ethereum": "ETH", "ether": "ETH", "eth": "ETH",
    "solana": "SOL", "sol": "SOL",
    "binance": "BNB", "bnb": "BNB",
    "ripple": "XRP", "xrp": "XRP",
    "cardano": "ADA", "ada": "ADA",
    "dogecoin": "DOGE", "doge": "DOGE",
    "polkadot": "DOT", "dot": "DOT",
    "avalanche": "AVAX", "avax": "AVAX",
    "polygon": "MATIC", "matic": "MATIC",
    "chainlink": "LINK", "link": "LINK",
    "uniswap": "UNI", "uni": "UNI",
    "litecoin": "LTC", "ltc": "LTC",
    "cosmos": "ATOM", "atom": "ATOM",
    "stellar": "XLM", "xlm": "XLM",
    "algorand": "ALGO", "algo": "ALGO",
    "near": "NEAR",
    "fantom": "FTM", "ftm": "FTM",
    "aave": "AAVE",
    "arbitrum": "ARB", "arb": "ARB",
    "optimism": "OP",
    "aptos": "APT", "apt": "APT",
    "sui": "SUI",
    "sei": "SEI",
    "shiba": "SHIB", "shib": "SHIB",
    "pepe": "PEPE",
    "tether": "USDT", "usdt": "USDT",
    "usdc": "USDC",
    "dai": "DAI",
    "sats": "SATS", "satoshi": "SATS", "satoshis": "SATS",
}

TEMPERATURE_LETTERS = {"K": Unit.KELVIN, "C": Unit.CELSIUS, "F": Unit.FAHRENHEIT}

SYMBOL_OPERATORS = {
    "+": Operator.ADD,
    "-": Operator.SUBTRACT,
    "−": Operator.SUBTRACT,
    "*": Operator.MULTIPLY,
    "×": Operator.MULTIPLY,
    "/": Operator.DIVIDE,
    "÷": Operator.DIVIDE,
    "^": Operator.POWER,
    "&": Operator.BITWISE_AND,
    "|": Operator.BITWISE_OR,
    "=": Operator.ASSIGN,
    "~": Operator.BITWISE_NOT,
}
COMPOUND_OPERATORS = {
    "**": Operator.POWER,
    "<<": Operator.SHIFT_LEFT,
    ">>": Operator.SHIFT_RIGHT,
}
KEYWORD_LIKE_OPERATORS = frozenset({Operator.MODULO, Operator.BITWISE_XOR, Operator.BITWISE_NOT})

# prefix letter: (base, digits, display unit)
RADIX_PREFIXES = {
    "x": (16, "0123456789abcdefABCDEF", Unit.HEX),
    "b": (2, "01", Unit.BINARY),
    "o": (8, "01234567", Unit.OCTAL),
}

# English unit phrases. Entries listed in CASE_SENSITIVE_PHRASES only match
# their exact spelling; the rest match case-insensitively.
UNIT_PHRASES: List[Tuple[str, Unit]] = [
    # Speed
    ("meters per second", Unit.METERS_PER_SECOND), ("mps", Unit.METERS_PER_SECOND),
    ("m/s", Unit.METERS_PER_SECOND),
    ("kilometers per hour", Unit.KILOMETERS_PER_HOUR), ("kph", Unit.KILOMETERS_PER_HOUR),
    ("kmh", Unit.KILOMETERS_PER_HOUR), ("km/h", Unit.KILOMETERS_PER_HOUR),
    ("miles per hour", Unit.MILES_PER_HOUR), ("mph", Unit.MILES_PER_HOUR),
    ("feet per second", Unit.FEET_PER_SECOND), ("fps", Unit.FEET_PER_SECOND),
    ("ft/s", Unit.FEET_PER_SECOND),
    ("knots", Unit.KNOT), ("knot", Unit.KNOT), ("kn", Unit.KNOT),
    # Pressure
    ("kilopascals", Unit.KILOPASCAL), ("kilopascal", Unit.KILOPASCAL), ("kpa", Unit.KILOPASCAL),
    ("pascals", Unit.PASCAL), ("pascal", Unit.PASCAL), ("pa", Unit.PASCAL),
    ("atmospheres", Unit.ATMOSPHERE), ("atmosphere", Unit.ATMOSPHERE), ("atm", Unit.ATMOSPHERE),
    ("bars", Unit.BAR), ("bar", Unit.BAR),
    ("psi", Unit.PSI),
    ("mmhg", Unit.MMHG),
    ("torr", Unit.TORR),
    # Energy
    ("kilocalories", Unit.KILOCALORIE), ("kilocalorie", Unit.KILOCALORIE), ("kcal", Unit.KILOCALORIE),
    ("calories", Unit.CALORIE), ("calorie", Unit.CALORIE), ("cal", Unit.CALORIE),
    ("kilojoules", Unit.KILOJOULE), ("kilojoule", Unit.KILOJOULE), ("kj", Unit.KILOJOULE),
    ("joules", Unit.JOULE), ("joule", Unit.JOULE), ("j", Unit.JOULE),
    ("kilowatt hours", Unit.KILOWATT_HOUR), ("kilowatt hour", Unit.KILOWATT_HOUR),
    ("kwh", Unit.KILOWATT_HOUR),
    ("watt hours", Unit.WATT_HOUR), ("watt hour", Unit.WATT_HOUR), ("wh", Unit.WATT_HOUR),
    ("btus", Unit.BTU), ("btu", Unit.BTU),
    ("electronvolts", Unit.ELECTRONVOLT), ("electronvolt", Unit.ELECTRONVOLT), ("ev", Unit.ELECTRONVOLT),
    # Length
    ("kilometers", Unit.KILOMETER), ("kilometer", Unit.KILOMETER), ("km", Unit.KILOMETER),
    ("meters", Unit.METER), ("meter", Unit.METER), ("m", Unit.METER),
    ("centimeters", Unit.CENTIMETER), ("centimeter", Unit.CENTIMETER), ("cm", Unit.CENTIMETER),
    ("millimeters", Unit.MILLIMETER), ("millimeter", Unit.MILLIMETER), ("mm", Unit.MILLIMETER),
    ("micrometers", Unit.MICROMETER), ("micrometer", Unit.MICROMETER),
    ("µm", Unit.MICROMETER), ("um", Unit.MICROMETER),
    ("nanometers", Unit.NANOMETER), ("nanometer", Unit.NANOMETER), ("nm", Unit.NANOMETER),
    ("inches", Unit.INCH), ("inch", Unit.INCH), ("in", Unit.INCH),
    ("feet", Unit.FOOT), ("foot", Unit.FOOT), ("ft", Unit.FOOT),
    ("yards", Unit.YARD), ("yard", Unit.YARD), ("yd", Unit.YARD),
    ("miles", Unit.MILE), ("mile", Unit.MILE), ("mi", Unit.MILE),
    ("nautical miles", Unit.NAUTICAL_MILE), ("nautical mile", Unit.NAUTICAL_MILE),
    ("nmi", Unit.NAUTICAL_MILE),
    # Weight
    ("kilograms", Unit.KILOGRAM), ("kilogram", Unit.KILOGRAM), ("kg", Unit.KILOGRAM),
    ("grams", Unit.GRAM), ("gram", Unit.GRAM), ("g", Unit.GRAM),
    ("milligrams", Unit.MILLIGRAM), ("milligram", Unit.MILLIGRAM), ("mg", Unit.MILLIGRAM),
    ("tonnes", Unit.TONNE), ("tonne", Unit.TONNE),
    ("metric tons", Unit.TONNE), ("metric ton", Unit.TONNE),
    ("pounds", Unit.POUND), ("pound", Unit.POUND), ("lbs", Unit.POUND), ("lb", Unit.POUND),
    ("ounces", Unit.OUNCE), ("ounce", Unit.OUNCE), ("oz", Unit.OUNCE),
    ("stones", Unit.STONE), ("stone", Unit.STONE), ("st", Unit.STONE),
    ("carats", Unit.CARAT), ("carat", Unit.CARAT), ("ct", Unit.CARAT),
    # Temperature
    ("degrees celsius", Unit.CELSIUS), ("celsius", Unit.CELSIUS),
    ("degrees fahrenheit", Unit.FAHRENHEIT), ("fahrenheit", Unit.FAHRENHEIT),
    ("kelvin", Unit.KELVIN),
    # Area
    ("square meters", Unit.SQUARE_METER), ("sq m", Unit.SQUARE_METER),
    ("m²", Unit.SQUARE_METER), ("m2", Unit.SQUARE_METER),
    ("square kilometers", Unit.SQUARE_KILOMETER), ("sq km", Unit.SQUARE_KILOMETER),
    ("km²", Unit.SQUARE_KILOMETER), ("km2", Unit.SQUARE_KILOMETER),
    ("square feet", Unit.SQUARE_FOOT), ("sq ft", Unit.SQUARE_FOOT),
    ("ft²", Unit.SQUARE_FOOT), ("ft2", Unit.SQUARE_FOOT),
    ("square inches", Unit.SQUARE_INCH), ("sq in", Unit.SQUARE_INCH),
    ("in²", Unit.SQUARE_INCH), ("in2", Unit.SQUARE_INCH),
    ("square yards", Unit.SQUARE_YARD), ("sq yd", Unit.SQUARE_YARD), ("yd²", Unit.SQUARE_YARD),
    ("square miles", Unit.SQUARE_MILE), ("sq mi", Unit.SQUARE_MILE), ("mi²", Unit.SQUARE_MILE),
    ("hectares", Unit.HECTARE), ("hectare", Unit.HECTARE), ("ha", Unit.HECTARE),
    ("acres", Unit.ACRE), ("acre", Unit.ACRE), ("ac", Unit.ACRE),
    # Volume
    ("cubic meters", Unit.CUBIC_METER), ("cu m", Unit.CUBIC_METER),
    ("m³", Unit.CUBIC_METER), ("m3", Unit.CUBIC_METER), ("cbm", Unit.CUBIC_METER),
    ("liters", Unit.LITER), ("liter", Unit.LITER), ("litres", Unit.LITER),
    ("litre", Unit.LITER), ("l", Unit.LITER),
    ("milliliters", Unit.MILLILITER), ("milliliter", Unit.MILLILITER), ("ml", Unit.MILLILITER),
    ("gallons", Unit.GALLON), ("gallon", Unit.GALLON), ("gal", Unit.GALLON),
    ("quarts", Unit.QUART), ("quart", Unit.QUART), ("qt", Unit.QUART),
    ("pints", Unit.PINT), ("pint", Unit.PINT),
    ("cups", Unit.CUP), ("cup", Unit.CUP),
    ("tablespoons", Unit.TABLESPOON), ("tablespoon", Unit.TABLESPOON),
    ("tbsp", Unit.TABLESPOON), ("table spoon", Unit.TABLESPOON),
    ("teaspoons", Unit.TEASPOON), ("teaspoon", Unit.TEASPOON),
    ("tsp", Unit.TEASPOON), ("tea spoon", Unit.TEASPOON),
    ("cubic feet", Unit.CUBIC_FOOT), ("cu ft", Unit.CUBIC_FOOT), ("ft³", Unit.CUBIC_FOOT),
    ("cubic inches", Unit.CUBIC_INCH), ("cu in", Unit.CUBIC_INCH), ("in³", Unit.CUBIC_INCH),
    # Time
    ("years", Unit.YEAR), ("year", Unit.YEAR), ("yr", Unit.YEAR),
    ("months", Unit.MONTH), ("month", Unit.MONTH),
    ("weeks", Unit.WEEK), ("week", Unit.WEEK),
    ("days", Unit.DAY), ("day", Unit.DAY),
    ("hours", Unit.HOUR), ("hour", Unit.HOUR), ("hrs", Unit.HOUR), ("hr", Unit.HOUR),
    ("minutes", Unit.MINUTE), ("minute", Unit.MINUTE), ("mins", Unit.MINUTE), ("min", Unit.MINUTE),
    ("seconds", Unit.SECOND), ("second", Unit.SECOND), ("secs", Unit.SECOND), ("sec", Unit.SECOND),
    ("milliseconds", Unit.MILLISECOND), ("millisecond", Unit.MILLISECOND), ("ms", Unit.MILLISECOND),
    # Data
    ("terabytes", Unit.TERABYTE), ("terabyte", Unit.TERABYTE), ("TB", Unit.TERABYTE),
    ("tebibytes", Unit.TEBIBYTE), ("tebibyte", Unit.TEBIBYTE), ("TiB", Unit.TEBIBYTE),
    ("gigabytes", Unit.GIGABYTE), ("gigabyte", Unit.GIGABYTE), ("GB", Unit.GIGABYTE),
    ("gibibytes", Unit.GIBIBYTE), ("gibibyte", Unit.GIBIBYTE), ("GiB", Unit.GIBIBYTE),
    ("megabytes", Unit.MEGABYTE), ("megabyte", Unit.MEGABYTE), ("MB", Unit.MEGABYTE),
    ("mebibytes", Unit.MEBIBYTE), ("mebibyte", Unit.MEBIBYTE), ("MiB", Unit.MEBIBYTE),
    ("kilobytes", Unit.KILOBYTE), ("kilobyte", Unit.KILOBYTE), ("KB", Unit.KILOBYTE),
    ("kibibytes", Unit.KIBIBYTE), ("kibibyte", Unit.KIBIBYTE), ("KiB", Unit.KIBIBYTE),
    ("gigabits", Unit.GIGABIT), ("gigabit", Unit.GIGABIT), ("Gb", Unit.GIGABIT), ("Gbit", Unit.GIGABIT),
    ("megabits", Unit.MEGABIT), ("megabit", Unit.MEGABIT), ("Mb", Unit.MEGABIT), ("Mbit", Unit.MEGABIT),
    ("kilobits", Unit.KILOBIT), ("kilobit", Unit.KILOBIT), ("Kb", Unit.KILOBIT), ("Kbit", Unit.KILOBIT),
    ("tb", Unit.TERABYTE), ("gb", Unit.GIGABYTE), ("mb", Unit.MEGABYTE), ("kb", Unit.KILOBYTE),
    ("bytes", Unit.BYTE), ("byte", Unit.BYTE),
    ("bits", Unit.BIT), ("bit", Unit.BIT),
    # Angle
    ("radians", Unit.RADIAN), ("radian", Unit.RADIAN), ("rad", Unit.RADIAN),
    ("degrees", Unit.DEGREE), ("degree", Unit.DEGREE), ("deg", Unit.DEGREE),
    # CSS
    ("pixels", Unit.PIXEL), ("pixel", Unit.PIXEL), ("px", Unit.PIXEL),
    ("points", Unit.POINT), ("pt", Unit.POINT),
    ("em", Unit.EM),
]
CASE_SENSITIVE_PHRASES = frozenset({
    "TB", "TiB", "GB", "GiB", "MB", "MiB", "KB", "KiB",
    "Gb", "Gbit", "Mb", "Mbit", "Kb", "Kbit",
})

# (phrase, lowered phrase, unit, case sensitive)
PhraseEntry = Tuple[str, str, Unit, bool]


def build_phrase_table(unit_names: Mapping[str, Unit]) -> List[PhraseEntry]:
    """English phrases plus localized unit names, longest first.

    Among phrases of equal length the case-sensitive spellings are tried
    first, so "Mb" (megabit) wins over the lowercase "mb" (megabyte).
    """
    entries = [(phrase, phrase.lower(), unit, phrase in CASE_SENSITIVE_PHRASES)
               for phrase, unit in UNIT_PHRASES]
    entries.extend((name, name.lower(), unit, False) for name, unit in unit_names.items())
    entries.sort(key=lambda entry: (-len(entry[0]), not entry[3]))
    return entries


def is_word_char(ch: str) -> bool:
    return ch.isalpha() or ch.isdecimal() or ch == "_"


Span = Tuple[Token, int, int]


class Tokenizer:
    def __init__(self, keywords: Optional[ParserKeywords] = None):
        self.keywords = keywords if keywords is not None else parser_keywords()
        self.unit_phrases = build_phrase_table(self.keywords.unit_names)

    def tokenize(self, line: str) -> List[Token]:
        spans, _ = self._scan(line)
        return [token for token, _, _ in spans]

    def tokenize_with_ranges(self, line: str) -> List[TokenRange]:
        """Highlight ranges for a line, one per token, plus a trailing comment range."""
        spans, comment_start = self._scan(line)
        ranges = [TokenRange(self.highlight_kind(token), start, end - start)
                  for token, start, end in spans]
        if comment_start is not None:
            ranges.append(TokenRange(HighlightKind.COMMENT, comment_start, len(line) - comment_start))
        return ranges

    def highlight_kind(self, token: Token) -> HighlightKind:
        kind = token.kind
        if kind is TokenKind.NUMBER:
            return HighlightKind.NUMBER
        if kind is TokenKind.UNIT:
            return HighlightKind.UNIT
        if kind is TokenKind.OPERATOR:
            if token.value in KEYWORD_LIKE_OPERATORS:
                return HighlightKind.KEYWORD
            return HighlightKind.OPERATOR
        if kind is TokenKind.KEYWORD:
            return HighlightKind.KEYWORD
        if kind is TokenKind.FUNCTION:
            return HighlightKind.FUNCTION
        if kind is TokenKind.VARIABLE:
            if token.value.lower() in self.keywords.display_format_words:
                return HighlightKind.UNIT
            return HighlightKind.VARIABLE
        return HighlightKind.PLAIN

    def _scan(self, line: str) -> Tuple[List[Span], Optional[int]]:
        spans: List[Span] = []
        i = 0
        while i < len(line):
            ch = line[i]
            if ch == "#" or line.startswith("//", i):
                return spans, i
            if ch.isspace():
                i += 1
                continue
            read = (self._read_currency_symbol(line, i)
                    or self._read_number(line, i)
                    or self._read_symbol(line, i)
                    or self._read_word(line, i))
            if read:
                spans.extend(read)
                i = read[-1][2]
            else:
                i += 1
        return spans, None

    def _read_currency_symbol(self, line: str, i: int) -> Optional[List[Span]]:
        if line.startswith("R$", i):
            symbol, code = "R$", "BRL"
        elif line[i] in CURRENCY_SYMBOLS:
            symbol, code = line[i], CURRENCY_SYMBOLS[line[i]]
        else:
            return None
        end = i + len(symbol)
        before_number = end < len(line) and (line[end].isdecimal() or line[end] == ".")
        if before_number or symbol in STANDALONE_CURRENCY_SYMBOLS:
            return [(Token(TokenKind.UNIT, Currency(code), symbol), i, end)]
        return None

    def _read_number(self, line: str, i: int) -> Optional[List[Span]]:
        n = len(line)
        ch = line[i]
        if not (ch.isdecimal() or (ch == "." and i + 1 < n and line[i + 1].isdecimal())):
            return None

        if ch == "0" and i + 2 < n:
            radix = RADIX_PREFIXES.get(line[i + 1].lower())
            if radix and line[i + 2] in radix[1]:
                base, digits, unit = radix
                end = i + 2
                while end < n and line[end] in digits:
                    end += 1
                number = float(int(line[i + 2:end], base))
                # The display unit has no source text of its own.
                return [(Token(TokenKind.NUMBER, number, line[i:end]), i, end),
                        (Token(TokenKind.UNIT, unit, ""), end, end)]

        chars = []
        end = i
        seen_dot = False
        while end < n:
            c = line[end]
            if c.isdecimal():
                chars.append(c)
            elif c == "." and not seen_dot:
                seen_dot = True
                chars.append(c)
            elif (c == "," and not seen_dot and line[end - 1].isdecimal()
                  and end + 1 < n and line[end + 1].isdecimal()):
                pass
            else:
                break
            end += 1

        if end < n and line[end] in "eE":
            j = end + 1
            if j < n and line[j] in "+-":
                j += 1
            if j < n and line[j].isdecimal():
                while j < n and line[j].isdecimal():
                    j += 1
                chars.append(line[end:j])
                end = j

        return [(Token(TokenKind.NUMBER, float("".join(chars)), line[i:end]), i, end)]

    def _read_symbol(self, line: str, i: int) -> Optional[List[Span]]:
        pair = line[i:i + 2]
        if pair in COMPOUND_OPERATORS:
            return [(Token(TokenKind.OPERATOR, COMPOUND_OPERATORS[pair], pair), i, i + 2)]
        ch = line[i]
        if ch in SYMBOL_OPERATORS:
            return [(Token(TokenKind.OPERATOR, SYMBOL_OPERATORS[ch], ch), i, i + 1)]
        if ch == "(":
            return [(Token(TokenKind.LEFT_PAREN, text=ch), i, i + 1)]
        if ch == ")":
            return [(Token(TokenKind.RIGHT_PAREN, text=ch), i, i + 1)]
        if ch == ",":
            return [(Token(TokenKind.COMMA, text=ch), i, i + 1)]
        if ch == "°":
            suffix = line[i + 1:i + 2].lower()
            if suffix == "c":
                return [(Token(TokenKind.UNIT, Unit.CELSIUS, line[i:i + 2]), i, i + 2)]
            if suffix == "f":
                return [(Token(TokenKind.UNIT, Unit.FAHRENHEIT, line[i:i + 2]), i, i + 2)]
            return [(Token(TokenKind.UNIT, Unit.DEGREE, ch), i, i + 1)]
        if ch == "%":
            return [(Token(TokenKind.UNIT, Unit.PERCENT, ch), i, i + 1)]
        return None

    def _read_word(self, line: str, i: int) -> Optional[List[Span]]:
        if not (line[i].isalpha() or line[i] == "_"):
            return None
        end = i
        while end < len(line) and is_word_char(line[end]):
            end += 1
        word = line[i:end]
        token, end = self._classify_word(line, i, end, word)
        return [(token, i, end)]

    def _classify_word(self, line: str, start: int, end: int, word: str) -> Tuple[Token, int]:
        lower = word.lower()
        keywords = self.keywords

        keyword = keywords.keywords.get(lower)
        if keyword is not None:
            return Token(TokenKind.KEYWORD, keyword, word), end

        divided_end = self._read_divided_by(line, lower, end)
        if divided_end is not None:
            return Token(TokenKind.OPERATOR, Operator.DIVIDE, line[start:divided_end]), divided_end

        operator = keywords.operator_words.get(lower)
        if operator is not None:
            return Token(TokenKind.OPERATOR, operator, word), end

        if lower in FUNCTION_NAMES:
            return Token(TokenKind.FUNCTION, lower, word), end

        phrase = self._match_unit_phrase(line, start)
        if phrase is not None:
            unit, phrase_end = phrase
            return Token(TokenKind.UNIT, unit, line[start:phrase_end]), phrase_end

        upper = word.upper()
        if upper in CURRENCY_CODES and (len(word) == 3 or word == upper):
            return Token(TokenKind.UNIT, Currency(upper), word), end

        ticker = CRYPTO_NAMES.get(lower) or keywords.currency_names.get(lower)
        if ticker is not None:
            return Token(TokenKind.UNIT, Currency(ticker), word), end

        if word in TEMPERATURE_LETTERS:
            return Token(TokenKind.UNIT, TEMPERATURE_LETTERS[word], word), end

        return Token(TokenKind.VARIABLE, word, word), end

    def _read_divided_by(self, line: str, lower: str, end: int) -> Optional[int]:
        for first, second in self.keywords.divided_by:
            if lower != first:
                continue
            j = end
            while j < len(line) and line[j].isspace():
                j += 1
            if j == end:
                continue
            k = j
            while k < len(line) and is_word_char(line[k]):
                k += 1
            if line[j:k].lower() == second:
                return k
        return None

    def _match_unit_phrase(self, line: str, start: int) -> Optional[Tuple[Unit, int]]:
        for phrase, lowered, unit, case_sensitive in self.unit_phrases:
            end = start + len(phrase)
            if end > len(line):
                continue
            candidate = line[start:end]
            if case_sensitive:
                matched = candidate == phrase
            else:
                matched = candidate.lower() == lowered
            if not matched:
                continue
            if end == len(line) or not (line[end].isalpha() or line[end] == "_"):
                return unit, end
        return None


@lru_cache(maxsize=None)
def tokenizer_for(language: Language) -> Tokenizer:
    return Tokenizer(parser_keywords(language))
