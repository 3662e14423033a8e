"""Tests for the line tokenizer and its highlight ranges."""

import pytest

from notecalc.keywords import Keyword, Language, Operator, parser_keywords
from notecalc.tokenizer import HighlightKind, Token, TokenKind, Tokenizer, TokenRange, tokenizer_for
from notecalc.units import Currency, Unit


@pytest.fixture
def tokenizer():
    return Tokenizer(parser_keywords("en"))


def kinds(tokens):
    return [token.kind for token in tokens]


def test_conversion_line(tokenizer):
    tokens = tokenizer.tokenize("5 kg in pounds")
    assert tokens == [
        Token(TokenKind.NUMBER, 5.0),
        Token(TokenKind.UNIT, Unit.KILOGRAM),
        Token(TokenKind.KEYWORD, Keyword.IN),
        Token(TokenKind.UNIT, Unit.POUND),
    ]


def test_keyword_range_positions(tokenizer):
    ranges = tokenizer.tokenize_with_ranges("5 kg in pounds")
    assert ranges[2] == TokenRange(HighlightKind.KEYWORD, 5, 2)
    assert ranges[3] == TokenRange(HighlightKind.UNIT, 8, 6)


def test_longest_unit_phrase_wins(tokenizer):
    tokens = tokenizer.tokenize("100 km/h")
    assert tokens[1] == Token(TokenKind.UNIT, Unit.KILOMETERS_PER_HOUR)
    assert tokenizer.tokenize_with_ranges("100 km/h")[1] == TokenRange(HighlightKind.UNIT, 4, 4)


def test_multi_word_unit_phrase(tokenizer):
    tokens = tokenizer.tokenize("3 square feet")
    assert tokens == [Token(TokenKind.NUMBER, 3.0), Token(TokenKind.UNIT, Unit.SQUARE_FOOT)]


@pytest.mark.parametrize("line", [
    "2 + 3",
    "5 kg in pounds",
    "$1,234.50 split 4 ways",
    "20% tip on $85",
    "~0xF0 & 0xFF",
    "0b1010 << 2",
    "sqrt(16) * pi",
    "10 divided by 2",
    "x = 3 mod 2",
    "what is 100 km/h in mph",
    "£ 5 € unknown_word",
    "",
])
def test_token_and_range_counts_match(tokenizer, line):
    assert len(tokenizer.tokenize(line)) == len(tokenizer.tokenize_with_ranges(line))


@pytest.mark.parametrize("line, comment_start", [
    ("# groceries", 0),
    ("5 + 3 // running total", 6),
    ("12 kg # flour", 6),
])
def test_comment_adds_one_trailing_range(tokenizer, line, comment_start):
    tokens = tokenizer.tokenize(line)
    ranges = tokenizer.tokenize_with_ranges(line)
    assert len(ranges) == len(tokens) + 1
    assert ranges[-1] == TokenRange(HighlightKind.COMMENT, comment_start, len(line) - comment_start)


def test_currency_symbol_with_thousands_separator(tokenizer):
    tokens = tokenizer.tokenize("$1,234.50")
    assert tokens == [Token(TokenKind.UNIT, Currency("USD")), Token(TokenKind.NUMBER, 1234.5)]


def test_currency_symbol_needs_a_following_digit(tokenizer):
    assert tokenizer.tokenize("$ 5") == [Token(TokenKind.NUMBER, 5.0)]


def test_standalone_crypto_symbol(tokenizer):
    assert tokenizer.tokenize("₿") == [Token(TokenKind.UNIT, Currency("BTC"))]


def test_real_sign(tokenizer):
    assert tokenizer.tokenize("R$10")[0] == Token(TokenKind.UNIT, Currency("BRL"))


@pytest.mark.parametrize("line, number, unit", [
    ("0xFF", 255.0, Unit.HEX),
    ("0b1010", 10.0, Unit.BINARY),
    ("0o17", 15.0, Unit.OCTAL),
])
def test_radix_literals(tokenizer, line, number, unit):
    tokens = tokenizer.tokenize(line)
    assert tokens == [Token(TokenKind.NUMBER, number), Token(TokenKind.UNIT, unit)]
    ranges = tokenizer.tokenize_with_ranges(line)
    assert ranges[1] == TokenRange(HighlightKind.UNIT, len(line), 0)


def test_zero_followed_by_bytes_is_not_binary(tokenizer):
    assert tokenizer.tokenize("0 bytes") == [Token(TokenKind.NUMBER, 0.0), Token(TokenKind.UNIT, Unit.BYTE)]


def test_scientific_notation(tokenizer):
    assert tokenizer.tokenize("1.5e3") == [Token(TokenKind.NUMBER, 1500.0)]
    assert tokenizer.tokenize("2E-2") == [Token(TokenKind.NUMBER, 0.02)]


@pytest.mark.parametrize("line, operator", [
    ("2 ** 3", Operator.POWER),
    ("1 << 4", Operator.SHIFT_LEFT),
    ("16 >> 2", Operator.SHIFT_RIGHT),
    ("6 × 7", Operator.MULTIPLY),
    ("8 ÷ 2", Operator.DIVIDE),
    ("5 mod 2", Operator.MODULO),
    ("5 plus 2", Operator.ADD),
])
def test_operators(tokenizer, line, operator):
    assert tokenizer.tokenize(line)[1] == Token(TokenKind.OPERATOR, operator)


def test_divided_by_is_one_token(tokenizer):
    tokens = tokenizer.tokenize("10 divided by 2")
    assert kinds(tokens) == [TokenKind.NUMBER, TokenKind.OPERATOR, TokenKind.NUMBER]
    assert tokens[1].value is Operator.DIVIDE
    assert tokens[1].text == "divided by"


@pytest.mark.parametrize("line, unit", [
    ("20°C", Unit.CELSIUS),
    ("68°f", Unit.FAHRENHEIT),
    ("90°", Unit.DEGREE),
    ("300 K", Unit.KELVIN),
    ("25%", Unit.PERCENT),
])
def test_symbol_units(tokenizer, line, unit):
    assert tokenizer.tokenize(line)[1] == Token(TokenKind.UNIT, unit)


def test_case_sensitive_data_units(tokenizer):
    assert tokenizer.tokenize("5 Mb")[1].value is Unit.MEGABIT
    assert tokenizer.tokenize("5 mb")[1].value is Unit.MEGABYTE
    assert tokenizer.tokenize("5 MB")[1].value is Unit.MEGABYTE


def test_lowercase_temperature_letter_is_a_variable(tokenizer):
    assert tokenizer.tokenize("100 f")[1] == Token(TokenKind.VARIABLE, "f")


def test_keyword_beats_unit_phrase(tokenizer):
    # "in" could be inches, but the keyword table is consulted first
    assert tokenizer.tokenize("in")[0] == Token(TokenKind.KEYWORD, Keyword.IN)


def test_unit_phrase_needs_word_boundary(tokenizer):
    assert tokenizer.tokenize("max") == [Token(TokenKind.VARIABLE, "max")]


def test_currency_codes_and_names(tokenizer):
    assert tokenizer.tokenize("eur")[0] == Token(TokenKind.UNIT, Currency("EUR"))
    assert tokenizer.tokenize("bitcoin")[0] == Token(TokenKind.UNIT, Currency("BTC"))
    assert tokenizer.tokenize("dollars")[0] == Token(TokenKind.UNIT, Currency("USD"))


def test_functions_and_variables(tokenizer):
    tokens = tokenizer.tokenize("sqrt(rent)")
    assert kinds(tokens) == [TokenKind.FUNCTION, TokenKind.LEFT_PAREN, TokenKind.VARIABLE, TokenKind.RIGHT_PAREN]
    assert tokens[0].value == "sqrt"
    assert tokens[2].value == "rent"


def test_highlight_kinds(tokenizer):
    ranges = tokenizer.tokenize_with_ranges("x = 255 mod 7 in hex")
    assert [r.kind for r in ranges] == [
        HighlightKind.VARIABLE,
        HighlightKind.OPERATOR,
        HighlightKind.NUMBER,
        HighlightKind.KEYWORD,
        HighlightKind.NUMBER,
        HighlightKind.KEYWORD,
        HighlightKind.UNIT,
    ]


def test_spanish_words():
    tokenizer = tokenizer_for(Language.SPANISH)
    tokens = tokenizer.tokenize("5 kilogramos en libras")
    assert tokens == [
        Token(TokenKind.NUMBER, 5.0),
        Token(TokenKind.UNIT, Unit.KILOGRAM),
        Token(TokenKind.KEYWORD, Keyword.IN),
        Token(TokenKind.UNIT, Unit.POUND),
    ]
    assert tokenizer.tokenize("5 más 3")[1] == Token(TokenKind.OPERATOR, Operator.ADD)
    assert tokenizer.tokenize("9 dividido entre 3")[1] == Token(TokenKind.OPERATOR, Operator.DIVIDE)


def test_english_still_tokenizes_under_portuguese():
    tokenizer = tokenizer_for(Language.PORTUGUESE)
    assert tokenizer.tokenize("5 plus 3")[1] == Token(TokenKind.OPERATOR, Operator.ADD)
    assert tokenizer.tokenize("2 mais 2")[1] == Token(TokenKind.OPERATOR, Operator.ADD)
