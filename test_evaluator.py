"""Tests for note evaluation, line by line."""

import pytest

from notecalc.evaluator import Evaluator, strip_leading_noise, strip_trailing_noise
from notecalc.keywords import parser_keywords
from notecalc.rates import RateTable
from notecalc.tokenizer import Tokenizer
from notecalc.units import Currency, Unit

RATES = RateTable.from_prices({"USD": 1.0, "EUR": 0.9, "GBP": 0.8}, {"BTC": 50000.0})


def evaluate(text, language="en"):
    keywords = parser_keywords(language)
    return Evaluator(keywords=keywords, rates=RATES).evaluate_all(text)


def value_of(text, language="en"):
    result = evaluate(text, language)[-1]
    assert result.error is None, result.error
    return result.value


@pytest.mark.parametrize("line, expected", [
    ("2 + 3", 5),
    ("10 / 4", 2.5),
    ("(2 + 3) * 4", 20),
    ("2 + 3 * 4", 14),
    ("2 ^ 3 ^ 2", 512),
    ("2 ** 10", 1024),
    ("-2 ^ 2", 4),
    ("7 mod 3", 1),
    ("5 plus 3", 8),
    ("10 divided by 4", 2.5),
    ("~0xF0 & 0xFF", 15),
    ("0b1010 | 0b0101", 15),
    ("6 xor 3", 5),
    ("1 << 4", 16),
    ("256 >> 4", 16),
    ("$1,234 + 1", 1235),
    ("what is 2 + 2", 4),
    ("what's 3 * 3", 9),
    ("sqrt(16)", 4),
    ("cbrt(-27)", -3),
    ("round(2.5)", 3),
    ("round(-2.5)", -3),
    ("floor(2.7) + ceil(2.1)", 5),
    ("log(1000)", 3),
    ("ln(e)", 1),
    ("abs(-4)", 4),
    ("fact(0)", 1),
    ("fact(5)", 120),
    ("100 + 10%", 110),
    ("100 - 10%", 90),
    ("20% of 50", 10),
    ("10 km / 2 km", 5),
])
def test_expressions(line, expected):
    assert value_of(line).number == pytest.approx(expected)


def test_trig_takes_degrees():
    assert value_of("sin(90°)").number == pytest.approx(1.0)
    assert value_of("cos(0)").number == pytest.approx(1.0)


def test_constants():
    assert value_of("pi").number == pytest.approx(3.14159265)
    value = value_of("speedoflight")
    assert value.unit is Unit.METERS_PER_SECOND


def test_trailing_unit_attaches_to_the_expression():
    value = value_of("(2 + 3) km")
    assert value.unit is Unit.KILOMETER
    assert value.number == 5


def test_fromunix_gives_a_date():
    value = value_of("fromunix(86400)")
    assert value.unit is Unit.DATE
    assert value.number == 86400


def test_unit_conversion():
    value = value_of("100 km in miles")
    assert value.unit is Unit.MILE
    assert value.number == pytest.approx(62.137, abs=0.01)


def test_conversion_keywords():
    assert value_of("1 hour to minutes").number == pytest.approx(60)
    assert value_of("32 °F as °C").number == pytest.approx(0, abs=1e-9)


def test_display_conversions():
    assert value_of("255 in hex").unit is Unit.HEX
    assert value_of("5 in binary").unit is Unit.BINARY
    assert value_of("1500000 in sci").unit is Unit.SCIENTIFIC


def test_unknown_conversion_target_is_invalid():
    result = evaluate("5 kg in bananas")[0]
    assert result.value is None
    assert result.error == "invalid"


def test_tip():
    value = value_of("20% tip on $85")
    assert value.number == pytest.approx(102.0)
    assert value.unit == Currency("USD")


@pytest.mark.parametrize("line, expected", [
    ("15% tax on $200", 230),
    ("10% on $50", 55),
    ("10% off $50", 45),
    ("10% on what is $110", 100),
])
def test_percentage_phrases(line, expected):
    assert value_of(line).number == pytest.approx(expected)


@pytest.mark.parametrize("line, expected", [
    ("$200 split 4 ways", 50),
    ("split $120 between 4 people", 30),
    ("$90 split among 3", 30),
    ("20% tip on $100 split 4 ways", 30),
])
def test_split(line, expected):
    value = value_of(line)
    assert value.number == pytest.approx(expected)
    assert value.unit == Currency("USD")


def test_split_by_zero_is_an_error():
    result = evaluate("$100 split 0 ways")[0]
    assert result.value is None
    assert result.error == "out of range"


@pytest.mark.parametrize("line, expected", [
    ("$50 as a % of $200", 25),
    ("$120 as a % on $100", 20),
    ("$80 as a % off $100", 20),
])
def test_percentage_relation(line, expected):
    value = value_of(line)
    assert value.unit is Unit.PERCENT
    assert value.number == pytest.approx(expected)


def test_assignment_and_reuse():
    results = evaluate("x = 10\nx * 5")
    assert results[0].value.number == 10
    assert results[0].assignment_variable == "x"
    assert results[1].value.number == 50
    assert results[1].assignment_variable is None


def test_reassignment_overwrites():
    results = evaluate("rent = 1000\nrent = rent + 200\nrent")
    assert results[2].value.number == 1200


def test_variables_are_returned_in_the_context():
    context = Evaluator(rates=RATES).evaluate("a = 2\nb = a * 3")
    assert sorted(context.variables) == ["a", "b"]
    assert context.variables["b"].number == 6


def test_assignment_without_value():
    assert evaluate("x =")[0].error == "invalid"


def test_unknown_variable_has_no_value():
    result = evaluate("groceries")[0]
    assert result.value is None
    assert result.error is None


def test_sum_and_average():
    assert value_of("10\n20\n30\nsum").number == 60
    assert value_of("10\n20\n30\navg").number == 20
    assert value_of("10\n20\n30\ntotal").number == 60


def test_aggregate_stops_at_blank_line():
    assert value_of("100\n\n10\n20\nsum").number == 30


def test_aggregate_converts_to_the_nearest_unit():
    value = value_of("1 km\n500 m\nsum")
    assert value.unit is Unit.METER
    assert value.number == pytest.approx(1500)


def test_prev():
    results = evaluate("10\nprev * 2\nprev + 1")
    assert [r.value.number for r in results] == [10, 20, 21]


def test_prev_on_the_first_line():
    assert evaluate("prev")[0].value is None


def test_division_by_zero_is_localized():
    assert evaluate("10 / 0")[0].error == "÷ by 0"
    assert evaluate("10 / 0", "es")[0].error == "÷ por 0"


def test_errors_stay_on_their_line():
    results = evaluate("10 / 0\n2 + 2")
    assert results[0].value is None
    assert results[1].value.number == 4


@pytest.mark.parametrize("line", [
    "fact(-5)", "fact(5.5)", "fact(171)", "fact(1e309 - 1e309)", "sqrt(-1)", "log(0)", "1 << 2000",
])
def test_domain_errors_have_no_value(line):
    result = evaluate(line)[0]
    assert result.value is None
    assert result.error == "out of range"


def test_incompatible_units_names_both_units():
    result = evaluate("5 kg + 3 °C")[0]
    assert result.value is None
    assert result.error == "bad units: kg ≠ °C"


def test_mixed_units_are_converted_to_the_left_unit():
    value = value_of("1 km + 500 m")
    assert value.unit is Unit.KILOMETER
    assert value.number == pytest.approx(1.5)


def test_currency_arithmetic():
    value = value_of("$100 + 90 EUR")
    assert value.unit == Currency("USD")
    assert value.number == pytest.approx(200)
    assert value_of("$100 in EUR").number == pytest.approx(90)
    assert value_of("1 BTC in USD").number == pytest.approx(50000)


def test_em_assignment_changes_em_size():
    results = evaluate("em = 20px\n2 em in px")
    assert results[0].value is None
    assert results[0].error is None
    assert results[1].value.number == pytest.approx(40)


def test_dates():
    today = value_of("today")
    assert today.unit is Unit.DATE
    tomorrow = value_of("today + 1 day")
    assert tomorrow.number - today.number == pytest.approx(86400)
    assert value_of("now - today").unit is Unit.DURATION


def test_blank_and_comment_lines():
    results = evaluate("\n# heading\n   \n5 // five")
    assert all(r.value is None and r.error is None for r in results[:3])
    assert results[3].value.number == 5


def test_one_result_per_line():
    assert len(evaluate("1\n2\n\n3\n")) == 5


@pytest.mark.parametrize("language", ["en", "es", "pt"])
def test_english_parses_under_every_language(language):
    assert value_of("5 plus 3", language).number == 8
    assert value_of("10\n20\nsum", language).number == 30


def test_spanish():
    assert value_of("5 más 3", "es").number == 8
    assert value_of("5 kilogramos en libras", "es").number == pytest.approx(11.023, abs=0.01)
    assert value_of("10\n20\nsuma", "es").number == 30
    assert value_of("qué es 2 por 3", "es").number == 6


def test_portuguese():
    assert value_of("5 mais 3", "pt").number == 8
    assert value_of("$100 dividir entre 4 pessoas", "pt").number == pytest.approx(25)


def test_noise_stripping():
    keywords = parser_keywords("en")
    tokenizer = Tokenizer(keywords)
    assert len(strip_leading_noise(tokenizer.tokenize("what is 5"), keywords)) == 1
    assert len(strip_trailing_noise(tokenizer.tokenize("4 ways"), keywords)) == 1
    # "people" is only noise after a count
    assert len(strip_trailing_noise(tokenizer.tokenize("x people"), keywords)) == 2
