"""Precedence-climbing expression parser and unit-aware arithmetic.

The parser evaluates as it parses: each rule returns a Value (or None when a
line simply has nothing numeric in it). Sentence shapes such as "split" are
recognised one level up, in the evaluator.
"""
import datetime
import math
from typing import Callable, Dict, List, Optional

from notecalc.errors import DivisionByZeroError, DomainError, IncompatibleUnitsError, InvalidExpressionError
from notecalc.keywords import PRECEDENCE, Keyword, Operator
from notecalc.models import EvaluationContext, Value
from notecalc.tokenizer import Token, TokenKind
from notecalc.units import Category, Unit, category_of, convert, symbol_of

CONSTANTS: Dict[Keyword, Value] = {
    Keyword.PI: Value(math.pi),
    Keyword.E: Value(math.e),
    Keyword.TAU: Value(math.tau),
    Keyword.PHI: Value(1.6180339887498948),
    Keyword.SPEED_OF_LIGHT: Value(299792458.0, Unit.METERS_PER_SECOND),
    Keyword.GRAVITY: Value(6.67430e-11),
    Keyword.AVOGADRO: Value(6.02214076e23),
    Keyword.PLANCK: Value(6.62607015e-34),
    Keyword.BOLTZMANN: Value(1.380649e-23),
    Keyword.ECHARGE: Value(1.602176634e-19),
}

CONVERSION_KEYWORDS = frozenset({Keyword.IN, Keyword.AS, Keyword.TO})
TIP_KEYWORDS = frozenset({Keyword.TIP, Keyword.TAX})
AGGREGATE_KEYWORDS = frozenset({Keyword.SUM, Keyword.TOTAL, Keyword.AVERAGE, Keyword.AVG})
AVERAGE_KEYWORDS = frozenset({Keyword.AVERAGE, Keyword.AVG})
TRIG_FUNCTIONS = frozenset({"sin", "cos", "tan"})


def _round_half_away(number: float) -> float:
    return math.copysign(math.floor(abs(number) + 0.5), number)


def _cbrt(number: float) -> float:
    return math.copysign(abs(number) ** (1.0 / 3.0), number)


def _checked(function: Callable[[float], float], low: float = -math.inf, high: float = math.inf,
             low_inclusive: bool = True) -> Callable[[float], float]:
    def call(number: float) -> float:
        below = number < low if low_inclusive else number <= low
        if below or number > high:
            raise DomainError(f"argument {number} out of range")
        return function(number)
    return call


FUNCTIONS: Dict[str, Callable[[float], float]] = {
    "sqrt": _checked(math.sqrt, low=0.0),
    "cbrt": _cbrt,
    "log": _checked(math.log10, low=0.0, low_inclusive=False),
    "log10": _checked(math.log10, low=0.0, low_inclusive=False),
    "ln": _checked(math.log, low=0.0, low_inclusive=False),
    "log2": _checked(math.log2, low=0.0, low_inclusive=False),
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": _checked(math.asin, low=-1.0, high=1.0),
    "acos": _checked(math.acos, low=-1.0, high=1.0),
    "atan": math.atan,
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    "round": _round_half_away,
    "ceil": lambda number: float(math.ceil(number)),
    "floor": lambda number: float(math.floor(number)),
}
FUNCTION_ALIASES = {"arcsin": "asin", "arccos": "acos", "arctan": "atan"}

MAX_FACTORIAL = 170
MAX_SHIFT = 1023


def factorial(number: float) -> float:
    if not math.isfinite(number) or number < 0 or number > MAX_FACTORIAL or number != math.floor(number):
        raise DomainError(f"fact({number}) is undefined")
    return float(math.factorial(int(number)))


def to_integer(number: float) -> int:
    if not math.isfinite(number):
        raise DomainError(f"{number} is not an integer")
    return int(number)


def start_of_day(timestamp: float) -> float:
    day = datetime.datetime.fromtimestamp(timestamp).date()
    return datetime.datetime.combine(day, datetime.time()).timestamp()


class ExpressionParser:
    """Parses and evaluates one line's tokens against an evaluation context."""

    def __init__(self, tokens: List[Token], context: EvaluationContext, line_index: int):
        self.tokens = tokens
        self.context = context
        self.line_index = line_index
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def advance(self) -> Optional[Token]:
        token = self.peek()
        self.pos += 1
        return token

    def peek_keyword(self, offset: int = 0) -> Optional[Keyword]:
        token = self.peek(offset)
        if token is not None and token.kind is TokenKind.KEYWORD:
            return token.value
        return None

    def parse(self) -> Optional[Value]:
        return self.parse_expression()

    def parse_expression(self, min_precedence: int = 0) -> Optional[Value]:
        left = self.parse_unary()
        while True:
            token = self.peek()
            if token is None or token.kind is not TokenKind.OPERATOR:
                break
            operator = token.value
            if operator in (Operator.ASSIGN, Operator.BITWISE_NOT):
                break
            precedence = PRECEDENCE[operator]
            if precedence < min_precedence:
                break
            self.advance()
            if self.peek() is None:
                raise InvalidExpressionError(f"missing operand after {operator.value}")
            # Power is right-associative.
            next_min = precedence if operator is Operator.POWER else precedence + 1
            right = self.parse_expression(next_min)
            left = self.apply_operator(operator, left, right)

        token = self.peek()
        if left is not None and left.unit is None and token is not None and token.kind is TokenKind.UNIT:
            self.advance()
            left = Value(left.number, token.value)

        if min_precedence == 0:
            left = self.parse_conversion(left)
        return left

    def parse_conversion(self, value: Optional[Value]) -> Optional[Value]:
        if self.peek_keyword() not in CONVERSION_KEYWORDS:
            return value
        target = self.peek(1)
        if target is None:
            raise InvalidExpressionError("missing conversion target")
        if target.kind is TokenKind.VARIABLE:
            display = self.context.keywords.display_format_words.get(target.value.lower())
            if display is None:
                raise InvalidExpressionError(f"unknown unit {target.value}")
            self.pos += 2
            return None if value is None else Value(value.number, display)
        if target.kind is TokenKind.UNIT:
            self.pos += 2
            return None if value is None else self.convert_value(value, target.value)
        # "as a % of" and similar belong to a sentence shape, not to conversion.
        if self.peek_keyword() is Keyword.AS:
            return value
        raise InvalidExpressionError(f"cannot convert to {target.text}")

    def parse_unary(self) -> Optional[Value]:
        token = self.peek()
        if token is not None and token.kind is TokenKind.OPERATOR:
            if token.value is Operator.SUBTRACT:
                self.advance()
                operand = self.parse_unary()
                return None if operand is None else operand.with_number(-operand.number)
            if token.value is Operator.ADD:
                self.advance()
                return self.parse_unary()
            if token.value is Operator.BITWISE_NOT:
                self.advance()
                operand = self.parse_unary()
                return None if operand is None else operand.with_number(float(~to_integer(operand.number)))
        return self.parse_primary()

    def parse_primary(self) -> Optional[Value]:
        token = self.advance()
        if token is None:
            return None
        kind = token.kind

        if kind is TokenKind.NUMBER:
            following = self.peek()
            if following is not None and following.kind is TokenKind.UNIT:
                self.advance()
                if following.value is Unit.PERCENT:
                    return self.parse_percentage(token.value)
                return Value(token.value, following.value)
            return Value(token.value)

        if kind is TokenKind.UNIT:
            following = self.peek()
            if category_of(token.value) is Category.CURRENCY and following is not None \
                    and following.kind is TokenKind.NUMBER:
                self.advance()
                return Value(following.value, token.value)
            return None

        if kind is TokenKind.LEFT_PAREN:
            value = self.parse_expression()
            if self.peek() is not None and self.peek().kind is TokenKind.RIGHT_PAREN:
                self.advance()
            return value

        if kind is TokenKind.FUNCTION:
            if self.peek() is not None and self.peek().kind is TokenKind.LEFT_PAREN:
                self.advance()
                argument = self.parse_expression()
                if self.peek() is not None and self.peek().kind is TokenKind.RIGHT_PAREN:
                    self.advance()
            else:
                argument = self.parse_unary()
            return self.apply_function(token.value, argument)

        if kind is TokenKind.KEYWORD:
            return self.parse_keyword(token.value)

        if kind is TokenKind.VARIABLE:
            return self.context.variables.get(token.value)

        return None

    def parse_keyword(self, keyword: Keyword) -> Optional[Value]:
        if keyword in CONSTANTS:
            return CONSTANTS[keyword]
        if keyword is Keyword.TODAY:
            return Value(start_of_day(self.context.started_at), Unit.DATE)
        if keyword is Keyword.NOW:
            return Value(self.context.started_at, Unit.DATE)
        if keyword is Keyword.PREV:
            if self.line_index == 0:
                return None
            return self.context.results[self.line_index - 1].value
        if keyword in AGGREGATE_KEYWORDS:
            return self.aggregate(average=keyword in AVERAGE_KEYWORDS)
        return None

    def parse_percentage(self, percent: float) -> Optional[Value]:
        """Handles "<pct>% [tip|tax] of/on/off <amount>" after the % sign."""
        if self.peek_keyword() in TIP_KEYWORDS:
            self.advance()
        keyword = self.peek_keyword()
        if keyword is Keyword.OF:
            self.advance()
            base = self.parse_expression()
            return None if base is None else base.with_number(base.number * percent / 100)
        if keyword in (Keyword.ON, Keyword.OFF):
            self.advance()
            factor = 1 + percent / 100 if keyword is Keyword.ON else 1 - percent / 100
            reverse = self.peek_keyword() is Keyword.WHAT
            if reverse:
                self.advance()
                if self.peek_keyword() is Keyword.IS:
                    self.advance()
            base = self.parse_expression()
            if base is None:
                return None
            if reverse:
                if factor == 0:
                    raise DivisionByZeroError("percentage leaves nothing to divide")
                return base.with_number(base.number / factor)
            return base.with_number(base.number * factor)
        return Value(percent, Unit.PERCENT)

    def aggregate(self, average: bool) -> Optional[Value]:
        """Fold the values of the lines above, up to the first blank line."""
        values = []
        for result in reversed(self.context.results[:self.line_index]):
            if result.is_blank:
                break
            if result.value is not None:
                values.append(result.value)
        if not values:
            return None

        unit = next((value.unit for value in values if value.unit is not None), None)
        total = 0.0
        for value in values:
            if value.unit is None or unit is None or category_of(value.unit) is None:
                total += value.number
            else:
                total += self.convert_value(value, unit).number
        if average:
            total /= len(values)
        return Value(total, unit)

    def apply_function(self, name: str, argument: Optional[Value]) -> Optional[Value]:
        if argument is None:
            return None
        number = argument.number
        name = FUNCTION_ALIASES.get(name, name)
        if name == "abs":
            return argument.with_number(abs(number))
        if name == "fact":
            return Value(factorial(number))
        if name == "fromunix":
            return Value(number, Unit.DATE)
        if name in TRIG_FUNCTIONS and category_of(argument.unit) is Category.ANGLE:
            number = convert(number, argument.unit, Unit.RADIAN)
        try:
            result = FUNCTIONS[name](number)
        except (ValueError, OverflowError) as error:
            raise DomainError(f"{name}({number}): {error}") from error
        return Value(result)

    def convert_value(self, value: Value, target) -> Value:
        """Convert into target; values without a convertible unit just take it."""
        if category_of(value.unit) is None:
            return Value(value.number, target)
        number = convert(value.number, value.unit, target, self.context.rates, self.context.em_size)
        return Value(number, target)

    def apply_operator(self, operator: Operator, left: Optional[Value], right: Optional[Value]) -> Optional[Value]:
        if left is None or right is None:
            return left if right is None else right
        if operator in (Operator.ADD, Operator.SUBTRACT):
            return self._add(operator, left, right)
        if operator is Operator.MULTIPLY:
            return Value(left.number * right.number, self._result_unit(left, right))
        if operator is Operator.DIVIDE:
            return self._divide(left, right)
        if operator is Operator.MODULO:
            if right.number == 0:
                raise DivisionByZeroError("modulo by zero")
            return left.with_number(math.fmod(left.number, right.number))
        if operator is Operator.POWER:
            try:
                return left.with_number(math.pow(left.number, right.number))
            except (ValueError, OverflowError) as error:
                raise DomainError(f"{left.number} ^ {right.number}: {error}") from error
        return self._bitwise(operator, left, right)

    def _add(self, operator: Operator, left: Value, right: Value) -> Value:
        sign = 1 if operator is Operator.ADD else -1

        if right.unit is Unit.PERCENT and left.unit is not Unit.PERCENT:
            return left.with_number(left.number + sign * left.number * right.number / 100)
        if left.unit is Unit.PERCENT and right.unit is not Unit.PERCENT and sign > 0:
            return right.with_number(right.number + right.number * left.number / 100)

        if left.unit is Unit.DATE:
            if right.unit is Unit.DATE and sign < 0:
                return Value(left.number - right.number, Unit.DURATION)
            if category_of(right.unit) is Category.TIME:
                seconds = convert(right.number, right.unit, Unit.SECOND)
                return left.with_number(left.number + sign * seconds)

        left_category = category_of(left.unit)
        right_category = category_of(right.unit)
        if left_category is not None and right_category is not None:
            if left_category is not right_category:
                raise IncompatibleUnitsError(symbol_of(left.unit), symbol_of(right.unit))
            right = self.convert_value(right, left.unit)
        return Value(left.number + sign * right.number, self._result_unit(left, right))

    def _divide(self, left: Value, right: Value) -> Value:
        if right.number == 0:
            raise DivisionByZeroError("division by zero")
        left_category = category_of(left.unit)
        if left_category is not None and left_category is category_of(right.unit):
            right = self.convert_value(right, left.unit)
            return Value(left.number / right.number)
        return left.with_number(left.number / right.number)

    def _bitwise(self, operator: Operator, left: Value, right: Value) -> Value:
        a = to_integer(left.number)
        b = to_integer(right.number)
        if operator is Operator.BITWISE_AND:
            result = a & b
        elif operator is Operator.BITWISE_OR:
            result = a | b
        elif operator is Operator.BITWISE_XOR:
            result = a ^ b
        else:
            if b < 0 or b > MAX_SHIFT:
                raise DomainError(f"shift count {b} out of range")
            result = a << b if operator is Operator.SHIFT_LEFT else a >> b
        try:
            return Value(float(result), self._result_unit(left, right))
        except OverflowError as error:
            raise DomainError(f"{operator.value} result too large") from error

    @staticmethod
    def _result_unit(left: Value, right: Value):
        """Prefer a convertible unit, then the left operand's display unit."""
        if category_of(left.unit) is not None:
            return left.unit
        if category_of(right.unit) is not None:
            return right.unit
        return left.unit if left.unit is not None else right.unit
