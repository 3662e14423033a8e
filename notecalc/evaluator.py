"""Document evaluation: one LineResult per line of a note.

Every call to ``Evaluator.evaluate`` builds a fresh EvaluationContext, walks
the lines in order and throws the context away afterwards. Variables,
``prev`` and aggregates only ever see lines from the same pass.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional, Tuple

from notecalc.errors import DivisionByZeroError, DomainError, GenericError, InvalidExpressionError, describe_error
from notecalc.keywords import Keyword, Operator, ParserKeywords, parser_keywords
from notecalc.models import EvaluationContext, LineResult, Value
from notecalc.parser import ExpressionParser
from notecalc.rates import RateTable
from notecalc.tokenizer import Token, TokenKind, Tokenizer
from notecalc.units import Category, Unit, category_of, convert

logger = logging.getLogger(__name__)

SPLIT_SEPARATORS = frozenset({Keyword.BETWEEN, Keyword.AMONG})
RELATION_KEYWORDS = frozenset({Keyword.OF, Keyword.ON, Keyword.OFF})


def is_operator(token: Optional[Token], operator: Operator) -> bool:
    return token is not None and token.kind is TokenKind.OPERATOR and token.value is operator


def is_keyword(token: Optional[Token], *keywords: Keyword) -> bool:
    return token is not None and token.kind is TokenKind.KEYWORD and token.value in keywords


def strip_leading_noise(tokens: List[Token], keywords: ParserKeywords) -> List[Token]:
    """Drop "what is", "what's", "qué es" and the like from the front of a line."""
    phrases = sorted((phrase.split() for phrase in keywords.leading_noise_words), key=len, reverse=True)
    start = 0
    while start < len(tokens):
        token = tokens[start]
        if token.kind is TokenKind.VARIABLE and token.text.lower() in keywords.leading_noise_variables:
            start += 1
            continue
        for words in phrases:
            window = tokens[start:start + len(words)]
            if len(window) == len(words) and all(
                    candidate.kind in (TokenKind.KEYWORD, TokenKind.VARIABLE)
                    and candidate.text.lower() == word
                    for candidate, word in zip(window, words)):
                start += len(words)
                break
        else:
            break
    return tokens[start:]


def strip_trailing_noise(tokens: List[Token], keywords: ParserKeywords) -> List[Token]:
    """Drop "ways"/"people" when they follow a count."""
    end = len(tokens)
    while end > 1 and tokens[end - 1].kind is TokenKind.KEYWORD \
            and tokens[end - 1].value in keywords.trailing_noise_keywords:
        end -= 1
    if end < len(tokens) and tokens[end - 1].kind is not TokenKind.NUMBER:
        return tokens
    return tokens[:end]


class LineScope:
    """What a sentence shape may use while evaluating one line."""

    def __init__(self, evaluator: "Evaluator", context: EvaluationContext, index: int):
        self.evaluator = evaluator
        self.context = context
        self.index = index

    @property
    def keywords(self) -> ParserKeywords:
        return self.context.keywords

    def evaluate(self, tokens: List[Token]) -> Optional[Value]:
        return self.evaluator.evaluate_tokens(tokens, self.context, self.index)

    def expression(self, tokens: List[Token]) -> Optional[Value]:
        return ExpressionParser(tokens, self.context, self.index).parse()


class SentenceShape(ABC):
    @abstractmethod
    def parse(self, tokens: List[Token], scope: LineScope) -> Optional[Value]:
        """Value for a matching line, or None to let the next shape try."""


class SplitShape(SentenceShape):
    """`$120 split 4 ways`, `split $120 between 4 people`, `$90 split among 3`."""

    def parse(self, tokens: List[Token], scope: LineScope) -> Optional[Value]:
        split_at = next((i for i, token in enumerate(tokens) if is_keyword(token, Keyword.SPLIT)), None)
        if split_at is None:
            return None

        if split_at == 0:
            rest = strip_leading_noise(tokens[1:], scope.keywords)
            separator = next((i for i, token in enumerate(rest) if is_keyword(token, *SPLIT_SEPARATORS)), None)
            if separator is not None:
                amount_tokens, count_tokens = rest[:separator], rest[separator + 1:]
            else:
                last_number = max((i for i, token in enumerate(rest) if token.kind is TokenKind.NUMBER), default=None)
                if last_number is None:
                    return None
                amount_tokens, count_tokens = rest[:last_number], rest[last_number:]
        else:
            amount_tokens = tokens[:split_at]
            count_tokens = tokens[split_at + 1:]
            if count_tokens and is_keyword(count_tokens[0], *SPLIT_SEPARATORS):
                count_tokens = count_tokens[1:]

        count_tokens = strip_trailing_noise(count_tokens, scope.keywords)
        if not amount_tokens or not count_tokens:
            return None

        count = scope.expression(count_tokens)
        if count is None:
            return None
        if count.number <= 0:
            raise DomainError(f"cannot split {count.number:g} ways")

        amount = scope.evaluate(amount_tokens)
        if amount is None:
            return None
        return amount.with_number(amount.number / count.number)


class PercentageRelationShape(SentenceShape):
    """`$50 as a % of $200`, `$120 as a % on $100`, `$80 as a % off $100`."""

    def parse(self, tokens: List[Token], scope: LineScope) -> Optional[Value]:
        as_at = next((i for i, token in enumerate(tokens) if is_keyword(token, Keyword.AS)), None)
        if as_at is None or as_at == 0:
            return None
        position = as_at + 1
        if position < len(tokens) and tokens[position].text.lower() == "a":
            position += 1
        if position + 1 >= len(tokens):
            return None
        percent, relation = tokens[position], tokens[position + 1]
        if percent.kind is not TokenKind.UNIT or percent.value is not Unit.PERCENT:
            return None
        if not is_keyword(relation, *RELATION_KEYWORDS):
            return None

        part = scope.expression(tokens[:as_at])
        whole = scope.expression(tokens[position + 2:])
        if part is None or whole is None:
            return None
        if category_of(part.unit) is not None and category_of(whole.unit) is not None:
            whole = Value(convert(whole.number, whole.unit, part.unit, scope.context.rates,
                                  scope.context.em_size), part.unit)
        if whole.number == 0:
            raise DivisionByZeroError("percentage of zero")

        ratio = part.number / whole.number
        if relation.value is Keyword.OF:
            result = ratio * 100
        elif relation.value is Keyword.ON:
            result = (ratio - 1) * 100
        else:
            result = (1 - ratio) * 100
        return Value(result, Unit.PERCENT)


# Tried in order before the general expression grammar; most specific first.
REGISTERED_SHAPES = [
    SplitShape(),  # "$120 split 4 ways", "split $120 between 4 people"
    PercentageRelationShape(),  # "$50 as a % of $200"
]


class Evaluator:
    """Evaluates whole notes with a fixed language and rate snapshot."""

    def __init__(self, keywords: Optional[ParserKeywords] = None, rates: Optional[Mapping[str, float]] = None,
                 tokenizer: Optional[Tokenizer] = None):
        self.keywords = keywords if keywords is not None else parser_keywords()
        self.rates = rates if rates is not None else RateTable.fallback()
        self.tokenizer = tokenizer if tokenizer is not None else Tokenizer(self.keywords)

    def evaluate(self, text: str) -> EvaluationContext:
        """Evaluate every line; the returned context holds results and variables."""
        context = EvaluationContext(rates=self.rates, keywords=self.keywords)
        for index, line in enumerate(text.split("\n")):
            context.results.append(self.evaluate_line(line, context, index))
        return context

    def evaluate_all(self, text: str) -> List[LineResult]:
        return self.evaluate(text).results

    def evaluate_line(self, line: str, context: EvaluationContext, index: int) -> LineResult:
        stripped = line.strip()
        if not stripped:
            return LineResult(index, line)
        try:
            value, variable = self._evaluate_statement(stripped, context, index)
        except GenericError as e:
            logger.debug(f"Line {index}: {type(e).__name__} for '{stripped}': {e}")
            return LineResult(index, line, error=describe_error(e, self.keywords.error_messages))
        except Exception as e:
            # Catch unexpected errors so one bad line never stops the rest of the note
            logger.error(f"Line {index}: internal error evaluating '{stripped}': {e}", exc_info=True)
            return LineResult(index, line, error=describe_error(GenericError(str(e)), self.keywords.error_messages))
        return LineResult(index, line, value=value, assignment_variable=variable)

    def _evaluate_statement(self, line: str, context: EvaluationContext,
                            index: int) -> Tuple[Optional[Value], Optional[str]]:
        tokens = self.tokenizer.tokenize(line)
        if not tokens:
            return None, None

        if len(tokens) >= 2 and is_operator(tokens[1], Operator.ASSIGN):
            target = tokens[0]
            if len(tokens) == 2:
                raise InvalidExpressionError("assignment without a value")
            if target.kind is TokenKind.VARIABLE:
                value = self.evaluate_tokens(tokens[2:], context, index)
                if value is not None:
                    context.variables[target.value] = value
                return value, target.value
            if target.kind is TokenKind.UNIT and target.value is Unit.EM:
                self._assign_em_size(tokens[2:], context, index)
                return None, None

        return self.evaluate_tokens(tokens, context, index), None

    def _assign_em_size(self, tokens: List[Token], context: EvaluationContext, index: int):
        size = self.evaluate_tokens(tokens, context, index)
        if size is None:
            raise InvalidExpressionError("em needs a size")
        if category_of(size.unit) is Category.CSS:
            pixels = convert(size.number, size.unit, Unit.PIXEL, em_size=context.em_size)
        else:
            pixels = size.number
        if pixels <= 0:
            raise DomainError(f"em size {pixels} must be positive")
        context.em_size = pixels

    def evaluate_tokens(self, tokens: List[Token], context: EvaluationContext, index: int) -> Optional[Value]:
        """Evaluate an expression's tokens: noise stripping, sentence shapes, then the grammar."""
        tokens = strip_leading_noise(tokens, self.keywords)
        tokens = strip_trailing_noise(tokens, self.keywords)
        if not tokens:
            return None

        scope = LineScope(self, context, index)
        for shape in REGISTERED_SHAPES:
            value = shape.parse(tokens, scope)
            if value is not None:
                logger.debug(f"Line {index}: {type(shape).__name__} matched")
                return value
        return ExpressionParser(tokens, context, index).parse()
