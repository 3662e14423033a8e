"""Error taxonomy for line evaluation.

Every failure raised while evaluating a line is one of these. The evaluator
catches them per line and turns them into a short localized message, so no
exception ever escapes into the evaluation of a sibling line.
"""


class GenericError(Exception):
    """Base class; also used for failures with no more specific kind."""

    message_key = "generic_error"


class DivisionByZeroError(GenericError):
    message_key = "division_by_zero"


class InvalidExpressionError(GenericError):
    message_key = "invalid_expression"


class IncompatibleUnitsError(GenericError):
    message_key = "incompatible_units"

    def __init__(self, from_symbol: str, to_symbol: str):
        super().__init__(f"{from_symbol} ≠ {to_symbol}")
        self.from_symbol = from_symbol
        self.to_symbol = to_symbol


class DomainError(GenericError):
    """A function or operator argument outside the range it accepts."""

    message_key = "domain_error"


def describe_error(error: GenericError, messages) -> str:
    """Short user-facing text for an error, from a localized message table."""
    text = messages.get(error.message_key) or messages.get("generic_error", "error")
    if isinstance(error, IncompatibleUnitsError):
        return f"{text}: {error.from_symbol} ≠ {error.to_symbol}"
    return text
