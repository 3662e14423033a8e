"""Records passed between the evaluator, the formatter and the outer surfaces."""
import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from notecalc.keywords import ParserKeywords
from notecalc.units import DEFAULT_EM_SIZE, UnitLike


@dataclass(frozen=True)
class Value:
    number: float
    unit: Optional[UnitLike] = None

    def with_number(self, number: float) -> "Value":
        return Value(number, self.unit)


@dataclass(frozen=True)
class LineResult:
    index: int
    input: str
    value: Optional[Value] = None
    error: Optional[str] = None
    assignment_variable: Optional[str] = None

    @property
    def is_blank(self) -> bool:
        return not self.input.strip()


@dataclass
class EvaluationContext:
    """State for one pass over a document. Built fresh for every pass."""

    rates: Mapping[str, float]
    keywords: ParserKeywords
    variables: Dict[str, Value] = field(default_factory=dict)
    results: List[LineResult] = field(default_factory=list)
    em_size: float = DEFAULT_EM_SIZE
    started_at: float = field(default_factory=time.time)
