from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Set

from .errors import ComputationError
from .tokens import Token, TokenKind


@dataclass(frozen=True)
class HalsteadMetrics:
    """Halstead software-science measures of one file.

    The four raw counts are the only inputs; every other field is derived in
    ``from_counts`` with guards that keep degenerate inputs at zero.
    """

    uniq_operators: int = 0
    uniq_operands: int = 0
    total_operators: int = 0
    total_operands: int = 0
    program_length: int = 0
    vocabulary_size: int = 0
    volume: float = 0.0
    difficulty: float = 0.0
    effort: float = 0.0
    time: float = 0.0
    bugs: float = 0.0

    @classmethod
    def from_counts(
        cls,
        uniq_operators: int,
        uniq_operands: int,
        total_operators: int,
        total_operands: int,
    ) -> "HalsteadMetrics":
        length = total_operators + total_operands
        vocabulary = uniq_operators + uniq_operands
        volume = 0.0 if vocabulary <= 1 else length * math.log2(vocabulary)
        difficulty = 0.0 if uniq_operands == 0 else (uniq_operators / 2.0) * (total_operands / uniq_operands)
        effort = difficulty * volume

        metrics = cls(
            uniq_operators=uniq_operators,
            uniq_operands=uniq_operands,
            total_operators=total_operators,
            total_operands=total_operands,
            program_length=length,
            vocabulary_size=vocabulary,
            volume=volume,
            difficulty=difficulty,
            effort=effort,
            time=effort / 18.0,
            bugs=volume / 3000.0,
        )
        for name in ("volume", "difficulty", "effort", "time", "bugs"):
            value = getattr(metrics, name)
            if not math.isfinite(value) or value < 0:
                raise ComputationError(f"Halstead {name} is not a finite non-negative number", {name: str(value)})
        return metrics

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def halstead_metrics(tokens: Iterable[Token]) -> HalsteadMetrics:
    operators: Set[str] = set()
    operands: Set[str] = set()
    total_operators = 0
    total_operands = 0

    for token in tokens:
        if token.kind is TokenKind.OPERATOR:
            operators.add(token.lexeme)
            total_operators += 1
        else:
            operands.add(token.lexeme)
            total_operands += 1

    return HalsteadMetrics.from_counts(
        uniq_operators=len(operators),
        uniq_operands=len(operands),
        total_operators=total_operators,
        total_operands=total_operands,
    )
