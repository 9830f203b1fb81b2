from __future__ import annotations

from typing import Iterable

from .tokens import Token


def cyclomatic_complexity(tokens: Iterable[Token]) -> int:
    """File-level McCabe complexity: one baseline path plus one per decision point."""
    complexity = 1
    for token in tokens:
        if token.is_decision_point:
            complexity += 1
    return complexity
