from __future__ import annotations

import math
from enum import Enum
from typing import Tuple

from .errors import ComputationError
from .halstead import HalsteadMetrics


class Assessment(str, Enum):
    OK = "OK"
    COULD_BE_BETTER = "Could be better"
    NEEDS_IMPROVEMENT = "Needs improvement"


#: Inclusive upper score bound of each band, checked in ascending order.
ASSESSMENT_BANDS: Tuple[Tuple[float, Assessment], ...] = (
    (50.0, Assessment.OK),
    (60.0, Assessment.COULD_BE_BETTER),
    (math.inf, Assessment.NEEDS_IMPROVEMENT),
)

EFFORT_WEIGHT = 1.85
CYCLO_WEIGHT = 0.23
LINES_WEIGHT = 13.0


def fta_score(cyclo: int, halstead: HalsteadMetrics, line_count: int) -> float:
    """
    Scale a maintainability-index style value to 0..100+, where higher means
    harder to maintain. Non-decreasing in cyclomatic complexity, Halstead
    effort and line count.
    """
    absolute = (
        171.0
        - EFFORT_WEIGHT * math.log1p(max(0.0, halstead.effort))
        - CYCLO_WEIGHT * float(cyclo)
        - LINES_WEIGHT * math.log1p(max(0, line_count))
    )
    score = max(0.0, 100.0 - (absolute * 100.0) / 171.0)
    if not math.isfinite(score):
        raise ComputationError("FTA score is not finite", {"cyclo": str(cyclo), "line_count": str(line_count)})
    return score


def assess(score: float) -> Assessment:
    for upper, assessment in ASSESSMENT_BANDS:
        if score <= upper:
            return assessment
    return Assessment.NEEDS_IMPROVEMENT
