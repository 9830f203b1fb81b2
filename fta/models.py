"""Input, option and result records of an analysis run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .halstead import HalsteadMetrics
from .score import Assessment


@dataclass(frozen=True)
class SourceUnit:
    """One file handed to the engine.

    Attributes:
        path: File identifier, unique within a run.
        text: Raw source text.
    """

    path: str
    text: str


@dataclass(frozen=True)
class AnalysisOptions:
    """Knobs of one ``analyze`` call.

    Attributes:
        strict: Abort on the first file that cannot be tokenized instead of skipping it.
        sort_by_score: Order the report by descending ``fta_score`` instead of input order.
        include_comments: Count comment-only lines in ``line_count``.
        language: Force one grammar for every unit instead of detecting by extension.
        workers: Size of the worker pool; defaults to the CPU count.
    """

    strict: bool = False
    sort_by_score: bool = False
    include_comments: bool = False
    language: Optional[str] = None
    workers: Optional[int] = None


@dataclass(frozen=True)
class AnalyzedFile:
    file_name: str
    cyclo: int
    halstead: HalsteadMetrics
    line_count: int
    fta_score: float
    assessment: Assessment

    def as_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "cyclo": self.cyclo,
            "halstead": self.halstead.as_dict(),
            "line_count": self.line_count,
            "fta_score": self.fta_score,
            "assessment": self.assessment.value,
        }


@dataclass(frozen=True)
class SkippedFile:
    file_name: str
    reason: str


@dataclass(frozen=True)
class Report:
    """Ordered analysis results of one run, plus the files dropped along the way."""

    files: Tuple[AnalyzedFile, ...] = ()
    skipped: Tuple[SkippedFile, ...] = ()
    elapsed: float = 0.0

    def __iter__(self) -> Iterator[AnalyzedFile]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def __getitem__(self, index: int) -> AnalyzedFile:
        return self.files[index]

    def as_list(self) -> List[Dict[str, Any]]:
        return [f.as_dict() for f in self.files]
