"""
fta

Fast static complexity analysis for JavaScript, TypeScript (with JSX/TSX) and Java:
line counts, cyclomatic complexity, Halstead metrics and a single FTA score per file.

Usage (CLI):
  fta path/to/project
  fta path/to/project --format json --sort-by-score
  fta --language tsx path/to/Component.ts
"""

__all__ = [
    "AnalysisOptions",
    "AnalyzedFile",
    "Assessment",
    "ComputationError",
    "ConfigError",
    "FtaConfig",
    "FtaError",
    "HalsteadMetrics",
    "ParseError",
    "PathError",
    "Report",
    "SkippedFile",
    "SourceUnit",
    "analyze",
    "analyze_file",
    "analyze_project",
    "analyze_source",
    "available_languages",
    "detect_language",
    "format_text_report",
    "read_config",
]

from .config import FtaConfig, read_config
from .core import analyze, analyze_file, analyze_project, analyze_source, available_languages, detect_language
from .errors import ComputationError, ConfigError, FtaError, ParseError, PathError
from .halstead import HalsteadMetrics
from .models import AnalysisOptions, AnalyzedFile, Report, SkippedFile, SourceUnit
from .output import format_text_report
from .score import Assessment
