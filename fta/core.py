from __future__ import annotations

import concurrent.futures
import logging
import os
import time
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .config import FtaConfig
from .cyclo import cyclomatic_complexity
from .errors import ComputationError, FtaError, ParseError, PathError
from .halstead import halstead_metrics
from .languages import Grammar, JavaGrammar, JavaScriptGrammar, TsxGrammar, TypeScriptGrammar
from .models import AnalysisOptions, AnalyzedFile, Report, SkippedFile, SourceUnit
from .score import assess, fta_score
from .tokens import TokenStream
from .walk import discover_files, read_sources

__all__ = [
    "analyze",
    "analyze_file",
    "analyze_project",
    "analyze_source",
    "available_languages",
    "detect_language",
    "get_grammar",
]

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "typescript"

UnitLike = Union[SourceUnit, Tuple[str, str]]


def _build_grammars() -> List[Grammar]:
    # Instantiate grammars here. New languages only need an entry in this list.
    return [
        JavaScriptGrammar(),
        TypeScriptGrammar(),
        TsxGrammar(),
        JavaGrammar(),
    ]


_GRAMMARS: List[Grammar] = _build_grammars()
_LANGUAGE_MAP: Dict[str, Grammar] = {g.language.lower(): g for g in _GRAMMARS}
_EXTENSION_MAP: Dict[str, Grammar] = {}
for grammar in _GRAMMARS:
    for ext in grammar.extensions:
        _EXTENSION_MAP[ext.lower()] = grammar


def available_languages() -> List[str]:
    return sorted(_LANGUAGE_MAP)


def detect_language(path: str | Path) -> Optional[str]:
    name = Path(path).name.lower()
    if name.endswith(".d.ts"):
        return _EXTENSION_MAP[".d.ts"].language
    grammar = _EXTENSION_MAP.get(Path(name).suffix)
    return grammar.language if grammar else None


def get_grammar(language: str) -> Grammar:
    grammar = _LANGUAGE_MAP.get(language.lower())
    if not grammar:
        raise ValueError(f"No grammar registered for language '{language}'. Available: {', '.join(available_languages())}")
    return grammar


def _grammar_for(file_name: str, language: Optional[str]) -> Grammar:
    if language:
        return get_grammar(language)
    detected = detect_language(file_name)
    if not detected:
        logger.debug("No grammar for %s, reading it as %s", file_name, DEFAULT_LANGUAGE)
        return _LANGUAGE_MAP[DEFAULT_LANGUAGE]
    return _LANGUAGE_MAP[detected]


def _tokenize(grammar: Grammar, unit: SourceUnit) -> TokenStream:
    try:
        return grammar.tokenize(unit.text)
    except ParseError as exc:
        if not grammar.fallback:
            raise exc.for_file(unit.path) from exc
        try:
            stream = _LANGUAGE_MAP[grammar.fallback].tokenize(unit.text)
        except ParseError:
            raise exc.for_file(unit.path) from exc
        logger.warning(
            "File %s was interpreted as %s but seems to actually be %s. The file extension may be incorrect.",
            unit.path,
            grammar.language,
            grammar.fallback,
        )
        return stream


def _analyze_unit(unit: SourceUnit, options: AnalysisOptions) -> AnalyzedFile:
    grammar = _grammar_for(unit.path, options.language)
    stream = _tokenize(grammar, unit)

    cyclo = cyclomatic_complexity(stream)
    halstead = halstead_metrics(stream)
    line_count = stream.line_count(options.include_comments)
    score = fta_score(cyclo, halstead, line_count)
    logger.debug("%s cyclo: %d, halstead: %s", unit.path, cyclo, halstead)

    return AnalyzedFile(
        file_name=unit.path,
        cyclo=cyclo,
        halstead=halstead,
        line_count=line_count,
        fta_score=score,
        assessment=assess(score),
    )


def _outcome(unit: SourceUnit, options: AnalysisOptions) -> Union[AnalyzedFile, FtaError]:
    try:
        return _analyze_unit(unit, options)
    except (ParseError, ComputationError) as exc:
        return exc


def _as_unit(item: UnitLike) -> SourceUnit:
    if isinstance(item, SourceUnit):
        return item
    path, text = item
    return SourceUnit(path=str(path), text=text)


def _worker_count(options: AnalysisOptions, unit_count: int) -> int:
    workers = options.workers if options.workers else (os.cpu_count() or 1)
    return max(1, min(workers, unit_count))


def analyze(units: Iterable[UnitLike], options: Optional[AnalysisOptions] = None) -> Report:
    """
    Analyze every source unit and assemble the report.

    Units run on a bounded thread pool; results are slotted by input index so
    the report order never depends on completion order. Tokenizing holds the
    GIL, so the pool bounds concurrency rather than adding CPU parallelism;
    warnings from workers reach the handlers configured in this process.
    In lenient mode a file that cannot be tokenized is skipped with a
    warning; in strict mode the first such file (in input order) raises
    ``ParseError`` and no report is produced.
    """
    options = options or AnalysisOptions()
    if options.language:
        get_grammar(options.language)
    items: Sequence[SourceUnit] = [_as_unit(item) for item in units]
    start = time.perf_counter()

    slots: List[Union[AnalyzedFile, FtaError, None]] = [None] * len(items)
    workers = _worker_count(options, len(items))
    if workers == 1:
        for index, unit in enumerate(items):
            slots[index] = _outcome(unit, options)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {executor.submit(_outcome, unit, options): index for index, unit in enumerate(items)}
            for future in concurrent.futures.as_completed(future_to_index):
                slots[future_to_index[future]] = future.result()

    files: List[AnalyzedFile] = []
    skipped: List[SkippedFile] = []
    for unit, outcome in zip(items, slots):
        if isinstance(outcome, AnalyzedFile):
            files.append(outcome)
            continue
        if isinstance(outcome, ParseError) and options.strict:
            logger.error("Failed to analyze %s: %s", unit.path, outcome)
            outcome.skipped = tuple(skipped)
            raise outcome
        logger.warning("Failed to analyze %s: %s", unit.path, outcome)
        skipped.append(SkippedFile(file_name=unit.path, reason=str(outcome)))

    if options.sort_by_score:
        files.sort(key=lambda f: f.fta_score, reverse=True)

    elapsed = time.perf_counter() - start
    logger.info("%d files analyzed in %.4fs (%d skipped)", len(files), elapsed, len(skipped))
    return Report(files=tuple(files), skipped=tuple(skipped), elapsed=elapsed)


def analyze_source(
    text: str,
    language: str = DEFAULT_LANGUAGE,
    file_name: str = "<source>",
    include_comments: bool = False,
) -> AnalyzedFile:
    """Analyze one in-memory buffer; ``ParseError`` propagates."""
    options = AnalysisOptions(include_comments=include_comments, language=language)
    return _analyze_unit(SourceUnit(path=file_name, text=text), options)


def analyze_file(file_path: str | Path, language: str | None = None, include_comments: bool = False) -> AnalyzedFile:
    """
    Analyze a source file using the grammar for the detected or specified language.
    """
    path = Path(file_path)
    if not path.is_file():
        raise PathError(f"File not found: {path}", str(path))

    text = path.read_text(encoding="utf-8", errors="ignore")
    options = AnalysisOptions(include_comments=include_comments, language=language)
    return _analyze_unit(SourceUnit(path=str(path), text=text), options)


def analyze_project(
    root: str | Path,
    config: Optional[FtaConfig] = None,
    options: Optional[AnalysisOptions] = None,
) -> Report:
    """
    Discover, read and analyze every candidate file under ``root``.

    A missing root raises ``PathError`` before any file work starts. Files
    shorter than ``config.exclude_under`` lines are left out of the report and
    unreadable files are reported as skipped.
    """
    root = Path(root)
    config = config or FtaConfig()
    options = options or AnalysisOptions(include_comments=config.include_comments)
    if not root.exists():
        raise PathError(f"Project root not found: {root}", str(root))

    start = time.perf_counter()
    relative_paths = discover_files(root, config)
    units, unreadable = read_sources(root, relative_paths, config.max_open_files)

    try:
        report = analyze(units, options)
    except ParseError as exc:
        exc.skipped = tuple(unreadable) + exc.skipped
        raise

    files = tuple(f for f in report.files if f.line_count >= config.exclude_under)
    if len(files) < len(report.files):
        logger.debug("Left out %d files under %d lines", len(report.files) - len(files), config.exclude_under)
    return replace(
        report,
        files=files,
        skipped=tuple(unreadable) + report.skipped,
        elapsed=time.perf_counter() - start,
    )
