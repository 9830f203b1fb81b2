"""Renderers for analysis results: JSON, CSV, a Rich table and a per-file text report."""

from __future__ import annotations

import csv
import io
import json
from typing import Sequence, TextIO

from rich.console import Console
from rich.table import Table

from .models import AnalyzedFile
from .score import Assessment

CSV_HEADER = ("File", "Num. lines", "FTA Score (Lower is better)", "Assessment")

ASSESSMENT_STYLES = {
    Assessment.OK: "green",
    Assessment.COULD_BE_BETTER: "yellow",
    Assessment.NEEDS_IMPROVEMENT: "red",
}


def render_json(files: Sequence[AnalyzedFile]) -> str:
    return json.dumps([f.as_dict() for f in files], indent=2)


def render_csv(files: Sequence[AnalyzedFile]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for f in files:
        writer.writerow([f.file_name, f.line_count, f"{f.fta_score:.2f}", f.assessment.value])
    return buffer.getvalue()


def build_table(files: Sequence[AnalyzedFile]) -> Table:
    table = Table(show_header=True)
    table.add_column(CSV_HEADER[0], overflow="fold")
    table.add_column(CSV_HEADER[1], justify="right")
    table.add_column(CSV_HEADER[2], justify="right")
    table.add_column(CSV_HEADER[3])
    for f in files:
        table.add_row(
            f.file_name,
            str(f.line_count),
            f"{f.fta_score:.2f}",
            f.assessment.value,
            style=ASSESSMENT_STYLES[f.assessment],
        )
    return table


def print_table(files: Sequence[AnalyzedFile], elapsed: float, stdout: TextIO, output_limit: int | None = None) -> None:
    """Print the worst files first, at most ``output_limit`` rows, then a summary line."""
    ranked = sorted(files, key=lambda f: f.fta_score, reverse=True)
    if output_limit is not None:
        ranked = ranked[:output_limit]
    console = Console(file=stdout, highlight=False)
    console.print(build_table(ranked))
    console.print(f"{len(files)} files analyzed in {round(elapsed, 4)}s.")


def format_text_report(result: AnalyzedFile) -> str:
    h = result.halstead

    lines = []
    lines.append(f"File: {result.file_name}")
    lines.append(f"- Lines: {result.line_count}")
    lines.append("- Cyclomatic Complexity:")
    lines.append(f"  Total={result.cyclo}")
    lines.append("- Halstead:")
    lines.append(
        f"  n1={h.uniq_operators} n2={h.uniq_operands} "
        f"N1={h.total_operators} N2={h.total_operands}"
    )
    lines.append(
        f"  vocab={h.vocabulary_size} length={h.program_length} "
        f"volume={h.volume:.2f} difficulty={h.difficulty:.2f}"
    )
    lines.append(f"  effort={h.effort:.2f} time_s={h.time:.2f} est_bugs={h.bugs:.4f}")
    lines.append(f"- FTA Score: {result.fta_score:.2f} ({result.assessment.value})")
    return "\n".join(lines)
