import logging
from pathlib import Path

import pytest

from fta.config import FtaConfig
from fta.core import (
    analyze,
    analyze_file,
    analyze_project,
    analyze_source,
    available_languages,
    detect_language,
    get_grammar,
)
from fta.errors import ParseError, PathError
from fta.models import AnalysisOptions, SourceUnit
from fta.output import format_text_report
from fta.score import Assessment


def test_available_languages_are_sorted_and_known():
    langs = available_languages()
    assert langs == ["java", "javascript", "tsx", "typescript"]


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("app.ts", "typescript"),
        ("App.TSX", "tsx"),
        ("index.js", "javascript"),
        ("view.jsx", "javascript"),
        ("types.d.ts", "typescript"),
        ("Example.JAVA", "java"),
        ("unknown.txt", None),
    ],
)
def test_detect_language_from_extension(filename, expected):
    assert detect_language(filename) == expected


def test_unknown_language_is_rejected():
    with pytest.raises(ValueError):
        get_grammar("cobol")
    with pytest.raises(ValueError):
        analyze([("a.ts", "a;")], AnalysisOptions(language="cobol"))


def test_straight_line_code_has_no_decision_points():
    source = "let total = price * quantity + shipping - discount;\nlet label = prefix + name;\n"
    result = analyze_source(source)

    assert result.cyclo == 1
    assert result.halstead.uniq_operands == 8
    assert result.halstead.total_operands == 8
    assert result.halstead.uniq_operators == 6
    assert result.halstead.total_operators == 10
    assert result.line_count == 2


def test_empty_source():
    result = analyze_source("", file_name="empty.ts")

    assert result.cyclo == 1
    assert result.line_count == 0
    assert result.halstead.uniq_operators == 0
    assert result.halstead.uniq_operands == 0
    assert result.halstead.volume == 0
    assert result.halstead.difficulty == 0
    assert result.fta_score == pytest.approx(23 / 171)
    assert result.assessment is Assessment.OK


def test_identical_content_gives_identical_metrics():
    source = "if (a) { b(); }\nconst c = a ? 1 : 2;\n"
    report = analyze([("one.ts", source), ("two.ts", source)])

    first, second = report
    assert first.file_name == "one.ts"
    assert second.file_name == "two.ts"
    assert first.cyclo == second.cyclo
    assert first.halstead == second.halstead
    assert first.fta_score == second.fta_score


def test_analysis_is_idempotent():
    unit = SourceUnit(path="same.ts", text="for (const x of xs) { if (x) { go(x); } }\n")
    assert analyze([unit]).files == analyze([unit]).files


def test_record_invariants_hold():
    source = "\n".join(f"if (v{i} && w) {{ run(v{i}, '{i}'); }}" for i in range(12))
    report = analyze([("many.ts", source), ("empty.ts", "")])

    for record in report:
        h = record.halstead
        assert record.cyclo >= 1
        assert record.line_count >= 0
        assert record.fta_score >= 0
        assert h.program_length == h.total_operators + h.total_operands
        assert h.vocabulary_size == h.uniq_operators + h.uniq_operands


@pytest.fixture()
def scored_units():
    small = "a;"
    medium = "\n".join(f"let v{i} = {i};" for i in range(5))
    large = "\n".join(f"if (v{i}) {{ go(v{i}); }}" for i in range(20))
    return [("small.ts", small), ("large.ts", large), ("medium.ts", medium)]


def test_report_keeps_input_order(scored_units):
    report = analyze(scored_units)
    assert [f.file_name for f in report] == ["small.ts", "large.ts", "medium.ts"]


def test_sort_by_score_orders_descending(scored_units):
    report = analyze(scored_units, AnalysisOptions(sort_by_score=True))

    assert [f.file_name for f in report] == ["large.ts", "medium.ts", "small.ts"]
    scores = [f.fta_score for f in report]
    assert scores[0] > scores[1] > scores[2]


def test_worker_pool_preserves_order():
    units = [(f"f{i:02d}.ts", "let x = 1;\n" * (i + 1)) for i in range(20)]
    report = analyze(units, AnalysisOptions(workers=4))

    assert [f.file_name for f in report] == [name for name, _ in units]
    assert [f.line_count for f in report] == list(range(1, 21))


def test_worker_threads_log_fallback_warnings(caplog):
    units = [("one.ts", "const view = <p>Don't panic</p>;\n"), ("two.ts", "const c = 1;\n")]
    with caplog.at_level(logging.WARNING):
        report = analyze(units, AnalysisOptions(workers=2))

    assert [f.file_name for f in report] == ["one.ts", "two.ts"]
    assert "one.ts was interpreted as typescript but seems to actually be tsx" in caplog.text


def test_unknown_extension_is_read_as_typescript():
    result = analyze([("notes.txt", "let a: number = 1;")])[0]
    assert result.cyclo == 1


BROKEN = "const s = 'never closed\n"


def test_lenient_mode_skips_unparseable_files(caplog):
    units = [("a.ts", "const a = 1;"), ("bad.js", BROKEN), ("c.ts", "let c = 2;")]
    with caplog.at_level(logging.WARNING):
        report = analyze(units)

    assert [f.file_name for f in report] == ["a.ts", "c.ts"]
    assert len(report.skipped) == 1
    assert report.skipped[0].file_name == "bad.js"
    assert "unterminated string literal" in report.skipped[0].reason
    assert "bad.js" in caplog.text


def test_strict_mode_raises_first_parse_error():
    units = [("a.ts", "const a = 1;"), ("bad.js", BROKEN), ("worse.js", BROKEN)]
    with pytest.raises(ParseError) as excinfo:
        analyze(units, AnalysisOptions(strict=True))

    assert excinfo.value.file_name == "bad.js"
    assert excinfo.value.line == 1
    assert excinfo.value.skipped == ()


def test_typescript_file_with_jsx_falls_back_to_tsx(caplog):
    with caplog.at_level(logging.WARNING):
        report = analyze([("component.ts", "const view = <p>Don't panic</p>;\n")])

    assert len(report) == 1
    assert report.skipped == ()
    assert "seems to actually be tsx" in caplog.text


def test_failed_fallback_raises_for_the_file():
    with pytest.raises(ParseError) as excinfo:
        analyze([("broken.ts", BROKEN)], AnalysisOptions(strict=True))
    assert excinfo.value.file_name == "broken.ts"


def test_parse_error_str_includes_details():
    error = ParseError("unterminated string literal", file_name="a.ts", line=3)
    assert str(error) == "unterminated string literal (file=a.ts, line=3)"


def test_include_comments_counts_comment_lines():
    source = "// note\nconst a = 1;\n"
    assert analyze_source(source).line_count == 1
    assert analyze_source(source, include_comments=True).line_count == 2


@pytest.fixture()
def sample_java_file(tmp_path) -> Path:
    content = "\n".join(
        [
            "package demo;",
            "",
            "public class Example {",
            "    /* Block comment",
            "       continues */",
            "    // Single line",
            "    public int compute(int a, int b) {",
            "        int sum = a + b;",
            "        if (sum > 10 && a > 0) {",
            "            return sum;",
            "        } else if (sum == 0) {",
            "            return 0;",
            "        }",
            "        return sum - 1;",
            "    }",
            "}",
            "",
        ]
    )
    path = tmp_path / "Example.java"
    path.write_text(content)
    return path


def test_analyze_java_file_reports_expected_metrics(sample_java_file):
    result = analyze_file(sample_java_file)

    assert result.file_name == str(sample_java_file)
    assert result.cyclo == 4
    assert result.line_count == 12
    assert result.halstead.vocabulary_size > 0
    assert result.halstead.program_length > 0

    with_comments = analyze_file(sample_java_file, include_comments=True)
    assert with_comments.line_count == 15

    report = format_text_report(result)
    assert f"File: {sample_java_file}" in report
    assert "- Lines: 12" in report
    assert "Total=4" in report
    assert "FTA Score" in report


def test_analyze_file_missing_raises_path_error(tmp_path):
    with pytest.raises(PathError):
        analyze_file(tmp_path / "missing.ts")


def _write(root: Path, relative: str, content: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


SIX_LINES = "\n".join(f"const v{i} = {i};" for i in range(6)) + "\n"


@pytest.fixture()
def project(tmp_path) -> Path:
    _write(tmp_path, "src/app.ts", SIX_LINES + "if (v1) { run(v2); }\n")
    _write(tmp_path, "src/util.js", SIX_LINES)
    _write(tmp_path, "src/tiny.ts", "const a = 1;\n")
    _write(tmp_path, "src/types.d.ts", SIX_LINES)
    _write(tmp_path, "src/Main.java", SIX_LINES)
    _write(tmp_path, "dist/out.js", SIX_LINES)
    _write(tmp_path, "vendor/lib.min.js", SIX_LINES)
    _write(tmp_path, "node_modules/pkg/index.js", SIX_LINES)
    _write(tmp_path, ".hidden/secret.ts", SIX_LINES)
    _write(tmp_path, "README.md", "# readme\n")
    _write(tmp_path, ".gitignore", "node_modules/\n")
    return tmp_path


def test_analyze_project_applies_filters(project):
    report = analyze_project(project)

    assert [f.file_name for f in report] == ["src/app.ts", "src/util.js"]
    assert report.skipped == ()
    assert report.elapsed >= 0


def test_analyze_project_exclude_under(project):
    report = analyze_project(project, FtaConfig(exclude_under=0))
    assert [f.file_name for f in report] == ["src/app.ts", "src/tiny.ts", "src/util.js"]


def test_analyze_project_missing_root(tmp_path):
    with pytest.raises(PathError):
        analyze_project(tmp_path / "nope")


def test_analyze_project_strict_reports_parse_error(project):
    _write(project, "src/bad.js", BROKEN)
    with pytest.raises(ParseError) as excinfo:
        analyze_project(project, options=AnalysisOptions(strict=True))
    assert excinfo.value.file_name == "src/bad.js"

    report = analyze_project(project)
    assert [s.file_name for s in report.skipped] == ["src/bad.js"]
