from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from .config import CONFIG_FILE_NAME, FtaConfig, read_config
from .core import analyze_file, analyze_project, available_languages
from .errors import ConfigError, ParseError, PathError
from .models import AnalysisOptions
from .output import format_text_report, print_table, render_csv, render_json

logger = logging.getLogger(__name__)

EXIT_SCORE_CAP = 1
EXIT_PATH_ERROR = 2
EXIT_CONFIG_ERROR = 3
EXIT_PARSE_ERROR = 4


def configure_logging(level: int = logging.WARNING) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    langs = available_languages()
    p = argparse.ArgumentParser(prog="fta", description="Static complexity analysis for JavaScript, TypeScript and Java")
    p.add_argument("project", help="Path to the project root, or to a single source file")
    p.add_argument("--format", choices=["table", "json", "csv"], default="table", help="Output format")
    p.add_argument("--json", action="store_true", help="Shorthand for --format json")
    p.add_argument("--config-path", help=f"Path to a config file (defaults to <project>/{CONFIG_FILE_NAME})")
    p.add_argument("--output-limit", type=int, help="Maximum number of files to report")
    p.add_argument("--score-cap", type=int, help="Exit with status 1 when any file scores above this")
    p.add_argument("--exclude-under", type=int, help="Leave out files with fewer lines than this")
    p.add_argument("--include-comments", action="store_true", help="Count comment-only lines in line counts")
    p.add_argument("--strict", action="store_true", help="Abort on the first file that cannot be parsed")
    p.add_argument("--sort-by-score", action="store_true", help="Order JSON and CSV output by descending score")
    p.add_argument(
        "--language",
        default="auto",
        help=f"Explicitly set the source language: auto, {', '.join(langs)} (defaults to auto-detect from extension)",
    )
    p.add_argument("--workers", type=int, help="Number of analysis threads (defaults to the CPU count; lexing holds the GIL)")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def _resolve_config(args: argparse.Namespace, project: Path) -> FtaConfig:
    base_dir = project if project.is_dir() else project.parent
    if args.config_path:
        config = read_config(args.config_path, path_specified_by_user=True)
    else:
        config = read_config(base_dir / CONFIG_FILE_NAME)

    overrides = {
        "output_limit": args.output_limit,
        "score_cap": args.score_cap,
        "exclude_under": args.exclude_under,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    if args.include_comments:
        config = replace(config, include_comments=True)
    logger.debug("Resolved config: %s", config)
    return config


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    debug = args.verbose or "DEBUG" in os.environ
    configure_logging(logging.DEBUG if debug else logging.WARNING)

    project = Path(args.project)
    if not project.exists():
        print(f"Path not found: {project}", file=sys.stderr)
        return EXIT_PATH_ERROR

    try:
        config = _resolve_config(args, project)
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    output_format = "json" if args.json else args.format
    language = None if args.language == "auto" else args.language
    options = AnalysisOptions(
        strict=args.strict,
        sort_by_score=args.sort_by_score,
        include_comments=config.include_comments,
        language=language,
        workers=args.workers,
    )

    try:
        if project.is_file():
            files = [analyze_file(project, language=language, include_comments=config.include_comments)]
            elapsed = 0.0
        else:
            report = analyze_project(project, config, options)
            files = list(report.files)
            elapsed = report.elapsed
    except PathError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_PATH_ERROR
    except ParseError as exc:
        print(f"Failed to analyze: {exc}", file=sys.stderr)
        for skipped in exc.skipped:
            print(f"  skipped {skipped.file_name}: {skipped.reason}", file=sys.stderr)
        return EXIT_PARSE_ERROR
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    for f in files:
        if f.fta_score > config.score_cap:
            print(
                f"File {f.file_name} has a score of {f.fta_score}, which is beyond the score cap of {config.score_cap}, exiting.",
                file=sys.stderr,
            )
            return EXIT_SCORE_CAP

    if project.is_file():
        if output_format == "json":
            print(json.dumps(files[0].as_dict(), indent=2))
        elif output_format == "csv":
            print(render_csv(files), end="")
        else:
            print(format_text_report(files[0]))
        return 0

    if output_format == "json":
        print(render_json(files[: config.output_limit]))
    elif output_format == "csv":
        print(render_csv(files[: config.output_limit]), end="")
    else:
        print_table(files, elapsed, sys.stdout, output_limit=config.output_limit)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
