"""Candidate file discovery and concurrent source reads for a project root."""

from __future__ import annotations

import concurrent.futures
import fnmatch
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Dict, List, Sequence, Tuple

import pathspec

from .config import FtaConfig
from .errors import PathError
from .models import SkippedFile, SourceUnit

logger = logging.getLogger(__name__)

IGNORE_FILE_NAMES = (".gitignore", ".ignore")


class IgnoreMatcher:
    """Match project paths against ``.gitignore`` and ``.ignore`` patterns.

    Ignore files are loaded one directory at a time while the project is
    walked, so directories that are pruned never have theirs read.
    """

    def __init__(self) -> None:
        self._patterns: List[str] = []
        self._spec = pathspec.GitIgnoreSpec.from_lines(self._patterns)

    def load_directory(self, root: Path, rel_dir: Path) -> None:
        """Add the patterns of the ignore files found directly in ``rel_dir``.

        Raises:
            OSError: If an ignore file cannot be read.
        """
        base = rel_dir.as_posix()
        if base == ".":
            base = ""
        added = False
        for name in IGNORE_FILE_NAMES:
            ignore_path = root / rel_dir / name
            if not ignore_path.is_file():
                continue
            for line in _read_ignore_lines(ignore_path):
                self._patterns.append(_translate_ignore_line(line=line, base=base))
                added = True
        if added:
            self._spec = pathspec.GitIgnoreSpec.from_lines(self._patterns)

    def matches(self, relative_path: str, is_dir: bool) -> bool:
        normalized = relative_path.replace(os.sep, "/").strip("/")
        if not normalized:
            return False
        if self._spec.match_file(normalized):
            return True
        if is_dir and self._spec.match_file(f"{normalized}/"):
            return True
        return False


def _read_ignore_lines(path: Path) -> List[str]:
    return path.read_text(encoding="utf-8", errors="ignore").splitlines()


def _translate_ignore_line(line: str, base: str) -> str:
    """Rewrite one ignore line found in ``base`` as a root-relative pattern."""
    if not base or not line:
        return line
    if line.lstrip().startswith("#"):
        return line
    if line.startswith(r"\!") or line.startswith(r"\#"):
        return line
    is_negation = line.startswith("!")
    pattern = line[1:] if is_negation else line
    anchored = pattern.startswith("/")
    normalized_pattern = pattern[1:] if anchored else pattern
    prefixed = f"{base}/{normalized_pattern}" if normalized_pattern else base
    if anchored:
        prefixed = f"/{prefixed}"
    if is_negation:
        return f"!{prefixed}"
    return prefixed


def is_excluded_filename(file_name: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        # ".d.ts" style entries without wildcards are suffixes
        if pattern.startswith(".") and "*" not in pattern and "?" not in pattern:
            pattern = f"*{pattern}"
        if fnmatch.fnmatchcase(file_name, pattern):
            return True
    return False


def is_excluded_directory_path(relative_path: str, patterns: Sequence[str]) -> bool:
    """Check a project-relative path against directory exclusion patterns.

    Patterns match whole path segments, wherever they occur:

    - ``node_modules`` matches ``node_modules/lib.js`` and ``src/node_modules/lib.js``
      but not ``my-node_modules/lib.js``
    - ``/dist`` and ``dist`` both match ``dist/file.js`` and ``packages/dist/file.js``
    - ``packages/dist`` matches ``packages/dist/file.js`` but not ``dist/file.js``
    """
    components = PurePosixPath(relative_path.replace(os.sep, "/")).parts
    for pattern in patterns:
        normalized = pattern.strip("/")
        if not normalized:
            continue
        wanted = tuple(normalized.split("/"))
        width = len(wanted)
        for i in range(len(components) - width + 1):
            if components[i : i + width] == wanted:
                return True
    return False


def is_valid_file(relative_path: str, config: FtaConfig) -> bool:
    file_name = PurePosixPath(relative_path).name
    valid_extension = any(file_name.endswith(ext) for ext in config.extensions)
    return (
        valid_extension
        and not is_excluded_filename(file_name, config.exclude_filenames)
        and not is_excluded_directory_path(relative_path, config.exclude_directories)
    )


def discover_files(root: Path, config: FtaConfig) -> List[str]:
    """Return the sorted project-relative POSIX paths worth analyzing under ``root``.

    Hidden files and directories are skipped, as is anything matched by an
    ignore file.
    """
    if not root.is_dir():
        raise PathError(f"Project root is not a directory: {root}", str(root))

    matcher = IgnoreMatcher()
    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root)
        matcher.load_directory(root, rel_dir)
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and not matcher.matches((rel_dir / d).as_posix(), is_dir=True)
        )
        for name in sorted(filenames):
            if name.startswith("."):
                continue
            relative = (rel_dir / name).as_posix()
            if matcher.matches(relative, is_dir=False):
                continue
            if is_valid_file(relative, config):
                found.append(relative)

    found.sort()
    logger.debug("Discovered %d candidate files under %s", len(found), root)
    return found


def _read_source(root: Path, relative: str) -> SourceUnit:
    path = root / relative
    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        raise PathError(f"Cannot read {relative}: {exc.strerror or exc}", relative) from exc
    return SourceUnit(path=relative, text=text)


def read_sources(
    root: Path, relative_paths: Sequence[str], max_open_files: int = 64
) -> Tuple[List[SourceUnit], List[SkippedFile]]:
    """Read files concurrently, at most ``max_open_files`` at a time.

    Unreadable files are logged and returned as skipped; the units keep the
    order of ``relative_paths``.
    """
    slots: List[SourceUnit | None] = [None] * len(relative_paths)
    failures: Dict[int, SkippedFile] = {}
    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_open_files)) as executor:
        future_to_index = {
            executor.submit(_read_source, root, relative): index for index, relative in enumerate(relative_paths)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            index = future_to_index[future]
            try:
                slots[index] = future.result()
            except PathError as exc:
                logger.warning("Skipping %s: %s", relative_paths[index], exc.message)
                failures[index] = SkippedFile(file_name=relative_paths[index], reason=exc.message)

    skipped = [failures[index] for index in sorted(failures)]
    units = [unit for unit in slots if unit is not None]
    return units, skipped
