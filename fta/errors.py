"""Exception hierarchy for the analysis engine."""

from __future__ import annotations

from typing import Dict, Optional, Tuple


class FtaError(Exception):
    """Base exception for all analysis errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        # Files dropped with a warning before this error ended the run.
        self.skipped: Tuple = ()

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class PathError(FtaError):
    """A source file or the project root cannot be read."""

    def __init__(self, message: str, path: str):
        super().__init__(message, {"path": path})
        self.path = path


class ParseError(FtaError):
    """Source text is not well-formed enough to tokenize."""

    def __init__(self, message: str, file_name: Optional[str] = None, line: Optional[int] = None):
        details: Dict[str, str] = {}
        if file_name is not None:
            details["file"] = file_name
        if line is not None:
            details["line"] = str(line)
        super().__init__(message, details)
        self.file_name = file_name
        self.line = line

    def for_file(self, file_name: str) -> "ParseError":
        """Return a copy of this error attributed to ``file_name``."""
        return ParseError(self.message, file_name=file_name, line=self.line)


class ConfigError(FtaError):
    """Configuration file is missing or invalid."""


class ComputationError(FtaError):
    """A metric formula produced a non-finite value."""
