"""Project configuration.

Settings come from the defaults below, merged with an optional ``fta.json``
in the project root (or a file given explicitly):

    {
        "extensions": [".vue.ts"],
        "exclude_filenames": ["*.spec.ts"],
        "exclude_directories": ["/generated"],
        "output_limit": 100,
        "score_cap": 80,
        "include_comments": false,
        "exclude_under": 6
    }

List values are appended to the defaults; scalar values replace them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "fta.json"


@dataclass(frozen=True)
class FtaConfig:
    extensions: Tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx")
    exclude_filenames: Tuple[str, ...] = (".d.ts", ".min.js", ".bundle.js")
    exclude_directories: Tuple[str, ...] = ("/dist", "/bin", "/build")
    output_limit: int = 5000
    score_cap: int = 1000
    include_comments: bool = False
    exclude_under: int = 6
    max_open_files: int = 64


_LIST_FIELDS = {"extensions", "exclude_filenames", "exclude_directories"}
_INT_FIELDS = {"output_limit", "score_cap", "exclude_under", "max_open_files"}
_BOOL_FIELDS = {"include_comments"}


def _validate(key: str, value: Any) -> Any:
    if key in _LIST_FIELDS:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError(f"'{key}' must be a list of strings", {"value": repr(value)})
        return tuple(value)
    if key in _INT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"'{key}' must be a non-negative integer", {"value": repr(value)})
        return value
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a boolean", {"value": repr(value)})
    return value


def merge_config(base: FtaConfig, provided: Dict[str, Any]) -> FtaConfig:
    known = {f.name for f in fields(FtaConfig)}
    changes: Dict[str, Any] = {}
    for key, value in provided.items():
        if key not in known:
            logger.warning("Ignoring unknown config key '%s'", key)
            continue
        value = _validate(key, value)
        if key in _LIST_FIELDS:
            value = getattr(base, key) + value
        changes[key] = value
    return replace(base, **changes)


def read_config(config_path: str | Path, path_specified_by_user: bool = False) -> FtaConfig:
    """
    Load ``config_path`` on top of the defaults. A missing file yields the
    defaults unless the user pointed at it explicitly.
    """
    path = Path(config_path)
    default_config = FtaConfig()

    if not path.exists():
        if path_specified_by_user:
            raise ConfigError(f"Config file not found at file path: {path}")
        return default_config

    try:
        provided = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc.msg}", {"line": str(exc.lineno)}) from exc

    if not isinstance(provided, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    logger.debug("Loaded config from %s", path)
    return merge_config(default_config, provided)
