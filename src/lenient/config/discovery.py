"""Config file discovery and loading.

Settings live either in a dedicated ``lenient.toml`` or in the
``[tool.lenient]`` table of a ``pyproject.toml``. The nearest directory
(walking up from the start point) that has either wins; within one
directory ``lenient.toml`` takes precedence. ``LENIENT_CONFIG`` names a
file explicitly and disables the walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from lenient.errors import ConfigError

CONFIG_FILENAME = "lenient.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "LENIENT_CONFIG"


def _has_tool_table(pyproject: Path) -> bool:
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return isinstance(data.get("tool", {}).get("lenient"), dict)


def find_config(start: Path | None = None) -> Path | None:
    """Locate the config file governing *start* (default: cwd), or None."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in [here, *here.parents]:
        dedicated = directory / CONFIG_FILENAME
        if dedicated.is_file():
            return dedicated
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _has_tool_table(pyproject):
            return pyproject
    return None


def read_config(path: Path) -> dict[str, Any]:
    """Return the settings table stored in *path*.

    Raises:
        ConfigError: If the file is not valid TOML.
    """
    try:
        data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc
    if path.name == PYPROJECT_FILENAME:
        table = data.get("tool", {}).get("lenient", {})
        return table if isinstance(table, dict) else {}
    return data
