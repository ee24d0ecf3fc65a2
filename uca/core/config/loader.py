"""
Configuration loader — reads the optional user config into RunOptions.

The file is plain YAML, every key optional::

    timeout: 600          # seconds per update command, 0 disables
    concurrency: 4
    safe: false
    serial: false
    explain: false
    verbose: false
    only: [claude, codex]  # or "claude,codex"
    skip: cline

Lookup order: ``--config``, ``$UCA_CONFIG``, then
``$XDG_CONFIG_HOME/uca/config.yml`` (``~/.config/uca/config.yml``).
A missing default file is not an error; a missing explicit one is.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from uca.core.models.options import RunOptions

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "UCA_CONFIG"
CONFIG_DIR_NAME = "uca"
CONFIG_FILE_NAME = "config.yml"

# Keys the file may set. Per-invocation switches (dry-run, quiet, json)
# are CLI-only.
FILE_KEYS = frozenset({
    "timeout", "concurrency", "safe", "serial", "explain", "verbose", "only", "skip",
})


class ConfigError(Exception):
    """Raised when the config file is unreadable or invalid."""


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/uca/config.yml``, falling back to ``~/.config``."""
    base = os.environ.get("XDG_CONFIG_HOME", "").strip()
    root = Path(base) if base else Path.home() / ".config"
    return root / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def find_config_file(explicit: Path | str | None = None) -> Path | None:
    """Locate the config file to load.

    Returns:
        The explicit or ``$UCA_CONFIG`` path as given (even if missing, so
        the caller reports it), else the default path if it exists, else
        None.
    """
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    candidate = default_config_path()
    return candidate if candidate.is_file() else None


def load_options(path: Path | None = None) -> RunOptions:
    """Load and validate run options.

    Args:
        path: Config file, usually from ``find_config_file``. None means
            "no file": defaults are returned.

    Returns:
        Validated RunOptions.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        return RunOptions()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return RunOptions()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    unknown = sorted(set(data) - FILE_KEYS)
    if unknown:
        raise ConfigError(f"Unknown key(s) in {path}: {', '.join(map(str, unknown))}")

    try:
        options = RunOptions.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config from %s", path)
    return options
