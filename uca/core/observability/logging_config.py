"""
Logging configuration — process-wide setup for the ``uca`` command.

``main.py`` calls :func:`setup_logging` once before any probing starts;
modules log through ``logging.getLogger(__name__)``.

Console level, highest precedence first:
    --debug  >  $UCA_LOG_LEVEL  >  WARNING

Probe and update commands are logged at DEBUG, so ``--debug`` shows every
child process the run spawns. A second sink can be attached with
``$UCA_LOG_FILE`` (level from ``$UCA_LOG_FILE_LEVEL``). That keeps a full
trace on disk while the terminal only shows the dashboard.

Console records go to stderr; stdout carries results and ``--json``.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LOG_LEVEL = "UCA_LOG_LEVEL"
ENV_LOG_FILE = "UCA_LOG_FILE"
ENV_LOG_FILE_LEVEL = "UCA_LOG_FILE_LEVEL"

DEFAULT_LEVEL = "WARNING"

# ── Formats ─────────────────────────────────────────────────────

# (format, datefmt) by the most verbose level they apply to.
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(threadName)s %(name)s: %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = ("uca: %(levelname)s: %(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s [%(threadName)s] %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Handlers added by the last setup_logging call.
_installed: list[logging.Handler] = []


def resolve_level(*, debug: bool = False) -> str:
    """Pick the console level from --debug, then the environment."""
    if debug:
        return "DEBUG"
    env_level = os.environ.get(ENV_LOG_LEVEL, "").strip()
    return env_level.upper() if env_level else DEFAULT_LEVEL


def setup_logging(
    level: str = DEFAULT_LEVEL,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler and, optionally, a file sink on the root logger.

    Safe to call more than once: previously installed handlers are
    replaced, not stacked.

    Args:
        level: Console level name. Unknown names fall back to WARNING.
        log_file: Path of the file sink. Defaults to ``$UCA_LOG_FILE``.
        log_file_level: Level of the file sink. Defaults to
            ``$UCA_LOG_FILE_LEVEL``, then to ``level``.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get(ENV_LOG_FILE) or None
    log_file_level = log_file_level or os.environ.get(ENV_LOG_FILE_LEVEL) or None

    handlers: list[logging.Handler] = [_console_handler(console_level)]
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    for old in _installed:
        root.removeHandler(old)
        old.close()
    _installed[:] = handlers
    root.handlers[:] = handlers
    # Root passes everything either sink wants; each handler filters.
    root.setLevel(min(h.level for h in handlers))

    # A broken stream must not take the run down mid-update.
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; WARNING for anything unrecognized."""
    numeric = logging.getLevelName(level.strip().upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
