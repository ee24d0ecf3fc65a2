"""
L3 Detection — Package-list output parsers.

Each manager lists its global installs in its own format. These
functions turn that text into a set of package names. Malformed output
yields an empty set, never an exception: a manager we cannot read is
treated as having nothing installed.
"""

from __future__ import annotations

import json
import logging

logger = logging.getLogger(__name__)


def parse_npm_list_json(out: str) -> set[str]:
    """``npm list -g --depth=0 --json`` → the ``dependencies`` keys."""
    try:
        payload = json.loads(out)
    except (json.JSONDecodeError, TypeError):
        logger.debug("npm list output is not JSON")
        return set()
    if not isinstance(payload, dict):
        return set()
    deps = payload.get("dependencies")
    return set(deps) if isinstance(deps, dict) else set()


def parse_pnpm_list_json(out: str) -> set[str]:
    """``pnpm list -g --depth=0 --json``.

    Newer pnpm prints a list of per-root objects, older ones a single
    object. Both carry a ``dependencies`` map.
    """
    try:
        payload = json.loads(out)
    except (json.JSONDecodeError, TypeError):
        logger.debug("pnpm list output is not JSON")
        return set()
    entries = payload if isinstance(payload, list) else [payload]
    names: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        deps = entry.get("dependencies")
        if isinstance(deps, dict):
            names.update(deps)
    return names


def parse_package_from_token(token: str) -> str:
    """``"@scope/pkg@1.2.3",`` → ``@scope/pkg``; non-package tokens → ``""``."""
    token = token.strip("\"'`,").rstrip("):,").lstrip("(")
    idx = token.rfind("@")
    if idx <= 0 or idx == len(token) - 1:
        return ""
    return token[:idx]


def parse_package_list_output(out: str) -> set[str]:
    """Free-form ``name@version`` listings (yarn, bun).

    Every whitespace-separated token on every line is tried, so tree
    decorations (``├──``) and prose around the entries are ignored.
    """
    names: set[str] = set()
    for line in out.splitlines():
        for token in line.split():
            name = parse_package_from_token(token)
            if name:
                names.add(name)
    return names


def parse_uv_tool_list(out: str) -> set[str]:
    """``uv tool list`` → first field of each non-blank line."""
    names: set[str] = set()
    for line in out.splitlines():
        fields = line.split()
        if fields:
            names.add(fields[0])
    return names


def parse_extension_list(out: str) -> dict[str, str]:
    """``code --list-extensions --show-versions`` → ``{id: version}``."""
    extensions: dict[str, str] = {}
    for raw in out.splitlines():
        line = raw.strip()
        idx = line.rfind("@")
        if idx <= 0:
            continue
        extensions[line[:idx]] = line[idx + 1:]
    return extensions
