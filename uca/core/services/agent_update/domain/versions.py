"""
L1 Domain — Version string handling (pure).

Agents print their version in every conceivable shape
(``1.2.3``, ``v0.4.1``, ``codex-cli 0.20.0``, a banner followed by the
number on its own line, …). These helpers pick the most useful line and
splice a registry version into the same shape for dry-run previews.
"""

from __future__ import annotations

import re

from uca.core.models.result import UNKNOWN_VERSION

_SEMVER_TOKEN_RE = re.compile(
    r"\bv?\d+\.\d+(?:\.\d+)?(?:-[0-9a-z.-]+)?(?:\+[0-9a-z.-]+)?\b",
    re.IGNORECASE,
)


def is_version_only_line(line: str) -> bool:
    """``1.2.3`` / ``v0.10`` style: dot-separated digits, nothing else."""
    if " " in line or "\t" in line:
        return False
    if line.startswith("v"):
        line = line[1:]
    parts = line.split(".")
    if len(parts) < 2:
        return False
    return all(part and part.isascii() and part.isdigit() for part in parts)


def parse_version_output(out: str) -> str:
    """Pick the version from ``--version`` output.

    Prefers the LAST line that is a bare version number (banners tend to
    come first); otherwise the first non-blank line; otherwise
    ``unknown``.
    """
    first = ""
    version_only = ""
    for raw in out.strip().splitlines():
        line = raw.strip()
        if not line:
            continue
        if not first:
            first = line
        if is_version_only_line(line):
            version_only = line
    return version_only or first or UNKNOWN_VERSION


def extract_version_token(text: str) -> str | None:
    """First semver-looking token in *text*, or None."""
    text = text.strip()
    if not text:
        return None
    match = _SEMVER_TOKEN_RE.search(text)
    return match.group(0) if match else None


def format_version_with_token(before: str, new_version: str) -> str:
    """Render *new_version* in the shape of *before*.

    >>> format_version_with_token("codex-cli v0.20.0", "0.21.1")
    'codex-cli v0.21.1'
    """
    new_version = new_version.strip()
    if not new_version:
        return ""
    before = before.strip()
    if not before or before == UNKNOWN_VERSION:
        return new_version
    token = extract_version_token(before)
    if token is None:
        return new_version
    if token.startswith("v") and not new_version.startswith("v"):
        new_version = "v" + new_version
    return before.replace(token, new_version, 1)


def safe_version(version: str) -> str:
    """Blank versions display as ``unknown``."""
    return version if version.strip() else UNKNOWN_VERSION
