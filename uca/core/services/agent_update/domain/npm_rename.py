"""
L1 Domain — npm rename failure paths (pure).

When ``npm install -g`` dies with ENOTEMPTY it reports the rename it
attempted. These helpers pull the two paths out of the log and decide
whether the destination is the kind of stale ``.<name>-<hash>`` temp
directory that is safe to delete before retrying.
"""

from __future__ import annotations

import ntpath
import os
import posixpath

_PATH_PREFIX = "npm error path "
_DEST_PREFIX = "npm error dest "
_RENAME_OPEN = "rename '"
_RENAME_ARROW = "' -> '"


def extract_npm_rename_paths(output: str) -> tuple[str, str]:
    """Return ``(path, dest)`` of the failed rename, or empty strings."""
    path = dest = ""
    for raw in output.splitlines():
        line = raw.strip()
        if line.startswith(_PATH_PREFIX):
            path = line[len(_PATH_PREFIX):].strip()
        elif line.startswith(_DEST_PREFIX):
            dest = line[len(_DEST_PREFIX):].strip()
    if path and dest:
        return path, dest

    # Older npm: "rename '/a/b' -> '/a/.b-xyz'"
    for raw in output.splitlines():
        line = raw.strip()
        start = line.find(_RENAME_OPEN)
        if start == -1:
            continue
        start += len(_RENAME_OPEN)
        mid = line.find(_RENAME_ARROW, start)
        if mid == -1:
            continue
        rest = line[mid + len(_RENAME_ARROW):]
        end = rest.find("'")
        if end == -1:
            continue
        return line[start:mid], rest[:end]
    return path, dest


def _pathmod(path: str):
    # npm on Windows reports drive paths even when we are parsing a
    # copied log elsewhere; pick the flavour from the path itself.
    if os.name == "nt" or (len(path) > 2 and path[1] == ":"):
        return ntpath
    return posixpath


def is_safe_npm_rename_target(path: str, dest: str) -> bool:
    """Whether *dest* is npm's own temp sibling of *path*.

    Both must be absolute and share a parent directory, and the
    destination name must start with ``.`` followed by the source name.
    """
    if not path or not dest:
        return False
    mod = _pathmod(path)
    if not mod.isabs(path) or not mod.isabs(dest):
        return False
    if mod.dirname(path) != mod.dirname(dest):
        return False
    base = mod.basename(path)
    dest_base = mod.basename(dest)
    if base in ("", ".", "..") or dest_base in ("", ".", ".."):
        return False
    return dest_base.startswith("." + base)
