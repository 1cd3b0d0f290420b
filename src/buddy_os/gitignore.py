"""Marker block management for the project .gitignore."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from .config import BUDDY_DIR
from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

GITIGNORE_MARKER = "# Buddy OS (auto-generated)"
IGNORED_PATH = f"{BUDDY_DIR}/"


class PatchResult(str, Enum):
    """What add_block did to the ignore file."""

    CREATED = "created"
    UPDATED = "updated"
    ALREADY_PRESENT = "already-present"


class _ScanState(Enum):
    NORMAL = "normal"
    SKIPPING = "skipping"


def _is_marker(line: str) -> bool:
    return line.rstrip("\r") == GITIGNORE_MARKER


def _is_ignored_path(line: str) -> bool:
    return line.rstrip("\r") == IGNORED_PATH


def marker_block() -> str:
    return f"{GITIGNORE_MARKER}\n{IGNORED_PATH}\n"


def strip_block(content: str) -> str:
    """Remove every marker line and the path line directly after it.

    Runs a two-state scan over the lines: a marker switches to SKIPPING,
    and the next line always switches back to NORMAL. That line is dropped
    only if it is the ignored path.
    """
    kept: list[str] = []
    state = _ScanState.NORMAL

    for line in content.split("\n"):
        if state is _ScanState.SKIPPING:
            state = _ScanState.NORMAL
            if _is_ignored_path(line):
                continue
        if _is_marker(line):
            state = _ScanState.SKIPPING
            continue
        kept.append(line)

    return "\n".join(kept)


def _read(path: Path) -> str:
    try:
        with path.open(encoding="utf-8", errors="surrogateescape", newline="") as f:
            return f.read()
    except OSError as e:
        msg = f"Failed to read {path}: {e}"
        raise PersistenceError(msg) from e


def _write(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8", errors="surrogateescape", newline="")
    except OSError as e:
        msg = f"Failed to write {path}: {e}"
        raise PersistenceError(msg) from e


def add_block(path: Path) -> PatchResult:
    """Add the marker block unless the file already has one."""
    if not path.exists():
        _write(path, marker_block())
        return PatchResult.CREATED

    content = _read(path)
    if any(_is_marker(line) for line in content.split("\n")):
        return PatchResult.ALREADY_PRESENT

    _write(path, content + "\n" + marker_block())
    logger.debug("Appended ignore block to %s", path)
    return PatchResult.UPDATED


def remove_block(path: Path) -> None:
    """Remove the marker block, leaving every other line untouched."""
    if not path.exists():
        return

    content = _read(path)
    stripped = strip_block(content)
    if stripped != content:
        _write(path, stripped)
        logger.debug("Removed ignore block from %s", path)
