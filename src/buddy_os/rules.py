"""Capability rule discovery and installation."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .bundles import selects
from .config import RULE_SUFFIX
from .exceptions import PersistenceError, SourceUnavailable
from .models import Bundle

logger = logging.getLogger(__name__)


def rule_slug(path: Path) -> str:
    """Stable slug for a capability file: its name without the suffix."""
    return path.name.removesuffix(RULE_SUFFIX)


def discover_rules(source_dir: Path) -> list[Path]:
    """List candidate capability files in ``source_dir``.

    Raises:
        SourceUnavailable: If the directory does not exist
    """
    if not source_dir.is_dir():
        msg = f"Rule source not found: {source_dir}"
        raise SourceUnavailable(msg, details={"path": str(source_dir)})

    return sorted(
        p for p in source_dir.iterdir()
        if p.is_file() and p.name.endswith(RULE_SUFFIX)
    )


def count_rules(directory: Path) -> int:
    """Count installed capability files, zero if the directory is missing."""
    try:
        return len(discover_rules(directory))
    except SourceUnavailable:
        return 0


def materialize(bundle: Bundle, source_dir: Path, target_dir: Path) -> int:
    """Copy the bundle's capability files into ``target_dir``.

    Existing files of the same name are overwritten. A missing source
    directory is logged and yields zero copies.

    Args:
        bundle: Bundle whose selection decides which files are copied
        source_dir: Directory holding candidate *.mdc files
        target_dir: Installation rules directory, created if absent

    Returns:
        Number of files copied

    Raises:
        PersistenceError: If the target cannot be created or written
    """
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"Failed to create {target_dir}: {e}"
        raise PersistenceError(msg) from e

    try:
        candidates = discover_rules(source_dir)
    except SourceUnavailable as e:
        logger.warning("%s; no rules installed", e)
        return 0

    copied = 0
    for candidate in candidates:
        if not selects(bundle, rule_slug(candidate)):
            continue
        try:
            shutil.copyfile(candidate, target_dir / candidate.name)
        except OSError as e:
            msg = f"Failed to copy rule {candidate.name}: {e}"
            raise PersistenceError(msg) from e
        copied += 1

    logger.debug("Copied %d of %d rules for %s", copied, len(candidates), bundle.id.value)
    return copied
