"""Installation audit log (JSON lines after a comment header)."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from . import __version__
from .exceptions import PersistenceError

logger = logging.getLogger(__name__)

RETENTION_DAYS = 30


def audit_header(created: datetime) -> str:
    """The fixed four-line header every audit log starts with."""
    return (
        f"# Buddy OS v{__version__} Audit Log\n"
        f"# Created: {created.isoformat()}\n"
        "# Format: JSON lines\n"
        f"# Retention: {RETENTION_DAYS} days\n"
        "\n"
    )


def ensure_audit_log(path: Path, now: datetime | None = None) -> bool:
    """Create the log with its header unless it already exists.

    Returns:
        True if the file was created
    """
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(audit_header(now or datetime.now(tz=UTC)), encoding="utf-8")
    except OSError as e:
        msg = f"Failed to create audit log {path}: {e}"
        raise PersistenceError(msg) from e
    return True


def record_event(path: Path, event: str, **fields: Any) -> None:
    """Append one JSON line describing an installer event."""
    entry = {"timestamp": datetime.now(tz=UTC).isoformat(), "event": event, **fields}
    try:
        with path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
    except OSError as e:
        msg = f"Failed to append to audit log {path}: {e}"
        raise PersistenceError(msg) from e
    logger.debug("Audit event %s recorded", event)
