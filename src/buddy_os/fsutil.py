"""Write-then-rename helpers for files other tools read."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from .exceptions import PersistenceError


def atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` without truncating it first.

    A symlinked ``path`` keeps its link; the file it points at is replaced.

    Raises:
        PersistenceError: If the directory or file cannot be written
    """
    temp_path: Path | None = None
    path = path.resolve()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="\n",
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(temp_path, path)
    except OSError as e:
        msg = f"Failed to write {path}: {e}"
        raise PersistenceError(msg, details={"path": str(path)}) from e
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)


def atomic_write_json(path: Path, obj: Any) -> None:
    """Serialize ``obj`` with two-space indentation and write it atomically."""
    text = json.dumps(obj, indent=2, ensure_ascii=False) + "\n"
    atomic_write_text(path, text)
