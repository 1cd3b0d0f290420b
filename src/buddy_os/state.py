"""Per-project installation state record."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from . import __version__
from .config import STATE_FILENAME
from .exceptions import CorruptStateError
from .fsutil import atomic_write_json
from .models import (
    Bundle,
    InstallationState,
    InstallStatus,
    McpStatus,
    RoleSystem,
)

logger = logging.getLogger(__name__)


class StateStore:
    """Reads and writes state.json inside an installation directory."""

    def __init__(self, install_dir: Path) -> None:
        """Initialize store for an installation directory.

        Args:
            install_dir: Path to the project's .cursor/buddy directory
        """
        self.install_dir = Path(install_dir)

    @property
    def path(self) -> Path:
        return self.install_dir / STATE_FILENAME

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> InstallationState | None:
        """Load the state record.

        Returns:
            The record, or None if the project was never installed

        Raises:
            CorruptStateError: If the file exists but cannot be parsed
        """
        if not self.exists():
            return None

        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            msg = f"Failed to read state file {self.path}: {e}"
            raise CorruptStateError(msg) from e

        try:
            return InstallationState.model_validate(data)
        except ValidationError as e:
            msg = f"State file validation failed: {e}"
            raise CorruptStateError(msg, details={"path": str(self.path)}) from e

    def write(self, state: InstallationState) -> None:
        """Replace the state record.

        Raises:
            PersistenceError: If the file cannot be written
        """
        atomic_write_json(self.path, state.model_dump(mode="json"))
        logger.debug("Wrote state to %s", self.path)

    def check(self, current_version: str = __version__) -> InstallStatus:
        """Classify the project as not installed, installed or outdated."""
        return classify(self.read(), current_version)


def classify(
    state: InstallationState | None,
    current_version: str = __version__,
) -> InstallStatus:
    """Compare a state record with the running installer version."""
    if state is None:
        return InstallStatus.NOT_INSTALLED
    if state.version != current_version:
        return InstallStatus.NEEDS_UPGRADE
    return InstallStatus.INSTALLED


def build_state(
    bundle: Bundle,
    role: str,
    mcp_status: McpStatus,
    previous: InstallationState | None = None,
    now: datetime | None = None,
) -> InstallationState:
    """Create the record for an install or upgrade.

    On upgrade the original install time and the session counter carry
    over; every other field is rewritten.
    """
    timestamp = now or datetime.now(tz=UTC)
    return InstallationState(
        version=__version__,
        installed_at=previous.installed_at if previous else timestamp,
        last_run=timestamp,
        session_count=previous.session_count if previous else 0,
        role_system=RoleSystem(
            current_role=role,
            bundle=bundle.id,
            autonomy_level=bundle.autonomy,
        ),
        mcp_status=mcp_status,
    )
