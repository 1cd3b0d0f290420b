"""Install, upgrade, inspect and remove Buddy OS in a project."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .audit import ensure_audit_log, record_event
from .config import AUDIT_LOG_FILENAME, Settings
from .exceptions import CorruptStateError, PersistenceError
from .gitignore import PatchResult, add_block, remove_block
from .mcp_config import MergeReport, configured_servers, merge_and_persist, summarize
from .models import Bundle, InstallationState, InstallStatus, McpStatus
from .rules import count_rules, materialize
from .state import StateStore, build_state, classify

logger = logging.getLogger(__name__)

SCAFFOLD_DIRS = (
    "ideas/backlog",
    "ideas/ready",
    "ideas/in-progress",
    "ideas/archive",
    "drafts",
    "rules",
)


@dataclass
class InstallReport:
    """Everything the presentation layer reports after an install."""

    install_dir: Path
    upgraded: bool
    rules_copied: int
    state: InstallationState
    gitignore: PatchResult
    merge: MergeReport | None = None


@dataclass
class StatusReport:
    """Read-only view of an installed project."""

    state: InstallationState
    status: InstallStatus
    rules_installed: int
    mcp_servers: list[str]


class Installer:
    """Runs the install sequence against one project directory."""

    def __init__(self, settings: Settings) -> None:
        """Initialize installer with resolved settings.

        Args:
            settings: Project, shared config and rule source locations
        """
        self.settings = settings
        self.store = StateStore(settings.install_dir)

    @property
    def install_dir(self) -> Path:
        return self.settings.install_dir

    @property
    def rules_dir(self) -> Path:
        return self.install_dir / "rules"

    @property
    def audit_log_path(self) -> Path:
        return self.install_dir / AUDIT_LOG_FILENAME

    def is_installed(self) -> bool:
        return self.store.exists()

    def create_structure(self) -> None:
        """Create the content directories, each with a .gitkeep."""
        try:
            for relative in SCAFFOLD_DIRS:
                directory = self.install_dir / relative
                directory.mkdir(parents=True, exist_ok=True)
                (directory / ".gitkeep").touch()
        except OSError as e:
            msg = f"Failed to create {self.install_dir}: {e}"
            raise PersistenceError(msg) from e

    def install(
        self,
        bundle: Bundle,
        role: str,
        integrations: Mapping[str, Mapping[str, str]] | None = None,
        track_mcp: bool = True,
    ) -> InstallReport:
        """Install or upgrade the project.

        Args:
            bundle: Resolved bundle
            role: Resolved role id
            integrations: New integration credentials to merge, if any
            track_mcp: Record shared MCP servers in the state summary

        Returns:
            Install report

        Raises:
            PersistenceError: If any file cannot be written

        An unreadable state record counts as an upgrade with no history to
        carry over; it is replaced by a fresh one.
        """
        try:
            previous = self.store.read()
        except CorruptStateError as e:
            logger.warning("%s; writing a fresh state record", e)
            previous = None
        upgraded = self.store.exists()
        logger.info(
            "%s %s for role %s",
            "Upgrading" if upgraded else "Installing",
            bundle.id.value,
            role,
        )

        self.create_structure()
        rules_copied = materialize(bundle, self.settings.rules_source, self.rules_dir)

        merge = None
        if integrations:
            merge = merge_and_persist(self.settings.mcp_config_path, integrations)

        mcp_status = summarize(self.settings.mcp_config_path) if track_mcp else McpStatus()
        state = build_state(bundle, role, mcp_status, previous=previous)
        self.store.write(state)

        ensure_audit_log(self.audit_log_path)
        record_event(
            self.audit_log_path,
            "upgrade" if upgraded else "install",
            bundle=bundle.id.value,
            role=role,
            rules=rules_copied,
        )

        gitignore = add_block(self.settings.gitignore_path)

        return InstallReport(
            install_dir=self.install_dir,
            upgraded=upgraded,
            rules_copied=rules_copied,
            state=state,
            gitignore=gitignore,
            merge=merge,
        )

    def cleanup(self) -> bool:
        """Delete the installation directory and the ignore block.

        Returns:
            False if there was nothing to remove
        """
        if not self.install_dir.exists():
            return False

        try:
            shutil.rmtree(self.install_dir)
        except OSError as e:
            msg = f"Failed to remove {self.install_dir}: {e}"
            raise PersistenceError(msg) from e
        remove_block(self.settings.gitignore_path)
        logger.info("Removed %s", self.install_dir)
        return True

    def status(self) -> StatusReport | None:
        """Describe the installation, or None if the project is not installed."""
        state = self.store.read()
        if state is None:
            return None

        return StatusReport(
            state=state,
            status=classify(state),
            rules_installed=count_rules(self.rules_dir),
            mcp_servers=list(configured_servers(self.settings.mcp_config_path)),
        )
