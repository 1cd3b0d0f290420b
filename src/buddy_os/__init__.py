"""Buddy OS: role-aware assistant rules and MCP setup for Cursor projects."""

__version__ = "5.2.0"
__author__ = "Buddy OS Contributors"
__description__ = "Role-aware assistant rules and MCP setup for Cursor projects"

from .bundles import resolve_bundle, resolve_role
from .config import Settings, load_settings
from .installer import Installer
from .mcp_config import merge_and_persist
from .models import Bundle, BundleId, InstallationState

__all__ = [
    "Bundle",
    "BundleId",
    "InstallationState",
    "Installer",
    "Settings",
    "load_settings",
    "merge_and_persist",
    "resolve_bundle",
    "resolve_role",
]
