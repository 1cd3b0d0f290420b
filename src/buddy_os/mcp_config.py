"""Shared MCP configuration: read, merge and persist.

The shared file lives outside the project (``~/.cursor/mcp.json`` by default)
and is also edited by hand and by other tools, so the merge only ever adds
or replaces the servers it was given. Everything else in the file survives.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .exceptions import MalformedExistingConfig, MissingCredentials
from .fsutil import atomic_write_json
from .integrations import build_server_entry, describe
from .models import McpStatus

logger = logging.getLogger(__name__)

SERVERS_KEY = "mcpServers"


@dataclass
class MergeReport:
    """Outcome of a merge_and_persist call."""

    path: Path
    configured: list[str] = field(default_factory=list)
    skipped: dict[str, list[str]] = field(default_factory=dict)
    unknown: list[str] = field(default_factory=list)
    written: bool = False


def _parse_shared_config(text: str) -> dict[str, Any]:
    """Parse the shared config document.

    Raises:
        MalformedExistingConfig: If the text is not a JSON object whose
            servers section is itself an object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Shared MCP config is not valid JSON: {e}"
        raise MalformedExistingConfig(msg) from e

    if not isinstance(data, dict):
        msg = "Shared MCP config must be a JSON object"
        raise MalformedExistingConfig(msg)
    if not isinstance(data.get(SERVERS_KEY, {}), dict):
        msg = f"'{SERVERS_KEY}' must be a JSON object"
        raise MalformedExistingConfig(msg)
    return data


def read_shared_config(path: Path) -> dict[str, Any]:
    """Read the whole shared config, empty when missing or unparsable."""
    if not path.exists():
        return {}

    try:
        return _parse_shared_config(path.read_text(encoding="utf-8"))
    except MalformedExistingConfig as e:
        logger.debug("Ignoring %s: %s", path, e)
        return {}
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Ignoring unreadable %s: %s", path, e)
        return {}


def configured_servers(path: Path) -> dict[str, Any]:
    """Servers currently present in the shared config."""
    return dict(read_shared_config(path).get(SERVERS_KEY, {}))


def summarize(path: Path) -> McpStatus:
    """Integration summary recorded in the installation state."""
    servers = list(configured_servers(path))
    return McpStatus(configured=len(servers), servers=servers)


def merge_and_persist(
    path: Path,
    new_entries: Mapping[str, Mapping[str, str]],
) -> MergeReport:
    """Overlay new integration entries onto the shared config.

    Args:
        path: Shared MCP config file
        new_entries: Integration id -> supplied credential values

    Returns:
        Report of configured, skipped and unknown integrations

    Raises:
        PersistenceError: If the merged file cannot be written
    """
    report = MergeReport(path=path)
    built: dict[str, dict[str, Any]] = {}

    for integration_id, credentials in new_entries.items():
        descriptor = describe(integration_id)
        if descriptor is None:
            logger.info("Unknown integration '%s' skipped", integration_id)
            report.unknown.append(integration_id)
            continue
        try:
            entry = build_server_entry(descriptor, credentials)
        except MissingCredentials as e:
            logger.info("Skipped %s (missing credentials: %s)", descriptor.name, ", ".join(e.missing))
            report.skipped[integration_id] = e.missing
            continue
        built[integration_id] = entry.to_config()
        report.configured.append(integration_id)

    if not built:
        return report

    document = read_shared_config(path)
    servers = dict(document.get(SERVERS_KEY, {}))
    servers.update(built)
    document[SERVERS_KEY] = servers

    atomic_write_json(path, document)
    report.written = True
    logger.info("Saved %d MCP server(s) to %s", len(built), path)
    return report
