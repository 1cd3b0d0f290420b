"""Installer settings with project-file validation and environment overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

CURSOR_DIR = ".cursor"
BUDDY_DIR = f"{CURSOR_DIR}/buddy"
STATE_FILENAME = "state.json"
AUDIT_LOG_FILENAME = "audit.log"
RULE_SUFFIX = ".mdc"
PROJECT_CONFIG_FILENAME = ".buddy-os.yaml"

MCP_CONFIG_ENV = "BUDDY_OS_MCP_CONFIG"
RULES_DIR_ENV = "BUDDY_OS_RULES_DIR"

DEFAULT_RULES_SOURCE = Path(__file__).parent / "rules"

PROJECT_CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Buddy OS project settings",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "bundle": {"type": ["string", "integer"]},
        "role": {"type": ["string", "integer"]},
        "skip_mcp": {"type": "boolean"},
        "rules_source": {"type": "string"},
        "mcp_config": {"type": "string"},
    },
}


def default_mcp_config_path() -> Path:
    """Shared, user-scoped MCP configuration used by Cursor."""
    return Path.home() / CURSOR_DIR / "mcp.json"


class Settings(BaseModel):
    """Resolved settings for one invocation."""

    project_dir: Path = Field(..., description="Project being configured")
    mcp_config_path: Path = Field(
        default_factory=default_mcp_config_path,
        description="Shared MCP configuration file",
    )
    rules_source: Path = Field(
        default=DEFAULT_RULES_SOURCE,
        description="Directory holding *.mdc capability files",
    )
    default_bundle: str | int | None = Field(
        default=None,
        description="Bundle used when none is given on the command line",
    )
    default_role: str | int | None = Field(
        default=None,
        description="Role used when none is given on the command line",
    )
    skip_mcp: bool = Field(default=False, description="Never touch MCP configuration")

    @property
    def install_dir(self) -> Path:
        return self.project_dir / BUDDY_DIR

    @property
    def gitignore_path(self) -> Path:
        return self.project_dir / ".gitignore"


def _load_project_file(project_dir: Path) -> dict[str, Any]:
    """Load and validate the optional project settings file."""
    config_path = project_dir / PROJECT_CONFIG_FILENAME
    if not config_path.exists():
        return {}

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"Failed to parse {PROJECT_CONFIG_FILENAME}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Failed to read {config_path}: {e}"
        raise ConfigError(msg) from e

    if data is None:
        return {}

    try:
        jsonschema.validate(data, PROJECT_CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        msg = f"Invalid {PROJECT_CONFIG_FILENAME}: {e.message}"
        raise ConfigError(
            msg,
            details={"path": list(e.absolute_path), "file": str(config_path)},
        ) from e

    logger.debug("Loaded project settings from %s", config_path)
    return data


def load_settings(
    project_dir: Path | None = None,
    mcp_config_path: Path | None = None,
    rules_source: Path | None = None,
) -> Settings:
    """Build settings from defaults, project file, environment and overrides.

    Args:
        project_dir: Project directory, defaults to the current directory
        mcp_config_path: Explicit shared MCP config path
        rules_source: Explicit capability rule source directory

    Returns:
        Resolved settings

    Raises:
        ConfigError: If the project settings file is invalid
    """
    project = Path(project_dir) if project_dir is not None else Path.cwd()
    file_data = _load_project_file(project)

    values: dict[str, Any] = {"project_dir": project}
    if "bundle" in file_data:
        values["default_bundle"] = file_data["bundle"]
    if "role" in file_data:
        values["default_role"] = file_data["role"]
    if "skip_mcp" in file_data:
        values["skip_mcp"] = file_data["skip_mcp"]
    if "mcp_config" in file_data:
        values["mcp_config_path"] = Path(file_data["mcp_config"]).expanduser()
    if "rules_source" in file_data:
        source = Path(file_data["rules_source"]).expanduser()
        values["rules_source"] = source if source.is_absolute() else project / source

    env_mcp = os.environ.get(MCP_CONFIG_ENV)
    if env_mcp:
        values["mcp_config_path"] = Path(env_mcp).expanduser()
    env_rules = os.environ.get(RULES_DIR_ENV)
    if env_rules:
        values["rules_source"] = Path(env_rules).expanduser()

    if mcp_config_path is not None:
        values["mcp_config_path"] = Path(mcp_config_path)
    if rules_source is not None:
        values["rules_source"] = Path(rules_source)

    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        msg = f"Settings validation failed: {e}"
        raise ConfigError(msg) from e
