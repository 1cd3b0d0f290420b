"""Core data models for the Buddy OS installer."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BundleId(str, Enum):
    """Permission bundles, ordered from least to most privileged."""

    STARTER = "starter"
    ADVANCED = "advanced"
    TECHLEAD = "techlead"
    ENTERPRISE = "enterprise"


class AllRules(BaseModel):
    """Selection that matches every capability file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["all"] = "all"


class RuleSlugs(BaseModel):
    """Selection limited to an explicit list of capability slugs."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["slugs"] = "slugs"
    slugs: tuple[str, ...] = Field(..., description="Capability slugs in display order")


RuleSelection = Annotated[AllRules | RuleSlugs, Field(discriminator="kind")]


class Bundle(BaseModel):
    """A named capability tier controlling which rule files are installed."""

    model_config = ConfigDict(frozen=True)

    id: BundleId = Field(..., description="Canonical bundle identifier")
    name: str = Field(..., description="Display name")
    autonomy: str = Field(..., description="Autonomy level label")
    rules: RuleSelection = Field(..., description="Which capability files belong to the bundle")
    description: str = Field(default="", description="One-line summary")
    features: tuple[str, ...] = Field(default=(), description="Feature highlights")


class Priority(str, Enum):
    """How strongly an integration is suggested during setup."""

    RECOMMENDED = "recommended"
    OPTIONAL = "optional"


class SetupGuide(BaseModel):
    """Instructions shown before credentials are requested."""

    model_config = ConfigDict(frozen=True)

    title: str
    steps: tuple[str, ...] = ()
    url: str | None = None
    note: str | None = None


class IntegrationDescriptor(BaseModel):
    """Catalog entry for an external MCP integration."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Key used in the shared MCP config")
    name: str = Field(..., description="Display name")
    icon: str = Field(default="🔌", description="Display icon")
    description: str = Field(default="", description="What the integration provides")
    priority: Priority = Field(default=Priority.OPTIONAL)
    package: str = Field(..., description="npm package launched through npx")
    args: tuple[str, ...] = Field(default=(), description="Extra server arguments")
    env_vars: tuple[str, ...] = Field(
        default=(),
        description="Required credential fields, in prompt order",
    )
    guide: SetupGuide

    @property
    def command(self) -> str:
        return "npx"

    @property
    def invocation_args(self) -> list[str]:
        return ["-y", self.package, *self.args]

    @property
    def needs_credentials(self) -> bool:
        return bool(self.env_vars)


class McpServerEntry(BaseModel):
    """Invocation descriptor persisted in the shared MCP config."""

    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)

    def to_config(self) -> dict[str, Any]:
        """Render the entry the way the shared config stores it."""
        data: dict[str, Any] = {"command": self.command, "args": list(self.args)}
        if self.env:
            data["env"] = dict(self.env)
        return data


class RoleSystem(BaseModel):
    """Role and bundle recorded at install time."""

    current_role: str
    bundle: BundleId
    autonomy_level: str
    role_detected_from: str = "cli_install"
    onboarding_completed: bool = False


class McpStatus(BaseModel):
    """Summary of the integrations available to the project."""

    configured: int = 0
    servers: list[str] = Field(default_factory=list)


class AuditLogSettings(BaseModel):
    """Audit log descriptor stored in the state record."""

    enabled: bool = True
    log_file: str = ".cursor/buddy/audit.log"
    retention_days: int = 30


class InstallationState(BaseModel):
    """Per-project installation record written to state.json."""

    version: str = Field(..., description="Version of the installer that wrote the record")
    installed_at: datetime = Field(..., description="First install time")
    last_run: datetime | None = Field(default=None, description="Most recent install or upgrade")
    session_count: int = Field(default=0, ge=0)
    yolo_mode: bool = False
    role_system: RoleSystem
    mcp_status: McpStatus = Field(default_factory=McpStatus)
    audit_log: AuditLogSettings = Field(default_factory=AuditLogSettings)

    @field_validator("version")
    @classmethod
    def validate_semver(cls, v: str) -> str:
        """Validate version follows semantic versioning."""
        semver_pattern = r"^\d+\.\d+\.\d+(?:-[a-zA-Z0-9\-]+)?(?:\+[a-zA-Z0-9\-]+)?$"
        if not re.match(semver_pattern, v):
            msg = "Version must follow semantic versioning (e.g., 5.2.0)"
            raise ValueError(msg)
        return v


class InstallStatus(str, Enum):
    """Installation state of a project directory."""

    NOT_INSTALLED = "not_installed"
    INSTALLED = "installed"
    NEEDS_UPGRADE = "needs_upgrade"
