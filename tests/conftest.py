"""Shared fixtures for Buddy OS tests."""

import tempfile
from pathlib import Path

import pytest

from buddy_os.config import MCP_CONFIG_ENV, RULES_DIR_ENV

STARTER_SLUGS = [
    "web-standards",
    "component-structure",
    "a11y-standards",
    "form-patterns",
    "async-effect-patterns",
]

ADVANCED_ONLY_SLUGS = [
    "buddy",
    "buddy-guard",
    "ideation-engine",
    "context-warm",
    "styling-rules",
]

TECHLEAD_ONLY_SLUGS = ["role-permissions", "stale-branch-intel"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings resolution."""
    monkeypatch.delenv(MCP_CONFIG_ENV, raising=False)
    monkeypatch.delenv(RULES_DIR_ENV, raising=False)


@pytest.fixture
def workspace() -> Path:
    """Create a temporary directory holding a project and a fake home."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def project_dir(workspace: Path) -> Path:
    """Create an empty project directory."""
    project = workspace / "project"
    project.mkdir()
    return project


@pytest.fixture
def mcp_path(workspace: Path) -> Path:
    """Location of the shared MCP config (not created)."""
    return workspace / "home" / ".cursor" / "mcp.json"


@pytest.fixture
def rules_source(workspace: Path) -> Path:
    """Create a rule source with every bundle's files plus a stray file."""
    source = workspace / "rules"
    source.mkdir()
    for slug in STARTER_SLUGS + ADVANCED_ONLY_SLUGS + TECHLEAD_ONLY_SLUGS:
        (source / f"{slug}.mdc").write_text(f"# {slug}\n", encoding="utf-8")
    (source / "README.md").write_text("not a rule\n", encoding="utf-8")
    return source
