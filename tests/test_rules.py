"""Tests for capability rule discovery and copying."""

from pathlib import Path

import pytest

from buddy_os.bundles import BUNDLES
from buddy_os.exceptions import SourceUnavailable
from buddy_os.models import BundleId
from buddy_os.rules import count_rules, discover_rules, materialize, rule_slug

from .conftest import STARTER_SLUGS


class TestDiscovery:
    """Test listing candidate rule files."""

    def test_rule_slug(self) -> None:
        """Test that the slug is the file name without .mdc."""
        assert rule_slug(Path("/x/form-patterns.mdc")) == "form-patterns"
        assert rule_slug(Path("buddy.guard.mdc")) == "buddy.guard"

    def test_only_mdc_files(self, rules_source: Path) -> None:
        """Test that non-rule files are ignored."""
        names = [p.name for p in discover_rules(rules_source)]
        assert "README.md" not in names
        assert len(names) == 12
        assert names == sorted(names)

    def test_missing_source_raises(self, workspace: Path) -> None:
        """Test that a missing source directory is reported."""
        with pytest.raises(SourceUnavailable, match="Rule source not found"):
            discover_rules(workspace / "nowhere")

    def test_count_rules_missing_dir(self, workspace: Path) -> None:
        """Test that counting a missing directory yields zero."""
        assert count_rules(workspace / "nowhere") == 0


class TestMaterialize:
    """Test copying the bundle's rules into the installation."""

    def test_wildcard_copies_everything(self, rules_source: Path, workspace: Path) -> None:
        """Test that techlead copies every candidate file."""
        target = workspace / "install" / "rules"
        copied = materialize(BUNDLES[BundleId.TECHLEAD], rules_source, target)

        assert copied == 12
        assert sorted(p.name for p in target.iterdir()) == sorted(
            p.name for p in discover_rules(rules_source)
        )

    def test_explicit_list_copies_subset(self, rules_source: Path, workspace: Path) -> None:
        """Test that starter copies exactly its five files."""
        target = workspace / "install" / "rules"
        copied = materialize(BUNDLES[BundleId.STARTER], rules_source, target)

        assert copied == 5
        assert sorted(p.name for p in target.iterdir()) == sorted(
            f"{slug}.mdc" for slug in STARTER_SLUGS
        )

    def test_missing_source_degrades(self, workspace: Path) -> None:
        """Test that a missing source copies nothing but still creates the target."""
        target = workspace / "install" / "rules"
        copied = materialize(BUNDLES[BundleId.STARTER], workspace / "nowhere", target)

        assert copied == 0
        assert target.is_dir()

    def test_overwrites_existing_files(self, rules_source: Path, workspace: Path) -> None:
        """Test that the source always wins over an installed copy."""
        target = workspace / "install" / "rules"
        target.mkdir(parents=True)
        (target / "web-standards.mdc").write_text("stale\n", encoding="utf-8")
        (target / "custom.mdc").write_text("mine\n", encoding="utf-8")

        materialize(BUNDLES[BundleId.STARTER], rules_source, target)

        assert (target / "web-standards.mdc").read_text(encoding="utf-8") == "# web-standards\n"
        assert (target / "custom.mdc").read_text(encoding="utf-8") == "mine\n"
