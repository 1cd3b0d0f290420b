"""Tests for merging the shared MCP configuration."""

import json
from pathlib import Path

import pytest

from buddy_os.exceptions import PersistenceError
from buddy_os.mcp_config import (
    configured_servers,
    merge_and_persist,
    read_shared_config,
    summarize,
)

GITHUB_ENTRY = {
    "command": "npx",
    "args": ["-y", "@modelcontextprotocol/server-github"],
    "env": {"GITHUB_PERSONAL_ACCESS_TOKEN": "ghp_existing"},
}

SLACK_CREDENTIALS = {
    "SLACK_MCP_XOXC_TOKEN": "xoxc-new",
    "SLACK_MCP_XOXD_TOKEN": "xoxd-new",
}


def _write(path: Path, document: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")


class TestReading:
    """Test reading the shared config."""

    def test_missing_file_is_empty(self, mcp_path: Path) -> None:
        """Test that a missing file reads as no servers."""
        assert read_shared_config(mcp_path) == {}
        assert configured_servers(mcp_path) == {}
        assert summarize(mcp_path).configured == 0

    @pytest.mark.parametrize(
        "text",
        ["{not json", "[1, 2]", '{"mcpServers": []}', ""],
    )
    def test_malformed_file_is_empty(self, mcp_path: Path, text: str) -> None:
        """Test that unparsable content is treated as empty, not an error."""
        mcp_path.parent.mkdir(parents=True)
        mcp_path.write_text(text, encoding="utf-8")
        assert configured_servers(mcp_path) == {}

    def test_summarize(self, mcp_path: Path) -> None:
        """Test the state summary of configured servers."""
        _write(mcp_path, {"mcpServers": {"github": GITHUB_ENTRY, "custom": {"command": "x"}}})
        status = summarize(mcp_path)
        assert status.configured == 2
        assert status.servers == ["github", "custom"]


class TestMerge:
    """Test merge_and_persist."""

    def test_creates_file(self, mcp_path: Path) -> None:
        """Test merging into a missing file creates it and its directory."""
        report = merge_and_persist(mcp_path, {"slack": SLACK_CREDENTIALS})

        assert report.written
        assert report.configured == ["slack"]
        assert report.path == mcp_path
        data = json.loads(mcp_path.read_text(encoding="utf-8"))
        assert data["mcpServers"]["slack"]["env"] == SLACK_CREDENTIALS

    def test_disjoint_merge_keeps_existing(self, mcp_path: Path) -> None:
        """Test that an existing github entry survives adding slack."""
        _write(mcp_path, {"mcpServers": {"github": GITHUB_ENTRY}})

        merge_and_persist(mcp_path, {"slack": SLACK_CREDENTIALS})

        servers = json.loads(mcp_path.read_text(encoding="utf-8"))["mcpServers"]
        assert set(servers) == {"github", "slack"}
        assert servers["github"] == GITHUB_ENTRY
        assert servers["slack"]["args"] == [
            "-y",
            "slack-mcp-server@latest",
            "--transport",
            "stdio",
        ]

    def test_untouched_entry_serializes_identically(self, mcp_path: Path) -> None:
        """Test that an untouched entry keeps its exact text."""
        _write(mcp_path, {"mcpServers": {"github": GITHUB_ENTRY}})
        block = '"github": ' + json.dumps(GITHUB_ENTRY, indent=2).replace("\n", "\n    ")
        assert block in mcp_path.read_text(encoding="utf-8")

        merge_and_persist(mcp_path, {"slack": SLACK_CREDENTIALS})

        assert block in mcp_path.read_text(encoding="utf-8")

    def test_overwrite_replaces_only_that_entry(self, mcp_path: Path) -> None:
        """Test that re-configuring github leaves other servers alone."""
        custom = {"command": "node", "args": ["server.js"]}
        _write(mcp_path, {"mcpServers": {"github": GITHUB_ENTRY, "custom": custom}})

        merge_and_persist(mcp_path, {"github": {"GITHUB_PERSONAL_ACCESS_TOKEN": "ghp_new"}})

        servers = json.loads(mcp_path.read_text(encoding="utf-8"))["mcpServers"]
        assert list(servers) == ["github", "custom"]
        assert servers["github"]["env"] == {"GITHUB_PERSONAL_ACCESS_TOKEN": "ghp_new"}
        assert servers["custom"] == custom

    def test_other_top_level_keys_survive(self, mcp_path: Path) -> None:
        """Test that keys outside mcpServers are kept."""
        _write(mcp_path, {"theme": "dark", "mcpServers": {}})

        merge_and_persist(mcp_path, {"teams": {}})

        data = json.loads(mcp_path.read_text(encoding="utf-8"))
        assert data["theme"] == "dark"
        assert "env" not in data["mcpServers"]["teams"]

    def test_empty_merge_is_noop(self, mcp_path: Path) -> None:
        """Test that merging nothing leaves the file byte-identical."""
        mcp_path.parent.mkdir(parents=True)
        original = '{"mcpServers":{"github":{"command":"npx"}}}'
        mcp_path.write_text(original, encoding="utf-8")

        report = merge_and_persist(mcp_path, {})

        assert not report.written
        assert mcp_path.read_text(encoding="utf-8") == original

    def test_incomplete_credentials_are_skipped(self, mcp_path: Path) -> None:
        """Test credential gating: partial entries are dropped and reported."""
        report = merge_and_persist(
            mcp_path,
            {
                "slack": {"SLACK_MCP_XOXC_TOKEN": "xoxc-only", "SLACK_MCP_XOXD_TOKEN": ""},
                "github": {"GITHUB_PERSONAL_ACCESS_TOKEN": "ghp_ok"},
            },
        )

        assert report.configured == ["github"]
        assert report.skipped == {"slack": ["SLACK_MCP_XOXD_TOKEN"]}
        servers = configured_servers(mcp_path)
        assert list(servers) == ["github"]

    def test_all_skipped_does_not_write(self, mcp_path: Path) -> None:
        """Test that a merge with only skipped entries never creates the file."""
        report = merge_and_persist(mcp_path, {"github": {}, "nope": {}})

        assert not report.written
        assert report.skipped == {"github": ["GITHUB_PERSONAL_ACCESS_TOKEN"]}
        assert report.unknown == ["nope"]
        assert not mcp_path.exists()

    def test_symlinked_config_keeps_link(self, mcp_path: Path, workspace: Path) -> None:
        """Test that a symlinked config is written through, not replaced."""
        target = workspace / "dotfiles" / "mcp.json"
        _write(target, {"mcpServers": {"github": GITHUB_ENTRY}})
        mcp_path.parent.mkdir(parents=True)
        mcp_path.symlink_to(target)

        merge_and_persist(mcp_path, {"teams": {}})

        assert mcp_path.is_symlink()
        servers = json.loads(target.read_text(encoding="utf-8"))["mcpServers"]
        assert set(servers) == {"github", "teams"}

    def test_malformed_existing_is_replaced(self, mcp_path: Path) -> None:
        """Test that a hand-broken file is treated as empty during merge."""
        mcp_path.parent.mkdir(parents=True)
        mcp_path.write_text("{oops", encoding="utf-8")

        merge_and_persist(mcp_path, {"teams": {}})

        assert list(configured_servers(mcp_path)) == ["teams"]


class TestPersistenceFailures:
    """Test that write failures surface without corrupting the file."""

    def test_unwritable_directory(self, workspace: Path) -> None:
        """Test that a file in place of the config directory is fatal."""
        blocker = workspace / "blocker"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(PersistenceError):
            merge_and_persist(blocker / "mcp.json", {"teams": {}})

    def test_failed_rename_keeps_previous_content(
        self,
        mcp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test that the previous file is intact when the final rename fails."""
        _write(mcp_path, {"mcpServers": {"github": GITHUB_ENTRY}})
        original = mcp_path.read_bytes()

        def failing_replace(src: object, dst: object) -> None:
            raise PermissionError("denied")

        monkeypatch.setattr("buddy_os.fsutil.os.replace", failing_replace)

        with pytest.raises(PersistenceError, match="denied"):
            merge_and_persist(mcp_path, {"teams": {}})

        assert mcp_path.read_bytes() == original
        assert list(mcp_path.parent.iterdir()) == [mcp_path]
