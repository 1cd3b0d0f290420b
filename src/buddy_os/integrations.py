"""Catalog of MCP integrations offered during setup."""

from __future__ import annotations

from collections.abc import Mapping

from .exceptions import MissingCredentials
from .models import IntegrationDescriptor, McpServerEntry, Priority, SetupGuide

_ATLASSIAN_ENV = ("ATLASSIAN_SITE_NAME", "ATLASSIAN_USER_EMAIL", "ATLASSIAN_API_TOKEN")
_ATLASSIAN_TOKENS_URL = "https://id.atlassian.com/manage-profile/security/api-tokens"

_CATALOG = (
    IntegrationDescriptor(
        id="github",
        name="GitHub",
        icon="🐙",
        description="PR reviews, CI status, code search",
        priority=Priority.RECOMMENDED,
        package="@modelcontextprotocol/server-github",
        env_vars=("GITHUB_PERSONAL_ACCESS_TOKEN",),
        guide=SetupGuide(
            title="Get GitHub Personal Access Token",
            steps=(
                "Go to: https://github.com/settings/tokens",
                'Click "Generate new token (classic)"',
                "Select scopes: repo, read:org, read:user",
                "Copy the token (starts with ghp_)",
            ),
            url="https://github.com/settings/tokens",
        ),
    ),
    IntegrationDescriptor(
        id="slack",
        name="Slack",
        icon="💬",
        description="Channel monitoring, @mentions, team signals",
        priority=Priority.RECOMMENDED,
        package="slack-mcp-server@latest",
        args=("--transport", "stdio"),
        env_vars=("SLACK_MCP_XOXC_TOKEN", "SLACK_MCP_XOXD_TOKEN"),
        guide=SetupGuide(
            title="Get Slack Tokens (Browser Method)",
            steps=(
                "Open Slack in your browser (not desktop app)",
                "Open DevTools (F12) → Network tab",
                "Send any message in Slack",
                'Filter by "api" and find a request',
                "Look in cookies for xoxc- and xoxd- tokens",
            ),
            url="https://slack.com",
            note="Tokens start with xoxc- and xoxd-",
        ),
    ),
    IntegrationDescriptor(
        id="jira",
        name="Jira/Atlassian",
        icon="📋",
        description="Ticket context, sprint data, blockers",
        priority=Priority.RECOMMENDED,
        package="@aashari/mcp-server-atlassian-jira",
        env_vars=_ATLASSIAN_ENV,
        guide=SetupGuide(
            title="Get Atlassian API Token",
            steps=(
                f"Go to: {_ATLASSIAN_TOKENS_URL}",
                'Click "Create API token"',
                'Give it a label (e.g., "Cursor MCP")',
                "Copy the token",
                'Site name is your Jira subdomain (e.g., "mycompany" from mycompany.atlassian.net)',
            ),
            url=_ATLASSIAN_TOKENS_URL,
        ),
    ),
    IntegrationDescriptor(
        id="google-calendar",
        name="Google Calendar",
        icon="📅",
        description="Meeting load, focus time detection",
        package="mcp-remote",
        args=("https://gcal.mintmcp.com/mcp",),
        guide=SetupGuide(
            title="Google Calendar Setup",
            steps=(
                "This uses mintmcp.com for OAuth",
                "No manual tokens needed!",
                "You'll authorize via browser on first use",
            ),
            url="https://gcal.mintmcp.com",
            note="Zero-config setup via OAuth",
        ),
    ),
    IntegrationDescriptor(
        id="teams",
        name="Microsoft Teams",
        icon="👥",
        description="Teams chat, channels, meetings",
        package="@anthropic/teams-mcp@latest",
        guide=SetupGuide(
            title="Microsoft Teams Setup",
            steps=(
                "Uses Azure AD authentication",
                "You'll be prompted to sign in on first use",
                "Grant permissions when prompted",
            ),
            url="https://teams.microsoft.com",
            note="OAuth-based, no manual tokens needed",
        ),
    ),
    IntegrationDescriptor(
        id="confluence",
        name="Confluence",
        icon="📚",
        description="Documentation, wiki pages, knowledge base",
        package="@aashari/mcp-server-atlassian-confluence",
        env_vars=_ATLASSIAN_ENV,
        guide=SetupGuide(
            title="Confluence uses same Atlassian token as Jira",
            steps=(
                "If you configured Jira, the same token works!",
                f"Otherwise: {_ATLASSIAN_TOKENS_URL}",
            ),
            url=_ATLASSIAN_TOKENS_URL,
            note="Reuses Jira credentials",
        ),
    ),
)

INTEGRATIONS: dict[str, IntegrationDescriptor] = {d.id: d for d in _CATALOG}


def describe(integration_id: str) -> IntegrationDescriptor | None:
    """Look up an integration by id."""
    return INTEGRATIONS.get(integration_id)


def all_integrations() -> list[IntegrationDescriptor]:
    """All integrations in the order they are offered."""
    return list(INTEGRATIONS.values())


def missing_fields(
    descriptor: IntegrationDescriptor,
    credentials: Mapping[str, str],
) -> list[str]:
    """Required credential fields that were not supplied or are blank."""
    return [
        name for name in descriptor.env_vars
        if not (credentials.get(name) or "").strip()
    ]


def build_server_entry(
    descriptor: IntegrationDescriptor,
    credentials: Mapping[str, str],
) -> McpServerEntry:
    """Build the invocation entry persisted for an integration.

    Only the integration's declared fields are copied into ``env``.

    Raises:
        MissingCredentials: If any required field is empty
    """
    missing = missing_fields(descriptor, credentials)
    if missing:
        raise MissingCredentials(descriptor.id, missing)

    return McpServerEntry(
        command=descriptor.command,
        args=descriptor.invocation_args,
        env={name: credentials[name].strip() for name in descriptor.env_vars},
    )
