"""Custom exceptions for Buddy OS."""

from typing import Any


class BuddyOSError(Exception):
    """Base exception for all Buddy OS errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}


class SourceUnavailable(BuddyOSError):
    """Raised when the capability rule source directory is missing."""


class PersistenceError(BuddyOSError):
    """Raised when a state, config or rule file cannot be written."""


class MalformedExistingConfig(BuddyOSError):
    """Raised when the shared MCP configuration cannot be parsed."""


class MissingCredentials(BuddyOSError):
    """Raised when an integration entry lacks required credential fields."""

    def __init__(self, integration: str, missing: list[str]) -> None:
        super().__init__(
            f"Missing credentials for {integration}: {', '.join(missing)}",
            details={"integration": integration, "missing": missing},
        )
        self.integration = integration
        self.missing = missing


class CorruptStateError(BuddyOSError):
    """Raised when an existing state file cannot be read back."""


class ConfigError(BuddyOSError):
    """Raised when the project settings file is invalid."""
