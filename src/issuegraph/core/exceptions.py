"""issuegraph exception hierarchy."""

from __future__ import annotations

from collections.abc import Iterable


class IssueGraphError(Exception):
    """Base exception for all issuegraph errors."""


class ConfigError(IssueGraphError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


class CredentialError(IssueGraphError):
    """Raised when an instance secret cannot be resolved."""


class FetchError(IssueGraphError):
    """Raised when a remote tracker call fails or returns an unusable payload."""

    def __init__(self, message: str, *, instance_ref: str = "", keys: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.instance_ref = instance_ref
        self.keys = tuple(keys)


class FieldExtractionError(IssueGraphError):
    """Raised when a custom field is present but has the wrong shape."""

    def __init__(self, field_name: str, issue_key: str, detail: str) -> None:
        super().__init__(
            f"Custom field {field_name!r} of issue {issue_key!r} cannot be read: {detail}"
        )
        self.field_name = field_name
        self.issue_key = issue_key
