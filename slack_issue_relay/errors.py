"""Exception taxonomy shared by the relay components."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for errors raised while relaying a Slack message."""


class AuthError(RelayError):
    """Raised when an inbound request fails signature verification."""


class ConfigurationError(RelayError, RuntimeError):
    """Raised when required settings are missing or invalid."""


class TransientNetworkError(RelayError):
    """Raised on timeouts and connection failures talking to Slack or GitHub."""


class ContentPolicyError(RelayError):
    """Raised when a file is rejected by the type or size policy."""


class UpstreamAPIError(RelayError):
    """Raised when Slack or GitHub answers with an unusable response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
