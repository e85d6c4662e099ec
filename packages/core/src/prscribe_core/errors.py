"""Errors surfaced to callers of prscribe_core.

Each class carries a default, user-facing remediation message so the CLI (or
any other caller) can print str(exc) directly.
"""

from __future__ import annotations


class PRScribeError(Exception):
    default_message = "prscribe failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class AuthRequiredError(PRScribeError):
    """No active principal. Never retried."""

    default_message = "Authentication required."


class NotConnectedError(PRScribeError):
    """The principal has never linked a GitHub account."""

    default_message = "Please connect your GitHub account to continue."


class TokenExpiredError(PRScribeError):
    """A GitHub account was linked but its token is missing or rejected."""

    default_message = "Your GitHub connection has expired. Please reconnect."


class RateLimitedError(PRScribeError):
    """GitHub answered 403. The token may still be valid."""

    default_message = "GitHub API rate limit exceeded. Try again later."


class UpstreamError(PRScribeError):
    """Any other GitHub transport or API failure."""

    default_message = "GitHub API request failed."

    def __init__(self, message: str | None = None, status: int | None = None):
        super().__init__(message)
        self.status = status


class NarrativeBackendError(PRScribeError):
    """A single text-generation backend could not produce a story.

    Raised by narrators and caught by analyze_pr, which moves on to the next
    backend or the rule-based fallback.
    """

    default_message = "Narrative backend failed."
