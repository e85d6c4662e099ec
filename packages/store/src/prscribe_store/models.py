"""Credential persistence data models.

Decoupled from prscribe_core so the store layer can be used independently
and prscribe_core has no knowledge of persistence concerns.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenRecord:
    """A provider access token cached for one (user, provider) pair."""

    user_id: str
    provider: str  # "github"
    access_token: str
    updated_at: str  # ISO-8601 UTC timestamp

    def __repr__(self) -> str:
        # Keeps the token out of logs and tracebacks.
        return f"TokenRecord(user_id={self.user_id!r}, provider={self.provider!r}, updated_at={self.updated_at!r})"


@dataclass(frozen=True)
class IdentityRecord:
    """Marks that a user has linked a provider at least once.

    Survives token invalidation, which is what lets callers tell a user who
    never connected apart from one whose connection expired.
    """

    user_id: str
    provider: str
    linked_at: str  # ISO-8601 UTC timestamp
