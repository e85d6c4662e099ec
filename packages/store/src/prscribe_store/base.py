"""Abstract credential store interface.

Any storage backend (SQLite, in-memory, a hosted key-value service)
implements this interface. prscribe_core's TokenCache depends on
BaseCredentialStore, not on a concrete backend, so backends are swappable
and tests can inject fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prscribe_store.models import IdentityRecord, TokenRecord


class BaseCredentialStore(ABC):
    """Pluggable persistence layer for provider access tokens.

    Tokens are keyed by (user_id, provider); at most one live token exists per
    key. Implementations must be safe to call from worker threads, because the
    core runs blocking calls through ``asyncio.to_thread``.
    """

    @abstractmethod
    def upsert_token(self, user_id: str, provider: str, access_token: str, updated_at: str) -> None:
        """Insert or replace the token for (user_id, provider)."""

    @abstractmethod
    def get_token(self, user_id: str, provider: str) -> TokenRecord | None:
        """Return the stored token record, or None if absent."""

    @abstractmethod
    def delete_token(self, user_id: str, provider: str) -> None:
        """Remove the token for (user_id, provider). No error if absent."""

    @abstractmethod
    def link_identity(self, user_id: str, provider: str, linked_at: str) -> None:
        """Record that user_id has linked provider. Idempotent."""

    @abstractmethod
    def list_identities(self, user_id: str) -> list[IdentityRecord]:
        """Return every provider linked by user_id, or an empty list."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional. Default is a no-op so callers can always call close() safely.
        """
