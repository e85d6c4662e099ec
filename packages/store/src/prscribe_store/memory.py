"""In-memory store - process-lifetime token cache.

Used when `store: memory` is configured and as the default fake in tests.
Nothing survives the process, so every run starts disconnected unless the
session carries a token.
"""

from __future__ import annotations

import threading

from prscribe_store.base import BaseCredentialStore
from prscribe_store.models import IdentityRecord, TokenRecord


class InMemoryCredentialStore(BaseCredentialStore):
    def __init__(self):
        self._tokens: dict[tuple[str, str], TokenRecord] = {}
        self._identities: dict[tuple[str, str], IdentityRecord] = {}
        self._lock = threading.Lock()

    def upsert_token(self, user_id: str, provider: str, access_token: str, updated_at: str) -> None:
        with self._lock:
            self._tokens[(user_id, provider)] = TokenRecord(
                user_id=user_id, provider=provider, access_token=access_token, updated_at=updated_at
            )

    def get_token(self, user_id: str, provider: str) -> TokenRecord | None:
        with self._lock:
            return self._tokens.get((user_id, provider))

    def delete_token(self, user_id: str, provider: str) -> None:
        with self._lock:
            self._tokens.pop((user_id, provider), None)

    def link_identity(self, user_id: str, provider: str, linked_at: str) -> None:
        with self._lock:
            self._identities.setdefault(
                (user_id, provider), IdentityRecord(user_id=user_id, provider=provider, linked_at=linked_at)
            )

    def list_identities(self, user_id: str) -> list[IdentityRecord]:
        with self._lock:
            return [r for (uid, _), r in self._identities.items() if uid == user_id]
