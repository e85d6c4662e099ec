"""SQLiteCredentialStore - local file-based token cache.

Schema:
  user_tokens      - one row per (user_id, provider); upserted on conflict so
                     only one live token exists per pair.
  user_identities  - one row per provider a user has ever linked. Not removed
                     when a token is invalidated.
"""

from __future__ import annotations

import sqlite3
import threading

from prscribe_store.base import BaseCredentialStore
from prscribe_store.models import IdentityRecord, TokenRecord

_SCHEMA = """
CREATE TABLE IF NOT EXISTS user_tokens (
    user_id       TEXT NOT NULL,
    provider      TEXT NOT NULL,
    access_token  TEXT NOT NULL,
    updated_at    TEXT NOT NULL,
    PRIMARY KEY (user_id, provider)
);
CREATE TABLE IF NOT EXISTS user_identities (
    user_id    TEXT NOT NULL,
    provider   TEXT NOT NULL,
    linked_at  TEXT NOT NULL,
    PRIMARY KEY (user_id, provider)
);
"""


class SQLiteCredentialStore(BaseCredentialStore):
    """Stores provider tokens in a local SQLite database file.

    The database file path defaults to `.prscribe.db` in the current working
    directory. Configure via .prscribe.yml: `store_path: /path/to/prscribe.db`.
    """

    def __init__(self, db_path: str = ".prscribe.db"):
        # Activity fetches call into the store from asyncio.to_thread workers.
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        with self._lock:
            self._conn.executescript(_SCHEMA)
            self._conn.commit()

    def upsert_token(self, user_id: str, provider: str, access_token: str, updated_at: str) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO user_tokens (user_id, provider, access_token, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id, provider) DO UPDATE SET
                  access_token = excluded.access_token,
                  updated_at   = excluded.updated_at
                """,
                (user_id, provider, access_token, updated_at),
            )
            self._conn.commit()

    def get_token(self, user_id: str, provider: str) -> TokenRecord | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM user_tokens WHERE user_id=? AND provider=?",
                (user_id, provider),
            ).fetchone()
        if row is None:
            return None
        return TokenRecord(
            user_id=row["user_id"],
            provider=row["provider"],
            access_token=row["access_token"],
            updated_at=row["updated_at"],
        )

    def delete_token(self, user_id: str, provider: str) -> None:
        with self._lock:
            self._conn.execute(
                "DELETE FROM user_tokens WHERE user_id=? AND provider=?",
                (user_id, provider),
            )
            self._conn.commit()

    def link_identity(self, user_id: str, provider: str, linked_at: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR IGNORE INTO user_identities (user_id, provider, linked_at) VALUES (?, ?, ?)",
                (user_id, provider, linked_at),
            )
            self._conn.commit()

    def list_identities(self, user_id: str) -> list[IdentityRecord]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM user_identities WHERE user_id=? ORDER BY linked_at",
                (user_id,),
            ).fetchall()
        return [IdentityRecord(user_id=r["user_id"], provider=r["provider"], linked_at=r["linked_at"]) for r in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
