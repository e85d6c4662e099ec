"""GitHub access token lifecycle.

TokenCache sits between the identity provider's session (who is signed in,
and whether the sign-in carried a fresh GitHub token) and a persisted
credential store. Resolution order in retrieve():

  1. A provider token on the active session. It is written through to the
     store so later calls without a session token still work.
  2. The token persisted for (principal, "github").
  3. Neither: NotConnectedError if the principal never linked GitHub,
     TokenExpiredError if it did and the token has since been invalidated.

Token values are never logged.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from prscribe_core.errors import AuthRequiredError, NotConnectedError, TokenExpiredError

if TYPE_CHECKING:
    from prscribe_store.base import BaseCredentialStore

logger = logging.getLogger(__name__)

PROVIDER = "github"


@dataclass(frozen=True)
class Principal:
    """The signed-in user and the identity providers linked to them."""

    id: str
    providers: frozenset[str] = frozenset()


@dataclass(frozen=True)
class Session:
    principal: Principal
    provider_token: str | None = None

    def __repr__(self) -> str:
        has_token = self.provider_token is not None
        return f"Session(principal={self.principal!r}, has_provider_token={has_token})"


class SessionProvider(ABC):
    """Boundary to the external auth provider that owns sign-in state."""

    @abstractmethod
    def get_session(self) -> Session | None:
        """Return the active session, or None when nobody is signed in."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TokenCache:
    def __init__(self, store: BaseCredentialStore, sessions: SessionProvider, provider: str = PROVIDER):
        self._store = store
        self._sessions = sessions
        self.provider = provider

    def _current_session(self) -> Session:
        session = self._sessions.get_session()
        if session is None:
            raise AuthRequiredError()
        return session

    def store(self, user_id: str, token: str) -> None:
        """Upsert the token for (user_id, provider), refreshing updated_at."""
        self._store.upsert_token(user_id, self.provider, token, _now())
        logger.debug("Cached %s token for user %s.", self.provider, user_id)

    def retrieve(self) -> str:
        session = self._current_session()
        principal = session.principal

        if session.provider_token:
            self.store(principal.id, session.provider_token)
            return session.provider_token

        record = self._store.get_token(principal.id, self.provider)
        if record is not None and record.access_token:
            return record.access_token

        if self.provider in principal.providers:
            logger.debug("No cached %s token for user %s; linkage exists.", self.provider, principal.id)
            raise TokenExpiredError()
        raise NotConnectedError()

    def invalidate(self) -> None:
        principal = self._current_session().principal
        self._store.delete_token(principal.id, self.provider)
        logger.debug("Invalidated %s token for user %s.", self.provider, principal.id)

    def connect(self) -> bool:
        """Complete an OAuth handoff: persist the session's token and link the identity.

        Returns False, without raising, when there is no session or the session
        carries no provider token.
        """
        session = self._sessions.get_session()
        if session is None or not session.provider_token:
            return False
        self.store(session.principal.id, session.provider_token)
        self._store.link_identity(session.principal.id, self.provider, _now())
        return True

    def has_connection(self) -> bool:
        try:
            self.retrieve()
        except (AuthRequiredError, NotConnectedError, TokenExpiredError):
            return False
        return True
