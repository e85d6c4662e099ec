"""The CLI's session: who is running prscribe, and which GitHub token they hold.

A web deployment gets both from its identity provider. On the command line
the principal is the configured user_id (or the OS login), the linked
providers come from the credential store's identity records, and the
session token is resolved the way developers already authenticate locally:

  1. GITHUB_TOKEN environment variable (CI / explicit override)
  2. `gh auth token` (GitHub CLI session, works after `gh auth login`)
"""

from __future__ import annotations

import getpass
import logging
import os
import subprocess
from typing import TYPE_CHECKING

from prscribe_core.auth import Principal, Session, SessionProvider

if TYPE_CHECKING:
    from prscribe_store.base import BaseCredentialStore

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no valid source is available.

    Never raises.
    """
    # 1. Explicit environment variable, so CI and scripts can override
    #    the gh session.
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    # 2. Token stored by `gh auth login`.
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh missing or hung.
        pass

    return None


def resolve_user_id(configured: str | None) -> str | None:
    if configured:
        return configured
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        # No login name in containers without a passwd entry.
        return None


class LocalSessionProvider(SessionProvider):
    def __init__(self, store: BaseCredentialStore, user_id: str | None, provider_token: str | None = None):
        self._store = store
        self._user_id = user_id
        self._provider_token = provider_token

    def get_session(self) -> Session | None:
        if not self._user_id:
            return None
        providers = frozenset(r.provider for r in self._store.list_identities(self._user_id))
        return Session(principal=Principal(id=self._user_id, providers=providers), provider_token=self._provider_token)
