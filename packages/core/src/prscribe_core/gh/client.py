from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from github import Auth, Github, GithubException

from prscribe_core.errors import RateLimitedError, TokenExpiredError, UpstreamError
from prscribe_core.models import RepoSummary

if TYPE_CHECKING:
    from prscribe_core.auth import TokenCache

logger = logging.getLogger(__name__)

API_TIMEOUT = 15  # seconds
RETRY_COUNT = 2
_REPO_LIST_LIMIT = 100


def github_error_message(e: GithubException) -> str:
    data = e.data
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(e)


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def authenticate(token_cache: TokenCache, config: dict | None = None) -> tuple[Github, str]:
    """Return an authenticated PyGithub client and its login, verified with one /user call.

    401 invalidates the cached token and raises TokenExpiredError; 403 raises
    RateLimitedError without touching the cache; anything else surfaces as
    UpstreamError.
    """
    config = config or {}
    token = token_cache.retrieve()
    gh = Github(
        auth=Auth.Token(token),
        timeout=config.get("github_timeout", API_TIMEOUT),
        retry=config.get("github_retries", RETRY_COUNT),
    )

    try:
        # AuthenticatedUser is lazy; reading an attribute performs the request.
        login = gh.get_user().login
    except GithubException as e:
        if e.status == 401:
            token_cache.invalidate()
            raise TokenExpiredError("Your GitHub access has expired. Please reconnect.") from e
        if e.status == 403:
            raise RateLimitedError() from e
        raise UpstreamError(f"GitHub API error: {github_error_message(e)}", status=e.status) from e
    except Exception as e:
        raise UpstreamError(f"GitHub API error: {e}") from e

    logger.debug("Authenticated to GitHub as %s.", login)
    return gh, login


def get_client(token_cache: TokenCache, config: dict | None = None) -> Github:
    gh, _ = authenticate(token_cache, config)
    return gh


def _to_repo_summary(repo) -> RepoSummary:
    return RepoSummary(
        full_name=repo.full_name,
        name=repo.name,
        private=bool(repo.private),
        html_url=repo.html_url,
        description=repo.description,
        language=repo.language,
        stargazers_count=repo.stargazers_count or 0,
        forks_count=repo.forks_count or 0,
        default_branch=repo.default_branch or "",
        owner_login=repo.owner.login if repo.owner else "",
        created_at=iso(repo.created_at),
        updated_at=iso(repo.updated_at),
        pushed_at=iso(repo.pushed_at),
    )


def list_user_repos(token_cache: TokenCache, config: dict | None = None) -> list[RepoSummary]:
    """Return up to 100 repositories the user owns or collaborates on, most recently updated first."""
    gh = get_client(token_cache, config)
    try:
        repos = gh.get_user().get_repos(affiliation="owner,collaborator", sort="updated", direction="desc")
        return [_to_repo_summary(r) for r in repos[:_REPO_LIST_LIMIT]]
    except GithubException as e:
        logger.error("Repository listing failed: %s", github_error_message(e))
        if e.status == 401:
            token_cache.invalidate()
            raise TokenExpiredError("Your GitHub access has expired. Please reconnect.") from e
        raise UpstreamError(f"Failed to fetch repositories: {github_error_message(e)}", status=e.status) from e
    except Exception as e:
        logger.error("Repository listing failed: %s", e)
        raise UpstreamError(f"Failed to fetch repositories: {e}") from e
