"""Recent commits and pull requests by the authenticated user in one repository.

PyGithub is blocking, so every GitHub call runs in a worker thread via
asyncio.to_thread and the fan-out is joined with asyncio.gather. Failures
degrade per item: a commit whose diff cannot be fetched gets no files, a
list call that fails contributes an empty list, and only an unexpected
top-level failure collapses the whole result to None.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx
from github import GithubException

from prscribe_core.gh.client import API_TIMEOUT, authenticate, github_error_message, iso
from prscribe_core.models import Activity, CommitRecord, FileChange, PullRequestRecord, RepoCoordinates
from prscribe_core.utils.diff import extract_file_changes

if TYPE_CHECKING:
    from github import Github
    from github.Commit import Commit
    from github.PullRequest import PullRequest
    from github.Repository import Repository

    from prscribe_core.auth import TokenCache

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"

_COMMIT_LIST_LIMIT = 30
_PULL_LIST_LIMIT = 10
# Diffs are fetched one request per item, so only the newest few are enriched.
_COMMIT_DIFF_LIMIT = 15
_PULL_DIFF_LIMIT = 5


def pull_request_state(pr) -> str:
    """A merge timestamp wins over the raw open/closed state."""
    return "merged" if pr.merged_at else pr.state


def _list_commits(repo: Repository, username: str) -> list[Commit]:
    return list(repo.get_commits(author=username)[:_COMMIT_LIST_LIMIT])


def _list_pulls(repo: Repository) -> list[PullRequest]:
    return list(repo.get_pulls(state="all", sort="updated", direction="desc")[:_PULL_LIST_LIMIT])


async def _degrade_to_empty(label: str, fn, *args) -> list:
    try:
        return await asyncio.to_thread(fn, *args)
    except Exception as e:
        logger.warning("Could not list %s; continuing without them: %s", label, e)
        return []


def _fetch_commit_diff(gh: Github, owner: str, repo: str, sha: str) -> str:
    # The diff media type returns text/plain; PyGithub hands non-JSON bodies
    # back wrapped as {"data": <body>}.
    _, payload = gh.requester.requestJsonAndCheck(
        "GET",
        f"/repos/{owner}/{repo}/commits/{sha}",
        headers={"Accept": DIFF_MEDIA_TYPE},
    )
    if isinstance(payload, dict):
        return payload.get("data") or ""
    return payload or ""


def _commit_files(gh: Github, owner: str, repo: str, sha: str) -> tuple[FileChange, ...]:
    try:
        return tuple(extract_file_changes(_fetch_commit_diff(gh, owner, repo, sha)))
    except GithubException as e:
        logger.warning("Could not fetch diff for commit %s: %s", sha[:7], github_error_message(e))
    except Exception as e:
        logger.warning("Could not fetch diff for commit %s: %s", sha[:7], e)
    return ()


def _build_commit_record(gh: Github, owner: str, repo: str, commit: Any) -> CommitRecord:
    git_author = commit.commit.author
    return CommitRecord(
        sha=commit.sha,
        url=commit.html_url,
        date=iso(git_author.date) if git_author and git_author.date else "",
        author=commit.author.login if commit.author else (git_author.name if git_author else None),
        message=commit.commit.message,
        files=_commit_files(gh, owner, repo, commit.sha),
    )


async def fetch_pull_request_diff(http: httpx.AsyncClient, token: str, owner: str, repo: str, number: int) -> str:
    """Fetch a PR as a unified diff from the `.diff` URL, attaching the token by hand.

    Returns "" on non-2xx responses and transport errors.
    """
    try:
        response = await http.get(
            f"{GITHUB_API_URL}/repos/{owner}/{repo}/pulls/{number}.diff",
            headers={"Authorization": f"token {token}", "Accept": DIFF_MEDIA_TYPE},
        )
    except httpx.HTTPError as e:
        logger.warning("Could not fetch diff for PR #%d: %s", number, e)
        return ""
    if not response.is_success:
        logger.warning("Could not fetch diff for PR #%d: HTTP %d", number, response.status_code)
        return ""
    return response.text


async def _build_pull_request_record(
    http: httpx.AsyncClient, token: str, owner: str, repo: str, pr: Any
) -> PullRequestRecord:
    diff = await fetch_pull_request_diff(http, token, owner, repo, pr.number)
    return PullRequestRecord(
        id=pr.id,
        url=pr.html_url,
        user=pr.user.login if pr.user else None,
        state=pull_request_state(pr),
        title=pr.title,
        number=pr.number,
        closed_at=iso(pr.closed_at),
        merged_at=iso(pr.merged_at),
        created_at=iso(pr.created_at),
        updated_at=iso(pr.updated_at),
        files=tuple(extract_file_changes(diff)),
    )


def _authored_by(pr: Any, username: str) -> bool:
    return bool(pr.user and pr.user.login and pr.user.login.lower() == username)


async def get_repo_activity(repo: Any, token_cache: TokenCache, config: dict | None = None) -> Activity | None:
    """Return the authenticated user's recent activity in repo, or None.

    repo is an "owner/name" string or any object with a full_name attribute.
    None means the sync was skipped (bad name, auth failure, unexpected
    error); callers processing many repositories should carry on.
    """
    full_name = repo if isinstance(repo, str) else getattr(repo, "full_name", None)
    coords = RepoCoordinates.parse(full_name)
    if coords is None:
        return None

    try:
        gh, login = await asyncio.to_thread(authenticate, token_cache, config)
        username = login.lower()
        gh_repo = gh.get_repo(coords.full_name, lazy=True)

        commits, pulls = await asyncio.gather(
            _degrade_to_empty("commits", _list_commits, gh_repo, username),
            _degrade_to_empty("pull requests", _list_pulls, gh_repo),
        )

        commit_records = await asyncio.gather(
            *(
                asyncio.to_thread(_build_commit_record, gh, coords.owner, coords.repo, c)
                for c in commits[:_COMMIT_DIFF_LIMIT]
            )
        )

        own_pulls = [pr for pr in pulls if _authored_by(pr, username)][:_PULL_DIFF_LIMIT]
        pull_records: list[PullRequestRecord] = []
        if own_pulls:
            token = await asyncio.to_thread(token_cache.retrieve)
            timeout = (config or {}).get("github_timeout", API_TIMEOUT)
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as http:
                pull_records = await asyncio.gather(
                    *(_build_pull_request_record(http, token, coords.owner, coords.repo, pr) for pr in own_pulls)
                )

        return Activity(commits=tuple(commit_records), pull_requests=tuple(pull_records))
    except Exception as e:
        logger.error("Activity fetch failed for %s: %s", coords.full_name, e)
        return None
