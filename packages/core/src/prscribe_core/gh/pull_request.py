from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any

from github import GithubException

from prscribe_core.errors import UpstreamError
from prscribe_core.gh.activity import pull_request_state
from prscribe_core.gh.client import get_client, github_error_message, iso
from prscribe_core.models import CommitSummary, FileStat, PRCoordinates, PRData, Review, ReviewComment

if TYPE_CHECKING:
    from prscribe_core.auth import TokenCache

logger = logging.getLogger(__name__)

# Tried in order, first match wins. The host must open the string or follow
# "//", so look-alike domains are rejected; query strings, fragments and
# trailing segments such as /files are tolerated.
_PR_URL_PATTERNS = [
    re.compile(r"(?:^|//)(?:www\.)?github\.com/([^/\s]+)/([^/\s]+)/pull/(\d+)"),
    re.compile(r"(?:^|//)(?:www\.)?github\.com/([^/\s]+)/([^/\s]+)/pulls/(\d+)"),
]

_ISSUE_PATTERNS = [
    re.compile(r"#(\d+)"),
    re.compile(r"closes\s+#(\d+)", re.IGNORECASE),
    re.compile(r"fixes\s+#(\d+)", re.IGNORECASE),
    re.compile(r"resolves\s+#(\d+)", re.IGNORECASE),
    re.compile(r"fix\s+#(\d+)", re.IGNORECASE),
    re.compile(r"close\s+#(\d+)", re.IGNORECASE),
    re.compile(r"resolve\s+#(\d+)", re.IGNORECASE),
]

_FILE_LIMIT = 50
_COMMIT_LIMIT = 30
_REVIEW_LIMIT = 20
_REVIEW_COMMENT_LIMIT = 20


def parse_pr_url(url: str) -> PRCoordinates | None:
    """Parse a GitHub pull request URL. Returns None when nothing matches."""
    if not isinstance(url, str):
        return None
    clean_url = url.strip()
    for pattern in _PR_URL_PATTERNS:
        match = pattern.search(clean_url)
        if match:
            return PRCoordinates(owner=match.group(1), repo=match.group(2), pr_number=int(match.group(3)))
    return None


def extract_linked_issues(body: str | None) -> list[str]:
    """Return issue numbers referenced in a PR description, deduplicated in order of first appearance."""
    if not body:
        return []
    issues: dict[str, None] = {}
    for pattern in _ISSUE_PATTERNS:
        for match in pattern.finditer(body):
            issues.setdefault(match.group(1), None)
    return list(issues)


def _list_files(pr) -> list:
    return list(pr.get_files()[:_FILE_LIMIT])


def _list_commits(pr) -> list:
    return list(pr.get_commits()[:_COMMIT_LIMIT])


def _list_reviews(pr) -> list:
    return list(pr.get_reviews()[:_REVIEW_LIMIT])


def _list_review_comments(pr) -> list:
    return list(pr.get_review_comments()[:_REVIEW_COMMENT_LIMIT])


async def _required(what: str, fn, *args) -> Any:
    try:
        return await asyncio.to_thread(fn, *args)
    except GithubException as e:
        raise UpstreamError(f"Failed to fetch {what}: {github_error_message(e)}", status=e.status) from e
    except Exception as e:
        raise UpstreamError(f"Failed to fetch {what}: {e}") from e


async def _optional(what: str, fn, *args) -> list:
    # Reviews and review comments often need permissions the token lacks.
    try:
        return await asyncio.to_thread(fn, *args)
    except Exception as e:
        logger.warning("Could not fetch %s; continuing without them: %s", what, e)
        return []


def _login(user, default: str = "Unknown") -> str:
    return user.login if user is not None and user.login else default


def _to_commit_summary(commit) -> CommitSummary:
    git_author = commit.commit.author
    if commit.author is not None and commit.author.login:
        author = commit.author.login
    elif git_author is not None and git_author.name:
        author = git_author.name
    else:
        author = "Unknown"
    return CommitSummary(
        message=commit.commit.message or "",
        author=author,
        date=iso(git_author.date) if git_author is not None and git_author.date else "",
    )


def _to_file_stat(f) -> FileStat:
    return FileStat(
        filename=f.filename,
        status=f.status or "modified",
        additions=f.additions or 0,
        deletions=f.deletions or 0,
        patch=f.patch or None,
    )


async def fetch_pr_data(
    owner: str, repo: str, pr_number: int, token_cache: TokenCache, config: dict | None = None
) -> PRData:
    """Fetch metadata, files, commits, reviews and review comments for one PR.

    Raises UpstreamError when the PR detail, file list or commit list cannot
    be fetched. Review and review-comment failures yield empty lists.
    """
    gh = await asyncio.to_thread(get_client, token_cache, config)
    gh_repo = gh.get_repo(f"{owner}/{repo}", lazy=True)

    # PyGithub exposes the list endpoints only on a fetched PullRequest, so the
    # detail request completes first and the four lists then run concurrently.
    # Latency is one detail round trip plus the slowest list, not one round trip.
    pr = await _required("PR details", gh_repo.get_pull, pr_number)
    files, commits, reviews, review_comments = await asyncio.gather(
        _required("PR files", _list_files, pr),
        _required("PR commits", _list_commits, pr),
        _optional("PR reviews", _list_reviews, pr),
        _optional("PR review comments", _list_review_comments, pr),
    )

    # GitHub lists PR commits oldest first.
    commit_summaries = [_to_commit_summary(c) for c in reversed(commits)]
    body = pr.body or ""

    return PRData(
        title=pr.title or "",
        description=body,
        author=_login(pr.user),
        state=pull_request_state(pr),
        created_at=iso(pr.created_at),
        merged_at=iso(pr.merged_at),
        closed_at=iso(pr.closed_at),
        additions=pr.additions or 0,
        deletions=pr.deletions or 0,
        changed_files=pr.changed_files or len(files),
        commits=tuple(commit_summaries),
        files=tuple(_to_file_stat(f) for f in files),
        review_comments=tuple(
            ReviewComment(author=_login(c.user), body=c.body or "", created_at=iso(c.created_at) or "")
            for c in review_comments
        ),
        reviews=tuple(
            Review(author=_login(r.user), state=r.state or "", submitted_at=iso(r.submitted_at)) for r in reviews
        ),
        labels=tuple(label.name for label in pr.labels if label.name),
        linked_issues=tuple(extract_linked_issues(body)),
    )
