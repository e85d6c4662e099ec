"""Value objects produced by the fetch and analysis pipeline.

All models are frozen; collection fields are tuples so a fetched result can
be shared between callers without defensive copies. Timestamps are ISO-8601
strings as returned by GitHub (or None).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

Complexity = Literal["low", "medium", "high"]
PRState = Literal["open", "closed", "merged"]

_COMPLEXITIES = ("low", "medium", "high")
_STORY_FIELDS = ("summary", "technicalDetails", "impact", "keyChanges", "complexity", "tags")


@dataclass(frozen=True)
class RepoCoordinates:
    owner: str
    repo: str

    @classmethod
    def parse(cls, full_name: str | None) -> RepoCoordinates | None:
        """Split "owner/name". Returns None unless both halves are non-empty."""
        if not full_name or full_name.count("/") != 1:
            return None
        owner, repo = full_name.split("/")
        if not owner or not repo:
            return None
        return cls(owner=owner, repo=repo)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class PRCoordinates:
    owner: str
    repo: str
    pr_number: int


@dataclass(frozen=True)
class FileChange:
    """One file's pre-image and post-image, rebuilt from a unified diff."""

    file_name: str
    original: str
    changed: str


@dataclass(frozen=True)
class CommitRecord:
    sha: str
    url: str
    date: str
    author: str | None
    message: str
    files: tuple[FileChange, ...] = ()


@dataclass(frozen=True)
class PullRequestRecord:
    id: int
    url: str
    user: str | None
    state: PRState
    title: str
    number: int
    closed_at: str | None
    merged_at: str | None
    created_at: str | None
    updated_at: str | None
    files: tuple[FileChange, ...] = ()


@dataclass(frozen=True)
class Activity:
    """A user's recent commits and pull requests for one repository."""

    commits: tuple[CommitRecord, ...] = ()
    pull_requests: tuple[PullRequestRecord, ...] = ()


@dataclass(frozen=True)
class RepoSummary:
    full_name: str
    name: str
    private: bool
    html_url: str
    description: str | None
    language: str | None
    stargazers_count: int
    forks_count: int
    default_branch: str
    owner_login: str
    created_at: str | None
    updated_at: str | None
    pushed_at: str | None


@dataclass(frozen=True)
class CommitSummary:
    message: str
    author: str
    date: str


@dataclass(frozen=True)
class FileStat:
    filename: str
    status: str  # "added" | "modified" | "removed" | "renamed" | ...
    additions: int
    deletions: int
    patch: str | None = None


@dataclass(frozen=True)
class ReviewComment:
    author: str
    body: str
    created_at: str


@dataclass(frozen=True)
class Review:
    author: str
    state: str  # "APPROVED" | "CHANGES_REQUESTED" | "COMMENTED" | ...
    submitted_at: str | None


@dataclass(frozen=True)
class PRData:
    """Everything the narrative analyzer needs to know about one pull request."""

    title: str
    description: str
    author: str
    state: PRState
    created_at: str | None
    merged_at: str | None
    closed_at: str | None
    additions: int
    deletions: int
    changed_files: int
    commits: tuple[CommitSummary, ...] = ()
    files: tuple[FileStat, ...] = ()
    review_comments: tuple[ReviewComment, ...] = ()
    reviews: tuple[Review, ...] = ()
    labels: tuple[str, ...] = ()
    linked_issues: tuple[str, ...] = ()


@dataclass(frozen=True)
class PRStory:
    summary: str
    technical_details: str
    impact: str
    key_changes: tuple[str, ...]
    complexity: Complexity
    tags: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Any) -> PRStory:
        """Build a story from the model's JSON object.

        Raises ValueError when the object does not have the expected shape, so
        a malformed model reply is treated the same as a failed call.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        missing = [k for k in _STORY_FIELDS if k not in data]
        if missing:
            raise ValueError(f"missing fields: {', '.join(missing)}")

        complexity = str(data["complexity"]).strip().lower()
        if complexity not in _COMPLEXITIES:
            raise ValueError(f"invalid complexity: {data['complexity']!r}")

        key_changes, tags = data["keyChanges"], data["tags"]
        if not isinstance(key_changes, list) or not isinstance(tags, list):
            raise ValueError("keyChanges and tags must be lists")

        return cls(
            summary=str(data["summary"]),
            technical_details=str(data["technicalDetails"]),
            impact=str(data["impact"]),
            key_changes=tuple(str(c) for c in key_changes),
            complexity=complexity,  # type: ignore[arg-type]
            tags=tuple(str(t) for t in tags),
        )

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "technicalDetails": self.technical_details,
            "impact": self.impact,
            "keyChanges": list(self.key_changes),
            "complexity": self.complexity,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class NarrativeResult:
    """A PRStory tagged with where it came from.

    source is "model" when a text-generation backend produced it (backend
    names which one) and "rule_based" when every backend failed.
    """

    story: PRStory
    source: Literal["model", "rule_based"]
    backend: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "rule_based"
