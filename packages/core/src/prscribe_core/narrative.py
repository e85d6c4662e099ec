"""Turn a PRData into a PRStory.

analyze_pr() walks the configured backends in preference order and returns
the first story a backend produces. Backends without a credential are
skipped before any network call. When none succeeds, a rule-based story is
computed from the PR's counts, paths and labels; that path cannot fail.
"""

from __future__ import annotations

import logging

from prscribe_core.config import load_config
from prscribe_core.errors import NarrativeBackendError
from prscribe_core.models import NarrativeResult, PRData, PRStory
from prscribe_core.providers.anthropic import AnthropicNarrator
from prscribe_core.providers.base import DEFAULT_TIMEOUT
from prscribe_core.providers.openai import OpenAINarrator
from prscribe_core.utils.code import file_extension, is_test_path

logger = logging.getLogger(__name__)

# Prompt size bounds.
_MAX_DESCRIPTION_CHARS = 1000
_MAX_COMMITS = 10
_MAX_FILES = 20
_MAX_COMMENTS = 5
_MAX_COMMENT_CHARS = 200

# Backend name → (narrator class, config key holding its credential).
_BACKENDS = {
    "openai": (OpenAINarrator, "openai_api_key"),
    "anthropic": (AnthropicNarrator, "anthropic_api_key"),
}

# Fallback complexity thresholds, in changed lines / files.
_HIGH_LINES = 500
_HIGH_FILES = 10
_MEDIUM_LINES = 100


def _date(timestamp: str | None) -> str:
    return timestamp[:10] if timestamp else "unknown"


def _first_line(message: str) -> str:
    return message.splitlines()[0] if message else ""


def build_prompt(pr_data: PRData) -> str:
    description = pr_data.description[:_MAX_DESCRIPTION_CHARS] if pr_data.description else "No description provided"
    merged_line = f"Merged: {_date(pr_data.merged_at)}\n" if pr_data.merged_at else ""

    commits = "\n".join(
        f"{i}. {_first_line(c.message)}" for i, c in enumerate(pr_data.commits[:_MAX_COMMITS], 1)
    )
    files = "\n".join(
        f"- {f.filename} ({f.status}): +{f.additions}/-{f.deletions}" for f in pr_data.files[:_MAX_FILES]
    )
    comments = "\n".join(
        f"- {c.author}: {c.body[:_MAX_COMMENT_CHARS]}" for c in pr_data.review_comments[:_MAX_COMMENTS]
    )
    reviews = ", ".join(f"{r.author} ({r.state})" for r in pr_data.reviews) or "None"
    labels = ", ".join(pr_data.labels) or "None"
    issues = ", ".join(f"#{i}" for i in pr_data.linked_issues) or "None"

    return f"""Analyze this GitHub Pull Request and create a comprehensive story:

**PR Details:**
Title: {pr_data.title}
Author: {pr_data.author}
State: {pr_data.state}
Created: {_date(pr_data.created_at)}
{merged_line}
**Description:**
{description}

**Changes Summary:**
- +{pr_data.additions} additions, -{pr_data.deletions} deletions
- {pr_data.changed_files} files changed
- {len(pr_data.commits)} commits

**Key Commits:**
{commits}

**Files Modified:**
{files}

**Labels:** {labels}

**Reviews:** {reviews}

**Review Comments:**
{comments}

**Linked Issues:** {issues}

Please analyze this PR and respond with a JSON object matching this exact structure:
{{
  "summary": "Brief 1-2 sentence summary of what this PR accomplishes",
  "technicalDetails": "Technical explanation of the changes made",
  "impact": "Business/technical impact and value of these changes",
  "keyChanges": ["Change 1", "Change 2", "Change 3", "..."],
  "complexity": "low|medium|high",
  "tags": ["tag1", "tag2", "tag3", "..."]
}}

Focus on:
1. What problem this PR solves
2. How it solves it technically
3. The impact/value it provides
4. Key implementation details
5. Appropriate complexity level based on scope and technical difficulty

Respond ONLY with the JSON object, no additional text."""


def _get_backends(config: dict) -> list:
    """Instantiate every configured backend whose credential is set, in order."""
    timeout = config.get("backend_timeout", DEFAULT_TIMEOUT)
    backends = []
    names = config.get("backends", list(_BACKENDS))
    if isinstance(names, str):
        names = [names]
    for name in names:
        if name not in _BACKENDS:
            logger.warning("Skipping unknown narrative backend %r.", name)
            continue
        cls, key_name = _BACKENDS[name]
        api_key = config.get(key_name)
        if not api_key:
            logger.debug("Skipping %s: no credential configured.", name)
            continue
        try:
            backends.append(cls(api_key=api_key, timeout=timeout))
        except ImportError as e:
            logger.warning("Skipping %s: %s", name, e)
    return backends


def analyze_pr(pr_data: PRData, config: dict | None = None) -> NarrativeResult:
    """Return a model-written story, or the rule-based one if every backend fails.

    Backends are tried one at a time; the first usable story short-circuits
    the rest. Without a config, the defaults, .prscribe.yml and the
    environment credentials are loaded the same way the CLI loads them.
    """
    if config is None:
        try:
            config = load_config()
        except ValueError as e:
            logger.warning("Ignoring invalid configuration: %s", e)
            config = {}
    prompt = build_prompt(pr_data)

    for backend in _get_backends(config):
        try:
            story = backend.narrate(prompt)
        except NarrativeBackendError as e:
            logger.warning("%s backend failed: %s", backend.NAME, e)
            continue
        return NarrativeResult(story=story, source="model", backend=backend.NAME)

    logger.info("No narrative backend produced a story; using rule-based analysis.")
    return NarrativeResult(story=build_fallback_story(pr_data), source="rule_based")


def fallback_complexity(pr_data: PRData) -> str:
    total_lines = pr_data.additions + pr_data.deletions
    if total_lines > _HIGH_LINES or pr_data.changed_files > _HIGH_FILES:
        return "high"
    if total_lines > _MEDIUM_LINES:
        return "medium"
    return "low"


def build_fallback_story(pr_data: PRData) -> PRStory:
    """Deterministic story from counts, file paths and labels."""
    extensions = list(dict.fromkeys(ext for ext in (file_extension(f.filename) for f in pr_data.files) if ext))
    has_tests = any(is_test_path(f.filename) for f in pr_data.files)
    complexity = fallback_complexity(pr_data)
    total_lines = pr_data.additions + pr_data.deletions
    merged = pr_data.state == "merged"
    plural = "" if pr_data.changed_files == 1 else "s"

    key_changes = [
        f"Modified {pr_data.changed_files} file{plural}",
        f"Added {pr_data.additions} lines, removed {pr_data.deletions} lines",
    ]
    if has_tests:
        key_changes.append("Includes test changes")
    if len(pr_data.commits) > 1:
        key_changes.append(f"{len(pr_data.commits)} commits")

    tags = extensions[:3]
    if has_tests:
        tags.append("testing")
    tags.extend(pr_data.labels[:2])
    tags.append(pr_data.state)

    span = ", ".join(extensions) if extensions else "various"
    tests_note = "Test files were also modified." if has_tests else "No test changes detected."

    return PRStory(
        summary=(
            f"This PR {'implemented' if merged else 'proposes'} changes to {pr_data.changed_files} "
            f"file{plural} with {total_lines} total line changes."
        ),
        technical_details=(
            f"The changes span {span} files and include {len(pr_data.commits)} commits. {tests_note}"
        ),
        impact=(
            f"This {complexity} complexity change affects the codebase structure and "
            f"{'has been' if merged else 'would be'} integrated into the main branch."
        ),
        key_changes=tuple(key_changes),
        complexity=complexity,  # type: ignore[arg-type]
        tags=tuple(dict.fromkeys(t for t in tags if t)),
    )
