"""Rebuild per-file before/after content from a unified diff.

Only the lines present in the diff are recovered: hunk context plus removed
lines form the pre-image, hunk context plus added lines form the post-image.
Unchanged regions outside the hunks are not part of either side.
"""

from __future__ import annotations

import re

from prscribe_core.models import FileChange

_FILE_BOUNDARY_RE = re.compile(r"(?m)^(?=diff --git )")
_FILE_HEADER_RE = re.compile(r"diff --git a/(.+?) b/(.+)")


def extract_file_changes(diff_text: str | None) -> list[FileChange]:
    """Return one FileChange per `diff --git` segment in diff_text.

    Segments without a recognisable header are skipped; empty or malformed
    input gives an empty list. Never raises.
    """
    if not diff_text:
        return []

    files: list[FileChange] = []
    for section in _FILE_BOUNDARY_RE.split(diff_text):
        header = _FILE_HEADER_RE.search(section)
        if not header:
            continue

        file_name = header.group(2) or header.group(1)
        original: list[str] = []
        changed: list[str] = []
        in_hunk = False

        for line in section.split("\n"):
            if line.startswith("@@"):
                in_hunk = True
                continue
            if not in_hunk or line.startswith("diff --git") or line.startswith("index "):
                continue

            if line.startswith("-") and not line.startswith("---"):
                original.append(line[1:])
            elif line.startswith("+") and not line.startswith("+++"):
                changed.append(line[1:])
            elif line.startswith(" "):
                original.append(line[1:])
                changed.append(line[1:])
            # "\ No newline at end of file" and anything else is dropped.

        files.append(
            FileChange(
                file_name=file_name,
                original="\n".join(original).rstrip(),
                changed="\n".join(changed).rstrip(),
            )
        )

    return files
