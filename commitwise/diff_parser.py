"""
Unified diff parsing for commitwise.

The parser converts a raw unified diff string into the Change records
defined in commitwise.domain, and renders Change records back into
diff-shaped text for embedding in model prompts.

The implementation focuses on the unified diff format produced by git
(e.g. `git diff`, `git diff --cached`) and ignores metadata that is not
needed for analysis (such as modes and indexes).
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from .domain import Change, DiffHunk, DiffLine
from .errors import DiffParseError

LOG = logging.getLogger(__name__)

_HUNK_HEADER_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))?"
    r" \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))?"
    r" @@"
)

_LINE_TYPES = {"+": "added", "-": "removed", " ": "context"}
_LINE_MARKERS = {"added": "+", "removed": "-", "context": " "}

# Sections git prints for unmerged paths; their "@@@" hunks have three ranges.
_COMBINED_DIFF_PREFIXES = ("diff --cc ", "diff --combined ")


def parse_unified_diff(raw_diff: str) -> List[Change]:
    """
    Parse a unified diff into Change records, one per file.

    Binary files are kept with no hunks so they still count as changed.
    Combined diffs of unmerged paths (`diff --cc`) are skipped.
    Raises DiffParseError for a malformed hunk header.
    """

    lines = raw_diff.splitlines()
    changes: List[Change] = []

    i = 0
    # Skip any preamble (e.g. commit headers) until the first file diff.
    while i < len(lines) and not lines[i].startswith("diff "):
        i += 1

    while i < len(lines):
        line = lines[i]
        if line.startswith(_COMBINED_DIFF_PREFIXES):
            LOG.warning("Skipping combined diff of unmerged path: %s", line)
            i = _next_file_diff(lines, i + 1)
            continue
        if not line.startswith("diff --git "):
            i += 1
            continue

        change, i = _parse_single_file_diff(lines, i)
        if change is not None:
            changes.append(change)

    LOG.debug("Parsed %d changed files from diff", len(changes))
    return changes


def _parse_single_file_diff(
    lines: Sequence[str],
    start_index: int,
) -> Tuple[Optional[Change], int]:
    """
    Parse a single `diff --git` section starting at start_index.

    Returns a tuple of (Change | None, next_index).
    """

    i = start_index
    parts = lines[i].split()
    i += 1

    # Example: "diff --git a/path b/path"
    if len(parts) < 4:
        LOG.warning("Skipping malformed diff header: %s", lines[start_index])
        return None, _next_file_diff(lines, i)

    path_old: Optional[str] = _strip_prefix(parts[-2], "a/")
    path_new: Optional[str] = _strip_prefix(parts[-1], "b/")
    change_type = "modified"
    is_binary = False

    # Consume metadata lines until we hit file headers or another diff.
    while i < len(lines):
        line = lines[i]
        if line.startswith("diff ") or line.startswith("--- ") or line.startswith("@@"):
            break

        if line.startswith("new file mode "):
            change_type = "added"
        elif line.startswith("deleted file mode "):
            change_type = "deleted"
        elif line.startswith("rename from "):
            path_old = line[len("rename from ") :].strip()
            change_type = "renamed"
        elif line.startswith("rename to "):
            path_new = line[len("rename to ") :].strip()
            change_type = "renamed"
        elif (line.startswith("Binary files ") and " differ" in line) or line.startswith(
            "GIT binary patch"
        ):
            is_binary = True

        i += 1

    if i < len(lines) and lines[i].startswith("--- "):
        old_label = lines[i][4:].strip()
        i += 1
        if old_label == "/dev/null":
            change_type = "added"
            path_old = None
        else:
            path_old = _strip_prefix(old_label, "a/")

    if i < len(lines) and lines[i].startswith("+++ "):
        new_label = lines[i][4:].strip()
        i += 1
        if new_label == "/dev/null":
            change_type = "deleted"
            path_new = None
        else:
            path_new = _strip_prefix(new_label, "b/")

    hunks: List[DiffHunk] = []
    while i < len(lines) and not lines[i].startswith("diff "):
        if lines[i].startswith("@@") and not is_binary:
            hunk, i = _parse_hunk(lines, i)
            hunks.append(hunk)
        else:
            i += 1

    path = path_new or path_old or ""
    insertions = sum(1 for h in hunks for line in h.lines if line.line_type == "added")
    deletions = sum(1 for h in hunks for line in h.lines if line.line_type == "removed")

    return (
        Change(
            path=path,
            change_type=change_type,  # type: ignore[arg-type]
            insertions=insertions,
            deletions=deletions,
            hunks=hunks,
            old_path=path_old if change_type == "renamed" else None,
        ),
        i,
    )


def _strip_prefix(path: str, prefix: str) -> str:
    return path[len(prefix) :] if path.startswith(prefix) else path


def _next_file_diff(lines: Sequence[str], index: int) -> int:
    while index < len(lines) and not lines[index].startswith("diff "):
        index += 1
    return index


def _parse_hunk(lines: Sequence[str], start_index: int) -> Tuple[DiffHunk, int]:
    """
    Parse a single hunk starting at `start_index`.
    """

    header = lines[start_index]
    match = _HUNK_HEADER_RE.match(header)
    if not match:
        raise DiffParseError(f"malformed hunk header at line {start_index + 1}: {header!r}")

    old_lineno = int(match.group("old_start"))
    new_lineno = int(match.group("new_start"))
    diff_lines: List[DiffLine] = []

    i = start_index + 1
    while i < len(lines):
        line = lines[i]
        if line.startswith("diff ") or line.startswith("@@"):
            break

        if line.startswith("\\ No newline at end of file"):
            i += 1
            continue

        if line and line[0] in _LINE_TYPES:
            line_type = _LINE_TYPES[line[0]]
            content = line[1:]
        else:
            # Empty or unexpected lines inside a hunk are kept as context.
            line_type = "context"
            content = line

        if line_type == "removed":
            diff_lines.append(DiffLine(line_type, content, old_lineno))
            old_lineno += 1
        elif line_type == "added":
            diff_lines.append(DiffLine(line_type, content, new_lineno))
            new_lineno += 1
        else:
            diff_lines.append(DiffLine(line_type, content, new_lineno))
            old_lineno += 1
            new_lineno += 1

        i += 1

    start = int(match.group("new_start"))
    if start == 0:
        # Pure deletion; anchor the hunk in the old file instead.
        start = int(match.group("old_start"))
    end = start + max(len(diff_lines) - 1, 0)

    return DiffHunk(header=header, start_line=start, end_line=end, lines=diff_lines), i


def render_changes(changes: Iterable[Change]) -> str:
    """
    Render changes as diff-shaped text suitable for a model prompt.

    Compressed changes carry synthetic hunk headers, so the output is
    not meant to be applied with `git apply`.
    """

    output: List[str] = []
    for change in changes:
        old_label = change.old_path or change.path
        output.append(f"diff --git a/{old_label} b/{change.path}")
        output.append(f"--- {'/dev/null' if change.change_type == 'added' else 'a/' + old_label}")
        output.append(f"+++ {'/dev/null' if change.change_type == 'deleted' else 'b/' + change.path}")
        for hunk in change.hunks:
            output.append(hunk.header)
            for line in hunk.lines:
                output.append(f"{_LINE_MARKERS[line.line_type]}{line.content}")

    if not output:
        return ""
    return "\n".join(output) + "\n"
