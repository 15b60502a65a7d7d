"""
Git integration for commitwise.

This module reads diffs from the git CLI. It never stages, commits or
otherwise mutates the repository: commitwise only recommends.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional

from .errors import GitError

LOG = logging.getLogger(__name__)


@dataclass
class GitDiffResult:
    """
    Result of running a git diff command for commitwise.

    raw_diff contains the unified diff text; base_ref and target_ref
    describe what was compared (None for the index or working tree).
    """

    raw_diff: str
    base_ref: Optional[str]
    target_ref: Optional[str]


def _run_git(
    args: list[str],
    cwd: Optional[str] = None,
) -> subprocess.CompletedProcess[str]:
    """
    Run a git command and return the completed process.

    All git invocations go through here so that error handling and
    logging are centralized.
    """

    cmd = ["git", *args]
    LOG.debug("Running git command: %s", " ".join(cmd))
    try:
        completed = subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            text=True,
            capture_output=True,
        )
    except OSError as exc:
        raise GitError(f"failed to execute git: {exc}") from exc

    if completed.returncode != 0:
        stderr = (completed.stderr or "").strip()
        LOG.debug("git stderr: %s", stderr)
        message = f"git command failed: {' '.join(cmd)}"
        if stderr:
            message = f"{message}: {stderr}"
        raise GitError(message)

    return completed


def ensure_repository(cwd: Optional[str] = None) -> None:
    """
    Raise GitError unless cwd is inside a git work tree.
    """

    output = _run_git(["rev-parse", "--is-inside-work-tree"], cwd=cwd).stdout.strip()
    if output != "true":
        raise GitError("not inside a git work tree")


def get_working_diff(cwd: Optional[str] = None) -> GitDiffResult:
    """
    Return the unstaged changes in the working tree relative to the index.
    """

    diff_output = _run_git(["diff", "--find-renames"], cwd=cwd).stdout
    return GitDiffResult(raw_diff=diff_output, base_ref=None, target_ref=None)


def get_staged_diff(cwd: Optional[str] = None) -> GitDiffResult:
    """
    Return the staged changes. The base is HEAD; the target is the index.
    """

    diff_output = _run_git(["diff", "--cached", "--find-renames"], cwd=cwd).stdout
    return GitDiffResult(raw_diff=diff_output, base_ref="HEAD", target_ref=None)


def get_branch_diff(branch: str, base_branch: str = "main", cwd: Optional[str] = None) -> GitDiffResult:
    """
    Return the changes on ``branch`` since it diverged from ``base_branch``.
    """

    diff_output = _run_git(["diff", "--find-renames", f"{base_branch}...{branch}"], cwd=cwd).stdout
    return GitDiffResult(raw_diff=diff_output, base_ref=base_branch, target_ref=branch)
