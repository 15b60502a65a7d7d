"""
Custom exception types used across commitwise.

Defining explicit error classes makes it easier for the CLI and higher
layers to distinguish between user-facing failures and unexpected bugs.
The analysis pipeline itself degrades gracefully and only raises for
caller misuse.
"""

from __future__ import annotations


class CommitwiseError(Exception):
    """Base class for all commitwise specific errors."""


class GitError(CommitwiseError):
    """Raised when git operations fail."""


class DiffParseError(CommitwiseError):
    """Raised when parsing a diff fails."""


class ConfigError(CommitwiseError):
    """Raised when a run configuration is invalid."""


class BudgetError(CommitwiseError, ValueError):
    """Raised when a token budget is malformed (e.g. negative availability)."""
