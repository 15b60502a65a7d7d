"""
Configuration model for commitwise.

The CLI constructs a Config instance and passes it down into the
planner so behavior can be adjusted without relying on global state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError

PROMPT_TYPES = ("commit", "explain", "pr", "review")


@dataclass
class Config:
    """
    Top-level configuration for a commitwise run.
    """

    model: str = "gpt-4o-mini"
    prompt_type: str = "commit"
    use_staged: bool = False
    branch: Optional[str] = None
    base_branch: str = "main"
    prioritize_quality: bool = True
    max_boundary_size: int = 8
    tighten_on_warnings: bool = True
    output_format: str = "text"
    verbosity: int = 0

    def validate(self) -> None:
        if self.prompt_type not in PROMPT_TYPES:
            raise ConfigError(
                f"unknown prompt type {self.prompt_type!r}; "
                f"expected one of {', '.join(PROMPT_TYPES)}"
            )
        if self.max_boundary_size < 2:
            raise ConfigError("max boundary size must be at least 2 files")
        if self.output_format not in ("text", "json"):
            raise ConfigError(f"unknown output format {self.output_format!r}")
        if self.use_staged and self.branch:
            raise ConfigError("--staged and --branch cannot be combined")
