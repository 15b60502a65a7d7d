"""
High-level orchestration for commitwise.

The planner is responsible for:
  - obtaining a diff from git and parsing it into Change records,
  - ranking changes and fitting them into the model's token budget,
  - detecting commit boundaries and a staging strategy, and
  - assessing overall complexity, re-running boundary detection with a
    stricter split when that assessment reports errors.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from .analysis.boundaries import analyze_commit_boundaries, suggest_staging_strategy
from .analysis.complexity import analyze_complexity
from .analysis.ranker import rank_changes
from .analysis.token_budget import (
    allocate_tokens,
    analyze_commit_size_recommendation,
    calculate_budget,
)
from .config import Config
from .diff_parser import parse_unified_diff
from .domain import AnalysisReport, Change, CommitBoundary, ComplexityAnalysis
from .git_adapter import (
    GitDiffResult,
    ensure_repository,
    get_branch_diff,
    get_staged_diff,
    get_working_diff,
)

LOG = logging.getLogger(__name__)

MIN_BOUNDARY_SIZE = 2


def analyze_changes(changes: Sequence[Change], config: Config) -> AnalysisReport:
    """
    Run the full analysis pipeline over already materialized changes.
    """

    ranking = rank_changes(changes)
    budget = calculate_budget(config.model, config.prompt_type)
    allocation = allocate_tokens(ranking, budget, prioritize_quality=config.prioritize_quality)
    size_recommendation = analyze_commit_size_recommendation(ranking, budget)
    complexity = analyze_complexity(changes, ranking, budget)

    boundaries = _detect_boundaries(changes, config.max_boundary_size)
    tightened = False
    if config.tighten_on_warnings and _has_errors(complexity):
        stricter = max(MIN_BOUNDARY_SIZE, config.max_boundary_size // 2)
        if stricter < config.max_boundary_size:
            LOG.info(
                "Complexity analysis reported errors; re-splitting with at most %d files per commit",
                stricter,
            )
            boundaries = _detect_boundaries(changes, stricter)
            tightened = True

    strategy = suggest_staging_strategy(boundaries)
    for warning in allocation.warnings:
        LOG.info("Token budget: %s", warning)

    return AnalysisReport(
        changes=list(changes),
        ranking=ranking,
        budget=budget,
        allocation=allocation,
        size_recommendation=size_recommendation,
        complexity=complexity,
        boundaries=boundaries,
        strategy=strategy,
        tightened=tightened,
    )


def _detect_boundaries(changes: Sequence[Change], max_boundary_size: int) -> List[CommitBoundary]:
    return analyze_commit_boundaries(
        changes,
        max_boundary_size=max_boundary_size,
        chunk_size=max(1, max_boundary_size // 2),
    )


def _has_errors(complexity: ComplexityAnalysis) -> bool:
    return any(warning.level == "error" for warning in complexity.warnings)


def _obtain_git_diff(config: Config) -> GitDiffResult:
    """
    Obtain a unified diff string based on the CLI configuration.
    """

    if config.use_staged:
        LOG.info("Using staged changes as diff source")
        return get_staged_diff()

    if config.branch:
        LOG.info("Using branch %s against %s as diff source", config.branch, config.base_branch)
        return get_branch_diff(config.branch, config.base_branch)

    LOG.info("Using working tree changes as diff source")
    return get_working_diff()


def run_analysis(config: Config) -> AnalysisReport:
    """
    Entry point for the main CLI command.
    """

    LOG.debug("Starting commitwise with config: %s", config)
    config.validate()
    ensure_repository()

    git_diff = _obtain_git_diff(config)
    changes = parse_unified_diff(git_diff.raw_diff)
    if not changes:
        LOG.warning("No changes found to analyze")

    return analyze_changes(changes, config)
