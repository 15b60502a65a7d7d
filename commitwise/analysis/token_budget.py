"""
Token budget management for model prompts.

Given a model's context limit and a ranking, the budget manager picks a
compression level, rewrites the ranked changes with that level's
strategies, and selects the subset of content that fits the tokens left
after prompt overhead and the response reservation.

Compression strategies are a closed enum dispatched in one place
(``apply_strategy``) so an allocation can always be explained by the
level name and its strategy names.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from typing import Dict, List, Sequence

from ..domain import (
    CATEGORIES,
    BudgetAllocation,
    Change,
    CommitSizeRecommendation,
    CompressionLevel,
    CompressionStrategy,
    DiffHunk,
    DiffLine,
    RankedChange,
    RankingResult,
    TokenBudget,
    TokenUsage,
)
from ..errors import BudgetError
from .ranker import select_by_tier

LOG = logging.getLogger(__name__)

MODEL_LIMITS: Dict[str, int] = {
    "gpt-4o-mini": 128000,
    "gpt-4o": 128000,
    "gpt-4": 8192,
    "gpt-4-turbo": 128000,
    "gpt-3.5-turbo": 16384,
    "claude-3-5-sonnet": 200000,
    "claude-3-haiku": 200000,
}
DEFAULT_MODEL_LIMIT = 4000

SYSTEM_PROMPT_SIZES: Dict[str, int] = {
    "commit": 500,
    "explain": 600,
    "pr": 550,
    "review": 700,
}
USER_PROMPT_OVERHEAD = 200
MIN_RESERVED_TOKENS = 1000
RESERVED_FRACTION = 0.1

COMPRESSION_LEVELS: Dict[str, CompressionLevel] = {
    "full": CompressionLevel(name="full", token_limit=5000),
    "moderate": CompressionLevel(
        name="moderate",
        token_limit=15000,
        strategies=(CompressionStrategy.TEST_SUMMARIZE,),
    ),
    "aggressive": CompressionLevel(
        name="aggressive",
        token_limit=50000,
        strategies=(CompressionStrategy.SIGNATURE_ONLY, CompressionStrategy.DOC_COMPRESS),
    ),
    "minimal": CompressionLevel(
        name="minimal",
        token_limit=math.inf,
        strategies=(CompressionStrategy.FILE_SUMMARY_ONLY,),
    ),
}

# Upper bound of estimated/available tokens for each level, in order.
LEVEL_RATIOS = (("full", 0.8), ("moderate", 1.5), ("aggressive", 3.0))

SIGNATURE_TOKEN_THRESHOLD = 1000
MAX_SIGNATURE_LINES = 5
_SIGNATURE_RE = re.compile(r"function\s+\w+|class\s+\w+|interface\s+\w+|def\s+\w+|export\s+")

LOW_EFFICIENCY_PERCENT = 70


def calculate_budget(model_name: str, prompt_type: str) -> TokenBudget:
    """
    Compute the token budget for a model and prompt type.

    Unknown models fall back to a 4000 token context. The reservation
    for the model's response is never handed out to change content.
    """

    total = MODEL_LIMITS.get(model_name, DEFAULT_MODEL_LIMIT)
    if model_name not in MODEL_LIMITS:
        LOG.info("Unknown model %r; assuming a %d token context", model_name, total)

    system_prompt = SYSTEM_PROMPT_SIZES.get(prompt_type, SYSTEM_PROMPT_SIZES["commit"])
    reserved = max(MIN_RESERVED_TOKENS, int(total * RESERVED_FRACTION))
    available = total - system_prompt - USER_PROMPT_OVERHEAD - reserved

    return TokenBudget(
        total=total,
        system_prompt=system_prompt,
        user_prompt=USER_PROMPT_OVERHEAD,
        reserved=reserved,
        available=available,
    )


def allocate_tokens(
    ranking: RankingResult,
    budget: TokenBudget,
    prioritize_quality: bool = True,
) -> BudgetAllocation:
    """
    Compress and select ranked changes so they fit ``budget.available``.

    The returned allocation never uses more than the available tokens.
    Raises BudgetError for a budget with negative availability.
    """

    if budget.available < 0:
        raise BudgetError(
            f"token budget has negative availability ({budget.available}); "
            f"total={budget.total} cannot cover the prompt overhead"
        )

    level = select_compression_level(ranking.total_tokens, budget.available)
    LOG.debug(
        "Estimated %d tokens against %d available; using %s compression",
        ranking.total_tokens,
        budget.available,
        level.name,
    )

    processed: List[RankedChange] = list(ranking.ranked_changes)
    for strategy in level.strategies:
        processed = apply_strategy(strategy, processed)

    warnings: List[str] = []
    dropped = 0
    compressed_tokens = estimate_token_usage(processed)

    if compressed_tokens <= budget.available:
        selected = processed
    else:
        selected = select_changes_by_importance(processed, budget.available, prioritize_quality)
        dropped = len(processed) - len(selected)
        if dropped > 0:
            warnings.append(f"{dropped} changes excluded due to token limits")

    total_importance = sum(rc.importance.score for rc in ranking.ranked_changes)
    preserved_importance = sum(rc.importance.score for rc in selected)
    efficiency = (preserved_importance / total_importance) * 100 if total_importance > 0 else 100.0
    efficiency = max(0.0, min(efficiency, 100.0))

    if level.name == "aggressive":
        warnings.append("Heavy compression applied - some context may be lost")
    elif level.name == "minimal":
        warnings.append("Minimal context mode - only file summaries available")

    if efficiency < LOW_EFFICIENCY_PERCENT:
        warnings.append(f"Only {efficiency:.0f}% of important content preserved")

    return BudgetAllocation(
        level=level,
        selected_changes=selected,
        compression_summary=generate_compression_summary(level, ranking, selected),
        token_usage=TokenUsage(
            used=estimate_token_usage(selected),
            available=budget.available,
            efficiency=efficiency,
        ),
        warnings=warnings,
        dropped_count=dropped,
    )


def select_compression_level(estimated_tokens: int, available_tokens: int) -> CompressionLevel:
    for name, ratio in LEVEL_RATIOS:
        if estimated_tokens <= available_tokens * ratio:
            return COMPRESSION_LEVELS[name]
    return COMPRESSION_LEVELS["minimal"]


def apply_strategy(
    strategy: CompressionStrategy,
    changes: Sequence[RankedChange],
) -> List[RankedChange]:
    """
    Apply one compression strategy to every change.

    Changes the strategy does not target are returned as-is; targeted
    ones get a new Change with rewritten hunks and the same importance.
    """

    if strategy is CompressionStrategy.TEST_SUMMARIZE:
        rewrite = _summarize_test_file
    elif strategy is CompressionStrategy.SIGNATURE_ONLY:
        rewrite = _signatures_only
    elif strategy is CompressionStrategy.DOC_COMPRESS:
        rewrite = _compress_documentation
    elif strategy is CompressionStrategy.FILE_SUMMARY_ONLY:
        rewrite = _file_summary_only
    else:
        raise ValueError(f"unknown compression strategy: {strategy!r}")

    return [rewrite(rc) for rc in changes]


def _with_hunk(rc: RankedChange, header: str, lines: List[DiffLine]) -> RankedChange:
    hunk = DiffHunk(header=header, start_line=1, end_line=max(len(lines), 1), lines=lines)
    return replace(rc, change=replace(rc.change, hunks=[hunk]))


def _summarize_test_file(rc: RankedChange) -> RankedChange:
    if "test" not in rc.path and "spec" not in rc.path:
        return rc
    return _with_hunk(
        rc,
        f"@@ Test file summary: +{rc.insertions} -{rc.deletions} @@",
        [DiffLine("context", f"[Test file with {len(rc.hunks)} changes - summarized]", 1)],
    )


def _signatures_only(rc: RankedChange) -> RankedChange:
    if rc.importance.tokens <= SIGNATURE_TOKEN_THRESHOLD:
        return rc

    all_lines = [line for hunk in rc.hunks for line in hunk.lines]
    signatures = [line for line in all_lines if _SIGNATURE_RE.search(line.content)]
    signatures = signatures[:MAX_SIGNATURE_LINES]
    if not signatures:
        return rc

    marker = DiffLine(
        "context",
        f"[... {len(all_lines) - len(signatures)} more lines truncated]",
        0,
    )
    return _with_hunk(rc, f"@@ Signatures only: {rc.path} @@", [*signatures, marker])


def _compress_documentation(rc: RankedChange) -> RankedChange:
    if not rc.path.endswith(".md") and "doc" not in rc.path:
        return rc
    return _with_hunk(
        rc,
        f"@@ Documentation change: {rc.path} @@",
        [DiffLine("context", f"[Documentation file: +{rc.insertions} -{rc.deletions} lines]", 1)],
    )


def _file_summary_only(rc: RankedChange) -> RankedChange:
    importance = rc.importance
    return _with_hunk(
        rc,
        f"@@ {rc.path} ({rc.change_type}) @@",
        [
            DiffLine(
                "context",
                f"[{importance.category.upper()}: +{rc.insertions} -{rc.deletions}, "
                f"Score: {importance.score:.2f}]",
                1,
            ),
            DiffLine("context", f"Reasons: {', '.join(importance.reasons)}", 2),
        ],
    )


def select_changes_by_importance(
    changes: Sequence[RankedChange],
    token_budget: int,
    prioritize_quality: bool = True,
) -> List[RankedChange]:
    """
    Select whole changes that fit ``token_budget`` after compression.

    With prioritize_quality the selection is tiered by category; without
    it changes are taken greedily in score order.
    """

    ordered = sorted(changes, key=lambda rc: -rc.importance.score)
    if prioritize_quality:
        return select_by_tier(ordered, token_budget, estimate_change_tokens)

    selected: List[RankedChange] = []
    used = 0
    for rc in ordered:
        tokens = estimate_change_tokens(rc)
        if used + tokens <= token_budget:
            selected.append(rc)
            used += tokens
    return selected


def estimate_token_usage(changes: Sequence[RankedChange]) -> int:
    return sum(estimate_change_tokens(rc) for rc in changes)


def estimate_change_tokens(rc: RankedChange) -> int:
    """
    Token cost of the (possibly compressed) content of one change.
    """

    change: Change = rc.change
    tokens = math.ceil(len(change.path) / 4) + 20
    for hunk in change.hunks:
        tokens += math.ceil(len(hunk.header) / 4)
        for line in hunk.lines:
            tokens += math.ceil(len(line.content) / 4) + 5
    return tokens


def generate_compression_summary(
    level: CompressionLevel,
    ranking: RankingResult,
    selected: Sequence[RankedChange],
) -> str:
    counts = {category: 0 for category in CATEGORIES}
    for rc in selected:
        counts[rc.importance.category] += 1

    parts = [
        f"Compression level: {level.name}",
        f"Files: {len(selected)}/{len(ranking.ranked_changes)}",
        "Breakdown: {critical}C {high}H {medium}M {low}L".format(**counts),
    ]
    if level.strategies:
        parts.append(f"Strategies: {', '.join(s.value for s in level.strategies)}")
    return " | ".join(parts)


def analyze_commit_size_recommendation(
    ranking: RankingResult,
    budget: TokenBudget,
) -> CommitSizeRecommendation:
    """
    Advise whether the change set should be split before asking a model.

    This is read-only advice and never alters the ranking.
    """

    ranked = ranking.ranked_changes
    total_files = len(ranked)
    critical_count = ranking.breakdown.get("critical", 0)

    should_split = False
    recommendation = ""
    breakdown: List[str] = []

    if total_files > 20:
        should_split = True
        recommendation = (
            f"Large changeset ({total_files} files) detected. "
            "Consider splitting into smaller, focused commits."
        )

        # Numbered per group, not by position.
        groups = (
            (
                "1. Critical changes",
                [rc for rc in ranked if rc.importance.category == "critical"],
            ),
            (
                "2. Feature implementation",
                [
                    rc
                    for rc in ranked
                    if "test" not in rc.path and rc.importance.category == "high"
                ],
            ),
            (
                "3. Tests and specs",
                [rc for rc in ranked if "test" in rc.path or "spec" in rc.path],
            ),
        )
        for label, members in groups:
            if members:
                breakdown.append(f"{label} ({len(members)} files)")

    if ranking.total_tokens > budget.available * 2:
        should_split = True
        if not recommendation:
            recommendation = (
                f"Changes are very large ({math.ceil(ranking.total_tokens / 1000)}k tokens). "
                "AI analysis will be limited."
            )

    if critical_count > 5:
        should_split = True
        if not recommendation:
            recommendation = (
                f"Multiple critical changes detected ({critical_count}). "
                "Consider separate commits for better review."
            )

    if not should_split:
        recommendation = "Change size is optimal for AI analysis."

    return CommitSizeRecommendation(
        should_split=should_split,
        recommendation=recommendation,
        suggested_breakdown=breakdown,
    )
