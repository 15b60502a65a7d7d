"""
Semantic importance ranking for changed files.

Each change receives a score in [0, 1] built from four weighted priors:
file type (0.3), change kind (0.2), line content (0.4) and size (0.1).
Line content is classified by ordered regex rule lists where the first
matching rule wins, so the order of the pattern tables is significant.

The ranker also estimates how many model tokens a change costs and
offers a tiered greedy selection of changes under a token budget.
"""

from __future__ import annotations

import logging
import math
import re
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..domain import (
    CATEGORIES,
    Change,
    DiffHunk,
    DiffLine,
    Importance,
    RankedChange,
    RankingResult,
)

LOG = logging.getLogger(__name__)

FILE_WEIGHT = 0.3
CHANGE_TYPE_WEIGHT = 0.2
CONTENT_WEIGHT = 0.4
SIZE_WEIGHT = 0.1

REMOVED_LINE_MULTIPLIER = 1.2
CHARS_PER_TOKEN = 4

CRITICAL_PATTERNS: Tuple[re.Pattern, ...] = (
    # Public API surface
    re.compile(r"export\s+(interface|type|class|function)\s+\w+"),
    re.compile(r"public\s+(class|interface|function)"),
    re.compile(r"module\.exports\s*="),
    # Routes and endpoints
    re.compile(r"@api", re.IGNORECASE),
    re.compile(r"@endpoint", re.IGNORECASE),
    re.compile(r"app\.(get|post|put|delete|patch)\s*\("),
    re.compile(r"router\.(get|post|put|delete|patch)\s*\("),
    # Schema and migrations
    re.compile(r"CREATE\s+TABLE", re.IGNORECASE),
    re.compile(r"ALTER\s+TABLE", re.IGNORECASE),
    re.compile(r"migration", re.IGNORECASE),
    re.compile(r"@Entity"),
    re.compile(r"@Table"),
    # Security
    re.compile(r"auth|security|permission|role", re.IGNORECASE),
    re.compile(r"jwt|token|session", re.IGNORECASE),
    re.compile(r"password|secret|key", re.IGNORECASE),
    # Configuration
    re.compile(r"config|env|environment", re.IGNORECASE),
)

HIGH_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"class\s+\w+"),
    re.compile(r"function\s+\w+"),
    re.compile(r"const\s+\w+\s*=\s*\("),
    re.compile(r"try\s*\{|catch\s*\("),
    re.compile(r"throw\s+"),
    re.compile(r"error|exception", re.IGNORECASE),
    re.compile(r"map\s*\(|filter\s*\(|reduce\s*\("),
    re.compile(r"async|await"),
    re.compile(r"Promise"),
    re.compile(r"interface\s+\w+"),
    re.compile(r"type\s+\w+"),
    re.compile(r"from\s+['\"][^./]"),
)

FILE_IMPORTANCE: Dict[str, float] = {
    # Exact file names
    "package.json": 0.95,
    "tsconfig.json": 0.9,
    "webpack.config.js": 0.9,
    "vite.config.ts": 0.9,
    ".env": 0.95,
    "docker-compose.yml": 0.85,
    "Dockerfile": 0.8,
    # Extensions
    ".ts": 0.8,
    ".tsx": 0.8,
    ".js": 0.75,
    ".jsx": 0.75,
    ".py": 0.75,
    ".java": 0.7,
    ".go": 0.7,
    ".rs": 0.7,
    ".css": 0.5,
    ".scss": 0.5,
    ".html": 0.6,
    ".sql": 0.7,
    ".yaml": 0.6,
    ".yml": 0.6,
    ".md": 0.3,
    ".txt": 0.2,
    ".json": 0.4,
    ".lock": 0.1,
    ".log": 0.1,
}

# Consulted only when neither the name nor the extension is known.
PATH_IMPORTANCE: Tuple[Tuple[Tuple[str, ...], float], ...] = (
    (("src/",), 0.8),
    (("lib/",), 0.7),
    (("test/", "spec/"), 0.4),
    (("docs/",), 0.3),
    (("examples/",), 0.2),
)
DEFAULT_FILE_IMPORTANCE = 0.5

CHANGE_TYPE_IMPORTANCE: Dict[str, float] = {
    "deleted": 0.9,
    "renamed": 0.8,
    "modified": 0.7,
    "added": 0.6,
}

# (exclusive lower bound on changed lines, score), checked in order.
SIZE_IMPORTANCE: Tuple[Tuple[int, float], ...] = ((200, 0.8), (50, 0.6), (10, 0.4))

CATEGORY_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (0.8, "critical"),
    (0.6, "high"),
    (0.4, "medium"),
)


def rank_changes(changes: Sequence[Change]) -> RankingResult:
    """
    Score every change and return them sorted by descending importance.

    Ties keep their input order. An empty input yields an empty ranking
    with zero totals.
    """

    ranked = [RankedChange(change=c, importance=analyze_change_importance(c)) for c in changes]
    ranked.sort(key=lambda rc: -rc.importance.score)

    breakdown = {category: 0 for category in CATEGORIES}
    for rc in ranked:
        breakdown[rc.importance.category] += 1

    total_tokens = sum(rc.importance.tokens for rc in ranked)
    LOG.debug(
        "Ranked %d changes (%d tokens): %s",
        len(ranked),
        total_tokens,
        breakdown,
    )
    return RankingResult(ranked_changes=ranked, total_tokens=total_tokens, breakdown=breakdown)


def analyze_change_importance(change: Change) -> Importance:
    reasons: List[str] = []

    file_score = file_importance_score(change.path)
    if file_score > 0.8:
        reasons.append(f"Critical file: {PurePosixPath(change.path).name}")

    content_score, content_reasons = content_importance_score(change.hunks)
    reasons.extend(content_reasons)

    score = (
        file_score * FILE_WEIGHT
        + change_type_score(change.change_type) * CHANGE_TYPE_WEIGHT
        + content_score * CONTENT_WEIGHT
        + size_importance_score(change.total_lines) * SIZE_WEIGHT
    )
    score = max(0.0, min(score, 1.0))

    return Importance(
        score=score,
        category=categorize_score(score),  # type: ignore[arg-type]
        reasons=reasons,
        tokens=estimate_token_count(change),
    )


def file_importance_score(path: str) -> float:
    pure = PurePosixPath(path)
    if pure.name in FILE_IMPORTANCE:
        return FILE_IMPORTANCE[pure.name]
    if pure.suffix and pure.suffix in FILE_IMPORTANCE:
        return FILE_IMPORTANCE[pure.suffix]

    for needles, score in PATH_IMPORTANCE:
        if any(needle in path for needle in needles):
            return score
    return DEFAULT_FILE_IMPORTANCE


def change_type_score(change_type: str) -> float:
    return CHANGE_TYPE_IMPORTANCE.get(change_type, 0.5)


def content_importance_score(hunks: Sequence[DiffHunk]) -> Tuple[float, List[str]]:
    """
    Mean hunk score across hunks, capped at 1.0.
    """

    total = 0.0
    reasons: List[str] = []
    for hunk in hunks:
        hunk_score, hunk_reasons = _hunk_importance(hunk)
        total += hunk_score
        reasons.extend(hunk_reasons)

    return min(total / max(len(hunks), 1), 1.0), reasons


def _hunk_importance(hunk: DiffHunk) -> Tuple[float, List[str]]:
    score = 0.0
    reasons: List[str] = []

    for line in hunk.lines:
        if line.line_type != "added":
            continue
        line_score, reason = line_importance(line)
        score += line_score
        if reason:
            reasons.append(f"+{reason}")

    # Removals are more likely to break callers than additions.
    for line in hunk.lines:
        if line.line_type != "removed":
            continue
        line_score, reason = line_importance(line)
        score += line_score * REMOVED_LINE_MULTIPLIER
        if reason:
            reasons.append(f"-{reason}")

    return score, reasons


def line_importance(line: DiffLine) -> Tuple[float, Optional[str]]:
    content = line.content.strip()
    if not content or content.startswith("//") or content.startswith("/*"):
        return 0.2, None

    for pattern in CRITICAL_PATTERNS:
        if pattern.search(content):
            return 0.9, f"Critical pattern: {content[:50]}..."

    for pattern in HIGH_PATTERNS:
        if pattern.search(content):
            return 0.7, f"High importance: {content[:50]}..."

    if len(content) > 10 and "(" in content:
        return 0.5, "Code statement"

    return 0.2, None


def size_importance_score(total_lines: int) -> float:
    for threshold, score in SIZE_IMPORTANCE:
        if total_lines > threshold:
            return score
    return 0.2


def categorize_score(score: float) -> str:
    for threshold, category in CATEGORY_THRESHOLDS:
        if score >= threshold:
            return category
    return "low"


def estimate_token_count(change: Change) -> int:
    """
    Roughly four characters per token, with per-line formatting padding
    and a fixed overhead for the path and file metadata.
    """

    chars = 0
    for hunk in change.hunks:
        chars += len(hunk.header)
        for line in hunk.lines:
            chars += len(line.content) + 10
    chars += len(change.path) + 50
    return math.ceil(chars / CHARS_PER_TOKEN)


def select_by_tier(
    changes: Sequence[RankedChange],
    token_budget: int,
    cost: Callable[[RankedChange], int],
) -> List[RankedChange]:
    """
    Greedy selection by importance tier: critical, high, then the rest.

    Changes are atomic and keep their relative order inside a tier; a
    change that does not fit is skipped and smaller ones may still be
    taken.
    """

    tiers = (("critical",), ("high",), ("medium", "low"))
    selected: List[RankedChange] = []
    used = 0

    for tier in tiers:
        for change in changes:
            if change.importance.category not in tier:
                continue
            tokens = cost(change)
            if used + tokens <= token_budget:
                selected.append(change)
                used += tokens

    return selected


def select_optimal_changes(ranking: RankingResult, token_budget: int) -> List[RankedChange]:
    """
    Pick the most important changes whose estimated tokens fit the budget.
    """

    return select_by_tier(ranking.ranked_changes, token_budget, lambda rc: rc.importance.tokens)
