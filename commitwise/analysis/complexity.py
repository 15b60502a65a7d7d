"""
Change complexity analysis.

Aggregates raw change statistics and the importance ranking into a
single 0-100 complexity score, a category, risk warnings, plain-text
recommendations and, for complex change sets, a suggested split.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional, Sequence, Set, Tuple

from ..domain import (
    Change,
    ComplexityAnalysis,
    ComplexityMetrics,
    ComplexityWarning,
    RankingResult,
    SplitSuggestion,
    SuggestedCommit,
    TokenBudget,
    WarningImpact,
)

LOG = logging.getLogger(__name__)

FILE_WARNING_THRESHOLD = 15
LINE_WARNING_THRESHOLD = 500
CRITICAL_WARNING_THRESHOLD = 3
LOW_TEST_COVERAGE_PERCENT = 30

FRAMEWORKS = ("react", "vue", "angular", "express", "django", "spring")

CONFIG_PATTERNS = (
    "package.json",
    "tsconfig.json",
    "webpack.config.js",
    "vite.config.ts",
    ".env",
    "docker-compose.yml",
    "Dockerfile",
    ".github/",
    "jest.config.js",
    "babel.config.js",
    "rollup.config.js",
)


def analyze_complexity(
    changes: Sequence[Change],
    ranking: Optional[RankingResult] = None,
    token_budget: Optional[TokenBudget] = None,
) -> ComplexityAnalysis:
    """
    Analyze how hard a change set is to review and to explain.

    The result is a pure function of its inputs, so re-running on the
    same changes and ranking yields the same score and warnings.
    """

    metrics = calculate_metrics(changes, ranking)
    score = calculate_complexity_score(metrics)
    category = categorize_complexity(score)
    LOG.debug("Complexity score %.1f (%s) for %d files", score, category, metrics.file_count)

    return ComplexityAnalysis(
        score=score,
        category=category,  # type: ignore[arg-type]
        metrics=metrics,
        warnings=generate_warnings(metrics, token_budget),
        recommendations=generate_recommendations(metrics, category),
        optimal_split=analyze_optimal_split(changes, metrics, category),
    )


def calculate_metrics(
    changes: Sequence[Change],
    ranking: Optional[RankingResult] = None,
) -> ComplexityMetrics:
    critical_paths: Set[str] = set()
    if ranking is not None:
        critical_paths = {
            rc.path for rc in ranking.ranked_changes if rc.importance.category == "critical"
        }

    critical = 0
    breaking = 0
    tests = 0
    frameworks: Set[str] = set()

    for change in changes:
        if change.path in critical_paths:
            critical += 1
        if is_breaking_change(change):
            breaking += 1
        if "test" in change.path or "spec" in change.path:
            tests += 1
        frameworks.update(detect_frameworks(change))

    file_count = len(changes)
    return ComplexityMetrics(
        file_count=file_count,
        total_lines=sum(change.total_lines for change in changes),
        critical_changes=critical,
        breaking_changes=breaking,
        test_coverage=(tests / file_count) * 100 if file_count else 0.0,
        frameworks_affected=len(frameworks),
    )


def calculate_complexity_score(metrics: ComplexityMetrics) -> float:
    score = (
        min(metrics.file_count / 30 * 30, 30)
        + min(metrics.total_lines / 1500 * 25, 25)
        + min(metrics.critical_changes / 15 * 20, 20)
        + min(metrics.breaking_changes / 5 * 15, 15)
        + min(metrics.frameworks_affected * 3, 10)
    )
    return max(0.0, min(score, 100.0))


def categorize_complexity(score: float) -> str:
    if score <= 25:
        return "simple"
    if score <= 50:
        return "moderate"
    if score <= 75:
        return "complex"
    return "very-complex"


def generate_warnings(
    metrics: ComplexityMetrics,
    token_budget: Optional[TokenBudget] = None,
) -> List[ComplexityWarning]:
    """
    Emit one warning per metric that crosses its threshold.
    """

    warnings: List[ComplexityWarning] = []

    if metrics.file_count > FILE_WARNING_THRESHOLD:
        warnings.append(
            ComplexityWarning(
                level="warning",
                title="Large File Count",
                message=(
                    f"{metrics.file_count} files changed. "
                    "This may be difficult to review effectively."
                ),
                suggestions=[
                    "Consider splitting into feature-focused commits",
                    "Group related changes together",
                    "Separate refactoring from new features",
                ],
                impact=WarningImpact(
                    ai_quality="degraded" if metrics.file_count > 20 else "good",
                    reviewability="very-difficult" if metrics.file_count > 25 else "difficult",
                    risk_level="medium",
                ),
            )
        )

    if metrics.total_lines > LINE_WARNING_THRESHOLD:
        warnings.append(
            ComplexityWarning(
                level="warning",
                title="Large Change Size",
                message=f"{metrics.total_lines} total lines changed. AI analysis may be limited.",
                suggestions=[
                    "Consider committing in smaller chunks",
                    "Separate implementation from tests",
                    "Split complex features into multiple commits",
                ],
                impact=WarningImpact(
                    ai_quality="poor" if metrics.total_lines > 1000 else "degraded",
                    reviewability="difficult",
                    risk_level="medium",
                ),
            )
        )

    if metrics.critical_changes > CRITICAL_WARNING_THRESHOLD:
        warnings.append(
            ComplexityWarning(
                level="error",
                title="Multiple Critical Changes",
                message=(
                    f"{metrics.critical_changes} critical changes detected. "
                    "High risk of introducing bugs."
                ),
                suggestions=[
                    "Separate critical changes into individual commits",
                    "Focus on one breaking change per commit",
                    "Add comprehensive tests for critical changes",
                ],
                impact=WarningImpact(
                    ai_quality="degraded",
                    reviewability="very-difficult",
                    risk_level="high",
                ),
            )
        )

    if metrics.breaking_changes > 0:
        severe = metrics.breaking_changes > 2
        warnings.append(
            ComplexityWarning(
                level="error" if severe else "warning",
                title="Breaking Changes Detected",
                message=f"{metrics.breaking_changes} potentially breaking change(s) found.",
                suggestions=[
                    "Document breaking changes in commit message",
                    "Consider semantic versioning implications",
                    "Add migration guides if needed",
                    "Ensure backward compatibility where possible",
                ],
                impact=WarningImpact(
                    ai_quality="good",
                    reviewability="moderate",
                    risk_level="critical" if severe else "high",
                ),
            )
        )

    if metrics.test_coverage < LOW_TEST_COVERAGE_PERCENT and metrics.file_count > 5:
        warnings.append(
            ComplexityWarning(
                level="warning",
                title="Low Test Coverage",
                message=f"Only {metrics.test_coverage:.0f}% of changed files are tests.",
                suggestions=[
                    "Add tests for new functionality",
                    "Update existing tests for modified code",
                    "Consider test-driven development approach",
                ],
                impact=WarningImpact(ai_quality="good", reviewability="moderate", risk_level="medium"),
            )
        )

    if token_budget is not None:
        estimated = estimate_token_usage(metrics)
        if estimated > token_budget.available:
            warnings.append(
                ComplexityWarning(
                    level="error",
                    title="Token Budget Exceeded",
                    message=(
                        f"Changes require ~{math.ceil(estimated / 1000)}k tokens, "
                        f"but only {math.ceil(token_budget.available / 1000)}k available."
                    ),
                    suggestions=[
                        "Commit current critical changes first",
                        "Consider explaining changes in smaller batches",
                        "Use a model with a larger context window",
                    ],
                    impact=WarningImpact(ai_quality="poor", reviewability="moderate", risk_level="low"),
                )
            )

    return warnings


def generate_recommendations(metrics: ComplexityMetrics, category: str) -> List[str]:
    if category == "simple":
        return ["Optimal change size for AI analysis and code review"]

    if category == "moderate":
        recommendations = ["Good change size. Consider running tests before committing"]
        if metrics.test_coverage < 50:
            recommendations.append("Consider adding more test coverage")
        return recommendations

    if category == "complex":
        recommendations = ["Complex change detected. Consider these strategies:"]
        if metrics.file_count > 10:
            recommendations.append("Split by feature areas or components")
        if metrics.critical_changes > 2:
            recommendations.append("Isolate critical changes into separate commits")
        if metrics.breaking_changes > 0:
            recommendations.append("Create dedicated commits for breaking changes")
        recommendations.append("Run comprehensive tests before proceeding")
        return recommendations

    return [
        "Very complex change. Strongly recommend splitting:",
        "1. Create infrastructure/setup changes first",
        "2. Add core feature implementation",
        "3. Add tests and documentation",
        "4. Add any supporting/cleanup changes",
    ]


def analyze_optimal_split(
    changes: Sequence[Change],
    metrics: ComplexityMetrics,
    category: str,
) -> Optional[SplitSuggestion]:
    """
    Propose one commit per file bucket for complex change sets.

    Every file lands in at most one bucket; buckets are tried in the
    order breaking, config, core, test, doc.
    """

    if category in ("simple", "moderate"):
        return None

    buckets: List[Tuple[Callable[[Change], bool], List[Change]]] = [
        (is_breaking_change, []),
        (lambda c: is_config_file(c.path), []),
        (lambda c: is_core_implementation(c.path), []),
        (lambda c: is_test_file(c.path), []),
        (lambda c: is_doc_file(c.path), []),
    ]
    for change in changes:
        for matches, members in buckets:
            if matches(change):
                members.append(change)
                break

    breaking, config, core, tests, docs = (members for _, members in buckets)
    suggested: List[SuggestedCommit] = []

    if breaking:
        suggested.append(
            SuggestedCommit(
                title="refactor: breaking changes and API updates",
                files=[c.path for c in breaking],
                reasoning="Isolate breaking changes for easier review and rollback",
            )
        )
    if config:
        suggested.append(
            SuggestedCommit(
                title="chore: update configuration and dependencies",
                files=[c.path for c in config],
                reasoning="Infrastructure changes should be separate from feature code",
            )
        )
    if core:
        suggested.append(
            SuggestedCommit(
                title="feat: implement core functionality" if len(core) > 1 else "feat: add new feature",
                files=[c.path for c in core],
                reasoning="Core implementation should be focused and reviewable",
            )
        )
    if tests:
        suggested.append(
            SuggestedCommit(
                title="test: add comprehensive test coverage",
                files=[c.path for c in tests],
                reasoning="Tests can be reviewed separately and provide confidence",
            )
        )
    if docs:
        suggested.append(
            SuggestedCommit(
                title="docs: update documentation",
                files=[c.path for c in docs],
                reasoning="Documentation updates are often independent of code changes",
            )
        )

    if category == "very-complex":
        reason = (
            f"Very complex change ({metrics.file_count} files, {metrics.total_lines} lines). "
            "Split recommended for quality."
        )
    else:
        reason = "Complex change detected. Splitting will improve reviewability and reduce risk."

    return SplitSuggestion(reason=reason, suggested_commits=suggested)


def is_breaking_change(change: Change) -> bool:
    if change.change_type == "deleted":
        return True
    if "interface" in change.path or "api" in change.path:
        return True
    return any(
        "export" in line.content or "public" in line.content
        for line in change.iter_lines("removed")
    )


def is_config_file(path: str) -> bool:
    return any(pattern in path for pattern in CONFIG_PATTERNS)


def is_core_implementation(path: str) -> bool:
    return (
        "src/" in path
        and "test" not in path
        and "spec" not in path
        and "doc" not in path
        and not is_config_file(path)
    )


def is_test_file(path: str) -> bool:
    return "test" in path or "spec" in path or "__tests__" in path


def is_doc_file(path: str) -> bool:
    return path.endswith(".md") or "doc" in path or "README" in path


def detect_frameworks(change: Change) -> List[str]:
    content = " ".join(line.content for line in change.iter_lines("added", "removed"))
    return [
        framework
        for framework in FRAMEWORKS
        if framework in content or framework.capitalize() in content
    ]


def estimate_token_usage(metrics: ComplexityMetrics) -> int:
    """
    Rough prompt size from aggregate metrics alone.
    """

    estimate = metrics.file_count * 100 + metrics.total_lines * 2
    estimate *= 1 + metrics.critical_changes * 0.1
    return math.ceil(estimate)
