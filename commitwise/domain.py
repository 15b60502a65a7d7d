"""
Core domain models for commitwise.

These dataclasses describe changed files, their hunks, and every value
the analysis pipeline derives from them: importance rankings, token
budgets, complexity reports and commit boundaries. They intentionally
avoid any direct git or model-provider dependencies so they can be
reused by different parts of the system.

Value objects are frozen; components build new instances (for example
with ``dataclasses.replace``) instead of patching existing ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Literal, Optional, Tuple

LineType = Literal["added", "removed", "context"]
ChangeType = Literal["added", "modified", "deleted", "renamed"]
ImportanceCategory = Literal["critical", "high", "medium", "low"]
RiskLevel = Literal["low", "medium", "high"]
Priority = Literal["high", "medium", "low"]

CATEGORIES: Tuple[str, ...] = ("critical", "high", "medium", "low")


@dataclass(frozen=True)
class DiffLine:
    """
    A single line within a diff hunk.

    line_type indicates whether this is an addition, a removal, or a
    context line. The line number is optional and may be populated by
    the diff parser.
    """

    line_type: LineType
    content: str
    line_number: Optional[int] = None


@dataclass(frozen=True)
class DiffHunk:
    """
    A contiguous block of changes in a single file.
    """

    header: str
    start_line: int
    end_line: int
    lines: List[DiffLine] = field(default_factory=list)


@dataclass(frozen=True)
class Change:
    """
    All hunks associated with a single changed file.
    """

    path: str
    change_type: ChangeType
    insertions: int
    deletions: int
    hunks: List[DiffHunk] = field(default_factory=list)
    old_path: Optional[str] = None

    @property
    def total_lines(self) -> int:
        return self.insertions + self.deletions

    def iter_lines(self, *line_types: str) -> Iterator[DiffLine]:
        for hunk in self.hunks:
            for line in hunk.lines:
                if not line_types or line.line_type in line_types:
                    yield line

    def content(self) -> str:
        """Every hunk line joined with newlines, context included."""
        return "\n".join(line.content for line in self.iter_lines())


@dataclass(frozen=True)
class Importance:
    score: float
    category: ImportanceCategory
    reasons: List[str] = field(default_factory=list)
    tokens: int = 0


@dataclass(frozen=True)
class RankedChange:
    """
    A change paired with its importance. Compression strategies replace
    ``change`` and keep ``importance`` untouched.
    """

    change: Change
    importance: Importance

    @property
    def path(self) -> str:
        return self.change.path

    @property
    def change_type(self) -> str:
        return self.change.change_type

    @property
    def insertions(self) -> int:
        return self.change.insertions

    @property
    def deletions(self) -> int:
        return self.change.deletions

    @property
    def hunks(self) -> List[DiffHunk]:
        return self.change.hunks


@dataclass(frozen=True)
class RankingResult:
    ranked_changes: List[RankedChange] = field(default_factory=list)
    total_tokens: int = 0
    breakdown: Dict[str, int] = field(
        default_factory=lambda: {category: 0 for category in CATEGORIES}
    )


@dataclass(frozen=True)
class TokenBudget:
    """
    Token accounting for a single (model, prompt type) pair.

    available = total - system_prompt - user_prompt - reserved
    """

    total: int
    system_prompt: int
    user_prompt: int
    reserved: int
    available: int


class CompressionStrategy(str, Enum):
    """
    Lossy rewrites applied to ranked changes to fit a token budget.
    """

    TEST_SUMMARIZE = "test_file_summarization"
    SIGNATURE_ONLY = "function_signature_only"
    DOC_COMPRESS = "documentation_compression"
    FILE_SUMMARY_ONLY = "file_summary_only"


@dataclass(frozen=True)
class CompressionLevel:
    name: Literal["full", "moderate", "aggressive", "minimal"]
    token_limit: float
    strategies: Tuple[CompressionStrategy, ...] = ()


@dataclass(frozen=True)
class TokenUsage:
    used: int
    available: int
    efficiency: float


@dataclass(frozen=True)
class BudgetAllocation:
    """
    What to actually send to the model.

    selected_changes holds the possibly compressed content, in the order
    it should be embedded into a prompt.
    """

    level: CompressionLevel
    selected_changes: List[RankedChange]
    compression_summary: str
    token_usage: TokenUsage
    warnings: List[str] = field(default_factory=list)
    dropped_count: int = 0


@dataclass(frozen=True)
class CommitSizeRecommendation:
    should_split: bool
    recommendation: str
    suggested_breakdown: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FileRelationship:
    file1: str
    file2: str
    relationship_type: Literal[
        "import", "similar_changes", "shared_function", "test_pair", "config_related"
    ]
    strength: float


@dataclass(frozen=True)
class CommitBoundary:
    """
    A proposed atomic commit.

    dependencies lists ids of boundaries that should be committed first.
    """

    id: str
    files: List[Change]
    reasoning: str
    priority: Priority
    estimated_complexity: int
    dependencies: List[str] = field(default_factory=list)
    theme: str = "code improvements"

    @property
    def paths(self) -> List[str]:
        return [change.path for change in self.files]


@dataclass(frozen=True)
class CommitMessage:
    title: str
    type: str
    body: Optional[str] = None


@dataclass(frozen=True)
class StagedCommit:
    boundary: CommitBoundary
    suggested_message: CommitMessage
    rationale: str
    risk: RiskLevel
    estimated_minutes: int


@dataclass(frozen=True)
class StagingStrategy:
    strategy: Literal["progressive", "parallel", "sequential"]
    commits: List[StagedCommit] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    overall_risk: RiskLevel = "low"


@dataclass(frozen=True)
class ComplexityMetrics:
    file_count: int
    total_lines: int
    critical_changes: int
    breaking_changes: int
    test_coverage: float
    frameworks_affected: int


@dataclass(frozen=True)
class WarningImpact:
    ai_quality: Literal["good", "degraded", "poor"]
    reviewability: Literal["easy", "moderate", "difficult", "very-difficult"]
    risk_level: Literal["low", "medium", "high", "critical"]


@dataclass(frozen=True)
class ComplexityWarning:
    level: Literal["info", "warning", "error"]
    title: str
    message: str
    suggestions: List[str]
    impact: WarningImpact


@dataclass(frozen=True)
class SuggestedCommit:
    title: str
    files: List[str]
    reasoning: str


@dataclass(frozen=True)
class SplitSuggestion:
    reason: str
    suggested_commits: List[SuggestedCommit] = field(default_factory=list)


@dataclass(frozen=True)
class ComplexityAnalysis:
    score: float
    category: Literal["simple", "moderate", "complex", "very-complex"]
    metrics: ComplexityMetrics
    warnings: List[ComplexityWarning] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    optimal_split: Optional[SplitSuggestion] = None


@dataclass(frozen=True)
class AnalysisReport:
    """
    Every pipeline output for one analysis run.
    """

    changes: List[Change]
    ranking: RankingResult
    budget: TokenBudget
    allocation: BudgetAllocation
    size_recommendation: CommitSizeRecommendation
    complexity: ComplexityAnalysis
    boundaries: List[CommitBoundary]
    strategy: StagingStrategy
    tightened: bool = False
