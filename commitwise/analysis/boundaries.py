"""
Commit boundary detection and staging strategy.

This module clusters changed files into proposed atomic commits:

  - pairwise file relationships are inferred from names and content,
  - every file is classified into one coarse impact group,
  - a file-level dependency graph is built from name mentions,
  - one boundary is synthesized per impact group, and
  - boundaries are optimized by splitting large ones and merging
    single-file ones into a same-theme neighbour.

Boundaries are assembled as mutable drafts and frozen into
CommitBoundary values only once optimization is complete.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..domain import (
    Change,
    CommitBoundary,
    CommitMessage,
    FileRelationship,
    StagedCommit,
    StagingStrategy,
)
from .language_intel import extract_function_names, is_test_file_name, module_name

LOG = logging.getLogger(__name__)

SINGLE_BOUNDARY_MAX_FILES = 3
DEFAULT_MAX_BOUNDARY_SIZE = 8
DEFAULT_CHUNK_SIZE = 4
MERGE_TARGET_MAX_FILES = 4

IMPORT_THRESHOLD = 0.3
TEST_PAIR_THRESHOLD = 0.7
SIMILARITY_THRESHOLD = 0.4
CONFIG_THRESHOLD = 0.5

CONFIG_RELATION_PATTERNS = (
    "config",
    "env",
    "settings",
    "constants",
    ".json",
    ".yml",
    ".yaml",
    ".toml",
)

# Ordered; the first group whose needle occurs in the lowercased path wins.
IMPACT_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("tests", (".test.", ".spec.", "__tests__")),
    ("documentation", (".md", "readme", "docs/")),
    ("configuration", ("config", ".json", ".yml")),
    ("ui", (".css", ".scss", "style", "component")),
    ("business_logic", ("service", "controller", "model")),
    ("database", ("migration", "schema", "database")),
    ("api", ("route", "api", "endpoint")),
)
MIXED_GROUP = "mixed"

GROUP_PRIORITIES: Dict[str, str] = {
    "business_logic": "high",
    "api": "high",
    "database": "high",
    "ui": "medium",
    "configuration": "medium",
}
_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}

THEME_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("authentication", ("auth", "login", "user")),
    ("user interface", ("ui", "component", "style")),
    ("api development", ("api", "route", "endpoint")),
    ("testing", ("test", "spec")),
    ("configuration", ("config", "env")),
)
DEFAULT_THEME = "code improvements"

THEME_DESCRIPTIONS: Dict[str, str] = {
    "authentication": "implement authentication system",
    "user interface": "update UI components",
    "api development": "add API endpoints",
    "testing": "add test coverage",
    "configuration": "update configuration",
}


@dataclass
class _BoundaryDraft:
    """
    Mutable boundary used while synthesizing and optimizing.
    """

    id: str
    files: List[Change]
    reasoning: str
    priority: str
    estimated_complexity: int
    theme: str


def analyze_commit_boundaries(
    changes: Sequence[Change],
    max_boundary_size: int = DEFAULT_MAX_BOUNDARY_SIZE,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> List[CommitBoundary]:
    """
    Cluster changes into proposed commits.

    The returned boundaries partition the input: every change appears in
    exactly one boundary. Three or fewer changes always form a single
    boundary.
    """

    if not changes:
        return []

    groups = group_by_impact(changes)
    graph = build_dependency_graph(changes)

    if len(changes) <= SINGLE_BOUNDARY_MAX_FILES:
        priority = min(
            (determine_priority(group) for group in groups),
            key=lambda p: _PRIORITY_RANK[p],
        )
        draft = _BoundaryDraft(
            id="boundary-1",
            files=list(changes),
            reasoning=f"Small change set ({len(changes)} files) best committed as a single unit",
            priority=priority,
            estimated_complexity=calculate_complexity(changes),
            theme=detect_theme(changes),
        )
        return _freeze([draft], graph)

    relationships = analyze_file_relationships(changes)
    LOG.debug("Found %d file relationships", len(relationships))

    drafts = _synthesize_boundaries(groups, graph, relationships)
    drafts = _optimize_boundaries(drafts, max_boundary_size, chunk_size)
    boundaries = _freeze(drafts, graph)

    LOG.info("Detected %d commit boundaries for %d files", len(boundaries), len(changes))
    return boundaries


def analyze_file_relationships(changes: Sequence[Change]) -> List[FileRelationship]:
    """
    Score every unordered pair of changes; pairs under every threshold
    produce no relationship. Sorted by descending strength.
    """

    relationships: List[FileRelationship] = []

    for i, first in enumerate(changes):
        for second in changes[i + 1 :]:
            candidates = (
                ("import", check_import_relationship(first, second), IMPORT_THRESHOLD),
                ("test_pair", check_test_relationship(first, second), TEST_PAIR_THRESHOLD),
                ("similar_changes", check_similar_changes(first, second), SIMILARITY_THRESHOLD),
                ("config_related", check_config_relationship(first, second), CONFIG_THRESHOLD),
            )
            for relationship_type, strength, threshold in candidates:
                if strength > threshold:
                    relationships.append(
                        FileRelationship(
                            file1=first.path,
                            file2=second.path,
                            relationship_type=relationship_type,  # type: ignore[arg-type]
                            strength=strength,
                        )
                    )

    relationships.sort(key=lambda r: -r.strength)
    return relationships


def check_import_relationship(first: Change, second: Change) -> float:
    first_content = first.content()
    second_content = second.content()
    first_name = module_name(first.path)
    second_name = module_name(second.path)

    strength = 0.0
    if (second_name and second_name in first_content) or (first_name and first_name in second_content):
        strength += 0.6
    if _imports_relatively(first_content, second_name) or _imports_relatively(second_content, first_name):
        strength += 0.8
    return min(strength, 1.0)


def _imports_relatively(content: str, name: str) -> bool:
    if not name:
        return False
    return (
        f"from './{name}" in content
        or f"require('./{name}" in content
        or f"from .{name} import" in content
    )


def check_test_relationship(first: Change, second: Change) -> float:
    first_is_test = is_test_file_name(first.path)
    second_is_test = is_test_file_name(second.path)

    if first_is_test and not second_is_test:
        source = module_name(second.path)
        if source and source in first.path:
            return 0.9
    if second_is_test and not first_is_test:
        source = module_name(first.path)
        if source and source in second.path:
            return 0.9
    return 0.0


def check_similar_changes(first: Change, second: Change) -> float:
    first_functions = extract_function_names(_added_content(first))
    second_functions = extract_function_names(_added_content(second))

    common = [name for name in first_functions if name in second_functions]
    similarity = len(common) / max(len(first_functions), len(second_functions), 1)
    return similarity * 0.7


def check_config_relationship(first: Change, second: Change) -> float:
    first_lower = first.path.lower()
    second_lower = second.path.lower()
    if any(p in first_lower for p in CONFIG_RELATION_PATTERNS) and any(
        p in second_lower for p in CONFIG_RELATION_PATTERNS
    ):
        return 0.8
    return 0.0


def _added_content(change: Change) -> str:
    return "\n".join(line.content for line in change.iter_lines("added"))


def categorize_impact(change: Change) -> str:
    lower = change.path.lower()
    for group, needles in IMPACT_RULES:
        if any(needle in lower for needle in needles):
            return group
    return MIXED_GROUP


def group_by_impact(changes: Sequence[Change]) -> Dict[str, List[Change]]:
    """
    Partition changes into impact groups, ordered by first appearance.
    """

    groups: Dict[str, List[Change]] = {}
    for change in changes:
        groups.setdefault(categorize_impact(change), []).append(change)
    return groups


def build_dependency_graph(changes: Sequence[Change]) -> Dict[str, List[str]]:
    """
    Map each path to the other changed paths its content mentions by
    module name. Name matching is textual and can over-report.
    """

    graph: Dict[str, List[str]] = {}
    for change in changes:
        content = change.content()
        dependencies: List[str] = []
        for other in changes:
            if other.path == change.path:
                continue
            name = module_name(other.path)
            if name and name in content:
                dependencies.append(other.path)
        graph[change.path] = dependencies
    return graph


def _synthesize_boundaries(
    groups: Dict[str, List[Change]],
    graph: Dict[str, List[str]],
    relationships: Sequence[FileRelationship],
) -> List[_BoundaryDraft]:
    drafts: List[_BoundaryDraft] = []
    claimed: Set[str] = set()

    for group, members in groups.items():
        if group == MIXED_GROUP:
            continue
        unclaimed = [c for c in members if c.path not in claimed]
        if not unclaimed:
            continue

        reasoning = f"Related {group.replace('_', ' ')} changes that should be committed together"
        linked_by = _internal_relationship_types(unclaimed, relationships)
        if linked_by:
            reasoning += f"; linked by {', '.join(linked_by)}"

        drafts.append(
            _BoundaryDraft(
                id=f"boundary-{len(drafts) + 1}",
                files=unclaimed,
                reasoning=reasoning,
                priority=determine_priority(group),
                estimated_complexity=calculate_complexity(unclaimed),
                theme=detect_theme(unclaimed),
            )
        )
        claimed.update(c.path for c in unclaimed)

    remaining = [c for c in groups.get(MIXED_GROUP, []) if c.path not in claimed]
    if remaining:
        drafts.append(
            _BoundaryDraft(
                id="boundary-mixed",
                files=remaining,
                reasoning="Mixed changes that don't clearly fit other categories",
                priority="low",
                estimated_complexity=calculate_complexity(remaining),
                theme="miscellaneous",
            )
        )

    return drafts


def _internal_relationship_types(
    files: Sequence[Change],
    relationships: Sequence[FileRelationship],
) -> List[str]:
    paths = {c.path for c in files}
    types: List[str] = []
    for relationship in relationships:
        if relationship.file1 in paths and relationship.file2 in paths:
            if relationship.relationship_type not in types:
                types.append(relationship.relationship_type)
    return types


def _optimize_boundaries(
    drafts: List[_BoundaryDraft],
    max_boundary_size: int,
    chunk_size: int,
) -> List[_BoundaryDraft]:
    optimized: List[_BoundaryDraft] = []
    for draft in drafts:
        if len(draft.files) > max_boundary_size:
            optimized.extend(_split_large_boundary(draft, chunk_size))
        elif len(draft.files) == 1:
            if not _try_merge_small_boundary(draft, optimized):
                optimized.append(draft)
        else:
            optimized.append(draft)
    return optimized


def _split_large_boundary(draft: _BoundaryDraft, chunk_size: int) -> List[_BoundaryDraft]:
    chunks = [draft.files[i : i + chunk_size] for i in range(0, len(draft.files), chunk_size)]
    return [
        _BoundaryDraft(
            id=f"{draft.id}-part{index}",
            files=chunk,
            reasoning=f"{draft.reasoning} (part {index} of {len(chunks)})",
            priority=draft.priority,
            estimated_complexity=calculate_complexity(chunk),
            theme=draft.theme,
        )
        for index, chunk in enumerate(chunks, start=1)
    ]


def _try_merge_small_boundary(draft: _BoundaryDraft, existing: List[_BoundaryDraft]) -> bool:
    for target in existing:
        if target.theme == draft.theme and len(target.files) < MERGE_TARGET_MAX_FILES:
            target.files.extend(draft.files)
            target.reasoning += f" + {draft.reasoning}"
            target.estimated_complexity += draft.estimated_complexity
            return True
    return False


def _freeze(drafts: Sequence[_BoundaryDraft], graph: Dict[str, List[str]]) -> List[CommitBoundary]:
    """
    Turn drafts into immutable boundaries, resolving file-level
    dependencies into ids of the boundaries owning those files.
    """

    owner: Dict[str, str] = {}
    for draft in drafts:
        for change in draft.files:
            owner[change.path] = draft.id

    boundaries: List[CommitBoundary] = []
    for draft in drafts:
        dependencies: List[str] = []
        for change in draft.files:
            for path in graph.get(change.path, []):
                boundary_id = owner.get(path)
                if boundary_id and boundary_id != draft.id and boundary_id not in dependencies:
                    dependencies.append(boundary_id)

        boundaries.append(
            CommitBoundary(
                id=draft.id,
                files=list(draft.files),
                reasoning=draft.reasoning,
                priority=draft.priority,  # type: ignore[arg-type]
                estimated_complexity=draft.estimated_complexity,
                dependencies=dependencies,
                theme=draft.theme,
            )
        )
    return boundaries


def determine_priority(group: str) -> str:
    return GROUP_PRIORITIES.get(group, "low")


def calculate_complexity(files: Sequence[Change]) -> int:
    """
    Changed lines plus half a point per hunk, rounded half up.
    """

    total = 0.0
    for change in files:
        total += change.insertions + change.deletions
        total += len(change.hunks) * 0.5
    return int(math.floor(total + 0.5))


def detect_theme(files: Sequence[Change]) -> str:
    """
    Keyword vote over file paths; ties go to the theme seen first.
    """

    votes: Dict[str, int] = {}
    for change in files:
        lower = change.path.lower()
        for theme, keywords in THEME_KEYWORDS:
            if any(keyword in lower for keyword in keywords):
                votes[theme] = votes.get(theme, 0) + 1

    if not votes:
        return DEFAULT_THEME
    return max(votes, key=lambda theme: votes[theme])


def suggest_staging_strategy(boundaries: Sequence[CommitBoundary]) -> StagingStrategy:
    """
    Annotate boundaries with commit message drafts, risk and timing,
    and pick an overall staging mode.
    """

    commits = [
        StagedCommit(
            boundary=boundary,
            suggested_message=generate_commit_message(boundary),
            rationale=generate_rationale(boundary),
            risk=assess_commit_risk(boundary),  # type: ignore[arg-type]
            estimated_minutes=estimate_commit_minutes(boundary),
        )
        for boundary in boundaries
    ]

    return StagingStrategy(
        strategy=determine_optimal_strategy(boundaries),  # type: ignore[arg-type]
        commits=commits,
        warnings=identify_potential_issues(boundaries),
        overall_risk=assess_overall_risk(boundaries),  # type: ignore[arg-type]
    )


def generate_commit_message(boundary: CommitBoundary) -> CommitMessage:
    commit_type = infer_commit_type(boundary)
    scope = infer_scope(boundary)
    description = generate_description(boundary)

    title = f"{commit_type}({scope}): {description}" if scope else f"{commit_type}: {description}"
    body = None
    if len(boundary.files) > 3:
        body = "Changes include:\n" + "\n".join(f"- {c.path}" for c in boundary.files)

    return CommitMessage(title=title, type=commit_type, body=body)


def infer_commit_type(boundary: CommitBoundary) -> str:
    theme = boundary.theme
    if "test" in theme:
        return "test"
    if "doc" in theme:
        return "docs"
    if "config" in theme:
        return "chore"
    if "ui" in theme or "style" in theme:
        return "feat"
    if any("fix" in c.path or "bug" in c.path for c in boundary.files):
        return "fix"
    return "feat"


def infer_scope(boundary: CommitBoundary) -> Optional[str]:
    common = find_common_path(boundary.paths)
    if common and common != ".":
        return common.split("/")[-1] or None
    return None


def find_common_path(paths: Sequence[str]) -> str:
    """
    Longest shared directory prefix, or "." when there is none.
    """

    if not paths:
        return "."

    directories = [path.split("/")[:-1] for path in paths]
    common: List[str] = []
    for parts in zip(*directories):
        if all(part == parts[0] for part in parts):
            common.append(parts[0])
        else:
            break
    return "/".join(common) or "."


def generate_description(boundary: CommitBoundary) -> str:
    return THEME_DESCRIPTIONS.get(boundary.theme, boundary.theme.replace("_", " "))


def generate_rationale(boundary: CommitBoundary) -> str:
    return (
        f"This commit groups {len(boundary.files)} files related to {boundary.theme}. "
        f"{boundary.reasoning}"
    )


def assess_commit_risk(boundary: CommitBoundary) -> str:
    if boundary.estimated_complexity > 500:
        return "high"
    if boundary.estimated_complexity > 200:
        return "medium"
    return "low"


def estimate_commit_minutes(boundary: CommitBoundary) -> int:
    return max(2, math.ceil(len(boundary.files) / 2))


def identify_potential_issues(boundaries: Sequence[CommitBoundary]) -> List[str]:
    warnings: List[str] = []

    if len(boundaries) > 5:
        warnings.append(
            f"Large number of commits ({len(boundaries)}) - consider if some can be combined"
        )

    high_risk = [b for b in boundaries if assess_commit_risk(b) == "high"]
    if high_risk:
        warnings.append(f"{len(high_risk)} high-risk commits detected - extra review recommended")

    if any(b.dependencies for b in boundaries):
        warnings.append("Some commits have dependencies - ensure proper commit order")

    return warnings


def determine_optimal_strategy(boundaries: Sequence[CommitBoundary]) -> str:
    if any(b.dependencies for b in boundaries):
        return "sequential"
    if any(assess_commit_risk(b) == "high" for b in boundaries):
        return "progressive"
    return "parallel"


def assess_overall_risk(boundaries: Sequence[CommitBoundary]) -> str:
    risks = [assess_commit_risk(b) for b in boundaries]
    if "high" in risks:
        return "high"
    if sum(1 for risk in risks if risk in ("medium", "high")) > len(boundaries) / 2:
        return "medium"
    return "low"
