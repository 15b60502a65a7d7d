"""
Plain rendering of an analysis report.

Text output is meant for a terminal and JSON output for other tools;
neither applies colors or icons.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from .diff_parser import render_changes
from .domain import AnalysisReport, CommitBoundary, ComplexityWarning


def render_text(report: AnalysisReport) -> str:
    strategy = report.strategy
    complexity = report.complexity
    usage = report.allocation.token_usage

    out: List[str] = [
        "Commit Boundary Analysis",
        "",
        f"Total files analyzed: {len(report.changes)}",
        f"Recommended commits: {len(strategy.commits)}",
        f"Overall strategy: {strategy.strategy}",
        f"Overall risk: {strategy.overall_risk}",
        f"Complexity: {complexity.category} ({complexity.score:.0f}/100)",
        f"Token usage: {usage.used}/{usage.available} ({usage.efficiency:.0f}% of important content)",
        report.allocation.compression_summary,
    ]
    if report.tightened:
        out.append("Boundaries were re-split more strictly because of complexity errors.")

    warnings = strategy.warnings + report.allocation.warnings
    if warnings:
        out.extend(["", "Warnings:"])
        out.extend(f"  - {warning}" for warning in warnings)

    for warning in complexity.warnings:
        out.extend(_render_complexity_warning(warning))

    if report.size_recommendation.should_split:
        out.extend(["", f"Recommendation: {report.size_recommendation.recommendation}"])
        out.extend(f"  {line}" for line in report.size_recommendation.suggested_breakdown)

    out.extend(["", "Recommended Commit Boundaries:"])
    for index, commit in enumerate(strategy.commits, start=1):
        boundary = commit.boundary
        out.append("")
        out.append(f"{index}. {commit.suggested_message.title}")
        out.append(f"   Theme: {boundary.theme}")
        out.append(f"   Priority: {boundary.priority}")
        out.append(f"   Risk: {commit.risk}")
        out.append(f"   Estimated time: {commit.estimated_minutes} minutes")
        out.append(f"   Files ({len(boundary.files)}):")
        for change in boundary.files:
            out.append(f"     {change.path} ({change.change_type}, +{change.insertions} -{change.deletions})")
        if boundary.dependencies:
            out.append(f"   Dependencies: {', '.join(boundary.dependencies)}")
        out.append(f"   Rationale: {commit.rationale}")

    if complexity.recommendations:
        out.extend(["", "Recommendations:"])
        out.extend(f"  - {line}" for line in complexity.recommendations)

    return "\n".join(out) + "\n"


def _render_complexity_warning(warning: ComplexityWarning) -> List[str]:
    lines = ["", f"[{warning.level.upper()}] {warning.title}: {warning.message}"]
    lines.extend(f"    * {suggestion}" for suggestion in warning.suggestions)
    return lines


def render_json(report: AnalysisReport) -> str:
    strategy = report.strategy
    complexity = report.complexity
    allocation = report.allocation

    payload: Dict[str, Any] = {
        "analysis": {
            "totalFiles": len(report.changes),
            "recommendedCommits": len(strategy.commits),
            "strategy": strategy.strategy,
            "overallRisk": strategy.overall_risk,
            "tightened": report.tightened,
        },
        "warnings": strategy.warnings,
        "budget": {
            "total": report.budget.total,
            "systemPrompt": report.budget.system_prompt,
            "userPrompt": report.budget.user_prompt,
            "reserved": report.budget.reserved,
            "available": report.budget.available,
            "compressionLevel": allocation.level.name,
            "used": allocation.token_usage.used,
            "efficiency": round(allocation.token_usage.efficiency, 2),
            "droppedChanges": allocation.dropped_count,
            "warnings": allocation.warnings,
        },
        "complexity": {
            "score": round(complexity.score, 2),
            "category": complexity.category,
            "warnings": [
                {"level": w.level, "title": w.title, "message": w.message}
                for w in complexity.warnings
            ],
            "recommendations": complexity.recommendations,
        },
        "commits": [
            {
                "order": index,
                "boundary": _boundary_to_dict(commit.boundary),
                "suggestedMessage": {
                    "title": commit.suggested_message.title,
                    "type": commit.suggested_message.type,
                    "body": commit.suggested_message.body,
                },
                "risk": commit.risk,
                "estimatedMinutes": commit.estimated_minutes,
                "rationale": commit.rationale,
            }
            for index, commit in enumerate(strategy.commits, start=1)
        ],
    }
    return json.dumps(payload, indent=2)


def _boundary_to_dict(boundary: CommitBoundary) -> Dict[str, Any]:
    return {
        "id": boundary.id,
        "theme": boundary.theme,
        "priority": boundary.priority,
        "estimatedComplexity": boundary.estimated_complexity,
        "dependencies": boundary.dependencies,
        "reasoning": boundary.reasoning,
        "files": [
            {
                "path": change.path,
                "insertions": change.insertions,
                "deletions": change.deletions,
                "changeType": change.change_type,
            }
            for change in boundary.files
        ],
    }


def render_context(report: AnalysisReport) -> str:
    """
    The budgeted, possibly compressed diff text to embed in a prompt.
    """

    return render_changes(rc.change for rc in report.allocation.selected_changes)
