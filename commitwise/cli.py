"""
Command-line interface for commitwise.

This module is responsible for argument parsing and delegating to the
high-level orchestration in the planner module.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .config import PROMPT_TYPES, Config
from .errors import CommitwiseError
from .logging_utils import configure_logging
from .planner import run_analysis
from .report import render_context, render_json, render_text


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commitwise",
        description=(
            "Analyze working changes, fit them into a model's token budget, "
            "and suggest small, reviewable commit boundaries. Nothing is "
            "staged or committed."
        ),
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--staged",
        action="store_true",
        help="Analyze staged changes instead of the working tree.",
    )
    source.add_argument(
        "--branch",
        help="Analyze the changes on BRANCH since it diverged from --base.",
    )
    parser.add_argument(
        "--base",
        default="main",
        help="Base branch used with --branch (default: main).",
    )
    parser.add_argument(
        "--model",
        default="gpt-4o-mini",
        help="Model whose context window bounds the budget (default: gpt-4o-mini).",
    )
    parser.add_argument(
        "--prompt-type",
        choices=PROMPT_TYPES,
        default="commit",
        help="Kind of prompt the changes will be embedded in (default: commit).",
    )
    parser.add_argument(
        "--max-boundary-size",
        type=int,
        default=8,
        help="Split suggested commits with more files than this (default: 8).",
    )
    parser.add_argument(
        "--no-tighten",
        dest="tighten",
        action="store_false",
        help="Do not re-split more strictly when complexity errors are found.",
    )
    parser.add_argument(
        "--greedy",
        dest="prioritize_quality",
        action="store_false",
        help="Select changes by raw score instead of by importance tier.",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument(
        "--emit-context",
        action="store_true",
        help="Print the budgeted diff text that would be sent to the model.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug, -vvv adds the per-change analysis trace).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    config = Config(
        model=args.model,
        prompt_type=args.prompt_type,
        use_staged=args.staged,
        branch=args.branch,
        base_branch=args.base,
        prioritize_quality=args.prioritize_quality,
        max_boundary_size=args.max_boundary_size,
        tighten_on_warnings=args.tighten,
        output_format=args.format,
        verbosity=args.verbose,
    )

    configure_logging(verbosity=config.verbosity)

    try:
        report = run_analysis(config)
    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        return 130
    except CommitwiseError as exc:
        print(f"commitwise: error: {exc}", file=sys.stderr)
        return 1

    if config.output_format == "json":
        sys.stdout.write(render_json(report) + "\n")
    else:
        sys.stdout.write(render_text(report))

    if args.emit_context:
        sys.stdout.write(render_context(report))

    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
