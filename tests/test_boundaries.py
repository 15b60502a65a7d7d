from typing import Sequence

import pytest

from commitwise.analysis.boundaries import (
    analyze_commit_boundaries,
    analyze_file_relationships,
    build_dependency_graph,
    calculate_complexity,
    categorize_impact,
    detect_theme,
    find_common_path,
    generate_commit_message,
    suggest_staging_strategy,
)
from commitwise.domain import Change, CommitBoundary, DiffHunk, DiffLine


def _change(path: str, added: Sequence[str] = ("x = 1",), removed: Sequence[str] = (), change_type: str = "modified") -> Change:
    lines = [DiffLine("removed", text, i + 1) for i, text in enumerate(removed)]
    lines += [DiffLine("added", text, i + 1) for i, text in enumerate(added)]
    hunk = DiffHunk(header="@@ -1,1 +1,1 @@", start_line=1, end_line=max(len(lines), 1), lines=lines)
    return Change(
        path=path,
        change_type=change_type,
        insertions=len(added),
        deletions=len(removed),
        hunks=[hunk],
    )


def _boundary(
    boundary_id: str,
    paths: Sequence[str],
    complexity: int = 10,
    theme: str = "code improvements",
    dependencies: Sequence[str] = (),
) -> CommitBoundary:
    return CommitBoundary(
        id=boundary_id,
        files=[_change(path) for path in paths],
        reasoning="Related changes",
        priority="medium",
        estimated_complexity=complexity,
        dependencies=list(dependencies),
        theme=theme,
    )


def test_no_changes_means_no_boundaries():
    assert analyze_commit_boundaries([]) == []


def test_small_change_set_is_a_single_boundary():
    changes = [_change("src/auth.ts"), _change("src/auth.test.ts")]

    (boundary,) = analyze_commit_boundaries(changes)

    assert boundary.id == "boundary-1"
    assert boundary.paths == ["src/auth.ts", "src/auth.test.ts"]
    assert boundary.theme == "authentication"
    assert boundary.priority == "low"
    assert boundary.reasoning.startswith("Small change set (2 files)")


def test_small_change_set_takes_highest_group_priority():
    changes = [_change("README.md"), _change("src/services/billing_service.py")]

    (boundary,) = analyze_commit_boundaries(changes)

    assert boundary.priority == "high"


def test_boundaries_partition_the_input():
    changes = [
        _change("src/services/user_service.py"),
        _change("src/models/order_model.py"),
        _change("src/components/Button.tsx"),
        _change("styles/app.scss"),
        _change("config/settings.yml"),
        _change("package.json"),
        _change("docs/guide.md"),
        _change("src/routes/orders.py"),
        _change("db/migrations/0002_orders.sql"),
        _change("src/button.test.tsx"),
        _change("main.go"),
        _change("Makefile"),
    ]

    boundaries = analyze_commit_boundaries(changes)

    paths = [path for boundary in boundaries for path in boundary.paths]
    assert sorted(paths) == sorted(c.path for c in changes)
    assert len(paths) == len(set(paths))

    mixed = [b for b in boundaries if b.id == "boundary-mixed"]
    assert len(mixed) == 1
    assert mixed[0].paths == ["main.go", "Makefile"]
    assert mixed[0].theme == "miscellaneous"
    assert mixed[0].priority == "low"


def test_large_group_is_split_into_parts():
    changes = [_change(f"src/services/s{i}_service.py") for i in range(10)]

    boundaries = analyze_commit_boundaries(changes)

    assert [b.id for b in boundaries] == ["boundary-1-part1", "boundary-1-part2", "boundary-1-part3"]
    assert [len(b.files) for b in boundaries] == [4, 4, 2]
    assert all(b.priority == "high" for b in boundaries)
    assert boundaries[0].reasoning.endswith("(part 1 of 3)")


def test_max_boundary_size_and_chunk_size_are_configurable():
    changes = [_change(f"src/services/s{i}_service.py") for i in range(6)]

    assert len(analyze_commit_boundaries(changes)) == 1
    boundaries = analyze_commit_boundaries(changes, max_boundary_size=4, chunk_size=2)
    assert [len(b.files) for b in boundaries] == [2, 2, 2]


def test_single_file_boundary_merges_into_same_theme():
    changes = [
        _change("styles/main.css"),
        _change("config/ui.json"),
        _change("src/models/order_model.py"),
        _change("src/models/item_model.py"),
    ]

    boundaries = analyze_commit_boundaries(changes)

    assert [b.id for b in boundaries] == ["boundary-1", "boundary-3"]
    merged = boundaries[0]
    assert merged.paths == ["styles/main.css", "config/ui.json"]
    assert merged.theme == "user interface"
    assert " + " in merged.reasoning
    assert merged.estimated_complexity == calculate_complexity(changes[:2])


def test_single_file_boundary_with_unique_theme_stays_alone():
    changes = [
        _change("src/api/routes.ts", added=["import { handler } from '../services/user_service'"]),
        _change("src/services/user_service.ts"),
        _change("src/services/order_service.ts"),
        _change("README.md"),
    ]

    boundaries = analyze_commit_boundaries(changes)

    assert [b.id for b in boundaries] == ["boundary-1", "boundary-2", "boundary-3"]
    assert [b.theme for b in boundaries] == ["api development", "authentication", "code improvements"]
    assert boundaries[0].dependencies == ["boundary-2"]
    assert boundaries[1].dependencies == []
    assert boundaries[2].dependencies == []


def test_dependencies_make_the_strategy_sequential():
    changes = [
        _change("src/api/routes.ts", added=["import { handler } from '../services/user_service'"]),
        _change("src/services/user_service.ts"),
        _change("src/services/order_service.ts"),
        _change("README.md"),
    ]

    strategy = suggest_staging_strategy(analyze_commit_boundaries(changes))

    assert strategy.strategy == "sequential"
    assert "Some commits have dependencies - ensure proper commit order" in strategy.warnings
    assert strategy.commits[0].suggested_message.title == "feat(api): add API endpoints"
    assert strategy.overall_risk == "low"


def test_dependency_graph_excludes_self():
    changes = [
        _change("src/cart.py", added=["from .pricing import total", "cart = 1"]),
        _change("src/pricing.py", added=["total = 0"]),
    ]

    graph = build_dependency_graph(changes)

    assert graph == {"src/cart.py": ["src/pricing.py"], "src/pricing.py": []}


def test_file_relationships():
    changes = [
        _change("src/auth.ts"),
        _change("src/auth.test.ts"),
        _change("src/app.ts", added=["import { login } from './auth'"]),
        _change("config/app.yml", added=["debug: true"]),
        _change("settings.json", added=['"debug": true']),
        _change("src/handlers/alpha.js", added=["function handle(req) {"]),
        _change("src/handlers/beta.js", added=["function handle(req) {"]),
    ]

    relationships = analyze_file_relationships(changes)
    found = {(r.file1, r.file2, r.relationship_type): r.strength for r in relationships}

    assert found[("src/auth.ts", "src/auth.test.ts", "test_pair")] == 0.9
    assert found[("src/auth.ts", "src/app.ts", "import")] == 1.0
    assert found[("config/app.yml", "settings.json", "config_related")] == 0.8
    assert found[("src/handlers/alpha.js", "src/handlers/beta.js", "similar_changes")] == pytest.approx(0.7)
    strengths = [r.strength for r in relationships]
    assert strengths == sorted(strengths, reverse=True)


@pytest.mark.parametrize(
    "path, group",
    [
        ("src/login.test.ts", "tests"),
        ("docs/setup.md", "documentation"),
        ("webpack.config.js", "configuration"),
        ("src/components/Nav.tsx", "ui"),
        ("src/controllers/orders.py", "business_logic"),
        ("db/schema.sql", "database"),
        ("src/endpoints/users.py", "api"),
        ("main.go", "mixed"),
    ],
)
def test_impact_groups(path, group):
    assert categorize_impact(_change(path)) == group


def test_theme_detection():
    assert detect_theme([_change("src/main.go")]) == "code improvements"
    assert detect_theme([_change("src/login.py"), _change("src/user.py")]) == "authentication"
    # Ties go to the theme seen first.
    assert detect_theme([_change("a/test_x.py"), _change("b/config.py")]) == "testing"


def test_complexity_rounds_half_up():
    assert calculate_complexity([_change("a.py", added=["a", "b", "c"], removed=["d", "e"])]) == 6
    assert calculate_complexity([_change("a.py"), _change("b.py")]) == 3


def test_commit_message_for_tests():
    boundary = _boundary("boundary-1", ["tests/unit/test_a.py", "tests/unit/test_b.py"], theme="testing")

    message = generate_commit_message(boundary)

    assert message.title == "test(unit): add test coverage"
    assert message.type == "test"
    assert message.body is None


def test_commit_message_body_lists_files_of_larger_commits():
    paths = ["lib/a.py", "lib/b.py", "lib/c.py", "lib/d.py"]

    message = generate_commit_message(_boundary("boundary-1", paths, theme="configuration"))

    assert message.title == "chore(lib): update configuration"
    assert message.body == "Changes include:\n- lib/a.py\n- lib/b.py\n- lib/c.py\n- lib/d.py"


def test_commit_message_detects_fixes():
    message = generate_commit_message(_boundary("boundary-1", ["src/bugfix.py"]))

    assert message.title == "fix(src): code improvements"


@pytest.mark.parametrize(
    "paths, expected",
    [
        (["src/a/x.py", "src/a/y.py"], "src/a"),
        (["src/a/x.py", "src/b/y.py"], "src"),
        (["a.py", "b.py"], "."),
        (["src/x.py"], "src"),
        ([], "."),
    ],
)
def test_find_common_path(paths, expected):
    assert find_common_path(paths) == expected


def test_high_risk_commit_makes_strategy_progressive():
    strategy = suggest_staging_strategy(
        [_boundary("boundary-1", ["src/a.py"], complexity=600), _boundary("boundary-2", ["src/b.py"])]
    )

    assert strategy.strategy == "progressive"
    assert strategy.overall_risk == "high"
    assert [c.risk for c in strategy.commits] == ["high", "low"]
    assert "1 high-risk commits detected - extra review recommended" in strategy.warnings


def test_low_risk_independent_commits_are_parallel():
    strategy = suggest_staging_strategy(
        [
            _boundary("boundary-1", ["src/a.py", "src/b.py"]),
            _boundary("boundary-2", [f"lib/m{i}.py" for i in range(6)]),
        ]
    )

    assert strategy.strategy == "parallel"
    assert strategy.overall_risk == "low"
    assert strategy.warnings == []
    assert [c.estimated_minutes for c in strategy.commits] == [2, 3]
    assert strategy.commits[0].rationale.startswith("This commit groups 2 files related to code improvements.")


def test_mostly_medium_risk_is_medium_overall():
    strategy = suggest_staging_strategy(
        [
            _boundary("boundary-1", ["a.py"], complexity=300),
            _boundary("boundary-2", ["b.py"], complexity=250),
            _boundary("boundary-3", ["c.py"], complexity=10),
        ]
    )

    assert strategy.overall_risk == "medium"


def test_many_commits_warning():
    strategy = suggest_staging_strategy([_boundary(f"boundary-{i}", [f"m{i}.py"]) for i in range(6)])

    assert "Large number of commits (6) - consider if some can be combined" in strategy.warnings
