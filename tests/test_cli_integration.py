import json
import os
import subprocess
import sys
from pathlib import Path

from commitwise import cli
from commitwise.config import Config
from commitwise.domain import Change, DiffHunk, DiffLine
from commitwise.errors import GitError
from commitwise.planner import analyze_changes


def _run_git(args, cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        text=True,
        capture_output=True,
        check=True,
    )


def _report():
    hunk = DiffHunk("@@ -1,1 +1,1 @@", 1, 1, [DiffLine("added", "VALUE = 2", 1)])
    change = Change(path="src/app.py", change_type="modified", insertions=1, deletions=0, hunks=[hunk])
    return analyze_changes([change], Config())


def test_cli_prints_json_report(monkeypatch, capsys):
    captured = {}

    def fake_run_analysis(config):
        captured["config"] = config
        return _report()

    monkeypatch.setattr("commitwise.cli.run_analysis", fake_run_analysis)

    exit_code = cli.main(["--format", "json", "--model", "gpt-4", "--max-boundary-size", "6", "--no-tighten"])

    assert exit_code == 0
    config = captured["config"]
    assert config.model == "gpt-4"
    assert config.max_boundary_size == 6
    assert config.tighten_on_warnings is False
    assert config.prioritize_quality is True
    payload = json.loads(capsys.readouterr().out)
    assert payload["analysis"]["totalFiles"] == 1


def test_cli_emits_context_after_text_report(monkeypatch, capsys):
    monkeypatch.setattr("commitwise.cli.run_analysis", lambda config: _report())

    assert cli.main(["--emit-context"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("Commit Boundary Analysis")
    assert "+VALUE = 2" in out


def test_cli_reports_errors(monkeypatch, capsys):
    def fail(config):
        raise GitError("not inside a git work tree")

    monkeypatch.setattr("commitwise.cli.run_analysis", fail)

    assert cli.main([]) == 1
    assert "commitwise: error: not inside a git work tree" in capsys.readouterr().err


def test_cli_rejects_invalid_boundary_size(capsys):
    assert cli.main(["--max-boundary-size", "1"]) == 1
    assert "max boundary size" in capsys.readouterr().err


def test_cli_analyzes_temporary_repo(tmp_path):
    """
    End-to-end test that exercises the CLI against a real git repository.

    The repository has one commit; two tracked files are then edited in
    the working tree. The JSON report must cover both files and nothing
    in the repository may change as a result of the run.
    """

    repo = tmp_path / "repo"
    repo.mkdir()

    _run_git(["init"], cwd=repo)
    _run_git(["config", "user.name", "commitwise"], cwd=repo)
    _run_git(["config", "user.email", "commitwise@example.com"], cwd=repo)

    (repo / "foo.py").write_text("def foo():\n    return 1\n")
    (repo / "README.md").write_text("# Demo\n")
    _run_git(["add", "foo.py", "README.md"], cwd=repo)
    _run_git(["commit", "-m", "base"], cwd=repo)

    (repo / "foo.py").write_text("def foo():\n    return 2\n")
    (repo / "README.md").write_text("# Demo\n\nUsage notes.\n")
    status_before = _run_git(["status", "--porcelain"], cwd=repo).stdout

    # Run the CLI as a module in a subprocess, pointing PYTHONPATH at the
    # project root so the package can be imported from the temporary repo.
    project_root = Path(__file__).resolve().parents[1]
    env = os.environ.copy()
    env["PYTHONPATH"] = str(project_root)

    completed = subprocess.run(
        [sys.executable, "-m", "commitwise.cli", "--format", "json"],
        cwd=str(repo),
        env=env,
        text=True,
        capture_output=True,
        check=True,
    )

    payload = json.loads(completed.stdout)
    assert payload["analysis"]["totalFiles"] == 2
    paths = sorted(f["path"] for commit in payload["commits"] for f in commit["boundary"]["files"])
    assert paths == ["README.md", "foo.py"]

    # Analysis is read-only.
    assert _run_git(["status", "--porcelain"], cwd=repo).stdout == status_before
