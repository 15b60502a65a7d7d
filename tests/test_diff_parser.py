import pytest

from commitwise.diff_parser import parse_unified_diff, render_changes
from commitwise.errors import DiffParseError


def test_parse_simple_modify():
    raw = """\
diff --git a/foo.py b/foo.py
--- a/foo.py
+++ b/foo.py
@@ -1,2 +1,2 @@
-a = 1
+a = 2
 b = 3
"""
    changes = parse_unified_diff(raw)
    assert len(changes) == 1
    change = changes[0]
    assert change.path == "foo.py"
    assert change.old_path is None
    assert change.change_type == "modified"
    assert change.insertions == 1
    assert change.deletions == 1
    assert len(change.hunks) == 1
    hunk = change.hunks[0]
    assert [(l.line_type, l.content) for l in hunk.lines] == [
        ("removed", "a = 1"),
        ("added", "a = 2"),
        ("context", "b = 3"),
    ]
    # Removed lines carry the old line number, the rest the new one.
    assert [l.line_number for l in hunk.lines] == [1, 1, 2]
    assert hunk.start_line == 1
    assert hunk.end_line == 3


def test_parse_add_and_delete_files():
    raw = """\
diff --git a/new.txt b/new.txt
new file mode 100644
--- /dev/null
+++ b/new.txt
@@ -0,0 +1,2 @@
+hello
+world
diff --git a/old.txt b/old.txt
deleted file mode 100644
--- a/old.txt
+++ /dev/null
@@ -1,2 +0,0 @@
-bye
-world
"""
    changes = parse_unified_diff(raw)
    assert len(changes) == 2
    added = next(c for c in changes if c.path == "new.txt")
    deleted = next(c for c in changes if c.path == "old.txt")

    assert added.change_type == "added"
    assert added.insertions == 2
    assert deleted.change_type == "deleted"
    assert deleted.deletions == 2
    # A pure deletion is anchored in the old file.
    assert deleted.hunks[0].start_line == 1


def test_parse_rename_with_edit():
    raw = """\
diff --git a/src/old_name.py b/src/new_name.py
similarity index 90%
rename from src/old_name.py
rename to src/new_name.py
--- a/src/old_name.py
+++ b/src/new_name.py
@@ -3,1 +3,1 @@
-x = 1
+x = 2
"""
    (change,) = parse_unified_diff(raw)

    assert change.change_type == "renamed"
    assert change.path == "src/new_name.py"
    assert change.old_path == "src/old_name.py"
    assert change.hunks[0].lines[0].line_number == 3


def test_binary_file_is_kept_without_hunks():
    raw = """\
diff --git a/logo.png b/logo.png
index 1111111..2222222 100644
Binary files a/logo.png and b/logo.png differ
"""
    (change,) = parse_unified_diff(raw)

    assert change.path == "logo.png"
    assert change.hunks == []
    assert change.total_lines == 0


def test_multiple_hunks_and_no_newline_marker():
    raw = """\
diff --git a/foo.py b/foo.py
--- a/foo.py
+++ b/foo.py
@@ -1,1 +1,1 @@ def foo
-a = 1
+a = 2
@@ -10,1 +10,2 @@ def bar
 c = 3
+d = 4
\\ No newline at end of file
"""
    (change,) = parse_unified_diff(raw)

    assert [h.header for h in change.hunks] == ["@@ -1,1 +1,1 @@ def foo", "@@ -10,1 +10,2 @@ def bar"]
    assert change.insertions == 2
    assert change.deletions == 1
    assert [l.content for l in change.hunks[1].lines] == ["c = 3", "d = 4"]


def test_empty_diff_has_no_changes():
    assert parse_unified_diff("") == []


def test_malformed_hunk_header_raises():
    raw = """\
diff --git a/foo.py b/foo.py
--- a/foo.py
+++ b/foo.py
@@ garbage @@
+a = 2
"""
    with pytest.raises(DiffParseError):
        parse_unified_diff(raw)


def test_combined_diff_of_unmerged_path_is_skipped(caplog):
    raw = """\
diff --git a/src/app.py b/src/app.py
--- a/src/app.py
+++ b/src/app.py
@@ -1,1 +1,1 @@
-a = 1
+a = 2
diff --cc src/conflict.py
index 1111111,2222222..0000000
--- a/src/conflict.py
+++ b/src/conflict.py
@@@ -1,1 -1,1 +1,5 @@@
++<<<<<<< HEAD
 +x = 1
++=======
+ x = 2
++>>>>>>> feature
diff --git a/src/after.py b/src/after.py
--- a/src/after.py
+++ b/src/after.py
@@ -3,1 +3,1 @@
-b = 1
+b = 2
"""
    with caplog.at_level("WARNING", logger="commitwise.diff_parser"):
        changes = parse_unified_diff(raw)

    assert [c.path for c in changes] == ["src/app.py", "src/after.py"]
    app_lines = [l.content for l in changes[0].hunks[0].lines]
    assert app_lines == ["a = 1", "a = 2"]
    assert not any("diff --cc" in content for content in app_lines)
    assert changes[0].insertions == 1
    assert "diff --cc src/conflict.py" in caplog.text


def test_trailing_combined_diff_leaves_previous_hunk_intact():
    raw = """\
diff --git a/src/app.py b/src/app.py
--- a/src/app.py
+++ b/src/app.py
@@ -1,1 +1,1 @@
-a = 1
+a = 2
diff --cc src/conflict.py
index 1111111,2222222..0000000
"""
    (change,) = parse_unified_diff(raw)

    assert [l.content for l in change.hunks[0].lines] == ["a = 1", "a = 2"]


def test_render_changes_keeps_structure():
    raw = """\
diff --git a/foo.py b/foo.py
--- a/foo.py
+++ b/foo.py
@@ -1,3 +1,3 @@
 a = 1
-b = 2
+b = 3
 c = 4
"""
    changes = parse_unified_diff(raw)

    out = render_changes(changes)
    # Parsing the rendered text should give us the same structure
    # in terms of files, hunks and lines.
    again = parse_unified_diff(out)
    assert [c.path for c in again] == ["foo.py"]
    assert again[0].hunks[0].lines == changes[0].hunks[0].lines


def test_render_no_changes():
    assert render_changes([]) == ""


def test_iter_lines_filters_by_line_type():
    raw = """\
diff --git a/foo.py b/foo.py
--- a/foo.py
+++ b/foo.py
@@ -1,2 +1,2 @@
-a = 1
+a = 2
 b = 3
@@ -9,1 +9,2 @@
 c = 3
+d = 4
"""
    (change,) = parse_unified_diff(raw)

    assert [l.content for l in change.iter_lines("added")] == ["a = 2", "d = 4"]
    assert [l.content for l in change.iter_lines("added", "removed")] == ["a = 1", "a = 2", "d = 4"]
    assert len(list(change.iter_lines())) == 5
