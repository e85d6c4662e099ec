"""Tests for unified diff → FileChange reconstruction."""

from prscribe_core.utils.diff import extract_file_changes

CONTEXT_ONLY = """diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,2 +1,2 @@
 import os
 import sys
"""

ADDITIVE = """diff --git a/README.md b/README.md
new file mode 100644
index 0000000..3333333
--- /dev/null
+++ b/README.md
@@ -0,0 +1,2 @@
+# Widgets
+Build them.
"""

MIXED = """diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,3 @@
 def main():
-    return 1
+    return 2

\\ No newline at end of file
"""

RENAME = """diff --git a/old/name.py b/new/name.py
similarity index 90%
rename from old/name.py
rename to new/name.py
index 4444444..5555555 100644
--- a/old/name.py
+++ b/new/name.py
@@ -1 +1 @@
-x = 1
+x = 2
"""


class TestExtractFileChanges:
    def test_context_only_diff_has_identical_sides(self):
        [change] = extract_file_changes(CONTEXT_ONLY)
        assert change.file_name == "src/app.py"
        assert change.original == change.changed == "import os\nimport sys"

    def test_additive_diff_has_empty_original(self):
        [change] = extract_file_changes(ADDITIVE)
        assert change.file_name == "README.md"
        assert change.original == ""
        assert change.changed == "# Widgets\nBuild them."

    def test_deletions_only_diff_has_empty_changed(self):
        diff = "diff --git a/gone.txt b/gone.txt\n--- a/gone.txt\n+++ /dev/null\n@@ -1,2 +0,0 @@\n-one\n-two\n"
        [change] = extract_file_changes(diff)
        assert change.original == "one\ntwo"
        assert change.changed == ""

    def test_mixed_hunk_routes_lines_to_each_side(self):
        [change] = extract_file_changes(MIXED)
        assert change.original == "def main():\n    return 1"
        assert change.changed == "def main():\n    return 2"

    def test_file_header_lines_are_not_content(self):
        [change] = extract_file_changes(MIXED)
        assert "---" not in change.original
        assert "+++" not in change.changed
        assert "index" not in change.original

    def test_two_segments_give_two_changes_in_order(self):
        changes = extract_file_changes(CONTEXT_ONLY + ADDITIVE)
        assert [c.file_name for c in changes] == ["src/app.py", "README.md"]

    def test_renamed_file_takes_the_post_image_path(self):
        [change] = extract_file_changes(RENAME)
        assert change.file_name == "new/name.py"
        assert change.original == "x = 1"
        assert change.changed == "x = 2"

    def test_multiple_hunks_are_concatenated(self):
        diff = (
            "diff --git a/f.py b/f.py\n--- a/f.py\n+++ b/f.py\n"
            "@@ -1,1 +1,1 @@\n-a\n+b\n"
            "@@ -10,1 +10,1 @@\n-c\n+d\n"
        )
        [change] = extract_file_changes(diff)
        assert change.original == "a\nc"
        assert change.changed == "b\nd"

    def test_segment_without_hunks_gives_empty_sides(self):
        diff = "diff --git a/logo.png b/logo.png\nBinary files a/logo.png and b/logo.png differ\n"
        [change] = extract_file_changes(diff)
        assert change.file_name == "logo.png"
        assert change.original == change.changed == ""

    def test_diff_header_text_inside_a_hunk_is_content(self):
        diff = (
            "diff --git a/tests/test_diff.py b/tests/test_diff.py\n"
            "--- a/tests/test_diff.py\n+++ b/tests/test_diff.py\n"
            "@@ -1 +1,2 @@\n"
            " import pytest\n"
            '+SAMPLE = "diff --git a/x.py b/x.py"\n'
        )
        [change] = extract_file_changes(diff)
        assert change.file_name == "tests/test_diff.py"
        assert change.changed == 'import pytest\nSAMPLE = "diff --git a/x.py b/x.py"'

    def test_empty_and_none_input(self):
        assert extract_file_changes("") == []
        assert extract_file_changes(None) == []

    def test_malformed_input_does_not_raise(self):
        assert extract_file_changes("this is not a diff\n@@ nonsense @@\n+x") == []
