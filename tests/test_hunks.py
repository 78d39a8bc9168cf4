"""Tests for hunk header parsing and diff splitting."""

import pytest

from stackview.drag.hunks import LineRange, group_diff_into_hunks, parse_hunk_header, split_patch_by_file

PATCH = """diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,4 @@
 import os
+import sys

 def main():
@@ -10,2 +11,2 @@ def main():
-    print("hi")
+    print("hello")
     return 0
diff --git a/README.md b/README.md
new file mode 100644
index 0000000..3333333
--- /dev/null
+++ b/README.md
@@ -0,0 +1 @@
+# Title"""


class TestParseHunkHeader:
    """The new-file side of a header gives an inclusive, 1-indexed range."""

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("@@ -1,3 +1,4 @@", LineRange(1, 4)),
            ("@@ -10,2 +11,2 @@ def main():", LineRange(11, 12)),
            ("@@ -0,0 +1 @@", LineRange(1, 1)),
            ("@@ -5 +7,3 @@", LineRange(7, 9)),
        ],
    )
    def test_valid_headers(self, header, expected):
        assert parse_hunk_header(header) == expected

    def test_count_defaults_to_one(self):
        assert parse_hunk_header("@@ -3 +42 @@") == LineRange(42, 42)

    def test_zero_count_is_empty_range(self):
        """Pure deletions leave nothing in the new file."""
        line_range = parse_hunk_header("@@ -4,2 +3,0 @@")
        assert line_range == LineRange(3, 2)

    @pytest.mark.parametrize(
        "header",
        ["", "@@ garbage @@", "@@@ -1,2 -1,2 +1,3 @@@", "diff --git a/x b/x", "@@ -a,b +c,d @@"],
    )
    def test_unparseable_headers(self, header):
        assert parse_hunk_header(header) is None


class TestGroupDiffIntoHunks:
    def test_metadata_and_hunks(self):
        """Lines before the first header are metadata; each header opens a hunk."""
        per_file = split_patch_by_file(PATCH)
        parsed = group_diff_into_hunks(per_file["src/app.py"])

        assert parsed.metadata[0] == "diff --git a/src/app.py b/src/app.py"
        assert len(parsed.metadata) == 4
        assert [h.header for h in parsed.hunks] == ["@@ -1,3 +1,4 @@", "@@ -10,2 +11,2 @@ def main():"]
        assert parsed.hunks[0].lines == (" import os", "+import sys", "", " def main():")
        assert parsed.hunks[1].line_range == LineRange(11, 12)

    def test_no_hunks(self):
        parsed = group_diff_into_hunks("Binary files a/x and b/x differ")
        assert parsed.hunks == ()
        assert parsed.metadata == ("Binary files a/x and b/x differ",)

    def test_unparseable_hunk_is_not_draggable(self):
        parsed = group_diff_into_hunks("@@ weird header @@\n+x")
        assert len(parsed.hunks) == 1
        assert not parsed.hunks[0].is_draggable


class TestSplitPatchByFile:
    def test_splits_on_file_headers(self):
        per_file = split_patch_by_file(PATCH)

        assert list(per_file) == ["src/app.py", "README.md"]
        assert per_file["README.md"].endswith("+# Title")
        assert "README" not in per_file["src/app.py"]

    def test_empty_patch(self):
        assert split_patch_by_file("") == {}
