from depimpact.models import FileChange
from depimpact.parser import DiffParser
from depimpact.patches import split_unified_diff

GIT_DIFF = """\
diff --git a/package.json b/package.json
index 1234567..89abcde 100644
--- a/package.json
+++ b/package.json
@@ -1,5 +1,5 @@
 {
   "dependencies": {
-    "axios": "^1.6.0"
+    "axios": "^2.0.0"
   }
 }
diff --git a/docs/logo.png b/docs/logo.png
index 1234567..89abcde 100644
Binary files a/docs/logo.png and b/docs/logo.png differ
diff --git a/old.txt b/old.txt
deleted file mode 100644
index 1234567..0000000
--- a/old.txt
+++ /dev/null
@@ -1 +0,0 @@
-gone
"""


class TestSplitUnifiedDiff:
    def test_git_diff_sections(self) -> None:
        files = split_unified_diff(GIT_DIFF)

        assert [f.filename for f in files] == ["package.json", "docs/logo.png", "old.txt"]

    def test_patch_starts_at_first_hunk(self) -> None:
        files = split_unified_diff(GIT_DIFF)

        assert files[0].patch == "\n".join(
            [
                "@@ -1,5 +1,5 @@",
                " {",
                '   "dependencies": {',
                '-    "axios": "^1.6.0"',
                '+    "axios": "^2.0.0"',
                "   }",
                " }",
            ]
        )

    def test_binary_file_has_no_patch(self) -> None:
        files = split_unified_diff(GIT_DIFF)

        assert files[1] == FileChange(filename="docs/logo.png", patch=None)

    def test_deleted_file_uses_old_name(self) -> None:
        files = split_unified_diff(GIT_DIFF)

        assert files[2] == FileChange(filename="old.txt", patch="@@ -1 +0,0 @@\n-gone")

    def test_plain_diff_without_git_headers(self) -> None:
        diff = """
--- a/requirements.txt
+++ b/requirements.txt
@@ -1,2 +1,2 @@
-requests==2.25.1
+requests==2.26.0
 flask==1.1.2
--- a/go.mod
+++ b/go.mod
@@ -3,1 +3,1 @@
-\tgithub.com/x/y v1.0.0
+\tgithub.com/x/y v1.1.0
"""

        files = split_unified_diff(diff)

        assert [f.filename for f in files] == ["requirements.txt", "go.mod"]
        assert files[1].patch is not None
        assert files[1].patch.startswith("@@ -3,1 +3,1 @@")

    def test_text_without_headers(self) -> None:
        assert split_unified_diff("-requests==1.0\n+requests==2.0\n") == []

    def test_feeds_the_parser(self) -> None:
        changes = DiffParser().parse(split_unified_diff(GIT_DIFF))

        assert [(c.name, c.from_version, c.to_version) for c in changes] == [
            ("axios", "1.6.0", "2.0.0")
        ]

    def test_header_like_lines_inside_git_hunks(self) -> None:
        diff = (
            "diff --git a/notes.md b/notes.md\n"
            "--- a/notes.md\n"
            "+++ b/notes.md\n"
            "@@ -1 +1 @@\n"
            "--- old rule\n"
            "+++ new rule\n"
        )

        files = split_unified_diff(diff)

        assert files == [
            FileChange("notes.md", "@@ -1 +1 @@\n--- old rule\n+++ new rule")
        ]

    def test_only_newlines_end_hunk_lines(self) -> None:
        diff = (
            "diff --git a/src/page.js b/src/page.js\n"
            "--- a/src/page.js\n"
            "+++ b/src/page.js\n"
            "@@ -1 +1 @@\n"
            "-const sep = '\x0c';\n"
            "+const sep = ' \x1c';\n"
        )

        files = split_unified_diff(diff)

        assert files == [
            FileChange(
                "src/page.js",
                "@@ -1 +1 @@\n-const sep = '\x0c';\n+const sep = ' \x1c';",
            )
        ]

    def test_crlf_line_endings(self) -> None:
        diff = (
            "--- a/requirements.txt\r\n"
            "+++ b/requirements.txt\r\n"
            "@@ -1 +1 @@\r\n"
            "-requests==2.25.1\r\n"
            "+requests==2.26.0\r\n"
        )

        files = split_unified_diff(diff)

        assert files == [
            FileChange(
                "requirements.txt",
                "@@ -1 +1 @@\n-requests==2.25.1\n+requests==2.26.0",
            )
        ]
