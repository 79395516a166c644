import pytest

from depimpact.models import DependencyChange, UsageSite
from depimpact.reporter import (
    COMMENT_TITLE,
    NO_USAGE_TEXT,
    ReportGenerator,
    count_usage_sites,
    truncate_text,
)


@pytest.fixture
def reporter() -> ReportGenerator:
    """Create a ReportGenerator instance for testing."""
    return ReportGenerator()


@pytest.fixture
def usage() -> dict[str, list[UsageSite]]:
    return {
        "axios": [
            UsageSite("src/api.ts", ['import axios from "axios";']),
            UsageSite("src/upload.ts", ['import axios from "axios";', "axios.post(url)"]),
        ],
        "requests": [],
    }


class TestTruncateText:
    def test_short_text_unchanged(self) -> None:
        assert truncate_text("hello", 10) == "hello"

    def test_exact_length_unchanged(self) -> None:
        assert truncate_text("hello", 5) == "hello"

    def test_truncation_notice(self) -> None:
        text = "x" * 2500

        result = truncate_text(text, 1000, "PR diff")

        assert result == "x" * 1000 + "\n\n... [PR diff truncated: 1,500 characters omitted]"

    def test_default_label(self) -> None:
        assert truncate_text("abcdef", 3).endswith("[content truncated: 3 characters omitted]")


class TestPrompt:
    def test_lists_changes_and_usage(
        self, reporter: ReportGenerator, sample_changes, usage
    ) -> None:
        # Act
        prompt = reporter.build_prompt(sample_changes, usage, "diff --git a/package.json")

        # Assert
        assert "- **axios**: 1.6.0 → 2.0.0 (npm)" in prompt
        assert "- **requests**: 2.25.1 → 2.26.0 (pip)" in prompt
        assert "### axios\n**src/api.ts:**\nimport axios from \"axios\";" in prompt
        assert f"### requests\n{NO_USAGE_TEXT}" in prompt
        assert "```diff\ndiff --git a/package.json\n```" in prompt
        for ask in ("Breaking changes", "Affected files", "Migration steps", "Risk assessment"):
            assert ask in prompt

    def test_diff_is_truncated(self, reporter: ReportGenerator, sample_changes) -> None:
        prompt = reporter.build_prompt(sample_changes, {}, "+" * 20000)

        assert "[PR diff truncated: 10,000 characters omitted]" in prompt

    def test_usage_section_is_truncated(self, reporter: ReportGenerator) -> None:
        sites = [UsageSite(f"src/f{i}.ts", ["x" * 100]) for i in range(100)]

        section = reporter.format_usage_section("axios", sites)

        assert "[axios usage truncated:" in section


class TestComment:
    def test_format_comment(self, reporter: ReportGenerator, sample_changes, usage) -> None:
        comment = reporter.format_comment("All good.", sample_changes, usage)

        assert comment.startswith(f"{COMMENT_TITLE}\n\nAll good.\n\n---\n")
        assert "Analyzed 3 dependency change(s) across 2 usage site(s)" in comment

    def test_count_usage_sites(self, usage) -> None:
        assert count_usage_sites(usage) == 2
        assert count_usage_sites({}) == 0


class TestReport:
    def test_empty(self, reporter: ReportGenerator) -> None:
        assert reporter.generate_report([], {}) == ""

    def test_sorted_by_name(self, reporter: ReportGenerator, sample_changes, usage) -> None:
        report = reporter.generate_report(sample_changes, usage)

        axios_pos = report.index("USAGE OF DEPENDENCY: axios")
        aws_pos = report.index("USAGE OF DEPENDENCY: registry.terraform.io/hashicorp/aws")
        requests_pos = report.index("USAGE OF DEPENDENCY: requests")
        assert axios_pos < aws_pos < requests_pos

    def test_report_content(self, reporter: ReportGenerator, sample_changes, usage) -> None:
        report = reporter.generate_report(sample_changes, usage)

        assert "npm: 1.6.0 -> 2.0.0" in report
        assert "src/upload.ts:\n    import axios from \"axios\";\n    axios.post(url)" in report
        assert NO_USAGE_TEXT in report
        assert not report.endswith("\n")

    def test_format_header(self, reporter: ReportGenerator) -> None:
        header = reporter._format_header("axios")

        lines = header.split("\n")
        assert len(lines) == 3
        assert "USAGE OF DEPENDENCY: axios" in lines[1]
        for line in lines:
            assert len(line) == 80
