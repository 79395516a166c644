from typing import Dict, List

from depimpact.models import DependencyChange, UsageSite

COMMENT_TITLE = "## Gemini Dependency Impact Analysis"
NO_CHANGES_COMMENT = (
    f"{COMMENT_TITLE}\n\nNo dependency version changes detected in this PR."
)
NO_USAGE_TEXT = "No direct imports found in source files."

MAX_USAGE_CHARS_PER_DEPENDENCY = 5000
MAX_DIFF_CHARS = 10000
REPORT_WIDTH = 80


def truncate_text(text: str, max_chars: int, label: str = "content") -> str:
    """
    Truncate text to a character budget, appending a notice when truncated.

    Args:
        text: The text to shorten.
        max_chars: Maximum number of characters kept.
        label: What the text is, used in the notice.

    Returns:
        The text unchanged if it fits, otherwise its first ``max_chars``
        characters followed by a truncation notice.
    """
    if len(text) <= max_chars:
        return text
    omitted = len(text) - max_chars
    return f"{text[:max_chars]}\n\n... [{label} truncated: {omitted:,} characters omitted]"


def count_usage_sites(usage: Dict[str, List[UsageSite]]) -> int:
    return sum(len(sites) for sites in usage.values())


class ReportGenerator:
    """Builds the Gemini prompt, the pull request comment and the local report."""

    def format_change(self, change: DependencyChange) -> str:
        return f"- **{change.name}**: {change.from_version} → {change.to_version} ({change.ecosystem})"

    def format_usage_section(self, name: str, sites: List[UsageSite]) -> str:
        if not sites:
            return f"### {name}\n{NO_USAGE_TEXT}"
        joined = "\n\n".join(
            f"**{site.path}:**\n" + "\n".join(site.lines) for site in sites
        )
        return f"### {name}\n{truncate_text(joined, MAX_USAGE_CHARS_PER_DEPENDENCY, f'{name} usage')}"

    def build_prompt(
        self,
        changes: List[DependencyChange],
        usage: Dict[str, List[UsageSite]],
        diff: str,
    ) -> str:
        """
        Assembles the analysis prompt sent to Gemini.

        Args:
            changes: The detected version bumps.
            usage: Usage sites per dependency name.
            diff: The full pull request diff, truncated to a fixed budget.

        Returns:
            The prompt text.
        """
        change_lines = "\n".join(self.format_change(change) for change in changes)
        usage_sections = "\n\n".join(
            self.format_usage_section(name, sites) for name, sites in usage.items()
        )

        return f"""You are reviewing a pull request that upgrades dependencies.
Work out what each upgrade means for this codebase.

**Dependency Changes:**
{change_lines}

**Usage in Codebase:**
{usage_sections}

**PR Diff:**
```diff
{truncate_text(diff, MAX_DIFF_CHARS, "PR diff")}
```

Cover each dependency with:
1. **Breaking changes**: breaking changes between the two versions that touch this codebase
2. **Affected files**: files that call APIs which changed
3. **Migration steps**: concrete edits needed to adapt the code, if any
4. **Risk assessment**: Low, Medium or High, based on the actual usage

Answer with a markdown report that names real file paths and API calls from the usage above.
When you lack changelog knowledge for a dependency, say so and recommend reading its release notes."""

    def format_comment(
        self,
        analysis: str,
        changes: List[DependencyChange],
        usage: Dict[str, List[UsageSite]],
    ) -> str:
        """Wraps Gemini's analysis into the comment posted on the pull request."""
        return (
            f"{COMMENT_TITLE}\n\n"
            f"{analysis}\n\n"
            "---\n"
            f"*Analyzed {len(changes)} dependency change(s) across "
            f"{count_usage_sites(usage)} usage site(s)*"
        )

    def generate_report(
        self,
        changes: List[DependencyChange],
        usage: Dict[str, List[UsageSite]],
    ) -> str:
        """
        Formats changes and their usage sites into a plain-text report.

        Args:
            changes: The detected version bumps.
            usage: Usage sites per dependency name.

        Returns:
            The formatted report string, sorted by dependency name, or an empty
            string when there are no changes.
        """
        if not changes:
            return ""

        report_sections: list[str] = []

        for change in sorted(changes, key=lambda c: c.name):
            report_sections.append(self._format_header(change.name))
            report_sections.append(
                f"{change.ecosystem}: {change.from_version} -> {change.to_version}"
            )

            sites = usage.get(change.name, [])
            if not sites:
                report_sections.append(NO_USAGE_TEXT)
            for site in sites:
                report_sections.append(f"{site.path}:")
                report_sections.extend(f"    {line.strip()}" for line in site.lines)

            # Blank line between dependencies
            report_sections.append("")

        if report_sections and report_sections[-1] == "":
            report_sections.pop()

        return "\n".join(report_sections)

    def _format_header(self, name: str) -> str:
        """
        Creates a visual separator header for a dependency.

        Args:
            name: The name of the dependency.

        Returns:
            A three-line header, each line REPORT_WIDTH characters wide for
            names that fit.
        """
        separator = "=" * REPORT_WIDTH
        title = f" USAGE OF DEPENDENCY: {name} "
        padding = max((REPORT_WIDTH - len(title)) // 2, 0)
        header_line = "=" * padding + title + "=" * max(REPORT_WIDTH - padding - len(title), 0)

        return f"{separator}\n{header_line}\n{separator}"
