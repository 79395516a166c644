import atexit
import pathlib
import sys
from typing import Optional, Union

from depimpact.gemini import GeminiClient
from depimpact.github import GitHubClient
from depimpact.parallel import ParallelContentFetcher
from depimpact.parser import DiffParser
from depimpact.patches import split_unified_diff
from depimpact.reporter import NO_CHANGES_COMMENT, ReportGenerator
from depimpact.sources import GitHubSourceTree, LocalSourceTree
from depimpact.usage import UsageScanner

NO_CHANGES_MESSAGE = "No dependency changes detected."


class DependencyImpactOrchestrator:
    """
    Orchestrates the complete dependency impact workflow.

    Manages parsing changed files, scanning usage sites, asking Gemini for an
    analysis, posting the result, and shutting down worker threads.
    """

    def __init__(
        self,
        github: Optional[GitHubClient] = None,
        gemini: Optional[GeminiClient] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize the orchestrator with necessary components.

        Args:
            github: Client for the repository under analysis. Required by run().
            gemini: Client used for the analysis. Required by run().
            max_workers: Maximum number of threads used to fetch file contents.
        """
        self.github = github
        self.gemini = gemini
        self.parser = DiffParser()
        self.fetcher = ParallelContentFetcher(max_workers=max_workers)
        self.reporter = ReportGenerator()

        atexit.register(self._cleanup)

    def run(self, pr_number: int) -> str:
        """
        Analyse a pull request and post the analysis as a comment.

        Args:
            pr_number: Number of the pull request.

        Returns:
            The body of the comment that was posted.
        """
        if self.github is None or self.gemini is None:
            raise ValueError("Both a GitHub and a Gemini client are required")

        print(f"Analyzing dependency impact for PR #{pr_number}...", file=sys.stderr)
        pr = self.github.get_pull_request(pr_number)
        print(f"PR: {pr.title}", file=sys.stderr)

        changes = self.parser.parse(pr.files)
        if not changes:
            print("No dependency version changes detected in this PR", file=sys.stderr)
            self.github.post_comment(pr_number, NO_CHANGES_COMMENT)
            return NO_CHANGES_COMMENT

        names = ", ".join(change.name for change in changes)
        print(f"Found {len(changes)} dependency change(s): {names}", file=sys.stderr)

        branch, sha = self.github.get_default_branch()
        scanner = UsageScanner(
            GitHubSourceTree(self.github, ref=branch, sha=sha), fetcher=self.fetcher
        )
        usage = scanner.scan(changes)

        prompt = self.reporter.build_prompt(changes, usage, pr.diff)
        analysis = self.gemini.generate_content(prompt)

        comment = self.reporter.format_comment(analysis, changes, usage)
        self.github.post_comment(pr_number, comment)
        print("Dependency impact analysis posted", file=sys.stderr)
        return comment

    def process_local_diff(
        self, diff_input: str, root: Union[str, pathlib.Path] = "."
    ) -> str:
        """
        Report usage of the dependencies bumped by a local unified diff.

        Args:
            diff_input: Output of ``git diff`` covering manifest or lock files.
            root: Directory whose source files are scanned for usage.

        Returns:
            A plain-text report, or a message saying nothing changed.
        """
        changes = self.parser.parse(split_unified_diff(diff_input))
        if not changes:
            return NO_CHANGES_MESSAGE

        print(f"Scanning usage of {len(changes)} dependencies...", file=sys.stderr)
        scanner = UsageScanner(LocalSourceTree(root), fetcher=self.fetcher)
        usage = scanner.scan(changes)

        return self.reporter.generate_report(changes, usage) or NO_CHANGES_MESSAGE

    def process_from_file(
        self, filepath: pathlib.Path, root: Union[str, pathlib.Path] = "."
    ) -> str:
        """Process a unified diff stored in a file."""
        return self.process_local_diff(filepath.read_text(), root=root)

    def _cleanup(self) -> None:
        """Shut down the content fetcher's thread pool."""
        self.fetcher.cleanup()

    def cleanup(self) -> None:
        """Manually trigger cleanup of worker threads."""
        self._cleanup()
