import threading
from typing import Dict, Iterable, List, Optional

from depimpact.models import DependencyChange, UsageSite
from depimpact.parallel import ParallelContentFetcher
from depimpact.patterns import import_patterns_for
from depimpact.types import SourceTree

SOURCE_EXTENSIONS = (".ts", ".js", ".tsx", ".jsx", ".py", ".go", ".java", ".rb", ".rs", ".tf")
EXCLUDED_PATH_PARTS = ("node_modules",)
DEFAULT_MAX_FILES = 100
MAX_RELEVANT_LINES = 20


class UsageScanner:
    """Finds source files that import the dependencies changed by a pull request."""

    def __init__(
        self,
        tree: SourceTree,
        fetcher: Optional[ParallelContentFetcher] = None,
        max_files: int = DEFAULT_MAX_FILES,
    ):
        self.tree = tree
        self.fetcher = fetcher or ParallelContentFetcher()
        self.max_files = max_files
        self._contents: Optional[Dict[str, str]] = None
        self._generation = 0
        self._state_lock = threading.Lock()
        self._fetch_lock = threading.Lock()

    def candidate_paths(self) -> List[str]:
        """Source files worth scanning, capped at ``max_files``."""
        paths = [
            path
            for path in self.tree.list_paths()
            if path.endswith(SOURCE_EXTENSIONS)
            and not any(part in path for part in EXCLUDED_PATH_PARTS)
        ]
        return paths[: self.max_files]

    def scan(self, changes: Iterable[DependencyChange]) -> Dict[str, List[UsageSite]]:
        """
        Collects usage sites for every change.

        Args:
            changes: Dependency changes to look for.

        Returns:
            Dictionary mapping each dependency name to its usage sites. Every
            name is present, with an empty list when nothing imports it.
        """
        changes = list(changes)
        usage: Dict[str, List[UsageSite]] = {}
        if not changes:
            return usage

        contents = self._load_contents()
        for change in changes:
            usage[change.name] = self.find_usage(change, contents)
        return usage

    def find_usage(
        self, change: DependencyChange, contents: Dict[str, str]
    ) -> List[UsageSite]:
        patterns = import_patterns_for(change.name, change.ecosystem)
        sites: List[UsageSite] = []

        for path, content in contents.items():
            if not any(pattern in content for pattern in patterns):
                continue

            relevant_lines = [
                line
                for line in content.split("\n")
                if change.name in line or any(pattern in line for pattern in patterns)
            ][:MAX_RELEVANT_LINES]

            if relevant_lines:
                sites.append(UsageSite(path=path, lines=relevant_lines))

        return sites

    def _load_contents(self) -> Dict[str, str]:
        with self._fetch_lock:
            with self._state_lock:
                if self._contents is not None:
                    return self._contents
                generation = self._generation

            contents = self.fetcher.fetch(self.tree, self.candidate_paths())

            with self._state_lock:
                # A clear during the fetch means these contents are already stale
                if generation == self._generation:
                    self._contents = contents
            return contents

    def clear_cache(self) -> None:
        """Forget fetched contents so the next scan reads the tree again."""
        with self._state_lock:
            self._generation += 1
            self._contents = None
