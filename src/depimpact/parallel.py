import os
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List, Optional

from depimpact.types import SourceTree

FETCH_TIMEOUT = 60


class ParallelContentFetcher:
    """
    Reads many files of a source tree concurrently using ThreadPoolExecutor.

    Files that cannot be read are reported and left out of the result, so one
    failing file never aborts a scan.
    """

    def __init__(self, max_workers: Optional[int] = None, verbose: bool = True):
        """
        Initialize the fetcher.

        Args:
            max_workers: Maximum number of worker threads. If None, uses
                        min(20, cpu_count * 2) for I/O-bound fetching.
            verbose: Print per-file progress to stderr.
        """
        cpu_count = os.cpu_count() or 4
        workers = max_workers or min(20, cpu_count * 2)
        self._executor = ThreadPoolExecutor(max_workers=workers)
        self._progress_lock = threading.Lock()
        self.verbose = verbose

    def fetch(self, tree: SourceTree, paths: List[str]) -> Dict[str, str]:
        """
        Fetch the contents of the given paths.

        Args:
            tree: The tree to read from.
            paths: Paths relative to the tree root.

        Returns:
            Dictionary mapping each readable path to its content, in the order
            of ``paths``.
        """
        total = len(paths)
        completed = 0

        futures: Dict[str, Future[str]] = {}
        for path in paths:
            futures[path] = self._executor.submit(tree.read, path)

        contents: Dict[str, str] = {}

        for path, future in futures.items():
            try:
                contents[path] = future.result(timeout=FETCH_TIMEOUT)
                completed += 1
                self._progress(f"[{completed}/{total}] Fetched {path}")
            except Exception as e:
                # Unreadable files are skipped
                completed += 1
                self._progress(f"[{completed}/{total}] Skipped {path}: {e}")

        return contents

    def _progress(self, message: str) -> None:
        if not self.verbose:
            return
        with self._progress_lock:
            print(message, file=sys.stderr)

    def cleanup(self) -> None:
        """Shut down the thread pool."""
        self._executor.shutdown(wait=True)
