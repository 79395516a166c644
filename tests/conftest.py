from typing import Dict, Generator, List

import pytest

from depimpact.models import DependencyChange
from depimpact.parallel import ParallelContentFetcher


class InMemoryTree:
    """A SourceTree backed by a dict, recording every read."""

    def __init__(self, files: Dict[str, str], unreadable: tuple = ()):
        self.files = files
        self.unreadable = set(unreadable)
        self.reads: List[str] = []

    def list_paths(self) -> List[str]:
        return list(self.files) + sorted(self.unreadable)

    def read(self, path: str) -> str:
        self.reads.append(path)
        if path in self.unreadable:
            raise OSError(f"cannot read {path}")
        return self.files[path]


@pytest.fixture
def fetcher() -> Generator[ParallelContentFetcher, None, None]:
    """A quiet fetcher that is shut down after the test."""
    fetcher = ParallelContentFetcher(max_workers=4, verbose=False)
    yield fetcher
    fetcher.cleanup()


@pytest.fixture
def sample_changes() -> list[DependencyChange]:
    return [
        DependencyChange("axios", "1.6.0", "2.0.0", "npm"),
        DependencyChange("requests", "2.25.1", "2.26.0", "pip"),
        DependencyChange("registry.terraform.io/hashicorp/aws", "5.31.0", "5.32.0", "terraform"),
    ]


@pytest.fixture
def make_tree():
    """Factory for in-memory source trees."""
    return InMemoryTree
