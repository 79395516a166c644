from typing import List, Protocol


class SourceTree(Protocol):
    """Protocol for objects that expose repository files for usage scanning."""

    def list_paths(self) -> List[str]:
        """Return the paths of all files in the tree, relative to its root."""
        ...

    def read(self, path: str) -> str:
        """Return the text content of a file in the tree."""
        ...
