import pathlib
from typing import List, Union

from depimpact.github import GitHubClient

IGNORED_DIRS = {".git"}


class GitHubSourceTree:
    """Files of a repository branch, read through the GitHub API."""

    def __init__(self, client: GitHubClient, ref: str, sha: str):
        """
        Args:
            client: Authenticated GitHub client for the repository.
            ref: Branch name used when reading file contents.
            sha: Commit SHA whose tree is listed.
        """
        self.client = client
        self.ref = ref
        self.sha = sha

    def list_paths(self) -> List[str]:
        return [
            entry.path for entry in self.client.get_tree(self.sha) if entry.type == "blob"
        ]

    def read(self, path: str) -> str:
        return self.client.get_file_content(path, ref=self.ref)


class LocalSourceTree:
    """Files under a local directory, typically a checkout."""

    def __init__(self, root: Union[str, pathlib.Path]):
        self.root = pathlib.Path(root)

    def list_paths(self) -> List[str]:
        paths: List[str] = []
        for item in self.root.rglob("*"):
            rel_path = item.relative_to(self.root)
            if IGNORED_DIRS.intersection(rel_path.parts):
                continue
            if item.is_file():
                paths.append(rel_path.as_posix())
        return sorted(paths)

    def read(self, path: str) -> str:
        return (self.root / path).read_text(encoding="utf-8", errors="replace")
