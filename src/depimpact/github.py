import base64
from dataclasses import dataclass
from importlib.metadata import version
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

from requests import Response, Session

from depimpact.models import FileChange, PullRequest

MODULE_NAME = __name__.split(".")[0]
MODULE_VERSION = version(MODULE_NAME)

DEFAULT_API_URL = "https://api.github.com"
FILES_PER_PAGE = 100
REQUEST_TIMEOUT = 30


class GitHubError(Exception):
    """Raised when a GitHub API response cannot be used."""


@dataclass
class TreeEntry:
    path: str
    "Path relative to the repository root"

    type: str
    "Git object type, e.g. blob or tree"


class GitHubClient:
    """Minimal GitHub REST client scoped to a single repository."""

    def __init__(self, token: str, repository: str, api_url: str = DEFAULT_API_URL):
        """
        Args:
            token: Token sent as a bearer credential.
            repository: Repository in "owner/repo" form.
            api_url: Base URL of the REST API (differs on GitHub Enterprise).
        """
        owner, _, repo = repository.partition("/")
        if not owner or not repo:
            raise ValueError(f"Repository must be in owner/repo form, got {repository!r}")

        self.owner = owner
        self.repo = repo
        self._base_url = f"{api_url.rstrip('/')}/repos/{owner}/{repo}"
        self._session = Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "User-Agent": f"{MODULE_NAME}/{MODULE_VERSION}",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )

    def _get(self, path: str, **kwargs: Any) -> Response:
        r = self._session.get(f"{self._base_url}{path}", timeout=REQUEST_TIMEOUT, **kwargs)
        r.raise_for_status()
        return r

    def get_pull_request(self, number: int) -> PullRequest:
        """Fetches a pull request together with its full diff and changed files."""
        data = self._get(f"/pulls/{number}").json()
        diff = self._get(
            f"/pulls/{number}", headers={"Accept": "application/vnd.github.diff"}
        ).text

        return PullRequest(
            number=data["number"],
            title=data["title"],
            body=data.get("body"),
            diff=diff,
            files=self.list_pull_request_files(number),
            head_ref=data["head"]["ref"],
            base_ref=data["base"]["ref"],
        )

    def list_pull_request_files(self, number: int) -> List[FileChange]:
        """
        Lists the changed files of a pull request.

        GitHub omits ``patch`` for binary files and very large diffs, in which
        case the record carries no patch.
        """
        files: List[FileChange] = []
        page = 1

        while True:
            batch = self._get(
                f"/pulls/{number}/files",
                params={"per_page": FILES_PER_PAGE, "page": page},
            ).json()
            files.extend(
                FileChange(filename=every["filename"], patch=every.get("patch"))
                for every in batch
            )
            if len(batch) < FILES_PER_PAGE:
                break
            page += 1

        return files

    def get_default_branch(self) -> Tuple[str, str]:
        """Returns the name and head commit SHA of the default branch."""
        branch = self._get("").json()["default_branch"]
        ref = self._get(f"/git/ref/heads/{quote(branch)}").json()
        return branch, ref["object"]["sha"]

    def get_tree(self, sha: str, recursive: bool = True) -> List[TreeEntry]:
        params = {"recursive": "1"} if recursive else {}
        data = self._get(f"/git/trees/{sha}", params=params).json()
        return [
            TreeEntry(path=item["path"], type=item["type"])
            for item in data["tree"]
            if item.get("path") and item.get("type")
        ]

    def get_file_content(self, path: str, ref: Optional[str] = None) -> str:
        """
        Reads a file through the contents API.

        Raises:
            GitHubError: If the path is a directory or the file is too large to
                be returned inline.
        """
        params = {"ref": ref} if ref else {}
        data = self._get(f"/contents/{quote(path)}", params=params).json()

        if isinstance(data, dict) and data.get("content"):
            return base64.b64decode(data["content"]).decode("utf-8", errors="replace")

        raise GitHubError(f"Unable to read file content for {path}")

    def post_comment(self, issue_number: int, body: str) -> None:
        """Posts a comment on an issue or pull request."""
        r = self._session.post(
            f"{self._base_url}/issues/{issue_number}/comments",
            json={"body": body},
            timeout=REQUEST_TIMEOUT,
        )
        r.raise_for_status()
