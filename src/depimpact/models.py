from dataclasses import dataclass, field
from typing import List, Optional

NPM = "npm"
PIP = "pip"
GO = "go"
TERRAFORM = "terraform"


@dataclass(frozen=True)
class DependencyChange:
    """Represents a version bump of a single dependency."""

    name: str
    from_version: str
    to_version: str
    ecosystem: str


@dataclass(frozen=True)
class FileChange:
    """A changed file as reported by the hosting API."""

    filename: str
    patch: Optional[str] = None


@dataclass
class UsageSite:
    """Lines of a source file that reference a dependency."""

    path: str
    lines: List[str] = field(default_factory=list)


@dataclass
class PullRequest:
    number: int
    title: str
    body: Optional[str]
    diff: str
    files: List[FileChange]
    head_ref: str
    base_ref: str
