from dataclasses import dataclass, field
from typing import List, Optional

from depimpact.models import FileChange

DEV_NULL = "/dev/null"


@dataclass
class _FileSection:
    git_name: Optional[str] = None
    old_name: Optional[str] = None
    new_name: Optional[str] = None
    hunk_lines: List[str] = field(default_factory=list)

    @property
    def in_hunks(self) -> bool:
        return bool(self.hunk_lines)

    def to_file_change(self) -> Optional[FileChange]:
        if self.new_name and self.new_name != DEV_NULL:
            filename = self.new_name
        elif self.old_name and self.old_name != DEV_NULL:
            filename = self.old_name
        else:
            filename = self.git_name

        if not filename:
            return None

        patch = "\n".join(self.hunk_lines) if self.hunk_lines else None
        return FileChange(filename=filename, patch=patch)


def _header_path(line: str) -> str:
    """Extracts the path of a ``---``/``+++`` header, dropping a/ b/ prefixes."""
    path = line[4:].split("\t", 1)[0].strip()
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


def split_unified_diff(text: str) -> List[FileChange]:
    """
    Splits a multi-file unified diff into per-file records.

    The patch of each record starts at its first ``@@`` hunk header, which is
    the shape hosting APIs return for a single changed file. Sections without
    hunks (binary files, pure renames) get no patch.

    Args:
        text: Output of ``git diff`` or ``diff -u``.

    Returns:
        One FileChange per file section, in diff order.
    """
    # Only newlines end a line; form feeds and other separators are hunk content
    lines = text.replace("\r\n", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    sections: List[_FileSection] = []
    current: Optional[_FileSection] = None
    git_format = False

    for index, line in enumerate(lines):
        if line.startswith("diff --git "):
            git_format = True
            current = _FileSection(git_name=line.rsplit(" b/", 1)[-1])
            sections.append(current)
            continue

        next_line = lines[index + 1] if index + 1 < len(lines) else ""
        starts_headers = line.startswith("--- ") and next_line.startswith("+++ ")

        if starts_headers and not git_format and (current is None or current.in_hunks):
            # Plain `diff -u` output has no `diff --git` line between files
            current = _FileSection()
            sections.append(current)

        if current is None:
            continue

        if not current.in_hunks:
            if starts_headers:
                current.old_name = _header_path(line)
            elif line.startswith("+++ "):
                current.new_name = _header_path(line)
            elif line.startswith("@@"):
                current.hunk_lines.append(line)
            continue

        current.hunk_lines.append(line)

    files: List[FileChange] = []
    for section in sections:
        file_change = section.to_file_change()
        if file_change is not None:
            files.append(file_change)
    return files
