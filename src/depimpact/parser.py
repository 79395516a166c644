import string
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from depimpact.models import GO, NPM, PIP, TERRAFORM, DependencyChange, FileChange

# (diff marker, dependency name, version)
LineMatch = Tuple[str, str, str]
Versions = Dict[str, str]

_DIGITS = frozenset(string.digits)
_PIP_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_-")
_PIP_OPERATORS = frozenset("=<>~!")
_RANGE_PREFIXES = ("~", "^")


def _diff_marker(line: str, allowed: str = "+-") -> Optional[str]:
    if line and line[0] in allowed:
        return line[0]
    return None


def _take_quoted(text: str) -> Tuple[Optional[str], str]:
    """Splits a leading double-quoted string off ``text``."""
    if not text.startswith('"'):
        return None, text
    end = text.find('"', 1)
    if end == -1:
        return None, text
    return text[1:end], text[end + 1 :]


def _take_token(text: str) -> str:
    """Returns the leading run of non-whitespace characters."""
    end = 0
    while end < len(text) and not text[end].isspace():
        end += 1
    return text[:end]


def match_npm_line(line: str) -> Optional[LineMatch]:
    """
    Matches a ``"name": "^1.2.3"`` entry of package.json / package-lock.json.

    The version is the quoted value with a single leading ``~`` or ``^``
    removed; it must start with a digit.
    """
    marker = _diff_marker(line)
    if marker is None:
        return None

    name, rest = _take_quoted(line[1:].lstrip())
    if not name or not rest.startswith(":"):
        return None

    value, _ = _take_quoted(rest[1:].lstrip())
    if value is None:
        return None
    if value.startswith(_RANGE_PREFIXES):
        value = value[1:]
    if value[:1] not in _DIGITS:
        return None

    return marker, name, value


def match_pip_line(line: str) -> Optional[LineMatch]:
    """
    Matches a ``name==1.2.3`` style requirement.

    The name must follow the diff marker directly, and is followed by one or
    more comparison characters and a version starting with a digit.
    """
    marker = _diff_marker(line)
    if marker is None:
        return None

    name_end = 1
    while name_end < len(line) and line[name_end] in _PIP_NAME_CHARS:
        name_end += 1
    if name_end == 1:
        return None

    version_start = name_end
    while version_start < len(line) and line[version_start] in _PIP_OPERATORS:
        version_start += 1
    if version_start == name_end or line[version_start : version_start + 1] not in _DIGITS:
        return None

    return marker, line[1:name_end], _take_token(line[version_start:])


def match_go_line(line: str) -> Optional[LineMatch]:
    """Matches a ``module/path v1.2.3`` requirement of go.mod, dropping the ``v``."""
    marker = _diff_marker(line)
    if marker is None:
        return None

    tokens = line[1:].split(None, 2)
    if len(tokens) < 2:
        return None

    module, version = tokens[0], tokens[1]
    if not version.startswith("v") or len(version) == 1:
        return None

    return marker, module, version[1:]


def match_provider_header(line: str) -> Optional[str]:
    """
    Returns the provider name of a ``provider "<name>" {`` line.

    Context lines count as well as added and removed ones.
    """
    if _diff_marker(line, " +-") is None:
        return None

    rest = line[1:].lstrip()
    if not rest.startswith("provider"):
        return None

    rest = rest[len("provider") :]
    quoted = rest.lstrip()
    if quoted == rest:
        return None

    name, _ = _take_quoted(quoted)
    return name or None


def match_version_pin(line: str) -> Optional[Tuple[str, str]]:
    """Matches a ``version = "1.2.3"`` line of a Terraform lock file."""
    marker = _diff_marker(line)
    if marker is None:
        return None

    rest = line[1:].lstrip()
    if not rest.startswith("version"):
        return None

    rest = rest[len("version") :].lstrip()
    if not rest.startswith("="):
        return None

    rest = rest[1:].lstrip()
    if not rest.startswith('"'):
        return None

    # The version runs up to the last quote of the token, as in "1.2.3"
    token = _take_token(rest[1:])
    end = token.rfind('"')
    if end < 1 or token[0] not in _DIGITS:
        return None

    return marker, token[:end]


def _record(removed: Versions, added: Versions, marker: str, name: str, version: str) -> None:
    if marker == "-":
        removed[name] = version
    else:
        added[name] = version


def _scan_lines(
    lines: List[str], matcher: Callable[[str], Optional[LineMatch]]
) -> Tuple[Versions, Versions]:
    removed: Versions = {}
    added: Versions = {}

    for line in lines:
        match = matcher(line)
        if match:
            _record(removed, added, *match)

    return removed, added


def _scan_lock_file(lines: List[str]) -> Tuple[Versions, Versions]:
    """
    Scans a .terraform.lock.hcl patch.

    Provider names and their versions live on separate lines, so the most
    recent provider header is carried along while folding over the lines.
    """
    removed: Versions = {}
    added: Versions = {}
    current_provider = ""

    for line in lines:
        provider = match_provider_header(line)
        if provider:
            current_provider = provider

        pin = match_version_pin(line)
        if pin and current_provider:
            marker, version = pin
            _record(removed, added, marker, current_provider, version)

    return removed, added


def _is_npm_manifest(filename: str) -> bool:
    return filename.endswith("package.json") or filename.endswith("package-lock.json")


def _is_pip_manifest(filename: str) -> bool:
    return filename.endswith("requirements.txt") or filename.endswith("Pipfile")


def _is_go_manifest(filename: str) -> bool:
    return filename == "go.mod"


def _is_terraform_lock_file(filename: str) -> bool:
    return filename.endswith(".terraform.lock.hcl")


# Every matching rule runs against a file; there is no precedence between them.
_RULES: List[Tuple[Callable[[str], bool], str, Callable[[List[str]], Tuple[Versions, Versions]]]] = [
    (_is_npm_manifest, NPM, lambda lines: _scan_lines(lines, match_npm_line)),
    (_is_pip_manifest, PIP, lambda lines: _scan_lines(lines, match_pip_line)),
    (_is_go_manifest, GO, lambda lines: _scan_lines(lines, match_go_line)),
    (_is_terraform_lock_file, TERRAFORM, _scan_lock_file),
]


class DiffParser:
    """Parses per-file unified-diff patches to identify dependency version bumps."""

    def parse(self, files: Iterable[FileChange]) -> List[DependencyChange]:
        """
        Extracts dependency version changes from a list of changed files.

        Args:
            files: Changed files, each with a filename and an optional patch.
                Files without a patch are skipped.

        Returns:
            A list of DependencyChange objects, one per dependency whose version
            appears on both a removed and an added line with different values.
            Within a file, changes follow the order of their added lines.
        """
        changes: List[DependencyChange] = []

        for file in files:
            if not file.patch:
                continue

            lines = file.patch.split("\n")
            for applies, ecosystem, scan in _RULES:
                if applies(file.filename):
                    removed, added = scan(lines)
                    changes.extend(self._version_bumps(removed, added, ecosystem))

        return changes

    def _version_bumps(
        self, removed: Versions, added: Versions, ecosystem: str
    ) -> List[DependencyChange]:
        bumps: List[DependencyChange] = []

        for name, to_version in added.items():
            from_version = removed.get(name)
            # Pure additions and removals are not version bumps
            if from_version and from_version != to_version:
                bumps.append(
                    DependencyChange(
                        name=name,
                        from_version=from_version,
                        to_version=to_version,
                        ecosystem=ecosystem,
                    )
                )

        return bumps
