import os
from dataclasses import dataclass
from typing import Mapping, Optional

from depimpact.gemini import DEFAULT_MODEL
from depimpact.github import DEFAULT_API_URL


class ActionInputError(ValueError):
    """Raised when a required action input is missing or malformed."""


def get_input(environ: Mapping[str, str], name: str, required: bool = False) -> str:
    """
    Reads an action input the way the Actions runner exposes it.

    ``with: {pr_number: 12}`` becomes the ``INPUT_PR_NUMBER`` variable.
    """
    value = environ.get(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()
    if required and not value:
        raise ActionInputError(f"Input required and not supplied: {name}")
    return value


@dataclass(frozen=True)
class ActionInputs:
    pr_number: int
    gemini_api_key: str
    github_token: str
    repository: str
    model: str = DEFAULT_MODEL
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ActionInputs":
        environ = os.environ if environ is None else environ

        raw_pr_number = get_input(environ, "pr_number", required=True)
        try:
            pr_number = int(raw_pr_number)
        except ValueError:
            raise ActionInputError(
                f"Input pr_number must be an integer, got {raw_pr_number!r}"
            ) from None

        repository = environ.get("GITHUB_REPOSITORY", "").strip()
        if not repository:
            raise ActionInputError("GITHUB_REPOSITORY is not set")

        return cls(
            pr_number=pr_number,
            gemini_api_key=get_input(environ, "gemini_api_key", required=True),
            github_token=get_input(environ, "github_token", required=True),
            repository=repository,
            model=get_input(environ, "model") or DEFAULT_MODEL,
            api_url=environ.get("GITHUB_API_URL", "").strip() or DEFAULT_API_URL,
        )
