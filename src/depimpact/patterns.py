from typing import List

from depimpact.models import GO, NPM, PIP, TERRAFORM


def terraform_short_name(name: str) -> str:
    """
    Derives the short provider name from a registry path.

    "registry.terraform.io/hashicorp/aws" -> "aws"
    """
    return name.split("/")[-1] or name


def import_patterns_for(name: str, ecosystem: str) -> List[str]:
    """
    Returns literal substrings that indicate a source file uses a dependency.

    Args:
        name: The dependency name as reported by DiffParser.
        ecosystem: One of "npm", "pip", "go" or "terraform". Anything else
            falls back to the name itself.

    Returns:
        A non-empty list of case-sensitive patterns.
    """
    if ecosystem == NPM:
        return [
            f'from "{name}"',
            f"from '{name}'",
            f'require("{name}")',
            f"require('{name}')",
            f'from "{name}/',
            f"from '{name}/",
        ]
    if ecosystem == PIP:
        return [f"import {name}", f"from {name}"]
    if ecosystem == GO:
        return [f'"{name}"', f'"{name}/']
    if ecosystem == TERRAFORM:
        short_name = terraform_short_name(name)
        return [
            f'resource "{short_name}_',
            f'data "{short_name}_',
            f'provider "{short_name}"',
        ]
    return [name]
