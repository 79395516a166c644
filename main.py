import argparse
import os
import sys
from typing import List, Mapping, Optional

from depimpact.gemini import GeminiClient
from depimpact.github import GitHubClient
from depimpact.inputs import ActionInputs
from depimpact.orchestrator import DependencyImpactOrchestrator


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Report where dependencies bumped by a diff are used."
    )
    parser.add_argument(
        "--action",
        action="store_true",
        help="Run as a GitHub Action, reading INPUT_* environment variables",
    )
    parser.add_argument(
        "--root", default=".", help="Directory scanned for usage in local mode"
    )
    parser.add_argument(
        "--tui", action="store_true", help="Browse the results interactively"
    )
    return parser.parse_args(argv)


def run_action(environ: Optional[Mapping[str, str]] = None) -> int:
    try:
        inputs = ActionInputs.from_env(environ)
        orchestrator = DependencyImpactOrchestrator(
            github=GitHubClient(
                inputs.github_token, inputs.repository, api_url=inputs.api_url
            ),
            gemini=GeminiClient(inputs.gemini_api_key, model=inputs.model),
        )
        orchestrator.run(inputs.pr_number)
    except Exception as e:
        # Marks the workflow step as failed
        print(f"::error::{e}")
        return 1
    return 0


def run_tui(diff_input: str, root: str) -> int:
    from depimpact.parser import DiffParser
    from depimpact.patches import split_unified_diff
    from depimpact.sources import LocalSourceTree
    from depimpact.tui import ImpactApp
    from depimpact.usage import UsageScanner

    changes = DiffParser().parse(split_unified_diff(diff_input))
    if not changes:
        print("No dependency changes found.", file=sys.stderr)
        return 0

    scanner = UsageScanner(LocalSourceTree(root))
    ImpactApp(changes, scanner).run()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.action:
        return run_action(os.environ)

    # Local mode: read a unified diff from stdin
    try:
        diff_input = sys.stdin.read()
    except Exception as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1

    if not diff_input:
        print("No input provided.", file=sys.stderr)
        return 1

    if args.tui:
        # Textual needs the terminal, not the pipe the diff arrived on
        if os.path.exists("/dev/tty"):
            os.dup2(os.open("/dev/tty", os.O_RDONLY), sys.stdin.fileno())
        return run_tui(diff_input, args.root)

    orchestrator = DependencyImpactOrchestrator()
    try:
        print(orchestrator.process_local_diff(diff_input, root=args.root))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        orchestrator.cleanup()
    return 0


if __name__ == "__main__":
    sys.exit(main())
