"""Command-line front end for the git-flow wrapper.

Examples:
    gitflow-helper init -d
    gitflow-helper feature start login
    gitflow-helper feature pull origin login
    gitflow-helper release finish -m "Release 1.2.0" 1.2.0
    gitflow-helper --dry-run hotfix start 1.2.1
"""
import argparse
import shlex
import sys
from typing import List, Optional

from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.services.gitflow import GitFlow, GitFlowError

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitflow-helper",
        description="Run git flow branching commands",
    )
    parser.add_argument("-C", "--repo", default=".", help="Repository to run in (default: current directory)")
    parser.add_argument("--dry-run", action="store_true", help="Print the git command instead of running it")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    groups = parser.add_subparsers(dest="group", required=True)

    init = groups.add_parser("init", help="Set up git-flow in the repository")
    init.add_argument("-d", "--defaults", action="store_true", help="Accept default branch names")

    groups.add_parser("config", help="Write the configured branch names and prefixes to git config")

    feature = groups.add_parser("feature", help="Feature branches")
    feature_actions = feature.add_subparsers(dest="action", required=True)
    start = feature_actions.add_parser("start")
    start.add_argument("name")
    start.add_argument("base", nargs="?")
    for action in ("finish", "publish", "track"):
        feature_actions.add_parser(action).add_argument("name")
    pull = feature_actions.add_parser("pull")
    pull.add_argument("remote")
    pull.add_argument("name")

    release = groups.add_parser("release", help="Release branches")
    release_actions = release.add_subparsers(dest="action", required=True)
    start = release_actions.add_parser("start")
    start.add_argument("version")
    start.add_argument("base", nargs="?")
    for action in ("publish", "track"):
        release_actions.add_parser(action).add_argument("version")
    finish = release_actions.add_parser("finish")
    finish.add_argument("-m", "--message", help="Tag message")
    finish.add_argument("version")

    hotfix = groups.add_parser("hotfix", help="Hotfix branches")
    hotfix_actions = hotfix.add_subparsers(dest="action", required=True)
    start = hotfix_actions.add_parser("start")
    start.add_argument("version")
    start.add_argument("base", nargs="?")
    finish = hotfix_actions.add_parser("finish")
    finish.add_argument("-m", "--message", help="Tag message")
    finish.add_argument("version")

    return parser


def build_commands(flow: GitFlow, args: argparse.Namespace) -> List[List[str]]:
    """Translate parsed arguments into the git commands to run."""
    if args.group == "init":
        return [flow.init_command(defaults=args.defaults)]
    if args.group == "config":
        return flow.config_commands()

    if args.group == "feature":
        if args.action == "start":
            return [flow.feature_start_command(args.name, args.base)]
        if args.action == "pull":
            return [flow.feature_pull_command(args.remote, args.name)]
        builder = getattr(flow, f"feature_{args.action}_command")
        return [builder(args.name)]

    if args.group == "release":
        if args.action == "start":
            return [flow.release_start_command(args.version, args.base)]
        if args.action == "finish":
            return [flow.release_finish_command(args.version, args.message)]
        builder = getattr(flow, f"release_{args.action}_command")
        return [builder(args.version)]

    if args.action == "start":
        return [flow.hotfix_start_command(args.version, args.base)]
    return [flow.hotfix_finish_command(args.version, args.message)]


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # stdout carries git's output; log lines go to stderr
    setup_logging(
        level="DEBUG" if args.verbose else "WARNING",
        json_format=settings.is_production,
        stream=sys.stderr,
    )

    flow = GitFlow(repo_path=args.repo)

    try:
        commands = build_commands(flow, args)
    except ValueError as e:
        parser.error(str(e))

    if args.dry_run:
        for command in commands:
            print(shlex.join(command))
        return 0

    try:
        for command in commands:
            result = flow.run(command)
            if result.stdout:
                print(result.stdout, end="")
    except GitFlowError as e:
        print(f"error: {e}", file=sys.stderr)
        return e.returncode or 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
