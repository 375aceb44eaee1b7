"""CLI entry point for prd."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .config import find_workspace_root, load_config
from .dashboard import render_dashboard, render_stats
from .errors import PrdError
from .github_issues import get_triage_issue_count
from .scaffold import add_project, init_workspace
from .scanner import scan_all_stories
from .stats import get_stats

BANNER = """
Product OS Framework
────────────────────────────────────────
No product workspace found.

Get started:
  prd init           Create a new workspace
  prd dashboard      View stories dashboard
  prd --help         See all commands
"""


def resolve_docs_path(explicit_path: str | None, cwd: Path) -> Path:
    """Workspace to scan: explicit --path, else the enclosing workspace, else cwd."""
    if explicit_path:
        return Path(explicit_path).resolve()
    root = find_workspace_root(cwd)
    if root is not None:
        return root
    return cwd


def github_token() -> str | None:
    return os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prd",
        description="Product OS Framework - product story workspaces and dashboard.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (reports skipped story files)",
    )
    sub = parser.add_subparsers(dest="command")

    p_init = sub.add_parser("init", help="Create a new product workspace")
    p_init.add_argument("name", help="Workspace name (also the directory created)")
    p_init.add_argument("--project", required=True, help="Name of the first project")
    p_init.add_argument("--description", default="", help="Project description")
    p_init.add_argument("--repo", default=None, help="Path to the project's dev repo")
    p_init.add_argument(
        "--force",
        action="store_true",
        help="Add files even if the workspace directory already exists",
    )

    p_add = sub.add_parser("add-project", help="Add a new project to the workspace")
    p_add.add_argument("name", help="Project name")
    p_add.add_argument("--description", default="", help="Project description")
    p_add.add_argument("--repo", default=None, help="Path to the project's dev repo")
    p_add.add_argument("--path", "-p", default=None, help="Path to the workspace")

    p_dash = sub.add_parser("dashboard", help="Display product stories dashboard")
    p_dash.add_argument("--path", "-p", default=None, help="Path to the workspace")
    p_dash.add_argument(
        "--status", "-s",
        default=None,
        help="Filter by status (backlog, dev, done, etc.)",
    )
    p_dash.add_argument("--phase", default=None, help="Filter by phase (create, dev, release)")
    p_dash.add_argument("--compact", "-c", action="store_true", help="Compact output")

    p_list = sub.add_parser("list", help="List all stories (compact view)")
    p_list.add_argument("--path", "-p", default=None, help="Path to the workspace")

    p_stats = sub.add_parser("stats", help="Show statistics summary")
    p_stats.add_argument("--path", "-p", default=None, help="Path to the workspace")

    return parser


def cmd_init(args: argparse.Namespace, cwd: Path) -> int:
    target = cwd / args.name.strip()
    init_workspace(
        target,
        workspace_name=args.name,
        project_name=args.project,
        description=args.description,
        repo_path=args.repo,
        force=args.force,
    )
    print(f"\nDone! Your product workspace is ready in {target}\n")
    print(f"Next: cd {args.name.strip()} && prd\n")
    return 0


def cmd_add_project(args: argparse.Namespace, cwd: Path) -> int:
    root = Path(args.path).resolve() if args.path else find_workspace_root(cwd)
    config = load_config(root) if root is not None else None
    if config is None:
        logging.error("No Product OS workspace found. Run 'prd init' to create one.")
        return 1

    add_project(config, args.name, description=args.description, repo_path=args.repo)
    print(f'\nProject "{args.name.strip()}" added!\n')
    return 0


def cmd_dashboard(
    args: argparse.Namespace,
    cwd: Path,
    compact: bool = False,
) -> int:
    docs_path = resolve_docs_path(getattr(args, "path", None), cwd)
    scan = scan_all_stories(docs_path)
    stats = get_stats(scan.stories)
    triage = get_triage_issue_count(cwd, github_token())

    for skipped in scan.skipped:
        logging.debug("Skipped %s: %s", skipped.path, skipped.reason)

    print(render_dashboard(
        str(docs_path),
        scan,
        stats,
        triage_count=triage,
        compact=compact or getattr(args, "compact", False),
        status=getattr(args, "status", None),
        phase=getattr(args, "phase", None),
    ))
    return 0


def cmd_stats(args: argparse.Namespace, cwd: Path) -> int:
    docs_path = resolve_docs_path(args.path, cwd)
    scan = scan_all_stories(docs_path)
    stats = get_stats(scan.stories)
    triage = get_triage_issue_count(cwd, github_token())
    print(render_stats(stats, triage))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )

    cwd = Path.cwd()
    try:
        if args.command == "init":
            return cmd_init(args, cwd)
        if args.command == "add-project":
            return cmd_add_project(args, cwd)
        if args.command == "dashboard":
            return cmd_dashboard(args, cwd)
        if args.command == "list":
            return cmd_dashboard(args, cwd, compact=True)
        if args.command == "stats":
            return cmd_stats(args, cwd)

        # No command: dashboard if we are inside a workspace
        if find_workspace_root(cwd) is None:
            print(BANNER)
            return 0
        return cmd_dashboard(args, cwd)
    except (PrdError, OSError) as e:
        logging.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
