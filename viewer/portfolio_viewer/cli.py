"""Command line entry point for the portfolio viewer."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Callable, Optional, TextIO

from .api_client import DEFAULT_BASE_URL, PortfolioAPIClient
from .render import render_viewer
from .state import ProfileViewer

LOGGER = logging.getLogger("portfolio.viewer")

HELP_TEXT = "Commands: skill <name> | search <text> | clear | retry | help | quit"


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse the portfolio profile from a terminal.")
    parser.add_argument(
        "--base-url",
        default=os.getenv("PORTFOLIO_API_BASE_URL", DEFAULT_BASE_URL),
        help=f"API base URL (default: $PORTFOLIO_API_BASE_URL or {DEFAULT_BASE_URL}).",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--skill", help="Show only projects tagged with this skill.")
    group.add_argument("--search", help="Search skills and projects for this text.")
    parser.add_argument(
        "--interactive",
        "-i",
        action="store_true",
        help="Keep the viewer open and read commands from stdin.",
    )
    parser.add_argument("--timeout", type=float, default=10.0, help="HTTP timeout in seconds.")
    return parser.parse_args(argv)


def handle_command(viewer: ProfileViewer, line: str) -> bool:
    """Apply one REPL command; returns False when the session should end."""
    command, _, argument = line.strip().partition(" ")
    command = command.lower()
    argument = argument.strip()
    if command in ("quit", "exit", "q"):
        return False
    if command == "skill" and argument:
        viewer.select_skill(argument)
    elif command == "search":
        viewer.submit_search(argument)
    elif command == "clear":
        viewer.clear_filters()
    elif command == "retry":
        viewer.retry()
    return True


def run_interactive(
    viewer: ProfileViewer,
    *,
    read_line: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
) -> None:
    print(render_viewer(viewer), file=out)
    print(HELP_TEXT, file=out)
    while True:
        try:
            line = read_line("> ")
        except EOFError:
            break
        if not line.strip():
            continue
        if line.strip().lower() == "help":
            print(HELP_TEXT, file=out)
            continue
        if not handle_command(viewer, line):
            break
        print(render_viewer(viewer), file=out)


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("PORTFOLIO_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    args = parse_args(argv)
    with PortfolioAPIClient(args.base_url, timeout=args.timeout) as api:
        viewer = ProfileViewer(api=api)
        viewer.load()
        if args.skill:
            viewer.select_skill(args.skill)
        elif args.search:
            viewer.submit_search(args.search)

        if args.interactive:
            run_interactive(viewer)
        else:
            print(render_viewer(viewer))
    return 1 if viewer.needs_retry else 0


if __name__ == "__main__":
    sys.exit(main())
