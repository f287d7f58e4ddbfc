"""Arbor CLI — inspect route trees and try out navigations.

Entry point registered as ``arbor`` in ``pyproject.toml``::

    [project.scripts]
    arbor = "arbor.cli:main"
"""

import argparse
import sys


def _add_tree_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "tree",
        help="Import string for a RouteTree, RouteDef, or Router (e.g. myapp.routes:tree)",
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``arbor`` command."""
    parser = argparse.ArgumentParser(
        prog="arbor",
        description="Arbor — nested route matching with async loaders.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- arbor routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List routes in declaration order")
    _add_tree_argument(routes_parser)

    # -- arbor match ------------------------------------------------------
    match_parser = subparsers.add_parser("match", help="Resolve a pathname to a match chain")
    _add_tree_argument(match_parser)
    match_parser.add_argument("pathname", help="Pathname to resolve (e.g. /posts/tanner)")
    match_parser.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Compare literal segments case-sensitively",
    )
    match_parser.add_argument(
        "--fuzzy",
        action="store_true",
        help="Accept routes that match a prefix of the pathname",
    )
    match_parser.add_argument(
        "--trailing-slash",
        choices=("always", "never", "preserve"),
        default="never",
        help="Trailing-slash policy for the resolved location",
    )

    # -- arbor load -------------------------------------------------------
    load_parser = subparsers.add_parser("load", help="Navigate and run loaders")
    _add_tree_argument(load_parser)
    load_parser.add_argument("pathname", help="Pathname to navigate to")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from arbor.cli._routes import run_routes

        run_routes(args)
    elif args.command == "match":
        from arbor.cli._match import run_match

        run_match(args)
    elif args.command == "load":
        from arbor.cli._load import run_load

        run_load(args)
