"""``arbor routes`` — list the routes of a tree.

Resolves an import string to a route tree and prints every route in
matching order (depth-first, declaration order) with its full path and
loader.
"""

import argparse

from arbor.cli._resolve import load_tree_or_exit
from arbor.routing.tree import RouteTree


def _depth(tree: RouteTree, route_id: str) -> int:
    return len(tree.branch(route_id)) - 1


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of ID, PATH, and LOADER for ``args.tree``."""
    tree = load_tree_or_exit(args)

    rows: list[tuple[str, str, str]] = []
    for r in tree:
        loader = r.options.loader
        loader_name = "-" if loader is None else getattr(loader, "__name__", str(loader))
        rows.append(("  " * _depth(tree, r.id) + r.id, r.full_path, loader_name))

    max_id = max(max(len(row[0]) for row in rows), 2)  # "ID" header
    max_path = max(max(len(row[1]) for row in rows), 4)  # "PATH" header

    fmt = f"{{:<{max_id}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("ID", "PATH", "LOADER"))
    sep_len = max_id + max_path + 4 + max(len(row[2]) for row in rows)
    print("-" * min(sep_len, 80))
    for route_id, path, loader_name in rows:
        print(fmt.format(route_id, path, loader_name))
