"""Tree import resolution — resolves ``"module:attribute"`` strings to route trees.

Shared utility used by every ``arbor`` subcommand to locate a route tree
from a user-supplied import string.
"""

import argparse
import importlib
import sys

from arbor.router import Router
from arbor.routing.route import RouteDef
from arbor.routing.tree import RouteTree


def resolve_tree(import_string: str) -> RouteTree:
    """Resolve an import string to a ``RouteTree``.

    Accepts ``"module:attribute"`` format.  When the attribute portion is
    omitted, defaults to ``"tree"`` (e.g. ``"myapp.routes"`` resolves to
    ``myapp.routes.tree``).

    The attribute may be a ``RouteTree``, a root ``RouteDef`` (built on
    the fly), a ``Router`` (its tree is used), or a factory returning any
    of those.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a tree, declaration, or router.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "tree"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, (RouteTree, RouteDef, Router)):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if isinstance(obj, Router):
        return obj.tree
    if isinstance(obj, RouteDef):
        return RouteTree.build(obj)
    if isinstance(obj, RouteTree):
        return obj

    msg = f"{import_string!r} resolved to {type(obj).__name__}, not a RouteTree, RouteDef, or Router"
    raise TypeError(msg)


def load_tree_or_exit(args: argparse.Namespace) -> RouteTree:
    """Resolve ``args.tree``, printing the error and exiting 1 on failure."""
    try:
        return resolve_tree(args.tree)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
