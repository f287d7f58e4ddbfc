"""``arbor load`` — navigate once and report every match's outcome.

Runs the full load lifecycle under ``anyio.run`` so loaders and
``before_load`` hooks behave exactly as they would in an application.
"""

import argparse
import sys

import anyio

from arbor.cli._resolve import load_tree_or_exit
from arbor.errors import NoMatchError
from arbor.matches import RouterState
from arbor.router import Router


def run_load(args: argparse.Namespace) -> None:
    """Navigate to ``args.pathname`` and print status and loader data.

    Exits with status 1 when nothing matches or any match ends in error.
    """
    tree = load_tree_or_exit(args)
    router = Router(tree)

    try:
        state: RouterState = anyio.run(router.navigate, args.pathname)
    except NoMatchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(f"location: {state.resolved_location.pathname if state.resolved_location else '-'}")
    failed = False
    for m in state.matches:
        print(f"  {m.route_id:<24} {m.status:<8} {m.loader_data!r}")
        if m.error is not None:
            failed = True
            print(f"    error: {m.error}")
    if failed:
        raise SystemExit(1)
