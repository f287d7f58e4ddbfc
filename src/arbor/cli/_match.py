"""``arbor match`` — resolve a pathname without running loaders."""

import argparse
import sys

from arbor.cli._resolve import load_tree_or_exit
from arbor.errors import NoMatchError
from arbor.routing.matcher import PathMatcher


def run_match(args: argparse.Namespace) -> None:
    """Print the location and match chain for ``args.pathname``.

    Exits with status 1 when nothing matches.
    """
    tree = load_tree_or_exit(args)
    matcher = PathMatcher(
        tree,
        case_sensitive=args.case_sensitive,
        fuzzy=args.fuzzy,
        trailing_slash=args.trailing_slash,
    )
    try:
        result = matcher.match(args.pathname)
    except NoMatchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(f"location: {result.pathname}")
    for matched in result.chain:
        line = f"  {matched.route.id:<24} {matched.pathname}"
        if matched.params_error is not None:
            line += f"  [params error: {matched.params_error.reason}]"
        print(line)
    if result.params:
        print("params:")
        for name, value in result.params.items():
            print(f"  {name} = {value!r}")
