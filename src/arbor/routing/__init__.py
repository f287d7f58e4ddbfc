"""Routing — immutable route tree with declaration-ordered path matching.

Routes are declared once with ``route()``/``root_route()``, built into a
``RouteTree`` arena, and resolved by a ``PathMatcher``.
"""

from arbor.routing.matcher import MatchedRoute, MatchResult, PathMatcher, match_by_path, split_pathname
from arbor.routing.params import (
    decode_segment,
    decode_splat,
    encode_segment,
    encode_splat,
    interpolate_path,
)
from arbor.routing.route import ROOT_ROUTE_ID, Route, RouteDef, RouteOptions, Segment, parse_path, root_route, route
from arbor.routing.tree import RouteTree

__all__ = [
    "ROOT_ROUTE_ID",
    "MatchResult",
    "MatchedRoute",
    "PathMatcher",
    "Route",
    "RouteDef",
    "RouteOptions",
    "RouteTree",
    "Segment",
    "decode_segment",
    "decode_splat",
    "encode_segment",
    "encode_splat",
    "interpolate_path",
    "match_by_path",
    "parse_path",
    "root_route",
    "route",
    "split_pathname",
]
