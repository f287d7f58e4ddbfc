"""Segment, Route, and RouteDef — route declarations and their frozen form."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from arbor.errors import ConfigurationError
from arbor.routing.params import SEPARATOR, SPLAT_PARAM

ROOT_ROUTE_ID = "__root__"

type SegmentKind = Literal["literal", "param", "splat"]


@dataclass(frozen=True, slots=True)
class Segment:
    """A parsed segment of a route path.

    Literal: ``/posts``   (kind="literal", value="posts")
    Param:   ``/$slug``   (kind="param", value="slug")
    Splat:   ``/$``       (kind="splat", value="_splat")
    """

    kind: SegmentKind
    value: str


def parse_path(path: str | None) -> tuple[Segment, ...]:
    """Parse a route path pattern into segments.

    Examples::

        "/posts"        -> (Segment("literal", "posts"),)
        "/posts/$slug"  -> (Segment("literal", "posts"), Segment("param", "slug"))
        "files/$"       -> (Segment("literal", "files"), Segment("splat", "_splat"))
        "/"             -> ()

    Raises ``ConfigurationError`` if a splat is not the last segment.
    """
    if not path:
        return ()
    parts = [p for p in path.strip(SEPARATOR).split(SEPARATOR) if p]
    segments: list[Segment] = []
    for i, part in enumerate(parts):
        if part == "$":
            if i != len(parts) - 1:
                msg = f"Splat '$' must be the last segment of {path!r}"
                raise ConfigurationError(msg)
            segments.append(Segment("splat", SPLAT_PARAM))
        elif part.startswith("$"):
            segments.append(Segment("param", part[1:]))
        else:
            segments.append(Segment("literal", part))
    return tuple(segments)


@dataclass(frozen=True, slots=True)
class RouteOptions:
    """Per-route behaviour.  Components are opaque to arbor."""

    loader: Callable[..., Any] | None = None
    before_load: Callable[..., Any] | None = None
    parse_params: Callable[[dict[str, str]], Mapping[str, Any]] | None = None
    validate_search: Callable[[Mapping[str, Any]], Mapping[str, Any]] | None = None
    component: Any = None
    pending_component: Any = None
    error_component: Any = None
    # Overrides for RouterConfig defaults (None = use the router's)
    pending_delay: float | None = None
    pending_min: float | None = None
    stale_time: float | None = None
    case_sensitive: bool | None = None
    # True = a trailing slash must match the declared path exactly (inherited by children)
    strict_trailing_slash: bool | None = None


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route node.

    Parent and children are referenced by id, never by object, so the
    tree holds no reference cycles.
    """

    id: str
    path: str | None
    full_path: str
    segments: tuple[Segment, ...]
    parent_id: str | None
    children: tuple[str, ...] = ()
    options: RouteOptions = field(default_factory=RouteOptions)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def loader(self) -> Callable[..., Any] | None:
        return self.options.loader


@dataclass(slots=True)
class RouteDef:
    """A route declaration, turned into ``Route`` nodes by ``RouteTree.build()``.

    Usage::

        tree = RouteTree.build(
            root_route(
                route("/"),
                route("/posts", route("/$slug", loader=load_post)),
                route("$"),
            )
        )
    """

    path: str | None = None
    id: str | None = None
    children: list[RouteDef] = field(default_factory=list)
    options: RouteOptions = field(default_factory=RouteOptions)

    def add_children(self, *children: RouteDef) -> RouteDef:
        """Append child declarations in order and return ``self`` for chaining."""
        self.children.extend(children)
        return self


def route(path: str | None, *children: RouteDef, id: str | None = None, **options: Any) -> RouteDef:  # noqa: A002
    """Declare a route.  Keyword options become ``RouteOptions`` fields."""
    return RouteDef(path=path, id=id, children=list(children), options=RouteOptions(**options))


def root_route(*children: RouteDef, **options: Any) -> RouteDef:
    """Declare the root of a route tree."""
    return RouteDef(path=None, id=ROOT_ROUTE_ID, children=list(children), options=RouteOptions(**options))
