"""Route tree — an immutable arena of routes indexed by id.

Declarations (``RouteDef``) are walked once into frozen ``Route`` nodes.
Child lists and parent links are ids into the arena, so the tree holds
no reference cycles and never changes after ``build()``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from arbor.errors import ConfigurationError
from arbor.routing.params import SEPARATOR
from arbor.routing.route import ROOT_ROUTE_ID, Route, RouteDef, parse_path


def _join_id(parent: Route, path: str | None, explicit_id: str | None) -> str:
    """Derive a route id from its parent and path.

    ``/posts`` under root -> ``/posts``; ``$slug`` under ``/posts`` ->
    ``/posts/$slug``; the index ``/`` under ``/posts`` -> ``/posts/``.
    """
    if explicit_id is not None:
        return explicit_id
    if path is None:
        msg = f"Pathless route under {parent.id!r} needs an explicit id"
        raise ConfigurationError(msg)
    prefix = "" if parent.is_root else parent.id.rstrip(SEPARATOR)
    return f"{prefix}{SEPARATOR}{path.strip(SEPARATOR)}"


def _join_path(parent: Route, path: str | None) -> str:
    base = parent.full_path.rstrip(SEPARATOR)
    if not path:
        return parent.full_path
    trimmed = path.strip(SEPARATOR)
    if not trimmed:
        return f"{base}{SEPARATOR}"
    return f"{base}{SEPARATOR}{trimmed}"


class RouteTree:
    """Immutable route arena.

    Usage::

        tree = RouteTree.build(root_route(route("/posts", route("$slug"))))
        tree["/posts/$slug"].parent_id  # "/posts"
        [r.id for r in tree]            # depth-first, declaration order
    """

    __slots__ = ("_root_id", "_routes")

    def __init__(self, routes: Mapping[str, Route], root_id: str = ROOT_ROUTE_ID) -> None:
        if root_id not in routes:
            msg = f"Root route {root_id!r} is missing from the arena"
            raise ConfigurationError(msg)
        self._routes: Mapping[str, Route] = MappingProxyType(dict(routes))
        self._root_id = root_id

    @classmethod
    def build(cls, root: RouteDef) -> RouteTree:
        """Walk a declaration tree into a frozen arena.

        Raises ``ConfigurationError`` on duplicate ids, pathless routes
        without an id, or a splat that is not the last segment.
        """
        root_id = root.id or ROOT_ROUTE_ID
        routes: dict[str, Route] = {}
        root_node = Route(
            id=root_id,
            path=root.path,
            full_path=SEPARATOR,
            segments=parse_path(root.path),
            parent_id=None,
            options=root.options,
        )
        routes[root_id] = root_node
        routes[root_id] = cls._build_children(root_node, root, routes)
        return cls(routes, root_id)

    @classmethod
    def _build_children(cls, node: Route, decl: RouteDef, routes: dict[str, Route]) -> Route:
        """Register *decl*'s children, then return *node* with its child ids."""
        child_ids: list[str] = []
        for child_decl in decl.children:
            child_id = _join_id(node, child_decl.path, child_decl.id)
            if child_id in routes:
                msg = f"Duplicate route id {child_id!r}. Give one of the routes an explicit id."
                raise ConfigurationError(msg)
            child = Route(
                id=child_id,
                path=child_decl.path,
                full_path=_join_path(node, child_decl.path),
                segments=parse_path(child_decl.path),
                parent_id=node.id,
                options=child_decl.options,
            )
            # Reserve the id before descending so grandchildren can't reuse it
            routes[child_id] = child
            routes[child_id] = cls._build_children(child, child_decl, routes)
            child_ids.append(child_id)
        return Route(
            id=node.id,
            path=node.path,
            full_path=node.full_path,
            segments=node.segments,
            parent_id=node.parent_id,
            children=tuple(child_ids),
            options=node.options,
        )

    @property
    def root(self) -> Route:
        return self._routes[self._root_id]

    @property
    def routes(self) -> list[Route]:
        """All routes, depth-first in declaration order."""
        return list(self)

    def get(self, route_id: str) -> Route | None:
        return self._routes.get(route_id)

    def __getitem__(self, route_id: str) -> Route:
        return self._routes[route_id]

    def __contains__(self, route_id: object) -> bool:
        return route_id in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        stack = [self._root_id]
        while stack:
            r = self._routes[stack.pop()]
            yield r
            stack.extend(reversed(r.children))

    def children(self, route_id: str) -> tuple[Route, ...]:
        return tuple(self._routes[c] for c in self._routes[route_id].children)

    def parent(self, route_id: str) -> Route | None:
        parent_id = self._routes[route_id].parent_id
        return None if parent_id is None else self._routes[parent_id]

    def branch(self, route_id: str) -> tuple[Route, ...]:
        """Return the ancestor chain of *route_id*, root first."""
        chain: list[Route] = []
        current: str | None = route_id
        while current is not None:
            r = self._routes[current]
            chain.append(r)
            current = r.parent_id
        return tuple(reversed(chain))

    def __repr__(self) -> str:
        return f"<RouteTree {len(self)} routes>"
