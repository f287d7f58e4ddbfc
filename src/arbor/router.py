"""Router — resolve pathnames and drive their matches into a store.

Usage::

    tree = RouteTree.build(
        root_route(
            route("/"),
            route("/posts", route("$slug", loader=load_post)),
            route("$"),
        )
    )
    router = Router(tree, RouterConfig(default_pending_delay=0.2))

    state = await router.navigate("/posts/tanner")
    state.matches[-1].params        # {"slug": "tanner"}
    state.matches[-1].loader_data   # whatever load_post returned

Only the latest navigation ever marks the state idle and sets
``resolved_location``; a navigation that is superseded while its loaders
are running returns without doing so.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import replace
from typing import Any

from arbor.config import RouterConfig
from arbor.errors import MatchNotFoundError
from arbor.events import EventBus, RouterEvent, RouterEventType
from arbor.lifecycle import MatchLifecycle
from arbor.matches import CancellationToken, Location, RouteMatch, RouterState, derive_fetching
from arbor.routing.matcher import MatchResult, PathMatcher, match_by_path
from arbor.routing.params import interpolate_path
from arbor.routing.route import RouteDef
from arbor.routing.tree import RouteTree
from arbor.store import Store

logger = logging.getLogger("arbor.router")


class Router:
    """Navigation entry point over a route tree.

    All state lives in ``router.store``; renderers subscribe to it (or to
    a ``Selection`` over it) and read ``status``, ``show_pending``,
    ``loader_data``, and ``error`` from the matches.
    """

    __slots__ = ("_config", "_context", "_events", "_lifecycle", "_matcher", "_navigation", "_store", "_tree")

    def __init__(
        self,
        tree: RouteTree | RouteDef,
        config: RouterConfig | None = None,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        if isinstance(tree, RouteDef):
            tree = RouteTree.build(tree)
        self._tree = tree
        self._config = config or RouterConfig()
        self._matcher = PathMatcher(
            tree,
            case_sensitive=self._config.case_sensitive,
            trailing_slash=self._config.trailing_slash,
        )
        self._store: Store[RouterState] = Store(RouterState(), on_update=derive_fetching)
        self._events = EventBus()
        self._lifecycle = MatchLifecycle(self._store, tree, self._config, events=self._events)
        self._context: dict[str, Any] = dict(context or {})
        self._navigation: CancellationToken | None = None

    @property
    def tree(self) -> RouteTree:
        return self._tree

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def store(self) -> Store[RouterState]:
        return self._store

    @property
    def state(self) -> RouterState:
        return self._store.get_state()

    @property
    def events(self) -> EventBus:
        return self._events

    # -- Navigation --------------------------------------------------------

    def resolve(self, pathname: str) -> MatchResult:
        """Match *pathname* without touching the store.

        Raises ``NoMatchError`` if nothing matches.
        """
        return self._matcher.match(pathname)

    async def navigate(
        self,
        pathname: str,
        *,
        search: Mapping[str, Any] | None = None,
    ) -> RouterState:
        """Resolve *pathname*, load its matches, and return the final state.

        Raises ``NoMatchError`` before any state change if nothing matches.
        Loads still in flight from an earlier navigation are cancelled
        before the new loaders start.
        """
        result = self._matcher.match(pathname)
        location = Location(pathname=result.pathname, search=dict(search or {}))

        if self._navigation is not None:
            self._navigation.cancel("superseded")
        navigation = self._navigation = CancellationToken()

        previous = self._store.get_state()
        for m in previous.matches:
            if m.is_fetching:
                m.cancel_token.cancel("superseded")

        matches = self._lifecycle.prepare(result, previous, location.search)
        from_location = previous.resolved_location
        logger.debug("Navigating to %r: %s", location.pathname, " > ".join(result.route_ids))
        self._store.set_state(
            lambda s: replace(
                s,
                status="pending",
                is_loading=True,
                location=location,
                matches=matches,
            )
        )
        self._emit("before_load", from_location, location)

        await self._lifecycle.load_all(matches, context=self._context, abort=navigation)

        if navigation.cancelled:
            logger.debug("Navigation to %r superseded", location.pathname)
            return self._store.get_state()

        self._navigation = None
        self._store.set_state(
            lambda s: replace(s, status="idle", is_loading=False, resolved_location=location)
        )
        self._emit("load", from_location, location)
        self._emit("resolved", from_location, location)
        return self._store.get_state()

    async def reload(self) -> RouterState:
        """Navigate to the current location again (surviving matches stay)."""
        location = self._store.get_state().location
        if location is None:
            return self._store.get_state()
        return await self.navigate(location.pathname, search=location.search)

    async def invalidate(self, match_id: str | None = None) -> RouterState:
        """Mark one match (or all) invalid and revalidate the current location.

        Invalid matches keep their data visible while they reload with
        ``cause="stay"``.  Raises ``MatchNotFoundError`` for an unknown
        *match_id*.
        """
        state = self._store.get_state()
        if match_id is not None and state.get_match(match_id) is None:
            msg = f"No active match {match_id!r}"
            raise MatchNotFoundError(match_id, msg)

        def mark(s: RouterState) -> RouterState:
            return replace(
                s,
                matches=tuple(
                    m.evolve(invalid=True) if match_id is None or m.id == match_id else m
                    for m in s.matches
                ),
            )

        self._store.set_state(mark)
        return await self.reload()

    # -- Queries -----------------------------------------------------------

    def match_route(
        self,
        to: str,
        *,
        fuzzy: bool = False,
        case_sensitive: bool | None = None,
        pending: bool = False,
    ) -> dict[str, Any] | None:
        """Return params if the pattern *to* matches the current location.

        Checks the resolved location, or the location being loaded when
        ``pending=True`` (``None`` if nothing is pending).  ``fuzzy``
        accepts *to* as a prefix of the location, for "active link" checks.
        """
        state = self._store.get_state()
        if pending:
            if state.status != "pending":
                return None
            location = state.location
        else:
            location = state.resolved_location
        if location is None:
            return None
        if case_sensitive is None:
            case_sensitive = self._config.case_sensitive
        return match_by_path(location.pathname, to, fuzzy=fuzzy, case_sensitive=case_sensitive)

    def get_match(self, match_id: str) -> RouteMatch | None:
        return self._store.get_state().get_match(match_id)

    def child_match(self, parent_match_id: str) -> RouteMatch | None:
        """The match rendered in *parent_match_id*'s outlet, if any."""
        matches = self._store.get_state().matches
        for i, m in enumerate(matches):
            if m.id == parent_match_id:
                return matches[i + 1] if i + 1 < len(matches) else None
        return None

    def loader_data(self, route_id: str, select: Callable[[Any], Any] | None = None) -> Any:
        """Loader data of the active match for *route_id*, optionally selected.

        Raises ``MatchNotFoundError`` if the route is not in the current chain.
        """
        for m in self._store.get_state().matches:
            if m.route_id == route_id:
                return select(m.loader_data) if select is not None else m.loader_data
        msg = f"Route {route_id!r} is not in the current match chain"
        raise MatchNotFoundError(route_id, msg)

    def href(self, route_id: str, params: Mapping[str, Any] | None = None) -> str:
        """Build a location string for *route_id* from *params*."""
        route = self._tree[route_id]
        return self._matcher.normalize(interpolate_path(route.full_path, params or {}))

    # -- Events ------------------------------------------------------------

    def _emit(self, kind: RouterEventType, from_location: Location | None, to_location: Location) -> None:
        self._events.emit(
            RouterEvent(
                type=kind,
                from_location=from_location,
                to_location=to_location,
                path_changed=from_location is None or from_location.pathname != to_location.pathname,
            )
        )

    def __repr__(self) -> str:
        return f"<Router {len(self._tree)} routes status={self.state.status}>"
