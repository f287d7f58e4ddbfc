"""Match lifecycle — pending → success/error for every match in a chain.

Pipeline for one navigation::

    prepare()    build the chain: new matches (enter), reused fresh
                 matches (stay), or reused matches that revalidate (stay)
    load_all()   1. run ``before_load`` serially root → leaf, cascading context
                 2. run every fetching match's loader concurrently
    load()       per match: pending-delay timer, loader call, minimum
                 pending display, gated write of the result

Every write is gated on the match in the store still carrying the same
cancellation token, and that token not being cancelled.  A superseded
load therefore can never overwrite newer state, even if its loader
ignores the token and runs to completion.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

import anyio

from arbor.errors import LoaderError, StaleResultDiscarded
from arbor.events import EventBus, RouterEvent
from arbor.matches import (
    CancellationToken,
    LoadCompletion,
    LoaderContext,
    RouteMatch,
    RouterState,
    make_match_id,
)

if TYPE_CHECKING:
    from arbor.config import RouterConfig
    from arbor.routing.matcher import MatchedRoute, MatchResult
    from arbor.routing.route import Route
    from arbor.routing.tree import RouteTree
    from arbor.store import Store

logger = logging.getLogger("arbor.lifecycle")

_NO_DATA = object()


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a loader-like callable and await the result if it's awaitable.

    Loaders and ``before_load`` hooks can be ``def`` or ``async def``.
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def _own_param_names(route: Route) -> set[str]:
    return {seg.value for seg in route.segments if seg.kind != "literal"}


def _failure(match: RouteMatch) -> BaseException | None:
    """The params or search error that keeps *match* from loading."""
    return match.params_error or match.search_error


class MatchLifecycle:
    """Drives matches through their load lifecycle and writes each
    transition into the router's store.

    Takes the store, tree, and config explicitly; there is no ambient
    "current router".
    """

    __slots__ = ("_config", "_events", "_store", "_tree")

    def __init__(
        self,
        store: Store[RouterState],
        tree: RouteTree,
        config: RouterConfig,
        *,
        events: EventBus | None = None,
    ) -> None:
        self._store = store
        self._tree = tree
        self._config = config
        self._events = events

    # -- Preparation -------------------------------------------------------

    def prepare(
        self,
        result: MatchResult,
        previous: RouterState,
        search: Mapping[str, Any],
    ) -> tuple[RouteMatch, ...]:
        """Build the match chain for *result*, reusing matches from *previous*.

        A match whose id survives the navigation is reused with
        ``cause="stay"``.  It keeps its data and only reloads when it is
        invalid, errored, still fetching, or older than its stale time.
        """
        now = time.time()
        matches: list[RouteMatch] = []
        inherited_params: dict[str, Any] = {}
        parent_search: dict[str, Any] = dict(search)

        for matched in result.chain:
            route = matched.route
            params, params_error, inherited_params = self._parse_params(
                route, matched, inherited_params
            )
            match_search, search_error = self._validate_search(route, search, parent_search)
            parent_search = dict(match_search)

            match_id = make_match_id(route.id, matched.pathname)
            existing = previous.get_match(match_id)
            fields: dict[str, Any] = {
                "params": params,
                "params_error": params_error,
                "search": match_search,
                "search_error": search_error,
            }

            if existing is None:
                matches.append(
                    RouteMatch(
                        id=match_id,
                        route_id=route.id,
                        pathname=matched.pathname,
                        status="pending",
                        is_fetching=True,
                        cause="enter",
                        **fields,
                    )
                )
            elif params_error is None and search_error is None and self._is_fresh(existing, route, now):
                matches.append(existing.evolve(cause="stay", **fields))
            else:
                matches.append(
                    existing.evolve(
                        status="pending",
                        is_fetching=True,
                        show_pending=False,
                        invalid=True,
                        cause="stay",
                        cancel_token=CancellationToken(),
                        load_completion=LoadCompletion(),
                        **fields,
                    )
                )
        return tuple(matches)

    def _parse_params(
        self,
        route: Route,
        matched: MatchedRoute,
        inherited: dict[str, Any],
    ) -> tuple[dict[str, Any], BaseException | None, dict[str, Any]]:
        own = _own_param_names(route)
        params = {**matched.params, **{k: v for k, v in inherited.items() if k not in own}}
        error: BaseException | None = matched.params_error
        parse = route.options.parse_params
        if parse is not None and error is None:
            try:
                parsed = dict(parse(dict(params)))
            except Exception as exc:
                error = exc
            else:
                params.update(parsed)
                inherited = {**inherited, **parsed}
        return params, error, inherited

    @staticmethod
    def _validate_search(
        route: Route,
        raw: Mapping[str, Any],
        parent: dict[str, Any],
    ) -> tuple[dict[str, Any], BaseException | None]:
        validate = route.options.validate_search
        if validate is None:
            return parent, None
        try:
            validated = validate(raw)
        except Exception as exc:
            return parent, exc
        return {**parent, **validated}, None

    def _is_fresh(self, match: RouteMatch, route: Route, now: float) -> bool:
        if match.status != "success" or match.invalid or match.is_fetching:
            return False
        stale_time = route.options.stale_time
        if stale_time is None:
            stale_time = self._config.default_stale_time
        return now - match.updated_at < stale_time

    # -- Loading -----------------------------------------------------------

    async def load_all(
        self,
        matches: tuple[RouteMatch, ...],
        *,
        context: Mapping[str, Any] | None = None,
        abort: CancellationToken | None = None,
    ) -> None:
        """Run ``before_load`` hooks, then every fetching match's loader.

        Stops early (leaving the store untouched) once *abort* is cancelled.
        """
        ctx: dict[str, Any] = dict(context or {})
        contexts: dict[str, dict[str, Any]] = {}
        failed: dict[str, LoaderError] = {}

        for match in matches:
            if abort is not None and abort.cancelled:
                return
            route = self._tree[match.route_id]
            hook = route.options.before_load
            if hook is not None and _failure(match) is None:
                try:
                    extra = await invoke(hook, self._loader_context(match, ctx))
                    if extra:
                        ctx = {**ctx, **extra}
                except Exception as exc:
                    failed[match.id] = LoaderError(route.id, exc, phase="before_load")
                    contexts[match.id] = ctx
                    continue
            contexts[match.id] = ctx

        if abort is not None and abort.cancelled:
            return

        self._store.set_state(lambda s: self._apply_contexts(s, matches, contexts))

        for match in matches:
            if match.id in failed:
                self.settle(match, error=failed[match.id])

        async with anyio.create_task_group() as tg:
            for match in matches:
                if match.id in failed or not match.is_fetching:
                    continue
                current = self._active(match)
                if current is not None:
                    tg.start_soon(self.load, current)

    @staticmethod
    def _apply_contexts(
        state: RouterState,
        matches: tuple[RouteMatch, ...],
        contexts: dict[str, dict[str, Any]],
    ) -> RouterState:
        tokens = {m.id: m.cancel_token for m in matches}
        updated = []
        for m in state.matches:
            token = tokens.get(m.id)
            if token is m.cancel_token and not token.cancelled and m.id in contexts:
                m = m.evolve(context=contexts[m.id])
            updated.append(m)
        return replace(state, matches=tuple(updated))

    async def load(self, match: RouteMatch) -> None:
        """Load one match and write the outcome if it is still current."""
        route = self._tree[match.route_id]
        failure = _failure(match)
        if failure is not None:
            self.settle(match, error=failure)
            return
        loader = route.options.loader
        if loader is None:
            self.settle(match, data=match.loader_data)
            return

        delay = route.options.pending_delay
        if delay is None:
            delay = self._config.default_pending_delay
        minimum = route.options.pending_min
        if minimum is None:
            minimum = self._config.default_pending_min

        shown_at: list[float] = []
        data: Any = _NO_DATA
        error: LoaderError | None = None

        async with anyio.create_task_group() as tg:
            # Stay reloads keep showing their previous data; no fallback gate
            if match.cause == "enter":
                tg.start_soon(self._pending_timer, match, delay, shown_at)
            try:
                data = await invoke(loader, self._loader_context(match, match.context))
            except Exception as exc:
                error = LoaderError(route.id, exc)
            tg.cancel_scope.cancel()

        if shown_at and minimum > 0:
            remaining = shown_at[0] + minimum - anyio.current_time()
            if remaining > 0:
                await anyio.sleep(remaining)

        if error is not None:
            self.settle(match, error=error)
        else:
            self.settle(match, data=data)

    async def _pending_timer(self, match: RouteMatch, delay: float, shown_at: list[float]) -> None:
        await anyio.sleep(delay)
        if self._active(match) is not None and self.write(match, show_pending=True):
            shown_at.append(anyio.current_time())

    def settle(
        self,
        match: RouteMatch,
        *,
        data: Any = _NO_DATA,
        error: BaseException | None = None,
    ) -> bool:
        """Apply a success or error outcome.  Returns ``False`` if discarded."""
        now = time.time()
        if error is not None:
            changes: dict[str, Any] = {
                "status": "error",
                "error": error,
                "updated_at": now,
            }
        else:
            changes = {
                "status": "success",
                "loader_data": None if data is _NO_DATA else data,
                "error": None,
                "params_error": None,
                "search_error": None,
                "updated_at": now,
                "fetched_at": now,
            }
        changes.update(is_fetching=False, show_pending=False, invalid=False)
        applied = self.write(match, **changes)
        match.load_completion.resolve(failed=error is not None)
        return applied

    # -- Gated writes ------------------------------------------------------

    def _active(self, match: RouteMatch) -> RouteMatch | None:
        """The store's copy of *match*, if *match*'s token is still the live one."""
        current = self._store.get_state().get_match(match.id)
        if current is None or current.cancel_token is not match.cancel_token:
            return None
        if match.cancel_token.cancelled:
            return None
        return current

    def write(self, match: RouteMatch, **changes: Any) -> bool:
        """Write *changes* into the store's copy of *match* if still current.

        Returns ``False`` (and reports a ``StaleResultDiscarded``) otherwise.
        """
        current = self._active(match)
        if current is None:
            self._discard(match)
            return False
        updated = current.evolve(**changes)
        self._store.set_state(lambda s: s.with_match(updated))
        return True

    def _discard(self, match: RouteMatch) -> None:
        stale = StaleResultDiscarded(match.id, match.route_id)
        logger.debug("%s (token %r)", stale, match.cancel_token)
        if self._events is not None:
            location = self._store.get_state().location
            self._events.emit(
                RouterEvent(
                    type="stale_discarded",
                    from_location=None,
                    to_location=location,
                    detail=stale,
                )
            )

    def _loader_context(self, match: RouteMatch, context: Mapping[str, Any]) -> LoaderContext:
        return LoaderContext(
            params=match.params,
            search=match.search,
            context=context,
            cancel_token=match.cancel_token,
            cause=match.cause,
            route_id=match.route_id,
            match_id=match.id,
        )
