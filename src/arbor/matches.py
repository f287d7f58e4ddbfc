"""Match records — the stateful side of a resolved route.

``RouteMatch`` and ``RouterState`` are frozen dataclasses.  A transition
produces a new value (``dataclasses.replace``) that is written into the
store; nothing ever mutates a match another holder can see.

``CancellationToken`` and ``LoadCompletion`` are the two shared handles a
match carries across those copies.  Both create their ``anyio.Event``
lazily so matches can be built outside a running event loop.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal

import anyio

type MatchStatus = Literal["pending", "success", "error"]
type MatchCause = Literal["enter", "stay"]
type RouterStatus = Literal["idle", "pending"]


class CancellationToken:
    """Cooperative cancellation handle passed to loaders.

    Loaders may check ``cancelled`` or ``await wait()``; arbor itself only
    enforces cancellation when applying a load's result.
    """

    __slots__ = ("_cancelled", "_event", "_reason")

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._event: anyio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "superseded") -> None:
        """Signal cancellation.  Only the first reason is kept."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = anyio.Event()
        await self._event.wait()

    def __repr__(self) -> str:
        state = f"cancelled ({self._reason})" if self._cancelled else "active"
        return f"<CancellationToken {state}>"


class LoadCompletion:
    """Settles once when a match's load finishes, successfully or not."""

    __slots__ = ("_done", "_event", "_failed")

    def __init__(self) -> None:
        self._done = False
        self._failed = False
        self._event: anyio.Event | None = None

    @property
    def done(self) -> bool:
        return self._done

    @property
    def failed(self) -> bool:
        return self._failed

    def resolve(self, *, failed: bool = False) -> None:
        if self._done:
            return
        self._done = True
        self._failed = failed
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        if self._done:
            return
        if self._event is None:
            self._event = anyio.Event()
        await self._event.wait()

    def __repr__(self) -> str:
        if not self._done:
            return "<LoadCompletion pending>"
        return f"<LoadCompletion {'failed' if self._failed else 'ok'}>"


def make_match_id(route_id: str, pathname: str) -> str:
    """Match ids are stable per route + consumed pathname across reloads."""
    return f"{route_id}{pathname}"


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """The resolved, stateful instance of a route for a navigation."""

    id: str
    route_id: str
    pathname: str
    params: dict[str, Any] = field(default_factory=dict)
    status: MatchStatus = "pending"
    is_fetching: bool = False
    show_pending: bool = False
    invalid: bool = False
    error: BaseException | None = None
    params_error: BaseException | None = None
    search_error: BaseException | None = None
    loader_data: Any = None
    context: Mapping[str, Any] = field(default_factory=dict)
    search: Mapping[str, Any] = field(default_factory=dict)
    updated_at: float = 0.0
    fetched_at: float = 0.0
    cancel_token: CancellationToken = field(default_factory=CancellationToken, compare=False)
    load_completion: LoadCompletion = field(default_factory=LoadCompletion, compare=False)
    cause: MatchCause = "enter"

    def evolve(self, **changes: Any) -> RouteMatch:
        """Return a copy with *changes* applied."""
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class Location:
    """A navigation target.  ``pathname`` is kept verbatim."""

    pathname: str
    search: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LoaderContext:
    """Everything a loader (or ``before_load``) receives."""

    params: Mapping[str, Any]
    search: Mapping[str, Any]
    context: Mapping[str, Any]
    cancel_token: CancellationToken
    cause: MatchCause
    route_id: str
    match_id: str


@dataclass(frozen=True, slots=True)
class RouterState:
    """The router's current snapshot, held in a ``Store``."""

    status: RouterStatus = "idle"
    is_loading: bool = False
    is_fetching: bool = False
    location: Location | None = None
    resolved_location: Location | None = None
    matches: tuple[RouteMatch, ...] = ()

    def get_match(self, match_id: str) -> RouteMatch | None:
        for m in self.matches:
            if m.id == match_id:
                return m
        return None

    def with_match(self, match: RouteMatch) -> RouterState:
        """Return a state with the match sharing *match*'s id replaced."""
        return replace(
            self,
            matches=tuple(match if m.id == match.id else m for m in self.matches),
        )


def derive_fetching(state: RouterState, previous: RouterState) -> RouterState:
    """Store ``on_update`` transform keeping ``is_fetching`` consistent."""
    is_fetching = any(m.is_fetching for m in state.matches)
    if is_fetching == state.is_fetching:
        return state
    return replace(state, is_fetching=is_fetching)
