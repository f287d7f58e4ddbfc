"""Reactive store — a generic state container with selector subscriptions.

Components:

- ``Store``: holds one current value; ``set_state()`` replaces it and
  synchronously notifies listeners with ``(new, previous)``.
- ``Selection``: a selector-scoped view that only fires its callback when
  the selected slice is not ``shallow``-equal to the last one it saw.
- ``shallow()``: one-level equality used for change suppression.

Example::

    store = Store(RouterState())

    def on_matches(matches, previous):
        rerender(matches)

    with Selection(store, lambda s: s.matches, on_matches):
        await router.navigate("/posts")

Notification is synchronous and ordered by subscription.  Listeners
always see a fully updated snapshot: the new value is installed (and the
``on_update`` transform applied) before the first listener runs.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping, Sequence
from typing import Any

type Listener[T] = Callable[[T, T], Any]
type Updater[T] = Callable[[T], T] | T


def functional_update[T](updater: Updater[T], previous: T) -> T:
    """Apply *updater* to *previous*: call it if callable, else use it as-is."""
    if callable(updater):
        return updater(previous)
    return updater


def _same(a: Any, b: Any) -> bool:
    return a is b or a == b


def shallow(a: Any, b: Any) -> bool:
    """Compare two values one level deep.

    Identity short-circuits.  Mappings compare key sets and values;
    lists/tuples compare length and items; dataclass instances of the same
    type compare fields.  Everything else falls back to ``==``.
    """
    if a is b:
        return True
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        return all(k in b and _same(v, b[k]) for k, v in a.items())
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(_same(x, y) for x, y in zip(a, b, strict=True))
    if (
        dataclasses.is_dataclass(a)
        and not isinstance(a, type)
        and type(a) is type(b)
    ):
        return all(
            _same(getattr(a, f.name), getattr(b, f.name)) for f in dataclasses.fields(a)
        )
    return _same(a, b)


class Store[T]:
    """Observable container for a single value.

    Usage::

        store = Store(0)
        unsubscribe = store.subscribe(lambda new, old: print(old, "->", new))
        store.set_state(lambda n: n + 1)          # prints 0 -> 1
        store.set_state(5, notify=False)          # silent
        unsubscribe()

    ``on_update(new, previous)`` is a fixed post-update transform applied
    on every ``set_state`` before listeners run, e.g. to keep derived
    fields consistent.
    """

    __slots__ = ("_listeners", "_on_update", "_state")

    def __init__(self, initial: T, *, on_update: Callable[[T, T], T] | None = None) -> None:
        self._on_update = on_update
        # dict as an insertion-ordered set keyed by registration token
        self._listeners: dict[object, Listener[T]] = {}
        self._state = initial

    def get_state(self) -> T:
        return self._state

    @property
    def state(self) -> T:
        return self._state

    def set_state(self, updater: Updater[T], *, notify: bool = True) -> None:
        """Replace the state and, unless ``notify=False``, notify listeners."""
        previous = self._state
        state = functional_update(updater, previous)
        if self._on_update is not None:
            state = self._on_update(state, previous)
        self._state = state
        if not notify:
            return
        for listener in tuple(self._listeners.values()):
            listener(state, previous)

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it.

        The same callable may be subscribed more than once; each
        subscription is removed independently.
        """
        key = object()
        self._listeners[key] = listener

        def unsubscribe() -> None:
            self._listeners.pop(key, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"<Store listeners={len(self._listeners)} state={self._state!r}>"


def _identity(state: Any) -> Any:
    return state


class Selection[T, S]:
    """A selector-scoped view of a ``Store``.

    The slice is recomputed on every store notification.  ``on_change`` is
    only called when the new slice is not ``shallow``-equal to the last
    one observed, so sequential updates that leave the slice unchanged
    do no downstream work.  A genuinely different slice is never
    suppressed.
    """

    __slots__ = ("_on_change", "_selector", "_slice", "_store", "_unsubscribe")

    def __init__(
        self,
        store: Store[T],
        selector: Callable[[T], S] | None = None,
        on_change: Callable[[S, S], Any] | None = None,
    ) -> None:
        self._store = store
        self._selector: Callable[[T], S] = selector or _identity
        self._on_change = on_change
        self._slice: S = self._selector(store.get_state())
        self._unsubscribe: Callable[[], None] | None = store.subscribe(self._handle)

    @property
    def value(self) -> S:
        return self._slice

    @property
    def closed(self) -> bool:
        return self._unsubscribe is None

    def _handle(self, state: T, previous: T) -> None:
        if state is previous:
            return
        next_slice = self._selector(state)
        if shallow(self._slice, next_slice):
            return
        prev_slice = self._slice
        self._slice = next_slice
        if self._on_change is not None:
            self._on_change(next_slice, prev_slice)

    def close(self) -> None:
        """Stop observing the store.  Safe to call more than once."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> Selection[T, S]:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def select[T, S](store: Store[T], selector: Callable[[T], S]) -> S:
    """Read a slice of the current state once."""
    return selector(store.get_state())


def watch[T, S](
    store: Store[T],
    selector: Callable[[T], S],
    on_change: Callable[[S, S], Any],
) -> Selection[T, S]:
    """Subscribe *on_change* to a slice of *store*.  Close the result to stop."""
    return Selection(store, selector, on_change)
