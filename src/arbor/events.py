"""Router event bus — navigation lifecycle notifications.

The router emits a ``RouterEvent`` when a navigation starts loading
(``before_load``), when its loaders have settled (``load``), when it
becomes the resolved location (``resolved``), and when a late result
from a superseded load is dropped (``stale_discarded``).

Two ways to listen:

- ``on(type, listener)``: synchronous callback, run in the emitter's turn.
- ``subscribe()``: async iterator for telemetry/dashboards, each
  subscriber backed by its own bounded anyio memory stream.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any, Literal

import anyio
from anyio.abc import ObjectSendStream

from arbor.matches import Location

type RouterEventType = Literal["before_load", "load", "resolved", "stale_discarded"]

ALL_EVENTS: tuple[RouterEventType, ...] = ("before_load", "load", "resolved", "stale_discarded")


@dataclass(frozen=True, slots=True)
class RouterEvent:
    """A single router lifecycle event.

    ``detail`` carries event-specific data, e.g. the
    ``StaleResultDiscarded`` value for ``stale_discarded``.
    """

    type: RouterEventType
    from_location: Location | None
    to_location: Location | None
    path_changed: bool = False
    detail: Any = None
    timestamp: float = field(default_factory=time.time)
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])


class EventBus:
    """Broadcast channel for router events.

    Usage::

        unsubscribe = router.events.on("resolved", lambda e: print(e.to_location))

        async for event in router.events.subscribe():
            log_event(event)
    """

    __slots__ = ("_listeners", "_streams")

    def __init__(self) -> None:
        self._listeners: dict[RouterEventType, dict[object, Callable[[RouterEvent], Any]]] = {
            kind: {} for kind in ALL_EVENTS
        }
        self._streams: set[ObjectSendStream[RouterEvent]] = set()

    def on(self, kind: RouterEventType, listener: Callable[[RouterEvent], Any]) -> Callable[[], None]:
        """Call *listener* for every event of *kind*.  Returns an unsubscribe callable."""
        if kind not in self._listeners:
            msg = f"Unknown router event {kind!r}"
            raise ValueError(msg)
        key = object()
        self._listeners[kind][key] = listener

        def unsubscribe() -> None:
            self._listeners[kind].pop(key, None)

        return unsubscribe

    def emit(self, event: RouterEvent) -> None:
        """Deliver *event* to listeners (in registration order), then to streams."""
        for listener in tuple(self._listeners[event.type].values()):
            listener(event)
        for stream in tuple(self._streams):
            try:
                stream.send_nowait(event)
            except anyio.WouldBlock:
                # Drop event for slow consumers rather than blocking
                pass
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                self._streams.discard(stream)

    async def subscribe(self) -> AsyncIterator[RouterEvent]:
        """Subscribe to all router events.

        Yields events as they are emitted.  The subscription is cleaned up
        when the iterator exits or the bus is closed.
        """
        send, receive = anyio.create_memory_object_stream[RouterEvent](max_buffer_size=256)
        self._streams.add(send)
        try:
            async with receive:
                async for event in receive:
                    yield event
        finally:
            self._streams.discard(send)
            send.close()

    def close(self) -> None:
        """End every active ``subscribe()`` iterator."""
        for stream in self._streams:
            stream.close()
        self._streams.clear()
