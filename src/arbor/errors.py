"""Arbor exception hierarchy.

Shared across the matcher, lifecycle, and router so every module
raises and catches the same types.
"""

from dataclasses import dataclass


class ArborError(Exception):
    """Base for all arbor-specific errors."""


class ConfigurationError(ArborError):
    """Raised when a route declaration or router configuration is invalid.

    Typically caught during ``RouteTree.build()`` at startup.
    """


@dataclass(frozen=True, slots=True)
class NoMatchError(ArborError):
    """No route in the tree matches the pathname and no splat catches it.

    Propagated to the caller; the router never recovers from it internally.
    """

    pathname: str

    def __str__(self) -> str:
        return f"No route matches {self.pathname!r}"


class ParamDecodeError(ArborError, ValueError):
    """A captured path segment holds malformed percent-encoding.

    Recorded as ``params_error`` on the affected match rather than
    aborting the whole chain.
    """

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot decode path segment {value!r}: {reason}")


class LoaderError(ArborError):
    """A user-supplied ``loader`` or ``before_load`` raised.

    The original exception is available as ``original`` and is chained
    as ``__cause__``.
    """

    def __init__(self, route_id: str, original: BaseException, phase: str = "loader") -> None:
        self.route_id = route_id
        self.original = original
        self.phase = phase
        self.__cause__ = original
        super().__init__(f"{phase} for route {route_id!r} failed: {original!r}")


class StaleResultDiscarded(ArborError):  # noqa: N818 — describes an outcome, never raised
    """The late result of a cancelled or superseded load.

    Never raised to callers.  Logged and published as a
    ``stale_discarded`` router event.
    """

    def __init__(self, match_id: str, route_id: str) -> None:
        self.match_id = match_id
        self.route_id = route_id
        super().__init__(f"Discarded stale result for match {match_id!r}")


class MatchNotFoundError(ArborError, KeyError):
    """No active match (or route in the current chain) has the given id.

    Also a ``KeyError``, so lookups can be caught like mapping misses.
    """

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0])
