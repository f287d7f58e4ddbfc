"""Path matcher — resolve a pathname into an ordered chain of route matches.

Matching is depth-first and biased by declaration order: at each node the
children are tried in the order they were declared and the first one that
leads to a full match wins.  There is no scoring pass, so reordering
siblings changes which route resolves ambiguous input.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from arbor.config import TRAILING_SLASH_POLICIES, TrailingSlash
from arbor.errors import ConfigurationError, NoMatchError, ParamDecodeError
from arbor.routing.params import SEPARATOR, decode_segment, decode_splat
from arbor.routing.route import Route, Segment, parse_path
from arbor.routing.tree import RouteTree


@dataclass(frozen=True, slots=True)
class MatchedRoute:
    """One position in a resolved chain.

    Attributes:
        route: The matched route node.
        pathname: Raw (still encoded) prefix of the input this route consumed,
            including everything its ancestors consumed.
        params: Params captured so far, parent params merged under this
            route's own captures.
        params_error: Decode failure for a segment captured by *this*
            route.  The raw value is kept in ``params`` in that case.
    """

    route: Route
    pathname: str
    params: dict[str, str] = field(default_factory=dict)
    params_error: ParamDecodeError | None = None


@dataclass(frozen=True, slots=True)
class MatchResult:
    """A full match chain from the root to the deepest matched route."""

    pathname: str
    chain: tuple[MatchedRoute, ...]

    @property
    def params(self) -> dict[str, str]:
        """Params of the deepest match (all ancestors merged in)."""
        return self.chain[-1].params if self.chain else {}

    @property
    def route_ids(self) -> tuple[str, ...]:
        return tuple(m.route.id for m in self.chain)

    @property
    def leaf(self) -> MatchedRoute:
        return self.chain[-1]


def split_pathname(pathname: str) -> list[str]:
    """Split a pathname into raw segments.

    Interior empty segments are dropped.  A pathname ending in ``/`` keeps
    a single trailing ``""`` marker::

        "/"             -> []
        "/posts/tanner" -> ["posts", "tanner"]
        "/posts//x/"    -> ["posts", "x", ""]
    """
    pieces = pathname.split(SEPARATOR)
    parts = [p for p in pieces if p]
    if parts and pathname.endswith(SEPARATOR):
        parts.append("")
    return parts


def _exhausted(parts: Sequence[str], index: int) -> bool:
    """True when nothing but an optional trailing-slash marker is left."""
    return index >= len(parts) or (index == len(parts) - 1 and parts[index] == "")


def _trailing_slash_matches(node: Route, parts: Sequence[str]) -> bool:
    """True when the pathname's trailing slash agrees with the declared path."""
    if not parts:
        return True
    declared = node.path is not None and node.path.endswith(SEPARATOR)
    return (parts[-1] == "") == declared


def _literal_equal(raw: str, literal: str, case_sensitive: bool) -> bool:
    try:
        text = decode_segment(raw)
    except ParamDecodeError:
        text = raw
    if case_sensitive:
        return text == literal
    return text.casefold() == literal.casefold()


def consume(
    segments: Sequence[Segment],
    parts: Sequence[str],
    index: int,
    *,
    case_sensitive: bool = False,
) -> tuple[int, dict[str, str], ParamDecodeError | None] | None:
    """Try to consume ``parts[index:]`` with *segments*.

    Returns ``(next_index, captured, decode_error)`` on success, ``None``
    if a segment does not match.  Decode failures keep the raw value and
    report the first error instead of failing the match.
    """
    captured: dict[str, str] = {}
    error: ParamDecodeError | None = None
    for seg in segments:
        if seg.kind == "splat":
            end = len(parts) - 1 if parts and parts[-1] == "" else len(parts)
            raw = parts[index:end]
            try:
                captured[seg.value] = decode_splat(raw)
            except ParamDecodeError as exc:
                captured[seg.value] = SEPARATOR.join(raw)
                error = error or exc
            index = len(parts)
            continue

        if index >= len(parts) or parts[index] == "":
            return None
        raw_part = parts[index]
        if seg.kind == "literal":
            if not _literal_equal(raw_part, seg.value, case_sensitive):
                return None
        else:
            try:
                captured[seg.value] = decode_segment(raw_part)
            except ParamDecodeError as exc:
                captured[seg.value] = raw_part
                error = error or exc
        index += 1
    return index, captured, error


def _prefix(parts: Sequence[str], end: int) -> str:
    consumed = [p for p in parts[:end] if p]
    return SEPARATOR + SEPARATOR.join(consumed)


class PathMatcher:
    """Resolve pathnames against a ``RouteTree``.

    Usage::

        matcher = PathMatcher(tree)
        result = matcher.match("/posts/tanner")
        result.route_ids   # ("__root__", "/posts", "/posts/$slug")
        result.params      # {"slug": "tanner"}

    ``fuzzy`` accepts a route that consumed at least one segment of its
    own once all of its declared segments matched, even if input remains.
    An exact match is always preferred over a prefix match.  It exists for
    "is this route active" queries; the ``Router`` never resolves
    navigations fuzzily.

    A route with ``strict_trailing_slash`` only completes a match when the
    pathname ends in ``/`` exactly when its declared path does.
    """

    __slots__ = ("_case_sensitive", "_fuzzy", "_trailing_slash", "_tree")

    def __init__(
        self,
        tree: RouteTree,
        *,
        case_sensitive: bool = False,
        fuzzy: bool = False,
        trailing_slash: TrailingSlash = "never",
    ) -> None:
        if trailing_slash not in TRAILING_SLASH_POLICIES:
            msg = f"Unknown trailing_slash policy {trailing_slash!r}"
            raise ConfigurationError(msg)
        self._tree = tree
        self._case_sensitive = case_sensitive
        self._fuzzy = fuzzy
        self._trailing_slash = trailing_slash

    @property
    def tree(self) -> RouteTree:
        return self._tree

    @property
    def fuzzy(self) -> bool:
        return self._fuzzy

    def normalize(self, pathname: str) -> str:
        """Apply the trailing-slash policy to a location string.

        Nothing else is touched: percent-encoding and raw Unicode are kept
        verbatim.
        """
        if not pathname.startswith(SEPARATOR):
            pathname = SEPARATOR + pathname
        if pathname == SEPARATOR or self._trailing_slash == "preserve":
            return pathname
        if self._trailing_slash == "never":
            return pathname.rstrip(SEPARATOR) or SEPARATOR
        return pathname if pathname.endswith(SEPARATOR) else pathname + SEPARATOR

    def find(self, pathname: str) -> MatchResult | None:
        """Resolve *pathname*, returning ``None`` when nothing matches."""
        parts = split_pathname(pathname)
        root = self._tree.root
        chain = self._walk(root, parts, 0, {}, fuzzy=False, strict=False)
        if chain is None and self._fuzzy:
            chain = self._walk(root, parts, 0, {}, fuzzy=True, strict=False)
        if chain is None:
            return None
        return MatchResult(pathname=self.normalize(pathname), chain=tuple(chain))

    def match(self, pathname: str) -> MatchResult:
        """Resolve *pathname* into a full chain.

        Raises ``NoMatchError`` if no branch matches and no splat catches it.
        """
        result = self.find(pathname)
        if result is None:
            raise NoMatchError(pathname)
        return result

    def _walk(
        self,
        node: Route,
        parts: list[str],
        index: int,
        params: dict[str, str],
        *,
        fuzzy: bool,
        strict: bool,
    ) -> list[MatchedRoute] | None:
        """Recursively match *node* and its children, backtracking on failure."""
        if node.options.strict_trailing_slash is not None:
            strict = node.options.strict_trailing_slash
        case_sensitive = node.options.case_sensitive
        if case_sensitive is None:
            case_sensitive = self._case_sensitive
        consumed = consume(node.segments, parts, index, case_sensitive=case_sensitive)
        if consumed is None:
            return None

        end, captured, error = consumed
        merged = {**params, **captured}
        here = MatchedRoute(
            route=node,
            pathname=_prefix(parts, end),
            params=merged,
            params_error=error,
        )

        for child in self._tree.children(node.id):
            rest = self._walk(child, parts, end, merged, fuzzy=fuzzy, strict=strict)
            if rest is not None:
                return [here, *rest]

        if _exhausted(parts, end):
            if strict and not _trailing_slash_matches(node, parts):
                return None
            return [here]
        # Zero-segment routes (index, pathless, root) never end a prefix match
        if fuzzy and end > index:
            return [here]
        return None


def match_by_path(
    pathname: str,
    pattern: str,
    *,
    fuzzy: bool = False,
    case_sensitive: bool = False,
) -> dict[str, Any] | None:
    """Match one pattern against a pathname.

    Returns the decoded params, or ``None``.  With ``fuzzy=True`` the
    pattern only has to match a prefix of the pathname::

        match_by_path("/posts/tanner/edit", "/posts/$slug", fuzzy=True)
        # {"slug": "tanner"}
    """
    parts = split_pathname(pathname)
    consumed = consume(parse_path(pattern), parts, 0, case_sensitive=case_sensitive)
    if consumed is None:
        return None
    end, captured, _ = consumed
    if not fuzzy and not _exhausted(parts, end):
        return None
    return captured
