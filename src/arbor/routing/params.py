"""Path parameter encoding and decoding.

Segments are decoded as standalone tokens.  Splats are joined with ``/``
while still encoded and decoded once, so an encoded separator (``%2F``)
inside a splat value becomes a literal ``/`` in the value instead of an
extra path boundary.
"""

import re
from collections.abc import Mapping, Sequence
from urllib.parse import quote, unquote

from arbor.errors import ConfigurationError, ParamDecodeError

SEPARATOR = "/"
SPLAT_PARAM = "_splat"

# Characters left alone by encode_segment (RFC 3986 unreserved + sub-delims
# that survive encodeURIComponent).  quote() always keeps A-Z a-z 0-9 _ . - ~
_SAFE = "!*'()"

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_segment(raw: str) -> str:
    """Percent-decode a single path segment.

    Raises ``ParamDecodeError`` for a ``%`` not followed by two hex digits,
    or for escapes that do not form valid UTF-8.
    """
    if "%" not in raw:
        return raw
    if _BAD_ESCAPE_RE.search(raw):
        raise ParamDecodeError(raw, "malformed percent-escape")
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError as exc:
        raise ParamDecodeError(raw, "escapes are not valid UTF-8") from exc


def decode_splat(raw_segments: Sequence[str]) -> str:
    """Join still-encoded segments with ``/``, then decode once."""
    return decode_segment(SEPARATOR.join(raw_segments))


def encode_segment(value: str) -> str:
    """Percent-encode a value for use as exactly one path segment.

    ``/`` is encoded, so ``decode_segment(encode_segment(s)) == s``.
    """
    return quote(value, safe=_SAFE)


def encode_splat(value: str) -> str:
    """Encode a splat value, keeping ``/`` as real separators."""
    return SEPARATOR.join(encode_segment(part) for part in value.split(SEPARATOR))


def interpolate_path(pattern: str, params: Mapping[str, str]) -> str:
    """Build an href path from a route pattern and param values.

    Example::

        interpolate_path("/posts/$slug", {"slug": "a b"})  -> "/posts/a%20b"
        interpolate_path("/files/$", {"_splat": "a/b c"})  -> "/files/a/b%20c"

    Raises ``ConfigurationError`` if a param named in the pattern is missing.
    """
    parts: list[str] = []
    for part in pattern.split(SEPARATOR):
        if part == "$":
            name, encode = SPLAT_PARAM, encode_splat
        elif part.startswith("$"):
            name, encode = part[1:], encode_segment
        else:
            parts.append(part)
            continue
        if name not in params:
            msg = f"Missing param {name!r} for path {pattern!r}"
            raise ConfigurationError(msg)
        parts.append(encode(str(params[name])))
    return SEPARATOR.join(parts)
