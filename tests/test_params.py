"""Tests for arbor.routing.params — segment encoding and decoding."""

import pytest

from arbor.errors import ConfigurationError, ParamDecodeError
from arbor.routing.params import (
    decode_segment,
    decode_splat,
    encode_segment,
    encode_splat,
    interpolate_path,
)


class TestDecodeSegment:
    def test_plain_passthrough(self) -> None:
        assert decode_segment("tanner") == "tanner"

    def test_percent_escapes(self) -> None:
        assert decode_segment("a%20b") == "a b"

    def test_utf8_escapes(self) -> None:
        assert decode_segment("%F0%9F%9A%80") == "🚀"

    def test_raw_unicode_untouched(self) -> None:
        assert decode_segment("🚀") == "🚀"

    def test_encoded_separator_stays_in_value(self) -> None:
        assert decode_segment("a%2Fb") == "a/b"

    def test_truncated_escape(self) -> None:
        with pytest.raises(ParamDecodeError) as exc_info:
            decode_segment("%E0%A4%A")
        assert exc_info.value.value == "%E0%A4%A"

    def test_lone_percent(self) -> None:
        with pytest.raises(ParamDecodeError):
            decode_segment("100%")

    def test_invalid_utf8(self) -> None:
        with pytest.raises(ParamDecodeError, match="UTF-8"):
            decode_segment("%FF")

    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            decode_segment("%zz")


class TestDecodeSplat:
    def test_joins_then_decodes(self) -> None:
        assert decode_splat(["a", "b%20c"]) == "a/b c"

    def test_encoded_separator_is_not_a_boundary(self) -> None:
        assert decode_splat(["a%2Fb"]) == "a/b"

    def test_empty(self) -> None:
        assert decode_splat([]) == ""


class TestEncode:
    def test_segment_encodes_separator(self) -> None:
        assert encode_segment("a/b") == "a%2Fb"

    def test_segment_encodes_space_and_unicode(self) -> None:
        assert encode_segment("a b") == "a%20b"
        assert encode_segment("🚀") == "%F0%9F%9A%80"

    def test_segment_keeps_unreserved(self) -> None:
        assert encode_segment("a-b_c.d~e!*'()") == "a-b_c.d~e!*'()"

    @pytest.mark.parametrize("value", ["a/b", "%", "%2F", "a b", "hello / wörld %", "🚀", "", "?#&="])
    def test_segment_round_trip(self, value: str) -> None:
        assert decode_segment(encode_segment(value)) == value

    def test_splat_keeps_separators(self) -> None:
        assert encode_splat("docs/a b") == "docs/a%20b"

    def test_splat_encodes_literal_escape(self) -> None:
        assert encode_splat("%2F/x") == "%252F/x"

    @pytest.mark.parametrize("value", ["a//b", "/lead", "trail/", "%2F/x", "a b/c%d", "ünï/çødé", ""])
    def test_splat_round_trip(self, value: str) -> None:
        assert decode_splat(encode_splat(value).split("/")) == value


class TestInterpolatePath:
    def test_param(self) -> None:
        assert interpolate_path("/posts/$slug", {"slug": "a b"}) == "/posts/a%20b"

    def test_splat(self) -> None:
        assert interpolate_path("/files/$", {"_splat": "a/b c"}) == "/files/a/b%20c"

    def test_literal_only(self) -> None:
        assert interpolate_path("/about", {}) == "/about"

    def test_non_string_values(self) -> None:
        assert interpolate_path("/users/$id", {"id": 42}) == "/users/42"

    def test_missing_param(self) -> None:
        with pytest.raises(ConfigurationError, match="slug"):
            interpolate_path("/posts/$slug", {})
