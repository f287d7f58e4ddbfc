"""Tests for arbor.config — RouterConfig frozen dataclass."""

import pytest

from arbor.config import RouterConfig
from arbor.errors import ConfigurationError


class TestRouterConfig:
    def test_defaults(self) -> None:
        cfg = RouterConfig()

        assert cfg.case_sensitive is False
        assert cfg.trailing_slash == "never"
        assert cfg.default_pending_delay == 1.0
        assert cfg.default_pending_min == 0.5
        assert cfg.default_stale_time == 0.0

    def test_override(self) -> None:
        cfg = RouterConfig(case_sensitive=True, trailing_slash="preserve", default_stale_time=30)

        assert cfg.case_sensitive is True
        assert cfg.trailing_slash == "preserve"
        assert cfg.default_stale_time == 30

    def test_frozen(self) -> None:
        cfg = RouterConfig()

        with pytest.raises(AttributeError):
            cfg.case_sensitive = True  # type: ignore[misc]

    def test_unknown_trailing_slash(self) -> None:
        with pytest.raises(ConfigurationError, match="trailing_slash"):
            RouterConfig(trailing_slash="sometimes")  # type: ignore[arg-type]

    @pytest.mark.parametrize("name", ["default_pending_delay", "default_pending_min", "default_stale_time"])
    def test_negative_duration(self, name: str) -> None:
        with pytest.raises(ConfigurationError, match=name):
            RouterConfig(**{name: -1})
