"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from typing import Literal

from arbor.errors import ConfigurationError

type TrailingSlash = Literal["always", "never", "preserve"]

TRAILING_SLASH_POLICIES: frozenset[str] = frozenset({"always", "never", "preserve"})


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(case_sensitive=True, default_pending_delay=0.2)

    Durations are in seconds.
    """

    # Matching
    case_sensitive: bool = False
    trailing_slash: TrailingSlash = "never"

    # Pending UI (route options override per route)
    default_pending_delay: float = 1.0  # Wait this long before showing a fallback
    default_pending_min: float = 0.5  # Once shown, keep the fallback at least this long

    # Revalidation
    default_stale_time: float = 0.0  # 0 = every surviving match revalidates on navigation

    def __post_init__(self) -> None:
        if self.trailing_slash not in TRAILING_SLASH_POLICIES:
            allowed = ", ".join(sorted(TRAILING_SLASH_POLICIES))
            msg = f"Unknown trailing_slash policy {self.trailing_slash!r}. Expected one of: {allowed}"
            raise ConfigurationError(msg)
        for name in ("default_pending_delay", "default_pending_min", "default_stale_time"):
            if getattr(self, name) < 0:
                msg = f"{name} must be >= 0, got {getattr(self, name)!r}"
                raise ConfigurationError(msg)
