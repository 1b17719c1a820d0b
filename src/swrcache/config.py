"""Cache policy configuration."""

from dataclasses import dataclass, replace
from typing import Any

from swrcache.duration import parse_duration
from swrcache.types import Duration

DEFAULT_SYNC_KEY = "_metadata_last_sync"


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Immutable policy for a single orchestrator.

    ttl only classifies data as stale; it never triggers a fetch by itself.
    refresh_throttle bounds how often silent (background) refreshes may run.
    sync_key is the reserved store key holding the last-sync timestamp and
    must never equal a real entity identifier.
    """

    ttl: Duration = "5m"
    refresh_throttle: Duration = "30s"
    sync_key: str = DEFAULT_SYNC_KEY
    auto_initialize: bool = True

    def __post_init__(self) -> None:
        if parse_duration(self.ttl) < 0:
            raise ValueError(f"ttl must not be negative: {self.ttl!r}")
        if parse_duration(self.refresh_throttle) < 0:
            raise ValueError(
                f"refresh_throttle must not be negative: {self.refresh_throttle!r}"
            )
        if not self.sync_key:
            raise ValueError("sync_key must not be empty")

    @property
    def ttl_ms(self) -> int:
        """TTL in milliseconds."""
        return parse_duration(self.ttl)

    @property
    def throttle_ms(self) -> int:
        """Silent refresh throttle in milliseconds."""
        return parse_duration(self.refresh_throttle)

    def copy_with(self, **changes: Any) -> "CacheConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = CacheConfig()
