"""Core types for swrcache."""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, TypeVar

T = TypeVar("T")

# Unix timestamp in milliseconds
Timestamp = int

# Duration type alias
Duration = str | int | timedelta  # "30s", "5m", "2h", "1d", milliseconds or timedelta


class CacheSource(Enum):
    """Where the data in a cache state came from."""

    NONE = "none"
    CACHE = "cache"
    NETWORK = "network"


@dataclass(frozen=True, slots=True)
class CacheEvent:
    """Structured lifecycle event reported by an orchestrator."""

    name: str
    namespace: str
    timestamp: Timestamp
    detail: dict[str, Any] = field(default_factory=dict)
