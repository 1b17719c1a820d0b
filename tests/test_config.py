"""Tests for CacheConfig."""

from datetime import timedelta

import pytest

from swrcache import DEFAULT_SYNC_KEY, CacheConfig


class TestCacheConfig:
    """Tests for defaults, parsing and validation."""

    def test_defaults(self) -> None:
        config = CacheConfig()

        assert config.ttl_ms == 5 * 60_000
        assert config.throttle_ms == 30_000
        assert config.sync_key == DEFAULT_SYNC_KEY
        assert config.auto_initialize is True

    def test_duration_forms(self) -> None:
        assert CacheConfig(ttl="10m").ttl_ms == 600_000
        assert CacheConfig(ttl=1500).ttl_ms == 1500
        assert CacheConfig(refresh_throttle=timedelta(seconds=2)).throttle_ms == 2000

    def test_invalid_duration(self) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            CacheConfig(ttl="soon")

    def test_negative_duration(self) -> None:
        with pytest.raises(ValueError, match="refresh_throttle"):
            CacheConfig(refresh_throttle=-1)

    def test_empty_sync_key(self) -> None:
        with pytest.raises(ValueError, match="sync_key"):
            CacheConfig(sync_key="")

    def test_copy_with(self) -> None:
        config = CacheConfig().copy_with(ttl="1h", auto_initialize=False)

        assert config.ttl_ms == 3_600_000
        assert config.auto_initialize is False
        assert config.throttle_ms == 30_000

    def test_frozen(self) -> None:
        config = CacheConfig()
        with pytest.raises(AttributeError):
            config.ttl = "1m"  # type: ignore[misc]
