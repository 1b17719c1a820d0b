"""Tests for duration parsing."""

from datetime import timedelta

import pytest

from swrcache import parse_duration


class TestParseDuration:
    """Tests for parse_duration function."""

    def test_milliseconds(self) -> None:
        assert parse_duration("100ms") == 100
        assert parse_duration("0ms") == 0

    def test_seconds(self) -> None:
        assert parse_duration("1s") == 1000
        assert parse_duration("30s") == 30000

    def test_minutes(self) -> None:
        assert parse_duration("5m") == 300_000

    def test_hours_and_days(self) -> None:
        assert parse_duration("2h") == 7_200_000
        assert parse_duration("7d") == 604_800_000

    def test_integer_passthrough(self) -> None:
        assert parse_duration(1000) == 1000
        assert parse_duration(0) == 0

    def test_timedelta(self) -> None:
        assert parse_duration(timedelta(minutes=5)) == 300_000
        assert parse_duration(timedelta(milliseconds=250)) == 250

    def test_surrounding_whitespace(self) -> None:
        assert parse_duration(" 30s ") == 30000

    def test_invalid_format(self) -> None:
        for value in ("invalid", "10x", "s10", "", "10"):
            with pytest.raises(ValueError, match="Invalid duration"):
                parse_duration(value)

    def test_bool_rejected(self) -> None:
        with pytest.raises(TypeError, match="Invalid duration"):
            parse_duration(True)
