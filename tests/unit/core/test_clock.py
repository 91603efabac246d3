"""Tests for the server clock."""

from datetime import UTC, datetime

from marketadmin.core.clock import MonotonicClock


class FrozenClock(MonotonicClock):
    """Clock whose wall time never advances."""

    def __init__(self, instant: datetime) -> None:
        super().__init__()
        self.instant = instant

    def _wall(self) -> datetime:
        return self.instant


class TestMonotonicClock:
    """Tests for MonotonicClock."""

    def test_returns_utc(self):
        assert MonotonicClock().now().tzinfo == UTC

    def test_strictly_increasing(self):
        clock = MonotonicClock()
        stamps = [clock.now() for _ in range(1000)]

        assert all(a < b for a, b in zip(stamps, stamps[1:], strict=False))

    def test_frozen_wall_clock_still_advances(self):
        instant = datetime(2026, 1, 1, tzinfo=UTC)
        clock = FrozenClock(instant)

        first, second, third = clock.now(), clock.now(), clock.now()

        assert first == instant
        assert second > first
        assert third > second

    def test_wall_clock_stepping_back(self):
        clock = FrozenClock(datetime(2026, 1, 1, 12, tzinfo=UTC))
        before = clock.now()
        clock.instant = datetime(2026, 1, 1, 11, tzinfo=UTC)

        assert clock.now() > before
