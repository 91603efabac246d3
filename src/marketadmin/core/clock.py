"""Server clock used as the timestamp authority.

Audit entries and notifications are stamped here, never with client
supplied time. Timestamps are strictly increasing within a process so two
entries written by the same writer never share a timestamp.
"""

import threading
from datetime import UTC, datetime, timedelta


_TICK = timedelta(microseconds=1)


class MonotonicClock:
    """UTC wall clock that never returns the same instant twice."""

    def __init__(self) -> None:
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def _wall(self) -> datetime:
        return datetime.now(UTC)

    def now(self) -> datetime:
        """Return the current UTC time, nudged forward if needed.

        If the wall clock has not advanced (or stepped backwards) since the
        previous call, the previous value plus one microsecond is returned.
        """
        with self._lock:
            current = self._wall()
            if self._last is not None and current <= self._last:
                current = self._last + _TICK
            self._last = current
            return current


server_clock = MonotonicClock()
