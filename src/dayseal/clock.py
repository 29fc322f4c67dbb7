"""Timestamp source that never repeats or goes backwards."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from .models import utc_now

# Snapshots keep millisecond precision, so that is the smallest step that
# survives a save/load cycle.
RESOLUTION = timedelta(milliseconds=1)


def truncate(dt: datetime) -> datetime:
    """Drop sub-millisecond precision."""
    return dt.replace(microsecond=dt.microsecond - dt.microsecond % 1000)


class MonotonicClock:
    """Issues strictly increasing UTC timestamps.

    Wall-clock reads within the same millisecond (or a wall clock that
    steps backwards) are bumped forward by one millisecond past the last
    value handed out.
    """

    def __init__(self, source: Callable[[], datetime] = utc_now):
        self._source = source
        self._last: Optional[datetime] = None

    @property
    def last(self) -> Optional[datetime]:
        return self._last

    def now(self, after: Optional[datetime] = None) -> datetime:
        """Return a timestamp later than every earlier one and than ``after``."""
        current = truncate(self._source())
        floors = [f for f in (self._last, after) if f is not None]
        if floors:
            floor = max(floors)
            if current <= floor:
                current = truncate(floor) + RESOLUTION
        self._last = current
        return current
