from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

ONE_DAY = timedelta(days=1)


class Trigger(Protocol):
    def next_fire(self, after: datetime) -> datetime:
        """Return the first firing instant strictly after ``after``."""
        ...


@dataclass(frozen=True)
class DailyTrigger:
    """Fires once a day at ``time_of_day`` past local midnight.

    Naive datetimes are treated as local wall-clock time. Aware datetimes are
    converted to the local zone first, and the result carries the UTC offset
    in force on the firing day, so daylight-saving changes keep the wall-clock
    time rather than drifting by an hour.
    """

    time_of_day: timedelta

    def __post_init__(self) -> None:
        if not timedelta(0) <= self.time_of_day < ONE_DAY:
            raise ValueError(f"time_of_day must be within one day, got {self.time_of_day}")

    def next_fire(self, after: datetime) -> datetime:
        if after.tzinfo is None:
            return self._next_wall_time(after)
        wall = after.astimezone().replace(tzinfo=None)
        return self._next_wall_time(wall).astimezone()

    def _next_wall_time(self, after: datetime) -> datetime:
        midnight = after.replace(hour=0, minute=0, second=0, microsecond=0)
        candidate = midnight + self.time_of_day
        if candidate <= after:
            candidate += ONE_DAY
        return candidate


@dataclass(frozen=True)
class IntervalTrigger:
    """Fires every ``period``, starting one period after arming."""

    period: timedelta

    def __post_init__(self) -> None:
        if self.period <= timedelta(0):
            raise ValueError(f"period must be positive, got {self.period}")

    def next_fire(self, after: datetime) -> datetime:
        return after + self.period
