"""Injectable source of the current time."""
from datetime import datetime
from typing import Protocol

import pytz


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(pytz.utc)


class FixedClock:
    """A clock frozen at a given instant; used by tests and scripts."""

    def __init__(self, instant: datetime):
        self.instant = as_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta) -> None:
        self.instant = self.instant + delta


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


system_clock = SystemClock()


def get_clock() -> Clock:
    return system_clock


def utcnow() -> datetime:
    """Column default for row timestamps (microsecond precision on every backend)."""
    return datetime.now(pytz.utc)
