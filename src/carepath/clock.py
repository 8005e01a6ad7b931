"""Injectable clock for every now-relative rule.

Expiry windows, ages, audit timestamps and overdue checks all read the
current time through this module, so tests can pin it:

    with use_clock(FixedClock(datetime(2026, 2, 16, tzinfo=timezone.utc))):
        assert client.age == 25
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Protocol


class Clock(Protocol):
    """Source of the current UTC time."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass
class FixedClock:
    """Clock frozen at a given instant, advanced manually."""

    current: datetime

    def __post_init__(self) -> None:
        self.current = ensure_utc(self.current)

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward by delta."""
        self.current = self.current + delta


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Get the active clock."""
    return _clock


def set_clock(clock: Clock) -> Clock:
    """Install a clock, returning the one it replaced."""
    global _clock
    previous = _clock
    _clock = clock
    return previous


@contextmanager
def use_clock(clock: Clock) -> Iterator[Clock]:
    """Install a clock for the duration of a with-block."""
    previous = set_clock(clock)
    try:
        yield clock
    finally:
        set_clock(previous)


def utcnow() -> datetime:
    """Current time from the active clock."""
    return _clock.now()


def today() -> date:
    """Current UTC date from the active clock."""
    return utcnow().date()


def ensure_utc(value: datetime) -> datetime:
    """Normalise a datetime to aware UTC, treating naive values as UTC.

    Some stores (SQLite) drop the offset on round-trip; every timestamp this
    package writes is UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
