"""Clock capability: the single source of "now" for the domain.

Aggregates and handlers ask the clock for the current time instead of calling
``datetime.now`` directly, so tests can freeze and advance time.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Return the current, timezone-aware UTC time."""
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, at: datetime | None = None):
        self._now = at or datetime(2025, 1, 15, 9, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by a ``timedelta(**kwargs)`` and return the new time."""
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, at: datetime) -> None:
        self._now = at


_clock_instance: Clock | None = None


def get_clock() -> Clock:
    """Return the configured clock (singleton). Defaults to the system clock."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def set_clock(clock: Clock) -> None:
    global _clock_instance
    _clock_instance = clock


def reset_clock() -> None:
    """Reset the clock singleton (useful for testing)."""
    global _clock_instance
    _clock_instance = None


def now() -> datetime:
    return get_clock().now()
