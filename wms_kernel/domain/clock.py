"""
wms_kernel.domain.clock -- Injected time source.

Services and selectors never read the wall clock themselves.  They receive
a Clock, which makes "expiring within N days" and ``updated_at`` stamps
reproducible in tests.  ``today()`` is the UTC calendar date and is what
expiry arithmetic compares against.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current time.  ``now()`` is always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().astimezone(timezone.utc).date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock frozen at a given instant until moved explicitly.

    Naive datetimes are rejected so stored timestamps always compare equal
    after a database round trip.
    """

    def __init__(self, fixed_time: datetime | None = None):
        current = fixed_time or DEFAULT_TEST_TIME
        if current.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        self._current = current

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> datetime:
        self._current += timedelta(seconds=seconds)
        return self._current

    def advance_days(self, days: int) -> datetime:
        return self.advance(days * 86400)
