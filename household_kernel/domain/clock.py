"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock so that domain, service and scheduler code
    never call ``datetime.now()`` or ``date.today()`` directly.  "Today" for
    standing orders is the clock's local calendar date.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    the one sanctioned I/O boundary for time).
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        All services that need the current time receive a Clock instance via
        constructor injection.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
        - ``today()`` is ``now().date()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def now_utc(self) -> datetime:
        """Get the current UTC time."""
        return self.now().astimezone(timezone.utc)

    def today(self) -> date:
        """Calendar date used for schedule decisions."""
        return self.now().date()


class SystemClock(Clock):
    """
    Production clock that returns actual system time.

    Args:
        tz: Zone whose calendar defines "today".  Defaults to the host's
            local zone, since a household's rent is due on its local date.
    """

    def __init__(self, tz: tzinfo | None = None):
        self._tz = tz

    def now(self) -> datetime:
        if self._tz is None:
            return datetime.now().astimezone()
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance()``, ``advance_days()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        """
        Args:
            fixed_time: Starting time.  Defaults to 2024-01-01 12:00 UTC.
        """
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )
        self._advance_seconds = 0

    @classmethod
    def on(cls, day: date, hour: int = 12) -> "DeterministicClock":
        """Clock fixed at ``hour``:00 UTC on ``day``."""
        return cls(datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds

    def advance_days(self, days: int) -> None:
        self.advance(days * 86400)
