"""
Clock sources for the exam session.

Every component reads wall-clock time through a clock object so the whole
state machine can be driven by a controllable clock in tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


class SystemClock:
    """Real wall-clock time (timezone-aware UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2025, 1, 6, 9, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 0, minutes: float = 0) -> datetime:
        """Move the clock forward and return the new time."""
        self._now = self._now + timedelta(seconds=seconds, minutes=minutes)
        return self._now

    def set(self, moment: datetime):
        self._now = moment
