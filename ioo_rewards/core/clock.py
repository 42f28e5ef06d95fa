"""Single source of "now" for hour buckets, calendar dates and streaks."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from ioo_rewards.core.config import settings


class Clock:
    """Local wall-clock time, optionally pinned to a configured zone."""

    def __init__(self, timezone: str | None = None):
        self._zone = ZoneInfo(timezone) if timezone else None

    def now(self) -> datetime:
        """Current local time (aware when a zone is configured)."""
        if self._zone is None:
            return datetime.now()
        return datetime.now(self._zone)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """Clock frozen at a given moment. Used by tests and backfills."""

    def __init__(self, moment: datetime):
        super().__init__()
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def set(self, moment: datetime) -> None:
        self.moment = moment


clock = Clock(settings.timezone or None)
