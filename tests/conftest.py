"""Shared test fixtures for the reward service tests.

Provides:
- In-memory FakeBadgeStore implementing the storage boundary
- FixedClock pinned to a known weekday afternoon
- Engine / recorder / scheduler built on those doubles
- Mock database session
- Async FastAPI test client (no real DB)
"""
import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

from httpx import ASGITransport, AsyncClient


# Override settings before importing the app to avoid real DB connections
@pytest.fixture(autouse=True)
def override_settings(monkeypatch):
    """Override settings for all tests to avoid external dependencies."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///test.db")
    monkeypatch.setenv("TIMEZONE", "")


# Tuesday, no special day, outside every time-of-day bucket
TUESDAY_AFTERNOON = datetime(2026, 3, 10, 14, 0)


class FakeBadgeStore:
    """In-memory storage boundary with the same uniqueness rules as the tables.

    ``fail(method, exc)`` makes one method raise on every call, for
    exercising per-read recovery and write-failure propagation.
    """

    def __init__(self):
        self.badges: dict[tuple[int, str], datetime] = {}
        self.activity: dict[tuple[int, date], dict] = {}
        self.users: dict[int, dict] = {}
        self.analyses: dict[int, list[str]] = {}
        self.storybooks: dict[int, int] = {}
        self.colorings: dict[int, int] = {}
        self.coloring_stats: dict[int, dict] = {}
        self.failures: dict[str, Exception] = {}
        self.insert_calls = 0

    def fail(self, method: str, exc: Exception) -> None:
        self.failures[method] = exc

    def _check(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]

    def add_user(self, user_id=1, name="Ayşe", children=None, current_streak=0, last_active_date=None):
        self.users[user_id] = {
            "name": name,
            "children": list(children or []),
            "current_streak": current_streak,
            "last_active_date": last_active_date,
        }

    # --- awarded badges ---

    async def get_owned_badges(self, user_id):
        self._check("get_owned_badges")
        rows = [
            {"badge_id": badge_id, "unlocked_at": unlocked_at}
            for (uid, badge_id), unlocked_at in self.badges.items()
            if uid == user_id
        ]
        return sorted(rows, key=lambda r: r["unlocked_at"], reverse=True)

    async def insert_awarded_badge(self, user_id, badge_id, unlocked_at):
        from ioo_rewards.services.badge_store import AwardOutcome

        self._check("insert_awarded_badge")
        self.insert_calls += 1
        if (user_id, badge_id) in self.badges:
            return AwardOutcome.ALREADY_OWNED
        self.badges[(user_id, badge_id)] = unlocked_at
        return AwardOutcome.INSERTED

    def owned_ids(self, user_id=1) -> set[str]:
        return {badge_id for (uid, badge_id) in self.badges if uid == user_id}

    # --- daily activity ---

    async def get_activity_record(self, user_id, activity_date):
        self._check("get_activity_record")
        record = self.activity.get((user_id, activity_date))
        return dict(record) if record else None

    async def upsert_activity_record(self, user_id, activity_date, counter, now):
        self._check("upsert_activity_record")
        record = self.activity.setdefault((user_id, activity_date), {
            "user_id": user_id,
            "activity_date": activity_date,
            "analyses_count": 0,
            "stories_count": 0,
            "colorings_count": 0,
            "first_activity_at": now,
        })
        record[counter] += 1
        return dict(record)

    # --- user counters ---

    async def get_user_counters(self, user_id):
        self._check("get_user_counters")
        user = self.users.get(user_id)
        if user is None:
            return None
        return {
            "child_count": len(user["children"]),
            "has_name": bool(user["name"]),
            "current_streak": user["current_streak"],
            "last_active_date": user["last_active_date"],
        }

    async def update_user_streak(self, user_id, streak, last_active_date):
        self._check("update_user_streak")
        if user_id in self.users:
            self.users[user_id]["current_streak"] = streak
            self.users[user_id]["last_active_date"] = last_active_date

    async def count_analyses(self, user_id):
        self._check("count_analyses")
        return len(self.analyses.get(user_id, []))

    async def count_storybooks(self, user_id):
        self._check("count_storybooks")
        return self.storybooks.get(user_id, 0)

    async def count_colorings(self, user_id):
        self._check("count_colorings")
        return self.colorings.get(user_id, 0)

    async def count_distinct_test_types(self, user_id):
        self._check("count_distinct_test_types")
        return len(set(self.analyses.get(user_id, [])))

    # --- coloring statistics ---

    async def get_coloring_stats_row(self, user_id):
        self._check("get_coloring_stats_row")
        row = self.coloring_stats.get(user_id)
        return dict(row) if row is not None else None

    async def upsert_coloring_stats_row(self, user_id, values):
        self._check("upsert_coloring_stats_row")
        self.coloring_stats.setdefault(user_id, {}).update(values)


@pytest.fixture
def store():
    return FakeBadgeStore()


@pytest.fixture
def fixed_clock():
    from ioo_rewards.core.clock import FixedClock
    return FixedClock(TUESDAY_AFTERNOON)


@pytest.fixture
def engine(store, fixed_clock):
    from ioo_rewards.services.achievements import AchievementEngine
    from ioo_rewards.services.statistics import StatisticsAggregator
    return AchievementEngine(store, StatisticsAggregator(store), fixed_clock)


@pytest.fixture
def recorder(store, engine, fixed_clock):
    from ioo_rewards.core.config import Settings
    from ioo_rewards.services.activity import ActivityRecorder
    return ActivityRecorder(store, engine, fixed_clock, Settings())


@pytest.fixture
def scheduler():
    """Scheduler with recorded cues and no event loop (no auto-dismiss)."""
    from ioo_rewards.services.celebrations import CelebrationScheduler

    sounds: list[str] = []
    haptics: list[str] = []
    sched = CelebrationScheduler(play_sound=sounds.append, play_haptic=haptics.append)
    sched.sounds = sounds
    sched.haptics = haptics
    return sched


@pytest.fixture
def mock_db():
    """Mock async database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.flush = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.begin_nested = MagicMock()
    return session


@pytest.fixture
async def client(store, fixed_clock, mock_db):
    """Async HTTP test client for FastAPI app.

    Uses httpx AsyncClient with ASGI transport, no real server needed.
    Storage, clock and scheduler dependencies are overridden with doubles.
    """
    from ioo_rewards.main import app
    from ioo_rewards.api import deps
    from ioo_rewards.core.database import get_db
    from ioo_rewards.services.celebrations import CelebrationScheduler
    from ioo_rewards.services.events import EventManager

    sched = CelebrationScheduler()
    events = EventManager()
    sched.add_listener(events.publish)

    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_badge_store] = lambda: store
    app.dependency_overrides[deps.get_clock] = lambda: fixed_clock
    app.dependency_overrides[deps.get_scheduler] = lambda: sched
    app.dependency_overrides[deps.get_event_manager] = lambda: events

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        # expose for test access
        ac._mock_db = mock_db
        ac._store = store
        ac._scheduler = sched
        ac._events = events
        yield ac

    sched.reset()
    app.dependency_overrides.clear()
