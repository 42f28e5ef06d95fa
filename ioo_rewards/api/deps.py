"""FastAPI dependency providers for the reward services."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ioo_rewards.core.clock import Clock, clock
from ioo_rewards.core.database import get_db
from ioo_rewards.services.achievements import AchievementEngine
from ioo_rewards.services.activity import ActivityRecorder
from ioo_rewards.services.badge_store import BadgeStore
from ioo_rewards.services.celebrations import CelebrationScheduler, celebration_scheduler
from ioo_rewards.services.events import EventManager, event_manager
from ioo_rewards.services.statistics import StatisticsAggregator


def get_clock() -> Clock:
    return clock


def get_scheduler() -> CelebrationScheduler:
    return celebration_scheduler


def get_event_manager() -> EventManager:
    return event_manager


def get_badge_store(db: AsyncSession = Depends(get_db)) -> BadgeStore:
    return BadgeStore(db)


def get_achievement_engine(
    store: BadgeStore = Depends(get_badge_store),
    clock: Clock = Depends(get_clock),
) -> AchievementEngine:
    return AchievementEngine(store, StatisticsAggregator(store), clock)


def get_activity_recorder(
    store: BadgeStore = Depends(get_badge_store),
    engine: AchievementEngine = Depends(get_achievement_engine),
    clock: Clock = Depends(get_clock),
) -> ActivityRecorder:
    return ActivityRecorder(store, engine, clock)
