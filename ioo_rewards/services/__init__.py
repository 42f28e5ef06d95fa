from ioo_rewards.services.achievements import AchievementEngine
from ioo_rewards.services.activity import ActivityRecorder
from ioo_rewards.services.badge_store import BadgeStore
from ioo_rewards.services.celebrations import celebration_scheduler
from ioo_rewards.services.events import event_manager
from ioo_rewards.services.statistics import StatisticsAggregator

__all__ = [
    "AchievementEngine",
    "ActivityRecorder",
    "BadgeStore",
    "StatisticsAggregator",
    "celebration_scheduler",
    "event_manager",
]
