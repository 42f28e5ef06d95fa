from ioo_rewards.models.base import Base
from ioo_rewards.models.user import UserProfile
from ioo_rewards.models.content import Analysis, Storybook, Coloring
from ioo_rewards.models.badges import UserBadge, UserActivity, UserColoringStats

__all__ = [
    "Base",
    "UserProfile",
    "Analysis",
    "Storybook",
    "Coloring",
    "UserBadge",
    "UserActivity",
    "UserColoringStats",
]
