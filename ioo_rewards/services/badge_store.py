"""Badge storage - the read/write contract the engine and recorder depend on.

Every read and the award insert run in their own savepoint, so callers can
guard individual statements without losing the transaction. Rows come back
as plain dicts.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import Result, Select, select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ioo_rewards.models.badges import UserActivity, UserBadge, UserColoringStats
from ioo_rewards.models.content import Analysis, Coloring, Storybook
from ioo_rewards.models.user import UserProfile

logger = logging.getLogger(__name__)


class AwardOutcome(str, Enum):
    """Result of an award insert."""
    INSERTED = "inserted"
    ALREADY_OWNED = "already_owned"


ACTIVITY_COUNTERS = ("analyses_count", "stories_count", "colorings_count")

COLORING_STATS_FIELDS = (
    "completed_colorings",
    "colors_used_total",
    "colors_used_single_max",
    "brush_types_used",
    "premium_brushes_used",
    "ai_suggestions_used",
    "harmony_colors_used",
    "reference_images_used",
    "coloring_streak",
    "last_coloring_date",
    "coloring_time_total",
    "quick_colorings",
    "marathon_colorings",
    "undo_and_continue",
    "colors_used_array",
    "brush_types_array",
    "premium_brushes_array",
)


def _activity_row(activity: UserActivity) -> dict[str, Any]:
    return {
        "user_id": activity.user_id,
        "activity_date": activity.activity_date,
        "analyses_count": activity.analyses_count or 0,
        "stories_count": activity.stories_count or 0,
        "colorings_count": activity.colorings_count or 0,
        "first_activity_at": activity.first_activity_at,
    }


class BadgeStore:
    """SQLAlchemy implementation of the badge storage boundary."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _select(self, statement: Select) -> Result:
        """Run a read inside its own SAVEPOINT.

        On PostgreSQL a failed statement aborts the whole transaction; the
        savepoint confines the damage to this read, so a caller that recovers
        from it can keep using the session.
        """
        async with self.db.begin_nested():
            return await self.db.execute(statement)

    # -------------------------------------------------------------------------
    # Awarded badges
    # -------------------------------------------------------------------------

    async def get_owned_badges(self, user_id: int) -> list[dict[str, Any]]:
        """Owned badges, most recent first."""
        result = await self._select(
            select(UserBadge.badge_id, UserBadge.unlocked_at)
            .where(UserBadge.user_id == user_id)
            .order_by(UserBadge.unlocked_at.desc())
        )
        return [
            {"badge_id": badge_id, "unlocked_at": unlocked_at}
            for badge_id, unlocked_at in result.all()
        ]

    async def insert_awarded_badge(
        self,
        user_id: int,
        badge_id: str,
        unlocked_at: datetime,
    ) -> AwardOutcome:
        """Insert an award row; a uniqueness conflict means it is already owned.

        The insert runs in a SAVEPOINT so a conflict only rolls back this row
        and the surrounding session stays usable. Other database errors
        propagate to the caller.
        """
        try:
            async with self.db.begin_nested():
                self.db.add(UserBadge(user_id=user_id, badge_id=badge_id, unlocked_at=unlocked_at))
        except IntegrityError:
            return AwardOutcome.ALREADY_OWNED
        return AwardOutcome.INSERTED

    # -------------------------------------------------------------------------
    # Daily activity
    # -------------------------------------------------------------------------

    async def _get_activity(self, user_id: int, activity_date: date) -> UserActivity | None:
        result = await self._select(
            select(UserActivity).where(
                UserActivity.user_id == user_id,
                UserActivity.activity_date == activity_date,
            )
        )
        return result.scalar_one_or_none()

    async def get_activity_record(self, user_id: int, activity_date: date) -> dict[str, Any] | None:
        activity = await self._get_activity(user_id, activity_date)
        return _activity_row(activity) if activity else None

    async def upsert_activity_record(
        self,
        user_id: int,
        activity_date: date,
        counter: str,
        now: datetime,
    ) -> dict[str, Any]:
        """Create the day's row (first_activity_at = now) or bump one counter."""
        if counter not in ACTIVITY_COUNTERS:
            raise ValueError(f"Unknown activity counter: {counter}")

        activity = await self._get_activity(user_id, activity_date)
        if activity is None:
            activity = UserActivity(
                user_id=user_id,
                activity_date=activity_date,
                analyses_count=0,
                stories_count=0,
                colorings_count=0,
                first_activity_at=now,
            )
            setattr(activity, counter, 1)
            self.db.add(activity)
        else:
            setattr(activity, counter, (getattr(activity, counter) or 0) + 1)

        await self.db.flush()
        return _activity_row(activity)

    # -------------------------------------------------------------------------
    # User counters
    # -------------------------------------------------------------------------

    async def get_user_counters(self, user_id: int) -> dict[str, Any] | None:
        """Profile-level counters: children, name, app-wide streak."""
        result = await self._select(
            select(UserProfile).where(UserProfile.id == user_id)
        )
        user = result.scalar_one_or_none()
        if not user:
            return None

        children = user.children if isinstance(user.children, list) else []
        return {
            "child_count": len(children),
            "has_name": bool(user.name),
            "current_streak": user.current_streak or 0,
            "last_active_date": user.last_active_date,
        }

    async def update_user_streak(self, user_id: int, streak: int, last_active_date: date) -> None:
        result = await self._select(
            select(UserProfile).where(UserProfile.id == user_id)
        )
        user = result.scalar_one_or_none()
        if not user:
            logger.warning("No profile row for user %s, streak not stored", user_id)
            return
        user.current_streak = streak
        user.last_active_date = last_active_date
        await self.db.flush()

    async def count_analyses(self, user_id: int) -> int:
        result = await self._select(
            select(func.count(Analysis.id)).where(Analysis.user_id == user_id)
        )
        return result.scalar() or 0

    async def count_storybooks(self, user_id: int) -> int:
        result = await self._select(
            select(func.count(Storybook.id)).where(Storybook.user_id == user_id)
        )
        return result.scalar() or 0

    async def count_colorings(self, user_id: int) -> int:
        result = await self._select(
            select(func.count(Coloring.id)).where(Coloring.user_id == user_id)
        )
        return result.scalar() or 0

    async def count_distinct_test_types(self, user_id: int) -> int:
        result = await self._select(
            select(func.count(func.distinct(Analysis.task_type))).where(Analysis.user_id == user_id)
        )
        return result.scalar() or 0

    # -------------------------------------------------------------------------
    # Coloring statistics
    # -------------------------------------------------------------------------

    async def _get_coloring_stats(self, user_id: int) -> UserColoringStats | None:
        result = await self._select(
            select(UserColoringStats).where(UserColoringStats.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_coloring_stats_row(self, user_id: int) -> dict[str, Any] | None:
        stats = await self._get_coloring_stats(user_id)
        if stats is None:
            return None
        return {field: getattr(stats, field) for field in COLORING_STATS_FIELDS}

    async def upsert_coloring_stats_row(self, user_id: int, values: dict[str, Any]) -> None:
        """Write the given coloring fields, creating the row when absent."""
        unknown = set(values) - set(COLORING_STATS_FIELDS)
        if unknown:
            raise ValueError(f"Unknown coloring stats fields: {sorted(unknown)}")

        stats = await self._get_coloring_stats(user_id)
        if stats is None:
            stats = UserColoringStats(user_id=user_id, **values)
            self.db.add(stats)
        else:
            for field, value in values.items():
                setattr(stats, field, value)
        await self.db.flush()
