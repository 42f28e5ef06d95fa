"""Activity recorder - the write path content features call after each action.

Updates daily activity rows, app-wide and coloring streaks, and coloring
statistics, then awards the calendar and time-window badges that depend on
*when* the action happened. Threshold badges are left to
AchievementEngine.evaluate_and_award.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Protocol

from ioo_rewards.core.clock import Clock, clock as default_clock
from ioo_rewards.core.config import Settings, settings as default_settings
from ioo_rewards.services.achievements import AchievementEngine
from ioo_rewards.services.badge_catalog import (
    COLORING_TIME_BUCKETS,
    PREMIUM_BRUSHES,
    SPECIAL_DAY_BADGES,
    TIME_OF_DAY_BUCKETS,
    WEEKEND_BADGE_ID,
    hour_in_bucket,
)
from ioo_rewards.services.badge_store import AwardOutcome

logger = logging.getLogger(__name__)

SATURDAY = 5
SUNDAY = 6


class ActionType(str, Enum):
    """Content actions that count toward daily activity."""
    ANALYSIS = "analysis"
    STORY = "story"
    COLORING = "coloring"


ACTION_COUNTERS = {
    ActionType.ANALYSIS: "analyses_count",
    ActionType.STORY: "stories_count",
    ActionType.COLORING: "colorings_count",
}


class ColoringActivityType(str, Enum):
    """Events emitted by the coloring studio."""
    COLORING_COMPLETED = "coloring_completed"
    COLOR_USED = "color_used"
    BRUSH_USED = "brush_used"
    AI_SUGGESTION = "ai_suggestion"
    HARMONY_COLOR = "harmony_color"
    REFERENCE_IMAGE = "reference_image"
    UNDO_AND_CONTINUE = "undo_and_continue"


# Plain per-event counters
_COUNTER_FOR_TYPE = {
    ColoringActivityType.AI_SUGGESTION: "ai_suggestions_used",
    ColoringActivityType.HARMONY_COLOR: "harmony_colors_used",
    ColoringActivityType.REFERENCE_IMAGE: "reference_images_used",
    ColoringActivityType.UNDO_AND_CONTINUE: "undo_and_continue",
}


@dataclass
class ColoringActivity:
    """One coloring-studio event.

    ``value`` carries the color or brush for COLOR_USED / BRUSH_USED.
    A completed artwork may report the exact ``colors`` it used, or just a
    ``colors_in_session`` count, plus ``session_minutes``.
    """

    type: ColoringActivityType
    value: str | None = None
    colors: list[str] = field(default_factory=list)
    colors_in_session: int | None = None
    session_minutes: float | None = None


class ActivityStore(Protocol):
    """Write side of the badge store used by the recorder."""

    async def get_activity_record(self, user_id: int, activity_date: date) -> dict[str, Any] | None: ...
    async def upsert_activity_record(
        self, user_id: int, activity_date: date, counter: str, now: datetime
    ) -> dict[str, Any]: ...
    async def get_user_counters(self, user_id: int) -> dict[str, Any] | None: ...
    async def update_user_streak(self, user_id: int, streak: int, last_active_date: date) -> None: ...
    async def get_coloring_stats_row(self, user_id: int) -> dict[str, Any] | None: ...
    async def upsert_coloring_stats_row(self, user_id: int, values: dict[str, Any]) -> None: ...


def next_streak(last_date: date | None, today: date, streak: int) -> int:
    """Advance a daily streak by calendar days, not elapsed hours.

    Same day: unchanged. Next day: +1. Any longer gap (or no history): 1.
    A last date in the future (clock moved backwards) leaves it unchanged.
    """
    if last_date is None:
        return 1
    gap = (today - last_date).days
    if gap == 0:
        return streak
    if gap == 1:
        return streak + 1
    if gap < 0:
        return streak
    return 1


def _union_count(seen: Any, new_values: list[str]) -> tuple[list[str], int]:
    """Merge values into a seen-set; the set size is the distinct counter."""
    merged = list(seen) if isinstance(seen, list) else []
    for value in new_values:
        if value and value not in merged:
            merged.append(value)
    return merged, len(merged)


class ActivityRecorder:
    """Records user actions and awards calendar / time-window badges."""

    def __init__(
        self,
        store: ActivityStore,
        engine: AchievementEngine,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.engine = engine
        self.clock = clock or default_clock
        self.settings = settings or default_settings

    # -------------------------------------------------------------------------
    # Daily activity
    # -------------------------------------------------------------------------

    async def record_activity(self, user_id: int, action_type: ActionType) -> list[str]:
        """Count today's action, advance the daily streak, run calendar checks.

        Returns ids of badges this call newly awarded.
        """
        action_type = ActionType(action_type)
        now = self.clock.now()
        today = now.date()

        await self.store.upsert_activity_record(user_id, today, ACTION_COUNTERS[action_type], now)
        await self._advance_daily_streak(user_id, today)

        awarded = []
        awarded += await self.check_time_badges(user_id, now)
        awarded += await self.check_special_day_badges(user_id, now)

        logger.info("Recorded %s activity for user %s", action_type.value, user_id)
        return awarded

    async def _advance_daily_streak(self, user_id: int, today: date) -> None:
        counters = await self.store.get_user_counters(user_id)
        if counters is None:
            return
        current = counters.get("current_streak") or 0
        streak = next_streak(counters.get("last_active_date"), today, current)
        if streak != current or counters.get("last_active_date") != today:
            await self.store.update_user_streak(user_id, streak, today)

    async def _award_if_new(self, user_id: int, badge_id: str) -> list[str]:
        outcome = await self.engine.award_badge(user_id, badge_id)
        return [badge_id] if outcome is AwardOutcome.INSERTED else []

    async def check_time_badges(self, user_id: int, now: datetime) -> list[str]:
        """Night owl / early bird by local hour."""
        awarded = []
        for badge_id, bucket in TIME_OF_DAY_BUCKETS.items():
            if hour_in_bucket(now.hour, bucket):
                awarded += await self._award_if_new(user_id, badge_id)
        return awarded

    async def check_special_day_badges(self, user_id: int, now: datetime) -> list[str]:
        """Fixed calendar dates, plus both days of one weekend."""
        awarded = []

        badge_id = SPECIAL_DAY_BADGES.get(now.strftime("%m-%d"))
        if badge_id:
            awarded += await self._award_if_new(user_id, badge_id)

        # Only the second weekend day can complete the pair
        if now.weekday() == SUNDAY:
            saturday = now.date() - timedelta(days=SUNDAY - SATURDAY)
            if await self.store.get_activity_record(user_id, saturday):
                awarded += await self._award_if_new(user_id, WEEKEND_BADGE_ID)

        return awarded

    # -------------------------------------------------------------------------
    # Coloring studio
    # -------------------------------------------------------------------------

    async def record_coloring_activity(self, user_id: int, activity: ColoringActivity) -> list[str]:
        """Fold one coloring event into the user's coloring statistics.

        Distinct counters (colors, brushes, premium brushes) are set unions:
        recording a value twice never raises the count. Returns ids of
        time-window badges this call newly awarded.
        """
        now = self.clock.now()
        row = await self.store.get_coloring_stats_row(user_id) or {}
        updates: dict[str, Any] = {}
        kind = ColoringActivityType(activity.type)

        if kind is ColoringActivityType.COLORING_COMPLETED:
            updates.update(self._completed_updates(row, activity))
        elif kind is ColoringActivityType.COLOR_USED:
            if activity.value:
                colors, total = _union_count(row.get("colors_used_array"), [activity.value])
                updates["colors_used_array"] = colors
                updates["colors_used_total"] = total
        elif kind is ColoringActivityType.BRUSH_USED:
            if activity.value:
                brushes, count = _union_count(row.get("brush_types_array"), [activity.value])
                updates["brush_types_array"] = brushes
                updates["brush_types_used"] = count
                if activity.value in PREMIUM_BRUSHES:
                    premium, premium_count = _union_count(row.get("premium_brushes_array"), [activity.value])
                    updates["premium_brushes_array"] = premium
                    updates["premium_brushes_used"] = premium_count
        else:
            counter = _COUNTER_FOR_TYPE[kind]
            updates[counter] = (row.get(counter) or 0) + 1

        streak = next_streak(row.get("last_coloring_date"), now.date(), row.get("coloring_streak") or 0)
        updates["coloring_streak"] = streak
        updates["last_coloring_date"] = now.date()

        await self.store.upsert_coloring_stats_row(user_id, updates)
        logger.info("Recorded coloring %s for user %s (streak %d)", kind.value, user_id, streak)

        return await self.check_coloring_time_badges(user_id, now)

    def _completed_updates(self, row: dict[str, Any], activity: ColoringActivity) -> dict[str, Any]:
        updates: dict[str, Any] = {
            "completed_colorings": (row.get("completed_colorings") or 0) + 1,
        }

        if activity.colors:
            colors, total = _union_count(row.get("colors_used_array"), activity.colors)
            updates["colors_used_array"] = colors
            updates["colors_used_total"] = total

        in_artwork = len(set(activity.colors)) if activity.colors else (activity.colors_in_session or 0)
        previous_max = row.get("colors_used_single_max") or 0
        if in_artwork > previous_max:
            updates["colors_used_single_max"] = in_artwork

        if activity.session_minutes is not None and activity.session_minutes >= 0:
            minutes = activity.session_minutes
            updates["coloring_time_total"] = (row.get("coloring_time_total") or 0) + round(minutes)
            if minutes < self.settings.quick_coloring_max_minutes:
                updates["quick_colorings"] = (row.get("quick_colorings") or 0) + 1
            elif minutes > self.settings.marathon_coloring_min_minutes:
                updates["marathon_colorings"] = (row.get("marathon_colorings") or 0) + 1

        return updates

    async def check_coloring_time_badges(self, user_id: int, now: datetime) -> list[str]:
        """Midnight / sunrise / golden-hour coloring badges by local hour."""
        awarded = []
        for badge_id, bucket in COLORING_TIME_BUCKETS.items():
            if hour_in_bucket(now.hour, bucket):
                awarded += await self._award_if_new(user_id, badge_id)
        return awarded
