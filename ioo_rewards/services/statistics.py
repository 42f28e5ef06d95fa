"""Statistics aggregator - one immutable snapshot of a user's badge counters.

The snapshot is rebuilt on every evaluation and never stored. Each
underlying read is guarded on its own: a failed sub-query zeroes the fields
it feeds and the rest of the snapshot is still built.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Awaitable, Callable, Protocol, TypeVar

from ioo_rewards.services.badge_catalog import RequirementKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StatisticsSource(Protocol):
    """Read side of the badge store used by the aggregator."""

    async def get_user_counters(self, user_id: int) -> dict[str, Any] | None: ...
    async def count_analyses(self, user_id: int) -> int: ...
    async def count_storybooks(self, user_id: int) -> int: ...
    async def count_colorings(self, user_id: int) -> int: ...
    async def count_distinct_test_types(self, user_id: int) -> int: ...
    async def get_coloring_stats_row(self, user_id: int) -> dict[str, Any] | None: ...


@dataclass(frozen=True)
class UserStatisticsSnapshot:
    """Read-only aggregate evaluated against badge requirements."""

    total_analyses: int = 0
    total_stories: int = 0
    total_colorings: int = 0
    unique_test_types: int = 0
    children_count: int = 0
    profile_complete: bool = False
    consecutive_days: int = 0

    # Coloring studio
    completed_colorings: int = 0
    colors_used_total: int = 0
    colors_used_single_max: int = 0
    brush_types_used: int = 0
    premium_brushes_used: int = 0
    ai_suggestions_used: int = 0
    harmony_colors_used: int = 0
    reference_images_used: int = 0
    coloring_streak: int = 0
    coloring_time_total: int = 0
    quick_colorings: int = 0
    marathon_colorings: int = 0
    undo_and_continue: int = 0

    def value_for(self, kind: str) -> int | None:
        """Current value for a threshold kind, or None when the kind has no field."""
        field_name = KIND_TO_FIELD.get(kind)
        if field_name is None:
            return None
        return int(getattr(self, field_name))

    def as_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# Requirement kind -> snapshot field
KIND_TO_FIELD: dict[str, str] = {
    RequirementKind.TOTAL_ANALYSES.value: "total_analyses",
    RequirementKind.TOTAL_STORIES.value: "total_stories",
    RequirementKind.TOTAL_COLORINGS.value: "total_colorings",
    RequirementKind.CONSECUTIVE_DAYS.value: "consecutive_days",
    RequirementKind.UNIQUE_TEST_TYPES.value: "unique_test_types",
    RequirementKind.PROFILE_COMPLETE.value: "profile_complete",
    RequirementKind.FIRST_CHILD.value: "children_count",
    RequirementKind.MULTIPLE_CHILDREN.value: "children_count",
    RequirementKind.COMPLETED_COLORINGS.value: "completed_colorings",
    RequirementKind.COLORS_USED_TOTAL.value: "colors_used_total",
    RequirementKind.COLORS_USED_SINGLE.value: "colors_used_single_max",
    RequirementKind.BRUSH_TYPES_USED.value: "brush_types_used",
    RequirementKind.PREMIUM_BRUSHES_USED.value: "premium_brushes_used",
    RequirementKind.AI_SUGGESTIONS_USED.value: "ai_suggestions_used",
    RequirementKind.HARMONY_COLORS_USED.value: "harmony_colors_used",
    RequirementKind.REFERENCE_IMAGES_USED.value: "reference_images_used",
    RequirementKind.COLORING_STREAK.value: "coloring_streak",
    RequirementKind.COLORING_TIME_TOTAL.value: "coloring_time_total",
    RequirementKind.QUICK_COLORING.value: "quick_colorings",
    RequirementKind.MARATHON_COLORING.value: "marathon_colorings",
    RequirementKind.UNDO_AND_CONTINUE.value: "undo_and_continue",
}

# Coloring stats row column -> snapshot field (same names today)
_COLORING_FIELDS = (
    "completed_colorings",
    "colors_used_total",
    "colors_used_single_max",
    "brush_types_used",
    "premium_brushes_used",
    "ai_suggestions_used",
    "harmony_colors_used",
    "reference_images_used",
    "coloring_streak",
    "coloring_time_total",
    "quick_colorings",
    "marathon_colorings",
    "undo_and_continue",
)


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class StatisticsAggregator:
    """Builds UserStatisticsSnapshot values from the store's raw counters."""

    def __init__(self, store: StatisticsSource):
        self.store = store

    async def _read(self, label: str, user_id: int, read: Callable[[int], Awaitable[T]], default: T) -> T:
        try:
            value = await read(user_id)
        except Exception as e:
            logger.warning(
                "Statistics read %s failed for user %s: %s: %s",
                label, user_id, type(e).__name__, e,
            )
            return default
        return default if value is None else value

    async def get_snapshot(self, user_id: int) -> UserStatisticsSnapshot:
        analyses = await self._read("analyses", user_id, self.store.count_analyses, 0)
        stories = await self._read("storybooks", user_id, self.store.count_storybooks, 0)
        colorings = await self._read("colorings", user_id, self.store.count_colorings, 0)
        test_types = await self._read("test_types", user_id, self.store.count_distinct_test_types, 0)
        counters = await self._read("user_counters", user_id, self.store.get_user_counters, {})
        coloring = await self._read("coloring_stats", user_id, self.store.get_coloring_stats_row, {})

        children_count = _as_int(counters.get("child_count"))

        return UserStatisticsSnapshot(
            total_analyses=_as_int(analyses),
            total_stories=_as_int(stories),
            total_colorings=_as_int(colorings),
            unique_test_types=_as_int(test_types),
            children_count=children_count,
            profile_complete=bool(counters.get("has_name")) and children_count > 0,
            consecutive_days=_as_int(counters.get("current_streak")),
            **{name: _as_int(coloring.get(name)) for name in _COLORING_FIELDS},
        )
