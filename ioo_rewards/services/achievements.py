"""Achievement engine - evaluates the badge catalog against user statistics."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from ioo_rewards.core.clock import Clock, clock as default_clock
from ioo_rewards.services.badge_catalog import (
    BADGES,
    CALENDAR_KINDS,
    FLAG_KINDS,
    BadgeDefinition,
    get_badge_by_id,
)
from ioo_rewards.services.badge_store import AwardOutcome
from ioo_rewards.services.statistics import StatisticsAggregator, UserStatisticsSnapshot

logger = logging.getLogger(__name__)


class AwardStore(Protocol):
    """Award side of the badge store used by the engine."""

    async def get_owned_badges(self, user_id: int) -> list[dict[str, Any]]: ...
    async def insert_awarded_badge(
        self, user_id: int, badge_id: str, unlocked_at: datetime
    ) -> AwardOutcome: ...


@dataclass(frozen=True)
class OwnedBadge:
    """A badge a user holds, with the moment it was unlocked."""

    badge: BadgeDefinition
    unlocked_at: datetime

    @property
    def badge_id(self) -> str:
        return self.badge.id


@dataclass
class EvaluationResult:
    """Badges unlocked by one evaluation plus everything the user now owns."""

    newly_awarded: list[OwnedBadge] = field(default_factory=list)
    all_owned: list[OwnedBadge] = field(default_factory=list)


@dataclass(frozen=True)
class BadgeProgress:
    badge: BadgeDefinition
    current: int
    target: int
    percentage: int


def requirement_met(badge: BadgeDefinition, snapshot: UserStatisticsSnapshot) -> bool:
    """Evaluate a badge requirement against accumulated totals.

    Calendar and time-window kinds always report False here; the activity
    recorder awards those at write time. Unknown kinds are never satisfied.
    """
    kind = badge.requirement.kind
    threshold = badge.requirement.threshold

    if kind in CALENDAR_KINDS:
        return False

    value = snapshot.value_for(kind)
    if value is None:
        return False

    if kind in FLAG_KINDS:
        return value >= 1

    if not isinstance(threshold, int):
        return False
    return value >= threshold


def percent_complete(current: int, target: int) -> int:
    """Whole-number percentage, halves rounded up (1/200 -> 1, 5/200 -> 3)."""
    return (200 * int(current) + target) // (2 * target)


class AchievementEngine:
    """Awards badges idempotently and reports progress toward the rest."""

    def __init__(
        self,
        store: AwardStore,
        aggregator: StatisticsAggregator,
        clock: Clock | None = None,
    ):
        self.store = store
        self.aggregator = aggregator
        self.clock = clock or default_clock

    async def get_user_badges(self, user_id: int) -> list[OwnedBadge]:
        """Owned badges that still exist in the catalog, most recent first."""
        rows = await self.store.get_owned_badges(user_id)
        owned = []
        for row in rows:
            badge = get_badge_by_id(row["badge_id"])
            if badge is None:
                logger.debug("Ignoring unknown owned badge %s for user %s", row["badge_id"], user_id)
                continue
            owned.append(OwnedBadge(badge=badge, unlocked_at=row["unlocked_at"]))
        return owned

    async def award_badge(self, user_id: int, badge_id: str) -> AwardOutcome:
        """Insert one award. Safe to repeat: a second call reports ALREADY_OWNED."""
        outcome = await self.store.insert_awarded_badge(user_id, badge_id, self.clock.now())
        if outcome is AwardOutcome.INSERTED:
            logger.info("Awarded badge %s to user %s", badge_id, user_id)
        else:
            logger.info("Badge %s already awarded to user %s", badge_id, user_id)
        return outcome

    async def evaluate_and_award(self, user_id: int) -> EvaluationResult:
        """Award every catalog badge whose requirement the user now meets.

        Storage write failures other than a uniqueness conflict propagate;
        awards inserted before the failure stay in place and the next
        evaluation picks up the rest.
        """
        owned = await self.get_user_badges(user_id)
        owned_ids = {o.badge_id for o in owned}
        snapshot = await self.aggregator.get_snapshot(user_id)

        result = EvaluationResult(all_owned=list(owned))
        lost_races = False

        for badge in BADGES:
            if badge.id in owned_ids:
                continue
            if not requirement_met(badge, snapshot):
                continue

            unlocked_at = self.clock.now()
            outcome = await self.store.insert_awarded_badge(user_id, badge.id, unlocked_at)
            awarded = OwnedBadge(badge=badge, unlocked_at=unlocked_at)
            owned_ids.add(badge.id)
            result.all_owned.append(awarded)

            if outcome is AwardOutcome.INSERTED:
                result.newly_awarded.append(awarded)
            else:
                # Another evaluation won the insert; owned, but not news for this call
                logger.info("Badge %s already awarded to user %s", badge.id, user_id)
                lost_races = True

        if lost_races:
            # Report the winner's unlocked_at, not this call's clock
            stored = {o.badge_id: o for o in await self.get_user_badges(user_id)}
            result.all_owned = [stored.get(o.badge_id, o) for o in result.all_owned]

        if result.newly_awarded:
            logger.info(
                "Awarded %d new badges to user %s: %s",
                len(result.newly_awarded),
                user_id,
                ", ".join(o.badge_id for o in result.newly_awarded),
            )
        return result

    async def get_progress(self, user_id: int, limit: int | None = None) -> list[BadgeProgress]:
        """Progress toward visible, unowned threshold badges, closest first.

        Badges already at or over target are left out: they are due for an
        award, not a progress bar.
        """
        snapshot = await self.aggregator.get_snapshot(user_id)
        owned_ids = {o.badge_id for o in await self.get_user_badges(user_id)}

        progress = []
        for badge in BADGES:
            if badge.id in owned_ids or badge.is_secret:
                continue
            if not badge.requirement.is_threshold:
                continue

            current = snapshot.value_for(badge.requirement.kind)
            if current is None:
                continue
            target = badge.requirement.threshold
            if badge.requirement.kind in FLAG_KINDS:
                target = 1

            if current < target:
                progress.append(BadgeProgress(
                    badge=badge,
                    current=current,
                    target=target,
                    percentage=percent_complete(current, target),
                ))

        # sorted() is stable, so ties keep catalog order
        progress = sorted(progress, key=lambda p: p.percentage, reverse=True)
        if limit is not None:
            progress = progress[:limit]
        return progress
