"""Badge API endpoints: catalog, owned badges, progress, and activity recording."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ioo_rewards.api.deps import get_achievement_engine, get_activity_recorder, get_scheduler
from ioo_rewards.core.config import settings
from ioo_rewards.core.database import get_db
from ioo_rewards.services.achievements import AchievementEngine, OwnedBadge
from ioo_rewards.services.activity import (
    ActionType,
    ActivityRecorder,
    ColoringActivity,
    ColoringActivityType,
)
from ioo_rewards.services.badge_catalog import (
    BadgeCategory,
    BadgeDefinition,
    BadgeRarity,
    get_badge_by_id,
    get_badges_by_category,
    get_visible_badges,
)
from ioo_rewards.services.celebrations import CelebrationScheduler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["badges"])


# =============================================================================
# SCHEMAS
# =============================================================================

class BadgeResponse(BaseModel):
    """Catalog entry."""
    id: str
    name: str
    description: str
    icon: str
    category: str
    rarity: str
    requirement_kind: str
    threshold: int | str
    is_secret: bool


class OwnedBadgeResponse(BadgeResponse):
    """Catalog entry plus when the user unlocked it."""
    unlocked_at: str


class BadgeProgressResponse(BaseModel):
    """Progress toward one unowned badge."""
    badge: BadgeResponse
    current: int
    target: int
    percentage: int


class BadgeCheckResponse(BaseModel):
    """Result of a badge evaluation."""
    newly_awarded: list[OwnedBadgeResponse]
    total_owned: int


class ActivityRequest(BaseModel):
    """A content action to record."""
    action_type: ActionType


class ColoringActivityRequest(BaseModel):
    """A coloring-studio event to record."""
    type: ColoringActivityType
    value: str | None = Field(default=None, description="Color or brush for color_used / brush_used")
    colors: list[str] = Field(default_factory=list, description="Colors used in a completed artwork")
    colors_in_session: int | None = Field(default=None, ge=0)
    session_duration: float | None = Field(default=None, ge=0, description="Session length in minutes")


class ActivityResponse(BaseModel):
    """Badges unlocked by recording an activity."""
    calendar_awarded: list[str] = Field(description="Time-window and special-day badge ids")
    newly_awarded: list[OwnedBadgeResponse] = Field(description="Threshold badges from the follow-up evaluation")


def _badge_dict(badge: BadgeDefinition) -> dict[str, Any]:
    return {
        "id": badge.id,
        "name": badge.name,
        "description": badge.description,
        "icon": badge.icon,
        "category": badge.category.value,
        "rarity": badge.rarity.value,
        "requirement_kind": badge.requirement.kind,
        "threshold": badge.requirement.threshold,
        "is_secret": badge.is_secret,
    }


def _owned_dict(owned: OwnedBadge) -> dict[str, Any]:
    return {**_badge_dict(owned.badge), "unlocked_at": owned.unlocked_at.isoformat()}


async def _storage_unavailable(db: AsyncSession, action: str, user_id: int, e: Exception) -> HTTPException:
    """Roll back the failed unit of work and build the 503 response."""
    await db.rollback()
    logger.error("%s failed for user %s: %s: %s", action, user_id, type(e).__name__, e)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Badge storage is unavailable, please try again",
    )


def _celebrate_new(scheduler: CelebrationScheduler, badges: list[BadgeDefinition]) -> None:
    if badges:
        scheduler.celebrate_badges(badges)


# =============================================================================
# CATALOG
# =============================================================================

@router.get("/badges/catalog", response_model=list[BadgeResponse])
async def get_catalog(
    category: str | None = Query(default=None, description="Filter by category"),
) -> list[dict[str, Any]]:
    """Visible badges in catalog order. Secret badges are never listed."""
    if category:
        try:
            badges = [b for b in get_badges_by_category(BadgeCategory(category)) if not b.is_secret]
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid category. Must be one of: {[c.value for c in BadgeCategory]}",
            )
    else:
        badges = get_visible_badges()
    return [_badge_dict(b) for b in badges]


@router.get("/badges/categories")
async def get_categories() -> dict[str, list[str]]:
    """Get available badge categories and rarities."""
    return {
        "categories": [c.value for c in BadgeCategory],
        "rarities": [r.value for r in BadgeRarity],
    }


# =============================================================================
# USER BADGES
# =============================================================================

@router.get("/users/{user_id}/badges", response_model=list[OwnedBadgeResponse])
async def get_user_badges(
    user_id: int,
    engine: AchievementEngine = Depends(get_achievement_engine),
) -> list[dict[str, Any]]:
    """Badges the user owns, most recent first."""
    owned = await engine.get_user_badges(user_id)
    return [_owned_dict(o) for o in owned]


@router.post("/users/{user_id}/badges/check", response_model=BadgeCheckResponse)
async def check_badges(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    engine: AchievementEngine = Depends(get_achievement_engine),
    scheduler: CelebrationScheduler = Depends(get_scheduler),
) -> dict[str, Any]:
    """Award every badge the user now qualifies for and queue their celebrations."""
    try:
        result = await engine.evaluate_and_award(user_id)
        await db.commit()
    except SQLAlchemyError as e:
        raise await _storage_unavailable(db, "Badge check", user_id, e)

    _celebrate_new(scheduler, [o.badge for o in result.newly_awarded])
    return {
        "newly_awarded": [_owned_dict(o) for o in result.newly_awarded],
        "total_owned": len(result.all_owned),
    }


@router.get("/users/{user_id}/badges/progress", response_model=list[BadgeProgressResponse])
async def get_badge_progress(
    user_id: int,
    limit: int | None = Query(default=None, ge=1, le=100),
    engine: AchievementEngine = Depends(get_achievement_engine),
) -> list[dict[str, Any]]:
    """Visible, unowned badges closest to completion."""
    progress = await engine.get_progress(user_id, limit=limit or settings.progress_limit)
    return [
        {
            "badge": _badge_dict(p.badge),
            "current": p.current,
            "target": p.target,
            "percentage": p.percentage,
        }
        for p in progress
    ]


# =============================================================================
# ACTIVITY
# =============================================================================

async def _evaluate_after_record(
    user_id: int,
    calendar_awarded: list[str],
    db: AsyncSession,
    engine: AchievementEngine,
    scheduler: CelebrationScheduler,
) -> dict[str, Any]:
    result = await engine.evaluate_and_award(user_id)
    await db.commit()

    calendar_badges = [b for b in (get_badge_by_id(i) for i in calendar_awarded) if b is not None]
    _celebrate_new(scheduler, calendar_badges + [o.badge for o in result.newly_awarded])

    return {
        "calendar_awarded": calendar_awarded,
        "newly_awarded": [_owned_dict(o) for o in result.newly_awarded],
    }


@router.post("/users/{user_id}/activity", response_model=ActivityResponse)
async def record_activity(
    user_id: int,
    request: ActivityRequest,
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    engine: AchievementEngine = Depends(get_achievement_engine),
    scheduler: CelebrationScheduler = Depends(get_scheduler),
) -> dict[str, Any]:
    """Record an analysis, story or coloring page, then evaluate badges."""
    try:
        calendar_awarded = await recorder.record_activity(user_id, request.action_type)
        return await _evaluate_after_record(user_id, calendar_awarded, db, engine, scheduler)
    except SQLAlchemyError as e:
        raise await _storage_unavailable(db, "Activity recording", user_id, e)


@router.post("/users/{user_id}/coloring-activity", response_model=ActivityResponse)
async def record_coloring_activity(
    user_id: int,
    request: ColoringActivityRequest,
    db: AsyncSession = Depends(get_db),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    engine: AchievementEngine = Depends(get_achievement_engine),
    scheduler: CelebrationScheduler = Depends(get_scheduler),
) -> dict[str, Any]:
    """Record a coloring-studio event, then evaluate badges."""
    activity = ColoringActivity(
        type=request.type,
        value=request.value,
        colors=request.colors,
        colors_in_session=request.colors_in_session,
        session_minutes=request.session_duration,
    )
    try:
        calendar_awarded = await recorder.record_coloring_activity(user_id, activity)
        return await _evaluate_after_record(user_id, calendar_awarded, db, engine, scheduler)
    except SQLAlchemyError as e:
        raise await _storage_unavailable(db, "Coloring activity recording", user_id, e)
