"""Badge ownership, daily activity and coloring statistics tables."""

from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ioo_rewards.models.base import Base


class UserBadge(Base):
    """A badge a user has unlocked. One row per (user, badge), ever."""

    __tablename__ = "user_badges"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    badge_id: Mapped[str] = mapped_column(String(100))  # Catalog id, e.g. "analysis_5"
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_user_badge_unique", "user_id", "badge_id", unique=True),
    )


class UserActivity(Base):
    """Per-day action counters for one user."""

    __tablename__ = "user_activity"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    activity_date: Mapped[date] = mapped_column(Date)  # Local calendar date

    analyses_count: Mapped[int] = mapped_column(Integer, default=0)
    stories_count: Mapped[int] = mapped_column(Integer, default=0)
    colorings_count: Mapped[int] = mapped_column(Integer, default=0)

    first_activity_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_user_activity_day", "user_id", "activity_date", unique=True),
    )


class UserColoringStats(Base):
    """Cumulative coloring-studio statistics, one row per user."""

    __tablename__ = "user_coloring_stats"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
    )

    completed_colorings: Mapped[int] = mapped_column(Integer, default=0)

    # Distinct-value counters, kept in sync with the arrays below
    colors_used_total: Mapped[int] = mapped_column(Integer, default=0)
    colors_used_single_max: Mapped[int] = mapped_column(Integer, default=0)
    brush_types_used: Mapped[int] = mapped_column(Integer, default=0)
    premium_brushes_used: Mapped[int] = mapped_column(Integer, default=0)

    # Assistive features
    ai_suggestions_used: Mapped[int] = mapped_column(Integer, default=0)
    harmony_colors_used: Mapped[int] = mapped_column(Integer, default=0)
    reference_images_used: Mapped[int] = mapped_column(Integer, default=0)

    # Streak and time
    coloring_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_coloring_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    coloring_time_total: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    quick_colorings: Mapped[int] = mapped_column(Integer, default=0)
    marathon_colorings: Mapped[int] = mapped_column(Integer, default=0)
    undo_and_continue: Mapped[int] = mapped_column(Integer, default=0)

    # Seen values backing the distinct counters
    colors_used_array: Mapped[list] = mapped_column(JSON, default=list)
    brush_types_array: Mapped[list] = mapped_column(JSON, default=list)
    premium_brushes_array: Mapped[list] = mapped_column(JSON, default=list)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
