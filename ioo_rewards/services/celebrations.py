"""
Celebration scheduler - single-flight queue of reward notifications.

Any feature may submit a celebration. Pending celebrations are ordered by
priority (FIFO within a priority), exactly one is displayed at a time, its
sound and haptic cues fire once when it is shown, and dismissal (explicit or
by its display timer) promotes the next one in the same call.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class CelebrationType(str, Enum):
    XP_GAIN = "XP_GAIN"
    STREAK_FIRE = "STREAK_FIRE"
    STREAK_MILESTONE = "STREAK_MILESTONE"
    BADGE_UNLOCK = "BADGE_UNLOCK"
    LEVEL_UP = "LEVEL_UP"
    FIRST_ANALYSIS = "FIRST_ANALYSIS"
    STREAK_SAVE = "STREAK_SAVE"


@dataclass(frozen=True)
class CelebrationConfig:
    """Static display settings for one celebration type."""

    priority: int
    duration_ms: int
    display_style: str  # "inline" | "full-screen"
    show_confetti: bool
    sound_cue: str
    haptic_pattern: str


CELEBRATION_CONFIGS: dict[CelebrationType, CelebrationConfig] = {
    CelebrationType.XP_GAIN: CelebrationConfig(1, 1500, "inline", False, "xp_gain", "xp_gain"),
    CelebrationType.STREAK_FIRE: CelebrationConfig(2, 2000, "inline", False, "streak_fire", "tap"),
    CelebrationType.STREAK_MILESTONE: CelebrationConfig(3, 2500, "inline", True, "celebration", "celebration"),
    CelebrationType.BADGE_UNLOCK: CelebrationConfig(4, 4000, "full-screen", True, "badge_unlock", "badge_unlock"),
    CelebrationType.LEVEL_UP: CelebrationConfig(5, 5000, "full-screen", True, "level_up", "level_up"),
    CelebrationType.FIRST_ANALYSIS: CelebrationConfig(4, 4000, "full-screen", True, "celebration", "celebration"),
    CelebrationType.STREAK_SAVE: CelebrationConfig(2, 2000, "inline", False, "success", "success"),
}

STREAK_MILESTONE_EVERY = 7


@dataclass
class CelebrationEvent:
    """One reward notification. Created on submit, discarded after display."""

    type: CelebrationType
    title: str
    subtitle: str | None = None
    value: int | str | None = None
    icon: str | None = None
    on_dismiss: Callable[[], Any] | None = field(default=None, repr=False, compare=False)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def config(self) -> CelebrationConfig:
        return CELEBRATION_CONFIGS[self.type]

    @property
    def priority(self) -> int:
        return self.config.priority

    def to_dict(self) -> dict[str, Any]:
        config = self.config
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "subtitle": self.subtitle,
            "value": self.value,
            "icon": self.icon,
            "priority": config.priority,
            "duration_ms": config.duration_ms,
            "display_style": config.display_style,
            "show_confetti": config.show_confetti,
            "sound_cue": config.sound_cue,
            "haptic_pattern": config.haptic_pattern,
        }


@dataclass
class CelebrationQueueState:
    """Queue contents. ``current`` is set only while ``is_displaying``."""

    pending: list[CelebrationEvent] = field(default_factory=list)
    current: CelebrationEvent | None = None
    is_displaying: bool = False


# Listener signature: (action, event) with action "display" or "dismiss"
Listener = Callable[[str, CelebrationEvent], Any]


class CelebrationScheduler:
    """Owns the celebration queue; submit and dismiss are its only mutations."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        play_sound: Callable[[str], Any] | None = None,
        play_haptic: Callable[[str], Any] | None = None,
    ):
        self._state = CelebrationQueueState()
        self._loop = loop
        self._timer: asyncio.TimerHandle | None = None
        self._advancing = False
        self._listeners: list[Listener] = []
        self.play_sound = play_sound
        self.play_haptic = play_haptic

    # -------------------------------------------------------------------------
    # Read-only view
    # -------------------------------------------------------------------------

    @property
    def current(self) -> CelebrationEvent | None:
        return self._state.current

    @property
    def pending(self) -> list[CelebrationEvent]:
        return list(self._state.pending)

    @property
    def is_displaying(self) -> bool:
        return self._state.is_displaying

    def snapshot(self) -> dict[str, Any]:
        return {
            "current": self._state.current.to_dict() if self._state.current else None,
            "pending": [e.to_dict() for e in self._state.pending],
            "is_displaying": self._state.is_displaying,
        }

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, action: str, event: CelebrationEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(action, event)
            except Exception as e:
                logger.error("Celebration listener failed on %s: %s: %s", action, type(e).__name__, e)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def submit(self, event: CelebrationEvent) -> CelebrationEvent:
        """Queue a celebration behind everything of equal or higher priority."""
        pending = self._state.pending
        index = len(pending)
        for i, queued in enumerate(pending):
            if queued.priority < event.priority:
                index = i
                break
        pending.insert(index, event)
        logger.debug("Queued %s celebration %s (%d pending)", event.type.value, event.id, len(pending))

        self._advance()
        return event

    def dismiss(self, event_id: str | None = None) -> bool:
        """Dismiss the current celebration and promote the next one.

        With ``event_id``, only that celebration is dismissed; a stale id
        (already dismissed by its timer) is a no-op. Returns whether anything
        was dismissed.
        """
        event = self._state.current
        if event is None:
            return False
        if event_id is not None and event.id != event_id:
            return False

        self._cancel_timer()
        self._state.current = None
        self._state.is_displaying = False

        if event.on_dismiss is not None:
            try:
                event.on_dismiss()
            except Exception as e:
                logger.error("on_dismiss for celebration %s failed: %s: %s", event.id, type(e).__name__, e)

        self._notify("dismiss", event)
        self._advance()
        return True

    def reset(self) -> None:
        """Drop the current and all pending celebrations without side effects."""
        self._cancel_timer()
        self._state = CelebrationQueueState()

    def _advance(self) -> None:
        # Listeners and cues may submit re-entrantly; the outer call picks those up
        if self._advancing:
            return
        self._advancing = True
        try:
            while self._state.current is None and self._state.pending:
                event = self._state.pending.pop(0)
                self._state.current = event
                self._state.is_displaying = True

                config = event.config
                self._fire(self.play_sound, config.sound_cue, "sound")
                self._fire(self.play_haptic, config.haptic_pattern, "haptic")
                self._start_timer(event, config.duration_ms)

                logger.debug("Displaying %s celebration %s", event.type.value, event.id)
                self._notify("display", event)
        finally:
            self._advancing = False

    def _fire(self, effect: Callable[[str], Any] | None, cue: str, label: str) -> None:
        if effect is None:
            return
        try:
            effect(cue)
        except Exception as e:
            logger.warning("Celebration %s cue %s failed: %s: %s", label, cue, type(e).__name__, e)

    # -------------------------------------------------------------------------
    # Display timer
    # -------------------------------------------------------------------------

    def _get_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _start_timer(self, event: CelebrationEvent, duration_ms: int) -> None:
        loop = self._get_loop()
        if loop is None:
            # No loop: stays on screen until dismissed explicitly
            return
        self._timer = loop.call_later(duration_ms / 1000, self._on_timer, event.id)

    def _on_timer(self, event_id: str) -> None:
        self.dismiss(event_id)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def celebrate(
        self,
        type: CelebrationType,
        title: str,
        subtitle: str | None = None,
        value: int | str | None = None,
        icon: str | None = None,
        on_dismiss: Callable[[], Any] | None = None,
    ) -> CelebrationEvent:
        return self.submit(CelebrationEvent(
            type=CelebrationType(type),
            title=title,
            subtitle=subtitle,
            value=value,
            icon=icon,
            on_dismiss=on_dismiss,
        ))

    def celebrate_xp(self, amount: int) -> CelebrationEvent:
        return self.celebrate(CelebrationType.XP_GAIN, f"+{amount} XP", value=amount)

    def celebrate_streak(self, days: int) -> CelebrationEvent:
        if days > 0 and days % STREAK_MILESTONE_EVERY == 0:
            return self.celebrate(
                CelebrationType.STREAK_MILESTONE, f"{days} Gün!",
                subtitle="Harika bir tutarlılık!", value=days,
            )
        return self.celebrate(
            CelebrationType.STREAK_FIRE, f"{days} Gün Serisi!",
            subtitle="Devam et!", value=days,
        )

    def celebrate_badge(self, badge_name: str, badge_icon: str | None = None) -> CelebrationEvent:
        return self.celebrate(
            CelebrationType.BADGE_UNLOCK, badge_name,
            subtitle="Yeni rozet kazandın!", icon=badge_icon,
        )

    def celebrate_badges(self, badges: list[Any]) -> list[CelebrationEvent]:
        """One BADGE_UNLOCK per newly awarded badge definition, in award order."""
        return [self.celebrate_badge(badge.name, badge.icon) for badge in badges]

    def celebrate_level_up(self, new_level: int, new_title: str | None = None) -> CelebrationEvent:
        return self.celebrate(
            CelebrationType.LEVEL_UP, f"Seviye {new_level}!",
            subtitle=new_title or "Yeni bir seviyeye ulaştın!", value=new_level,
        )

    def celebrate_first_analysis(self) -> CelebrationEvent:
        return self.celebrate(
            CelebrationType.FIRST_ANALYSIS, "İlk Analizin Tamamlandı!",
            subtitle="Yolculuğa başladın!",
        )

    def celebrate_streak_save(self) -> CelebrationEvent:
        return self.celebrate(
            CelebrationType.STREAK_SAVE, "Streak'in Güvende!",
            subtitle="Serin korundu",
        )


# Singleton instance
celebration_scheduler = CelebrationScheduler()
