"""Tests for the celebration scheduler: ordering, single-flight display and timers."""
import asyncio
import pytest
from unittest.mock import MagicMock


def make_event(type_name, title=None):
    from ioo_rewards.services.celebrations import CelebrationEvent, CelebrationType
    return CelebrationEvent(type=CelebrationType(type_name), title=title or type_name)


def drain(scheduler):
    """Dismiss until idle; returns titles in display order."""
    shown = []
    while scheduler.current is not None:
        shown.append(scheduler.current.title)
        scheduler.dismiss()
    return shown


class TestConfigs:

    def test_every_type_has_config(self):
        from ioo_rewards.services.celebrations import CELEBRATION_CONFIGS, CelebrationType
        assert set(CELEBRATION_CONFIGS) == set(CelebrationType)

    def test_priorities(self):
        from ioo_rewards.services.celebrations import CELEBRATION_CONFIGS, CelebrationType as T
        priorities = {t: c.priority for t, c in CELEBRATION_CONFIGS.items()}
        assert priorities[T.LEVEL_UP] > priorities[T.BADGE_UNLOCK] > priorities[T.XP_GAIN]
        assert priorities[T.BADGE_UNLOCK] == priorities[T.FIRST_ANALYSIS]

    def test_full_screen_types(self):
        from ioo_rewards.services.celebrations import CELEBRATION_CONFIGS, CelebrationType as T
        full_screen = {t for t, c in CELEBRATION_CONFIGS.items() if c.display_style == "full-screen"}
        assert full_screen == {T.BADGE_UNLOCK, T.LEVEL_UP, T.FIRST_ANALYSIS}


class TestSingleFlight:

    def test_first_submission_displays_immediately(self, scheduler):
        event = scheduler.submit(make_event("XP_GAIN"))

        assert scheduler.current is event
        assert scheduler.is_displaying
        assert scheduler.pending == []

    def test_only_one_current(self, scheduler):
        for name in ("XP_GAIN", "BADGE_UNLOCK", "STREAK_FIRE", "LEVEL_UP", "STREAK_MILESTONE"):
            scheduler.submit(make_event(name))

        assert scheduler.current.title == "XP_GAIN"
        assert len(scheduler.pending) == 4

    def test_dismiss_promotes_next_synchronously(self, scheduler):
        for name in ("XP_GAIN", "BADGE_UNLOCK", "STREAK_FIRE", "LEVEL_UP", "STREAK_MILESTONE"):
            scheduler.submit(make_event(name))

        scheduler.dismiss()

        assert scheduler.current.title == "LEVEL_UP"
        assert scheduler.is_displaying
        assert len(scheduler.pending) == 3

    def test_dismiss_last_goes_idle(self, scheduler):
        scheduler.submit(make_event("XP_GAIN"))
        assert scheduler.dismiss() is True

        assert scheduler.current is None
        assert scheduler.is_displaying is False

    def test_dismiss_when_idle_is_noop(self, scheduler):
        assert scheduler.dismiss() is False

    def test_dismiss_stale_id_is_noop(self, scheduler):
        first = scheduler.submit(make_event("XP_GAIN"))
        scheduler.dismiss(first.id)
        second = scheduler.submit(make_event("XP_GAIN", "second"))

        assert scheduler.dismiss(first.id) is False
        assert scheduler.current is second


class TestOrdering:

    def test_priority_order_while_idle(self, scheduler):
        """Queued behind a showing item, pending sorts by priority."""
        scheduler.submit(make_event("STREAK_SAVE", "blocker"))
        for name in ("XP_GAIN", "LEVEL_UP", "BADGE_UNLOCK"):
            scheduler.submit(make_event(name))

        assert drain(scheduler) == ["blocker", "LEVEL_UP", "BADGE_UNLOCK", "XP_GAIN"]

    def test_priority_order_of_pending(self, scheduler):
        from ioo_rewards.services.celebrations import CelebrationType

        scheduler.submit(make_event("STREAK_SAVE", "blocker"))
        for name in ("XP_GAIN", "LEVEL_UP", "BADGE_UNLOCK"):
            scheduler.submit(make_event(name))

        assert [e.type for e in scheduler.pending] == [
            CelebrationType.LEVEL_UP,
            CelebrationType.BADGE_UNLOCK,
            CelebrationType.XP_GAIN,
        ]

    def test_fifo_within_tier(self, scheduler):
        scheduler.submit(make_event("XP_GAIN", "blocker"))
        scheduler.submit(make_event("BADGE_UNLOCK", "badge-1"))
        scheduler.submit(make_event("FIRST_ANALYSIS", "first-analysis"))
        scheduler.submit(make_event("BADGE_UNLOCK", "badge-2"))

        assert drain(scheduler) == ["blocker", "badge-1", "first-analysis", "badge-2"]

    def test_lower_priority_never_preempts(self, scheduler):
        scheduler.submit(make_event("LEVEL_UP"))
        scheduler.submit(make_event("XP_GAIN"))
        assert scheduler.current.title == "LEVEL_UP"

    def test_higher_priority_does_not_interrupt_current(self, scheduler):
        scheduler.submit(make_event("XP_GAIN"))
        scheduler.submit(make_event("LEVEL_UP"))
        assert scheduler.current.title == "XP_GAIN"


class TestSideEffects:

    def test_cues_fire_once_per_display(self, scheduler):
        scheduler.submit(make_event("BADGE_UNLOCK"))
        scheduler.submit(make_event("XP_GAIN"))
        scheduler.submit(make_event("XP_GAIN"))

        assert scheduler.sounds == ["badge_unlock"]
        assert scheduler.haptics == ["badge_unlock"]

        drain(scheduler)

        assert scheduler.sounds == ["badge_unlock", "xp_gain", "xp_gain"]
        assert scheduler.haptics == ["badge_unlock", "xp_gain", "xp_gain"]

    def test_streak_fire_haptic_is_tap(self, scheduler):
        scheduler.celebrate_streak(3)
        assert scheduler.sounds == ["streak_fire"]
        assert scheduler.haptics == ["tap"]

    def test_on_dismiss_called_once(self, scheduler):
        calls = []
        scheduler.celebrate("XP_GAIN", "+5 XP", on_dismiss=lambda: calls.append(1))

        scheduler.dismiss()
        scheduler.dismiss()

        assert calls == [1]

    def test_failing_cue_does_not_break_queue(self):
        from ioo_rewards.services.celebrations import CelebrationScheduler

        def broken(cue):
            raise RuntimeError("audio device busy")

        scheduler = CelebrationScheduler(play_sound=broken)
        scheduler.submit(make_event("XP_GAIN"))
        scheduler.submit(make_event("LEVEL_UP"))

        assert scheduler.current.title == "XP_GAIN"
        scheduler.dismiss()
        assert scheduler.current.title == "LEVEL_UP"

    def test_failing_on_dismiss_still_advances(self, scheduler):
        def broken():
            raise RuntimeError("boom")

        scheduler.celebrate("XP_GAIN", "first", on_dismiss=broken)
        scheduler.submit(make_event("XP_GAIN", "second"))

        assert scheduler.dismiss() is True
        assert scheduler.current.title == "second"


class TestListeners:

    def test_display_and_dismiss_notifications(self, scheduler):
        seen = []
        scheduler.add_listener(lambda action, event: seen.append((action, event.title)))

        scheduler.submit(make_event("XP_GAIN", "a"))
        scheduler.submit(make_event("XP_GAIN", "b"))
        scheduler.dismiss()

        assert seen == [("display", "a"), ("dismiss", "a"), ("display", "b")]

    def test_failing_listener_is_isolated(self, scheduler):
        seen = []

        def broken(action, event):
            raise RuntimeError("listener bug")

        scheduler.add_listener(broken)
        scheduler.add_listener(lambda action, event: seen.append(action))
        scheduler.submit(make_event("XP_GAIN"))

        assert seen == ["display"]
        assert scheduler.is_displaying

    def test_listener_dismissing_immediately_advances(self, scheduler):
        """Re-entrant dismiss from a display listener still promotes the next item."""
        def auto_dismiss(action, event):
            if action == "display" and event.title == "skip":
                scheduler.dismiss(event.id)

        scheduler.submit(make_event("XP_GAIN", "blocker"))
        scheduler.submit(make_event("XP_GAIN", "skip"))
        scheduler.submit(make_event("XP_GAIN", "keep"))
        scheduler.add_listener(auto_dismiss)

        scheduler.dismiss()

        assert scheduler.current.title == "keep"

    def test_remove_listener(self, scheduler):
        seen = []
        listener = lambda action, event: seen.append(action)  # noqa: E731
        scheduler.add_listener(listener)
        scheduler.remove_listener(listener)

        scheduler.submit(make_event("XP_GAIN"))
        assert seen == []


class TestTimer:

    def test_timer_scheduled_with_duration(self):
        from ioo_rewards.services.celebrations import CelebrationScheduler

        loop = MagicMock()
        scheduler = CelebrationScheduler(loop=loop)
        event = scheduler.submit(make_event("BADGE_UNLOCK"))

        delay, callback, event_id = loop.call_later.call_args.args
        assert delay == 4.0
        assert event_id == event.id

    def test_timer_fires_dismiss(self):
        from ioo_rewards.services.celebrations import CelebrationScheduler

        loop = MagicMock()
        scheduler = CelebrationScheduler(loop=loop)
        scheduler.submit(make_event("XP_GAIN", "a"))
        scheduler.submit(make_event("XP_GAIN", "b"))

        _, callback, event_id = loop.call_later.call_args_list[0].args
        callback(event_id)

        assert scheduler.current.title == "b"

    def test_manual_dismiss_cancels_timer(self):
        from ioo_rewards.services.celebrations import CelebrationScheduler

        loop = MagicMock()
        handle = MagicMock()
        loop.call_later.return_value = handle
        scheduler = CelebrationScheduler(loop=loop)
        scheduler.submit(make_event("XP_GAIN"))

        scheduler.dismiss()

        handle.cancel.assert_called_once()

    def test_late_timer_for_dismissed_event_is_ignored(self):
        from ioo_rewards.services.celebrations import CelebrationScheduler

        loop = MagicMock()
        scheduler = CelebrationScheduler(loop=loop)
        scheduler.submit(make_event("XP_GAIN", "a"))
        _, callback, first_id = loop.call_later.call_args.args
        scheduler.submit(make_event("XP_GAIN", "b"))
        scheduler.dismiss()

        callback(first_id)

        assert scheduler.current.title == "b"

    def test_no_loop_waits_for_explicit_dismiss(self, scheduler):
        scheduler.submit(make_event("XP_GAIN"))
        assert scheduler.is_displaying
        assert scheduler._timer is None

    async def test_auto_dismiss_on_running_loop(self, monkeypatch):
        from ioo_rewards.services.celebrations import (
            CELEBRATION_CONFIGS,
            CelebrationConfig,
            CelebrationScheduler,
            CelebrationType,
        )

        monkeypatch.setitem(
            CELEBRATION_CONFIGS,
            CelebrationType.XP_GAIN,
            CelebrationConfig(1, 10, "inline", False, "xp_gain", "xp_gain"),
        )
        scheduler = CelebrationScheduler()
        scheduler.submit(make_event("XP_GAIN", "a"))
        scheduler.submit(make_event("XP_GAIN", "b"))

        await asyncio.sleep(0.05)

        assert scheduler.current is None
        assert scheduler.pending == []


class TestBuilders:

    def test_xp(self, scheduler):
        event = scheduler.celebrate_xp(25)
        assert (event.title, event.value) == ("+25 XP", 25)

    @pytest.mark.parametrize("days,type_name", [
        (3, "STREAK_FIRE"),
        (7, "STREAK_MILESTONE"),
        (14, "STREAK_MILESTONE"),
        (15, "STREAK_FIRE"),
    ])
    def test_streak_milestones(self, scheduler, days, type_name):
        event = scheduler.celebrate_streak(days)
        assert event.type.value == type_name
        assert event.value == days

    def test_badges_one_per_badge(self, scheduler):
        from ioo_rewards.services.badge_catalog import get_badge_by_id

        badges = [get_badge_by_id("first_analysis"), get_badge_by_id("analysis_5")]
        events = scheduler.celebrate_badges(badges)

        assert [e.title for e in events] == [b.name for b in badges]
        assert events[0].icon == badges[0].icon
        assert drain(scheduler) == [b.name for b in badges]

    def test_level_up_default_subtitle(self, scheduler):
        assert scheduler.celebrate_level_up(3).subtitle
        assert scheduler.celebrate_level_up(4, "Usta").subtitle == "Usta"

    def test_ids_are_unique(self, scheduler):
        ids = {scheduler.celebrate_xp(1).id for _ in range(50)}
        assert len(ids) == 50

    def test_reset_clears_everything(self, scheduler):
        scheduler.celebrate_first_analysis()
        scheduler.celebrate_streak_save()
        scheduler.reset()

        assert scheduler.snapshot() == {"current": None, "pending": [], "is_displaying": False}
