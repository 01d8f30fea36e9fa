"""Cooperative timer scheduler with generation tokens."""

from __future__ import annotations

import pytest

from scorecard.logic.timers import ManualClock, TimerScheduler


def test_timer_fires_once_at_its_due_time():
    scheduler = TimerScheduler(ManualClock())
    fired: list[int] = []
    token = scheduler.call_later(600, fired.append)
    assert scheduler.advance(599) == 0
    assert scheduler.is_pending(token)
    assert scheduler.advance(1) == 1
    assert fired == [token]
    assert scheduler.advance(10_000) == 0
    assert not scheduler.is_pending(token)


def test_cancelled_timer_never_fires():
    scheduler = TimerScheduler(ManualClock())
    fired: list[int] = []
    token = scheduler.call_later(100, fired.append)
    assert scheduler.cancel(token) is True
    assert scheduler.cancel(token) is False
    assert scheduler.cancel(None) is False
    scheduler.advance(1000)
    assert fired == []


def test_tokens_are_fresh_per_call():
    scheduler = TimerScheduler(ManualClock())
    first = scheduler.call_later(10, lambda t: None)
    second = scheduler.call_later(10, lambda t: None)
    assert first != second
    assert scheduler.pending_count() == 2


def test_timers_run_in_due_order_with_clock_at_due_time():
    clock = ManualClock()
    scheduler = TimerScheduler(clock)
    seen: list[tuple[str, float]] = []
    scheduler.call_later(300, lambda t: seen.append(("late", clock())))
    scheduler.call_later(100, lambda t: seen.append(("early", clock())))
    scheduler.advance(500)
    assert seen == [("early", 100.0), ("late", 300.0)]
    assert clock() == 500.0


def test_callback_may_arm_a_follow_up_in_the_same_advance():
    scheduler = TimerScheduler(ManualClock())
    seen: list[str] = []

    def first(token: int) -> None:
        seen.append("first")
        scheduler.call_later(50, lambda t: seen.append("second"))

    scheduler.call_later(100, first)
    scheduler.advance(200)
    assert seen == ["first", "second"]


def test_run_due_uses_the_injected_clock():
    clock = ManualClock(1_000)
    scheduler = TimerScheduler(clock)
    fired: list[int] = []
    scheduler.call_later(200, fired.append)
    assert scheduler.run_due() == 0
    clock.set(1_200)
    assert scheduler.run_due() == 1
    assert scheduler.next_due() is None


def test_cancel_all_drops_everything():
    scheduler = TimerScheduler(ManualClock())
    scheduler.call_later(10, lambda t: None)
    scheduler.call_later(20, lambda t: None)
    assert scheduler.cancel_all() == 2
    assert scheduler.pending_count() == 0
    assert scheduler.advance(100) == 0


def test_manual_clock_cannot_go_backwards():
    clock = ManualClock(50)
    with pytest.raises(ValueError):
        clock.set(10)


def test_advance_requires_manual_clock():
    with pytest.raises(TypeError):
        TimerScheduler().advance(10)
