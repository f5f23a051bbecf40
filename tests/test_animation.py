"""Tests for the cooperative animator."""

from __future__ import annotations

import pytest

from mindmap.animation import Animator, ease_cubic_in_out, ease_cubic_out, ease_linear, lerp


def test_easing_endpoints() -> None:
    """Easing curves run from 0 to 1."""

    for easing in (ease_linear, ease_cubic_in_out, ease_cubic_out):
        assert easing(0.0) == pytest.approx(0.0)
        assert easing(1.0) == pytest.approx(1.0)
    assert ease_cubic_in_out(0.5) == pytest.approx(0.5)
    assert lerp((0.0, 10.0), (10.0, 20.0), 0.5) == (5.0, 15.0)


def test_tick_interpolates_and_retires(clock) -> None:
    """Values move along the easing curve and finished keys drop out."""

    animator = Animator(clock=clock)
    animator.start("n", (0.0, 0.0), (10.0, 0.0), 1000, ease_linear)

    clock.advance(0.5)
    assert animator.tick()["n"] == pytest.approx((5.0, 0.0))
    assert animator.busy

    clock.advance(0.6)
    assert animator.tick()["n"] == (10.0, 0.0)
    assert not animator.busy
    assert animator.value("n") is None


def test_new_transition_supersedes_from_current_value(clock) -> None:
    """Restarting a key continues from where it had got to, not its old target."""

    animator = Animator(clock=clock)
    animator.start("n", (0.0,), (10.0,), 1000, ease_linear)
    clock.advance(0.5)

    animator.start("n", (0.0,), (20.0,), 1000, ease_linear)

    assert animator.value("n") == pytest.approx((5.0,))
    clock.advance(0.5)
    assert animator.tick()["n"] == pytest.approx((12.5,))


def test_on_done_fires_once_and_not_when_superseded(clock) -> None:
    """Completion callbacks only fire for transitions that ran to the end."""

    animator = Animator(clock=clock)
    done = []
    animator.start("a", (0.0,), (1.0,), 100, on_done=lambda: done.append("first"))
    animator.start("a", (0.0,), (2.0,), 100, on_done=lambda: done.append("second"))

    clock.advance(1.0)
    animator.tick()
    animator.tick()

    assert done == ["second"]


def test_zero_duration_completes_on_next_tick(clock) -> None:
    """Instant transitions land on their end value."""

    animator = Animator(clock=clock)
    animator.start("cam", (0.0, 0.0, 1.0), (5.0, 5.0, 2.0), 0)

    assert animator.tick()["cam"] == (5.0, 5.0, 2.0)
    assert animator.value("cam") is None
