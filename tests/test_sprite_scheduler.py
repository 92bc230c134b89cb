"""Tests for cycle-accurate sprite level and frame selection."""

import logging

import pytest

from gh_snake_overlay.timeline.sprite_scheduler import (
    FrameChoice,
    SpriteFrameScheduler,
    get_contribution_level,
)


@pytest.fixture
def scheduler() -> SpriteFrameScheduler:
    return SpriteFrameScheduler(frames_per_level=[8, 8, 8, 8, 8], frame_duration_ms=100)


def test_first_step_initializes_with_target(scheduler):
    """The first step should adopt the target level at frame 0."""
    slot = scheduler.create()

    choice = scheduler.step(slot, 500, 3)

    assert choice == FrameChoice(3, 0)
    assert slot.playing_level == 3
    assert slot.cycle_start_ms == 500


def test_level_change_waits_for_cycle_end(scheduler):
    """A level change requested mid-cycle must not switch the playing level."""
    slot = scheduler.create()
    scheduler.step(slot, 0, 0)

    choice = scheduler.step(slot, 350, 1)

    assert choice == FrameChoice(0, 3)


def test_level_change_commits_at_cycle_boundary(scheduler):
    """Once the cycle completes, the target level starts from frame 0."""
    slot = scheduler.create()
    scheduler.step(slot, 0, 0)
    scheduler.step(slot, 350, 1)

    choice = scheduler.step(slot, 800, 1)

    assert choice == FrameChoice(1, 0)
    assert slot.cycle_start_ms == 800
    assert slot.last_completed_cycle == 0


def test_same_level_keeps_phase(scheduler):
    """Completing a cycle without a level change should keep the running phase."""
    slot = scheduler.create()
    scheduler.step(slot, 0, 2)

    assert scheduler.step(slot, 900, 2) == FrameChoice(2, 1)
    assert slot.last_completed_cycle == 1
    assert slot.cycle_start_ms == 0
    # Mid-cycle again: a new target must wait for the next boundary.
    assert scheduler.step(slot, 1000, 4) == FrameChoice(2, 2)


def test_level_zero_is_cycle_gated(scheduler):
    """Dropping to level 0 should wait for the cycle like any other level."""
    slot = scheduler.create()
    scheduler.step(slot, 0, 3)

    assert scheduler.step(slot, 200, 0) == FrameChoice(3, 2)
    assert scheduler.step(slot, 800, 0) == FrameChoice(0, 0)


def test_slots_are_independent(scheduler):
    """Each slot should carry its own playback state."""
    first = scheduler.create()
    second = scheduler.create()
    scheduler.step(first, 0, 1)
    scheduler.step(second, 300, 2)

    assert scheduler.step(first, 400, 1) == FrameChoice(1, 4)
    assert scheduler.step(second, 400, 2) == FrameChoice(2, 1)


def test_dispose_resets_slot(scheduler):
    """A disposed slot should start over on its next step."""
    slot = scheduler.create()
    scheduler.step(slot, 0, 1)

    scheduler.dispose(slot)

    assert slot.playing_level is None
    assert scheduler.step(slot, 1234, 2) == FrameChoice(2, 0)


def test_unusable_frame_count_falls_back_to_frame_zero(caplog):
    """A level without frames should show frame 0 and log a warning once."""
    scheduler = SpriteFrameScheduler(frames_per_level=[0, float("nan")], frame_duration_ms=100)
    slot = scheduler.create()

    with caplog.at_level(logging.WARNING):
        scheduler.step(slot, 0, 1)
        choice = scheduler.step(slot, 500, 1)

    assert choice == FrameChoice(1, 0)
    assert caplog.text.count("Level 1 has no usable frames") == 1


def test_invalid_frame_duration_holds_frame_zero():
    """A zero frame duration should never divide by zero."""
    scheduler = SpriteFrameScheduler(frames_per_level=[4], frame_duration_ms=0)
    slot = scheduler.create()
    scheduler.step(slot, 0, 0)

    assert scheduler.step(slot, 1000, 0) == FrameChoice(0, 0)


@pytest.mark.parametrize(
    ("contribution", "maximum", "levels", "expected"),
    [
        (0, 10, 5, 0),
        (10, 10, 5, 4),
        (3, 10, 5, 2),
        (1, 10, 5, 1),
        (50, 10, 5, 4),
        (5, 0, 5, 0),
        (5, 10, 1, 0),
    ],
)
def test_contribution_level(contribution, maximum, levels, expected):
    """Contributions should bucket into levels with ceil and clamp."""
    assert get_contribution_level(contribution, maximum, levels) == expected
