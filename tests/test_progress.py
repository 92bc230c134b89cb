"""Tests for progress run segmentation and clip-path keyframes."""

import pytest

from gh_snake_overlay.contributions import Grid, build_path_steps
from gh_snake_overlay.output._css_progress import (
    plan_progress,
    plan_progress_for_path,
    progress_events,
    render_progress,
    run_keyframes,
)
from gh_snake_overlay.timeline.progress_segmenter import (
    ProgressEvent,
    ProgressRun,
    segment_progress,
    total_weight,
)


def test_color_change_splits_runs_with_cumulative_shares():
    """Ten equal events split 6/4 by color should give shares [0, 0.6] and [0.6, 1]."""
    events = [ProgressEvent(t=i / 10, color=1 if i < 6 else 2, weight=0.1) for i in range(10)]

    runs = segment_progress(events)

    assert [run.color for run in runs] == [1, 2]
    assert (runs[0].start_share, runs[0].end_share) == pytest.approx((0.0, 0.6))
    assert (runs[1].start_share, runs[1].end_share) == pytest.approx((0.6, 1.0))
    assert len(runs[0].member_times) == 6


def test_returning_color_starts_a_new_run():
    """A color seen earlier should still open a new run after a different color."""
    events = [ProgressEvent(0.0, 1, 1), ProgressEvent(0.1, 2, 1), ProgressEvent(0.2, 1, 1)]

    assert [run.color for run in segment_progress(events)] == [1, 2, 1]


def test_events_are_ordered_by_time():
    """Unordered input should be segmented in time order."""
    events = [ProgressEvent(0.5, 2, 1), ProgressEvent(0.0, 1, 1)]

    runs = segment_progress(events)

    assert [run.member_times for run in runs] == [(0.0,), (0.5,)]


def test_zero_total_weight_gives_zero_shares():
    """Without any weight every share should be zero instead of dividing by zero."""
    runs = segment_progress([ProgressEvent(0.0, 1, 0), ProgressEvent(0.5, 2, 0)])

    assert all(run.start_share == 0 and run.end_share == 0 for run in runs)
    assert total_weight(runs) == 0


def test_run_keyframes_reveal_each_member():
    """Each member should widen the block instantly around its own time."""
    run = ProgressRun(color=1, member_times=(0.25, 0.5), member_weights=(1, 1), start_share=0.0, end_share=1.0)

    keyframes = run_keyframes(run, weight_total=2)

    assert [k.t for k in keyframes] == pytest.approx([0.0, 0.2499, 0.2501, 0.4999, 0.5001, 1.0])
    assert [k.style for k in keyframes] == [
        "clip-path:inset(0 100.0% 0 0.0%)",
        "clip-path:inset(0 100.0% 0 0.0%)",
        "clip-path:inset(0 50.0% 0 0.0%)",
        "clip-path:inset(0 50.0% 0 0.0%)",
        "clip-path:inset(0 0.0% 0 0.0%)",
        "clip-path:inset(0 0.0% 0 0.0%)",
    ]


def test_second_run_is_pinned_at_its_start():
    """A later run should keep its left edge at its start share."""
    run = ProgressRun(color=2, member_times=(0.6,), member_weights=(4,), start_share=0.6, end_share=1.0)

    keyframes = run_keyframes(run, weight_total=10)

    assert keyframes[0].style == "clip-path:inset(0 40.0% 0 60.0%)"
    assert keyframes[-1].style == "clip-path:inset(0 0.0% 0 60.0%)"


@pytest.fixture
def grid() -> Grid:
    return Grid(width=3, height=1, levels=((1,), (0,), (3,)), counts=((2,), (0,), (5,)))


def test_events_follow_first_visits(grid):
    """Revisits should not add events; uniform mode weighs every cell as 1."""
    steps = build_path_steps(grid, [[0, 0], [1, 0], [0, 0], [2, 0]], snake_length=1)

    weighted = progress_events(grid, steps)
    uniform = progress_events(grid, steps, mode="uniform")

    assert [(e.t, e.color, e.weight) for e in weighted] == [(0.0, 1, 2), (0.25, 0, 0), (0.75, 3, 5)]
    assert [e.weight for e in uniform] == [1, 1, 1]


def test_zero_width_runs_are_skipped(grid):
    """Runs that never gain width should not be rendered."""
    steps = build_path_steps(grid, [[0, 0], [1, 0], [2, 0]], snake_length=1)

    plan = plan_progress_for_path(grid, steps)

    assert [block.color for block in plan.blocks] == [1, 3]
    assert [block.class_name for block in plan.blocks] == ["ua", "ub"]


def test_render_progress_stacks_blocks_at_bar_origin():
    """Every block should be a full-width rect at the bar origin."""
    runs = segment_progress([ProgressEvent(0.0, 1, 1), ProgressEvent(0.5, 2, 1)])
    plan = plan_progress(runs)

    styles, fragments = render_progress(plan, y=144, width=48, height=12, duration_ms=200)
    css = "".join(styles)

    assert fragments[0] == '<rect class="u ua" x="0" y="144" width="48" height="12"/>'
    assert ".u.ub{fill:var(--c2);animation-name:ub}" in css
    assert "@keyframes ua{" in css


def test_empty_plan_renders_nothing():
    """No runs should produce no styles or fragments."""
    assert render_progress(plan_progress([]), y=0, width=0, height=0, duration_ms=0) == ([], [])
