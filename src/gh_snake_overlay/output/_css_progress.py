"""Progress bar blocks revealed through clip-path keyframes."""

from collections.abc import Sequence
from dataclasses import dataclass

from ..constants import STEP_EPSILON
from ..contributions import Grid, PathStep
from ..timeline.progress_segmenter import ProgressEvent, ProgressRun, segment_progress, total_weight
from ._css_keyframes import AnimationProgram, Keyframe, css_rule
from ._css_shared import _to_compact_name, _tl_fixed1, _tl_num
from ._svg_markup import create_element


@dataclass(frozen=True)
class ProgressBlock:
    class_name: str
    color: int
    program: AnimationProgram


@dataclass(frozen=True)
class ProgressPlan:
    blocks: tuple[ProgressBlock, ...]


def progress_events(grid: Grid, steps: Sequence[PathStep], mode: str = "weighted") -> list[ProgressEvent]:
    """One event per first visit of a cell, weighted by count or uniformly."""
    total = len(steps)
    seen: set[tuple[int, int]] = set()
    events = []
    for step in steps:
        head = step.head
        key = (head.x, head.y)
        if key in seen or not grid.contains(head.x, head.y):
            continue
        seen.add(key)
        weight = 1 if mode == "uniform" else grid.count_at(head.x, head.y)
        events.append(ProgressEvent(t=step.index / total, color=grid.level_at(head.x, head.y), weight=weight))
    return events


def _inset(left_share: float, right_edge_share: float) -> str:
    right = _tl_fixed1((1 - right_edge_share) * 100)
    left = _tl_fixed1(left_share * 100)
    return f"clip-path:inset(0 {right}% 0 {left}%)"


def run_keyframes(run: ProgressRun, weight_total: float, epsilon: float = STEP_EPSILON) -> list[Keyframe]:
    """
    Reveal ``run`` from its left edge as its members arrive.

    The block is hidden (zero width at ``start_share``) until the first
    member, each member widens it instantaneously around its event time, and
    the final keyframe holds the whole run.
    """
    left = run.start_share
    keyframes = [Keyframe(0.0, _inset(left, left))]
    previous_edge = left
    for t, edge in zip(run.member_times, run.member_end_shares(weight_total)):
        keyframes.append(Keyframe(max(0.0, t - epsilon), _inset(left, previous_edge)))
        keyframes.append(Keyframe(min(1.0, t + epsilon), _inset(left, edge)))
        previous_edge = edge
    keyframes.append(Keyframe(1.0, _inset(left, run.end_share)))
    return keyframes


def plan_progress(runs: Sequence[ProgressRun]) -> ProgressPlan:
    """Skip runs that never gain width; each remaining run gets its own program."""
    weight_total = total_weight(runs)
    blocks = []
    for run in runs:
        if run.end_share <= run.start_share:
            continue
        class_name = f"u{_to_compact_name(len(blocks))}"
        blocks.append(
            ProgressBlock(
                class_name=class_name,
                color=run.color,
                program=AnimationProgram(class_name, tuple(run_keyframes(run, weight_total))),
            )
        )
    return ProgressPlan(blocks=tuple(blocks))


def plan_progress_for_path(grid: Grid, steps: Sequence[PathStep], mode: str = "weighted") -> ProgressPlan:
    return plan_progress(segment_progress(progress_events(grid, steps, mode)))


def render_progress(
    plan: ProgressPlan,
    *,
    y: float,
    width: float,
    height: float,
    duration_ms: float,
) -> tuple[list[str], list[str]]:
    if not plan.blocks:
        return [], []
    styles = [
        css_rule(
            ".u",
            {
                "transform-origin": "0 0",
                "animation": f"none {_tl_num(duration_ms)}ms linear infinite",
            },
        )
    ]
    fragments = []
    for block in plan.blocks:
        styles.append(block.program.render())
        styles.append(
            css_rule(
                f".u.{block.class_name}",
                {"fill": f"var(--c{block.color})", "animation-name": block.program.name},
            )
        )
        fragments.append(
            create_element(
                "rect",
                {"class": f"u {block.class_name}", "x": 0, "y": y, "width": width, "height": height},
            )
        )
    return styles, fragments
