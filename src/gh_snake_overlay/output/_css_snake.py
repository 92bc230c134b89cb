"""Snake segment movement, color shift and content."""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from ..config import OverlayConfig, resolve_table
from ..constants import (
    SNAKE_FALLOFF_SEGMENTS,
    SNAKE_MAX_RADIUS,
    SNAKE_MAX_SIZE_RATIO,
    SNAKE_MIN_SIZE_RATIO,
)
from ..contributions import PathStep, Point
from ..timeline.waypoints import Waypoint, reduce_waypoints
from ._css_keyframes import AnimationProgram, Keyframe, css_rule
from ._css_shared import _short_hex, _tl_num
from ._svg_markup import create_container, create_element


@dataclass(frozen=True)
class SegmentPlan:
    index: int
    size: float
    margin: float
    radius: float
    origin: Waypoint
    movement: AnimationProgram | None
    color: str
    color_program: AnimationProgram | None
    content: str | None


@dataclass(frozen=True)
class SnakePlan:
    segments: tuple[SegmentPlan, ...]


def segment_geometry(index: int, length: int, cell_size: float, dot_size: float) -> tuple[float, float, float]:
    """``(size, margin, radius)`` of segment ``index``; the body tapers off behind the head."""
    d_min = dot_size * SNAKE_MIN_SIZE_RATIO
    d_max = cell_size * SNAKE_MAX_SIZE_RATIO
    i_max = max(1, min(SNAKE_FALLOFF_SEGMENTS, length))
    u = (1 - min(index, i_max) / i_max) ** 2
    size = d_min + (d_max - d_min) * u
    margin = (cell_size - size) / 2
    radius = min(SNAKE_MAX_RADIUS, 4 * size / dot_size)
    return size, margin, radius


def segment_length(steps: Sequence[PathStep]) -> int:
    return max((len(step.cells) for step in steps), default=0)


def _segment_cell(step: PathStep, index: int) -> Point:
    return step.cells[min(index, len(step.cells) - 1)]


def _translate_value(x: float, y: float) -> str:
    return f"translate({_tl_num(x)}px,{_tl_num(y)}px)"


def _translate(x: float, y: float) -> str:
    return f"transform:{_translate_value(x, y)}"


def movement_keyframes(
    steps: Sequence[PathStep],
    index: int,
    cell_size: float,
) -> list[Keyframe]:
    total = len(steps)
    points = [
        Waypoint(
            x=_segment_cell(step, index).x * cell_size,
            y=_segment_cell(step, index).y * cell_size,
            t=k / total,
        )
        for k, step in enumerate(steps)
    ]
    return [Keyframe(point.t, _translate(point.x, point.y)) for point in reduce_waypoints(points)]


def every_step_color_keyframes(table: Sequence[str], index: int, step_count: int) -> list[Keyframe]:
    """Segment ``index`` shows ``table[(index - k) mod L]`` from step ``k`` on."""
    length = len(table)
    keyframes = [
        Keyframe(k / step_count, f"fill:{table[(index - k) % length]}") for k in range(step_count)
    ]
    keyframes.append(Keyframe(1.0, keyframes[-1].style))
    return keyframes


def on_eat_color_keyframes(
    table: Sequence[str],
    index: int,
    step_count: int,
    eat_indices: Iterable[int],
) -> list[Keyframe]:
    """The color shift advances by one only when the head eats a colored cell."""
    length = len(table)
    shift = 0
    keyframes = {0.0: f"fill:{table[index % length]}"}
    for eat_index in eat_indices:
        shift += 1
        keyframes[eat_index / step_count] = f"fill:{table[(index - shift) % length]}"
    keyframes[1.0] = f"fill:{table[(index - shift) % length]}"
    return [Keyframe(t, style) for t, style in sorted(keyframes.items())]


def plan_snake(
    steps: Sequence[PathStep],
    config: OverlayConfig,
    duration_ms: float,
    *,
    eat_indices: Sequence[int] = (),
) -> SnakePlan:
    """
    Build one movement program per segment, plus color programs when
    ``config.color_shift_mode`` asks for them.

    Programs are keyed by segment index (``s0`` is the head) because every
    segment follows its own trajectory.
    """
    step_count = len(steps)
    length = segment_length(steps)
    if step_count == 0 or length == 0:
        return SnakePlan(segments=())

    colors = resolve_table(config.snake_colors, length, config.colors.snake)
    contents: tuple[str, ...] = ()
    if config.snake_content is not None:
        contents = resolve_table(config.snake_content, length, "")

    segments = []
    for index in range(length):
        size, margin, radius = segment_geometry(index, length, config.cell_size, config.dot_size)
        keyframes = movement_keyframes(steps, index, config.cell_size)
        first = _segment_cell(steps[0], index)
        origin = Waypoint(first.x * config.cell_size, first.y * config.cell_size, 0.0)
        movement = AnimationProgram(f"s{index}", tuple(keyframes)) if len(keyframes) > 1 else None

        color_program = None
        if config.color_shift_mode == "every-step":
            color_program = AnimationProgram(
                f"sc{index}", tuple(every_step_color_keyframes(colors, index, step_count))
            )
        elif config.color_shift_mode == "on-eat" and eat_indices:
            color_program = AnimationProgram(
                f"sc{index}", tuple(on_eat_color_keyframes(colors, index, step_count, eat_indices))
            )

        segments.append(
            SegmentPlan(
                index=index,
                size=size,
                margin=margin,
                radius=radius,
                origin=origin,
                movement=movement,
                color=colors[index],
                color_program=color_program,
                content=contents[index] if contents and contents[index] else None,
            )
        )
    return SnakePlan(segments=tuple(segments))


def render_snake(
    plan: SnakePlan,
    config: OverlayConfig,
    duration_ms: float,
    assets: Mapping[str, str] | None = None,
) -> tuple[list[str], list[str]]:
    """Stylesheet rules and fragments, tail first so the head paints on top."""
    if not plan.segments:
        return [], []
    assets = assets or {}
    duration = f"{_tl_num(duration_ms)}ms"
    styles = [css_rule(".s", {"shape-rendering": "geometricPrecision", "fill": "var(--cs)"})]
    fragments = []

    for segment in plan.segments:
        name = f"s{segment.index}"
        declarations: dict[str, object] = {
            "transform": _translate_value(segment.origin.x, segment.origin.y),
        }
        if _short_hex(segment.color) != _short_hex(config.colors.snake):
            declarations["fill"] = segment.color

        animations = []
        if segment.movement is not None:
            styles.append(segment.movement.render())
            animations.append(f"{segment.movement.name} {duration} linear infinite")
        if segment.color_program is not None:
            styles.append(segment.color_program.render())
            animations.append(f"{segment.color_program.name} {duration} step-end infinite")
        if animations:
            declarations["animation"] = ",".join(animations)
        styles.append(css_rule(f".{name}", declarations))

        fragments.append(_segment_fragment(segment, config, assets))

    fragments.reverse()
    return styles, fragments


def _segment_fragment(segment: SegmentPlan, config: OverlayConfig, assets: Mapping[str, str]) -> str:
    classes = f"s s{segment.index}"
    if segment.content is None:
        return create_element(
            "rect",
            {
                "class": classes,
                "x": segment.margin,
                "y": segment.margin,
                "width": segment.size,
                "height": segment.size,
                "rx": segment.radius,
                "ry": segment.radius,
            },
        )

    if config.snake_content_type == "image":
        child = create_element(
            "image",
            {
                "href": assets.get(segment.content, segment.content),
                "x": segment.margin,
                "y": segment.margin,
                "width": segment.size,
                "height": segment.size,
            },
        )
    else:
        center = config.cell_size / 2
        child = create_element(
            "text",
            {
                "x": center,
                "y": center,
                "font-size": segment.size,
                "text-anchor": "middle",
                "dominant-baseline": "central",
            },
            segment.content,
        )
    return create_container("g", {"class": classes}, [child])
