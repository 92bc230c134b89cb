"""Grid cell programs: one decay program per distinct eat time."""

from collections.abc import Sequence
from dataclasses import dataclass

from ..config import OverlayConfig
from ..constants import STEP_EPSILON
from ..timeline.cell_states import GridCellState
from ._css_keyframes import AnimationProgram, Keyframe, css_rule
from ._css_shared import _to_compact_name, _tl_num
from ._svg_markup import create_element

_BASE_FILL = "fill:var(--gc)"
_EMPTY_FILL = "fill:var(--ce)"


@dataclass(frozen=True)
class CellAnimation:
    x: int
    y: int
    level: int
    # Class shared by every cell eaten at the same instant; None when static.
    class_name: str | None


@dataclass(frozen=True)
class GridCellPlan:
    programs: dict[str, AnimationProgram]
    cells: tuple[CellAnimation, ...]


def decay_keyframes(eat_time: float, epsilon: float = STEP_EPSILON) -> tuple[Keyframe, ...]:
    """Base color until ``eat_time``, then an instantaneous switch to empty."""
    before = min(1.0, max(0.0, eat_time - epsilon))
    after = min(1.0, max(0.0, eat_time + epsilon))
    return (
        Keyframe(0.0, _BASE_FILL),
        Keyframe(before, _BASE_FILL),
        Keyframe(after, _EMPTY_FILL),
        Keyframe(1.0, _EMPTY_FILL),
    )


def plan_grid_cells(states: Sequence[GridCellState]) -> GridCellPlan:
    """
    Attach a decay program to every cell that gets eaten.

    Programs are keyed by eat time and written on the loop clock itself, so
    a cell is base colored on ``[0, eat_time)`` and empty on ``[eat_time, 1)``
    of every iteration without any delay. Cells eaten at the same instant
    share one program. Cells that are never eaten (or start empty) keep a
    static fill.
    """
    classes: dict[float, str] = {}
    programs: dict[str, AnimationProgram] = {}
    cells = []
    for state in states:
        class_name = None
        if state.eat_time is not None and state.base_level > 0:
            class_name = classes.get(state.eat_time)
            if class_name is None:
                class_name = f"d{_to_compact_name(len(classes))}"
                classes[state.eat_time] = class_name
                programs[class_name] = AnimationProgram(f"g{class_name}", decay_keyframes(state.eat_time))
        cells.append(
            CellAnimation(x=state.x, y=state.y, level=state.base_level, class_name=class_name)
        )
    return GridCellPlan(programs=programs, cells=tuple(cells))


def render_grid(
    plan: GridCellPlan,
    config: OverlayConfig,
    duration_ms: float,
) -> tuple[list[str], list[str]]:
    """Stylesheet rules and ``<rect>`` fragments for the grid."""
    styles = [
        css_rule(
            ".c",
            {
                "shape-rendering": "geometricPrecision",
                "fill": "var(--ce)",
                "stroke-width": "1px",
                "stroke": "var(--cb)",
                "animation": f"none {_tl_num(duration_ms)}ms linear infinite",
            },
        )
    ]
    levels = sorted({cell.level for cell in plan.cells if cell.level > 0})
    for level in levels:
        styles.append(css_rule(f".c.l{level}", {"--gc": f"var(--c{level})", "fill": "var(--gc)"}))

    for class_name, program in plan.programs.items():
        styles.append(program.render())
        styles.append(css_rule(f".c.{class_name}", {"animation-name": program.name}))

    margin = (config.cell_size - config.dot_size) / 2
    fragments = []
    for cell in plan.cells:
        classes = ["c"]
        if cell.level > 0:
            classes.append(f"l{cell.level}")
        if cell.class_name is not None:
            classes.append(cell.class_name)
        fragments.append(
            create_element(
                "rect",
                {
                    "class": " ".join(classes),
                    "x": cell.x * config.cell_size + margin,
                    "y": cell.y * config.cell_size + margin,
                    "width": config.dot_size,
                    "height": config.dot_size,
                    "rx": config.dot_border_radius,
                    "ry": config.dot_border_radius,
                },
            )
        )
    return styles, fragments
