"""Per-cell eat times derived from the snake path."""

from collections.abc import Sequence
from dataclasses import dataclass

from ..contributions import Grid, PathStep


@dataclass(frozen=True)
class GridCellState:
    x: int
    y: int
    base_level: int
    eat_time: float | None


def build_cell_states(grid: Grid, steps: Sequence[PathStep]) -> list[GridCellState]:
    """
    Pair every grid cell with the normalized time it is first eaten.

    A cell is eaten when the head lands on it while it still holds a
    non-empty level. ``eat_time`` is ``index / len(steps)``, so the last step
    stays below 1.0. Cells that are never reached, or that start empty, keep
    ``eat_time=None``.
    """
    total = len(steps)
    eat_times: dict[tuple[int, int], float] = {}
    for step in steps:
        head = step.head
        key = (head.x, head.y)
        if key in eat_times or not grid.contains(head.x, head.y):
            continue
        if grid.level_at(head.x, head.y) == 0:
            continue
        eat_times[key] = step.index / total

    states = []
    for x in range(grid.width):
        for y in range(grid.height):
            level = grid.level_at(x, y)
            states.append(
                GridCellState(x=x, y=y, base_level=level, eat_time=eat_times.get((x, y)))
            )
    return states


def consumption_step_indices(grid: Grid, steps: Sequence[PathStep]) -> list[int]:
    """Indices of steps whose head eats a colored cell for the first time."""
    seen: set[tuple[int, int]] = set()
    indices = []
    for step in steps:
        head = step.head
        key = (head.x, head.y)
        if key in seen:
            continue
        seen.add(key)
        if grid.level_at(head.x, head.y) > 0:
            indices.append(step.index)
    return indices
