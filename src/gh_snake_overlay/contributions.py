"""Contribution data shapes and the grid/path model built from them."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import NotRequired, TypedDict

from .constants import DEFAULT_SNAKE_LENGTH, NUM_DAYS


class ContributionDay(TypedDict):
    level: int
    count: NotRequired[int]
    date: NotRequired[str]


class ContributionWeek(TypedDict):
    days: list[ContributionDay]


class ContributionData(TypedDict):
    weeks: list[ContributionWeek]
    total_contributions: NotRequired[int]


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Grid:
    """Static width x height grid of contribution levels and counts."""

    width: int
    height: int
    levels: tuple[tuple[int, ...], ...]
    counts: tuple[tuple[int, ...], ...]

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def level_at(self, x: int, y: int) -> int:
        if not self.contains(x, y):
            return 0
        return self.levels[x][y]

    def count_at(self, x: int, y: int) -> int:
        if not self.contains(x, y):
            return 0
        return self.counts[x][y]

    def max_count(self) -> int:
        return max((count for column in self.counts for count in column), default=0)

    def total_count(self) -> int:
        return sum(count for column in self.counts for count in column)


@dataclass(frozen=True)
class PathStep:
    """One sample of the snake: head first, then the body cells."""

    index: int
    cells: tuple[Point, ...]
    color: int

    @property
    def head(self) -> Point:
        return self.cells[0]


def grid_from_contribution_data(data: ContributionData) -> Grid:
    """
    Build a grid where x is the week index and y the weekday.

    Missing counts fall back to the level so that weight-based shares still
    reflect activity when only levels are known.
    """
    weeks = data.get("weeks", [])
    height = max((len(week["days"]) for week in weeks), default=0)
    height = max(height, NUM_DAYS) if weeks else 0

    levels: list[tuple[int, ...]] = []
    counts: list[tuple[int, ...]] = []
    for week in weeks:
        days = week["days"]
        column_levels = []
        column_counts = []
        for day_idx in range(height):
            if day_idx < len(days):
                level = max(0, int(days[day_idx]["level"]))
                count = max(0, int(days[day_idx].get("count", level)))
            else:
                level = 0
                count = 0
            column_levels.append(level)
            column_counts.append(count)
        levels.append(tuple(column_levels))
        counts.append(tuple(column_counts))

    return Grid(width=len(weeks), height=height, levels=tuple(levels), counts=tuple(counts))


def build_path_steps(
    grid: Grid,
    path: Sequence[Sequence[int] | Sequence[Sequence[int]]],
    snake_length: int = DEFAULT_SNAKE_LENGTH,
) -> list[PathStep]:
    """
    Normalize raw solver output into path steps.

    Each entry is either a full snake (a list of ``[x, y]`` cells, head first)
    or a single head ``[x, y]``. For head-only paths the body trails the head
    along its previous positions.
    """
    heads: list[Point] = []
    bodies: list[tuple[Point, ...] | None] = []
    for entry in path:
        if len(entry) == 0:
            raise ValueError("Path entries must not be empty")
        if isinstance(entry[0], (int, float)):
            heads.append(Point(int(entry[0]), int(entry[1])))  # type: ignore[arg-type]
            bodies.append(None)
        else:
            cells = tuple(Point(int(cell[0]), int(cell[1])) for cell in entry)  # type: ignore[index]
            heads.append(cells[0])
            bodies.append(cells)

    length = max(1, snake_length)
    steps: list[PathStep] = []
    for index, head in enumerate(heads):
        cells = bodies[index]
        if cells is None:
            cells = tuple(heads[max(0, index - k)] for k in range(length))
        steps.append(PathStep(index=index, cells=cells, color=grid.level_at(head.x, head.y)))
    return steps
