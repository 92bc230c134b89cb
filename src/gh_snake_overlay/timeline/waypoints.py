"""Waypoint reduction for per-step movement tracks."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from ..constants import WAYPOINT_TOLERANCE


class _Positioned(Protocol):
    @property
    def x(self) -> float: ...

    @property
    def y(self) -> float: ...


_PointT = TypeVar("_PointT", bound=_Positioned)


@dataclass(frozen=True)
class Waypoint:
    x: float
    y: float
    t: float


def reduce_waypoints(
    points: Sequence[_PointT],
    tolerance: float = WAYPOINT_TOLERANCE,
) -> list[_PointT]:
    """
    Drop interior waypoints that sit on the midpoint of their neighbours.

    Each decision looks at the neighbours in the unreduced input, so dropping
    one point never changes whether another one is kept. First and last
    points always survive. On grid paths, where every move is a unit step or
    a pause, a kept interior point is always a turn, so a second pass keeps
    everything.
    """
    if len(points) <= 2:
        return list(points)

    kept: list[_PointT] = [points[0]]
    for i in range(1, len(points) - 1):
        prev_point = points[i - 1]
        next_point = points[i + 1]
        point = points[i]
        mid_x = (prev_point.x + next_point.x) / 2
        mid_y = (prev_point.y + next_point.y) / 2
        if abs(mid_x - point.x) < tolerance and abs(mid_y - point.y) < tolerance:
            continue
        kept.append(point)
    kept.append(points[-1])
    return kept
