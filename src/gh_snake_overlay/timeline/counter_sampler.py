"""Cumulative counter states sampled once per path step."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..constants import COUNTER_FOLLOW_OFFSET_RATIO
from ..contributions import Grid, PathStep


@dataclass(frozen=True)
class CounterState:
    index: int
    time: float
    count: int
    percentage: str
    x: float
    step_contribution: int


PlacementPolicy = Callable[[float, float, float, float], float]


def _place_fixed_left(cum_share: float, time_share: float, width: float, offset: float) -> float:
    return 0.0


def _place_fixed_right(cum_share: float, time_share: float, width: float, offset: float) -> float:
    return min(cum_share * width, width)


def _place_follow(cum_share: float, time_share: float, width: float, offset: float) -> float:
    return cum_share * width + offset


def _place_free(cum_share: float, time_share: float, width: float, offset: float) -> float:
    return time_share * width


_PLACEMENT_POLICIES: dict[str, PlacementPolicy] = {
    "fixed-left": _place_fixed_left,
    "fixed-right": _place_fixed_right,
    "follow": _place_follow,
    "free": _place_free,
}

_POSITION_ALIASES = {
    "top-left": "fixed-left",
    "top-right": "fixed-right",
}


def normalize_position(position: str) -> str:
    name = position.lower()
    name = _POSITION_ALIASES.get(name, name)
    if name not in _PLACEMENT_POLICIES:
        supported = ", ".join(supported_positions())
        raise ValueError(f"Unsupported counter position: {position}. Supported positions: {supported}")
    return name


def supported_positions() -> tuple[str, ...]:
    return tuple(_PLACEMENT_POLICIES.keys())


def resolve_placement(position: str) -> PlacementPolicy:
    return _PLACEMENT_POLICIES[normalize_position(position)]


def sample_counter_states(
    steps: Sequence[PathStep],
    grid: Grid,
    *,
    width: float,
    position: str,
    font_size: float,
) -> list[CounterState]:
    """
    Walk the path once and emit the counter value after every step.

    Each step adds the weight of its head cell on the first visit only;
    revisits contribute 0 but still produce a state so the display keeps
    animating in step with the snake.
    """
    place = resolve_placement(position)
    offset = font_size * COUNTER_FOLLOW_OFFSET_RATIO
    total = grid.total_count()
    step_count = len(steps)

    states: list[CounterState] = []
    visited: set[tuple[int, int]] = set()
    cumulative = 0
    for step in steps:
        head = step.head
        key = (head.x, head.y)
        contribution = 0
        if key not in visited:
            visited.add(key)
            contribution = grid.count_at(head.x, head.y)
        cumulative += contribution

        cum_share = cumulative / total if total > 0 else 0.0
        time_share = step.index / step_count
        states.append(
            CounterState(
                index=len(states),
                time=time_share,
                count=cumulative,
                percentage=f"{cum_share * 100:.1f}",
                x=place(cum_share, time_share, width, offset),
                step_contribution=contribution,
            )
        )
    return states
