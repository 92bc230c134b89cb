"""Time-indexed state derived from the snake path."""

from .cell_states import GridCellState, build_cell_states, consumption_step_indices
from .counter_sampler import CounterState, sample_counter_states, supported_positions
from .progress_segmenter import ProgressEvent, ProgressRun, segment_progress
from .sprite_scheduler import FrameChoice, SpriteFrameScheduler, SpriteSlot, get_contribution_level
from .waypoints import Waypoint, reduce_waypoints

__all__ = [
    "FrameChoice",
    "GridCellState",
    "CounterState",
    "ProgressEvent",
    "ProgressRun",
    "SpriteFrameScheduler",
    "SpriteSlot",
    "Waypoint",
    "build_cell_states",
    "consumption_step_indices",
    "get_contribution_level",
    "reduce_waypoints",
    "sample_counter_states",
    "segment_progress",
    "supported_positions",
]
