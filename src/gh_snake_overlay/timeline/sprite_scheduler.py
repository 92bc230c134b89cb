"""Cycle-accurate sprite level and frame selection."""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..constants import DEFAULT_CONTRIBUTION_LEVELS


@dataclass
class SpriteSlot:
    """Playback state of one rendered sprite slot.

    A slot starts unplayed (``playing_level is None``) and is initialized by
    the first :meth:`SpriteFrameScheduler.step` call that receives it.
    """

    playing_level: int | None = None
    cycle_start_ms: float = 0.0
    last_completed_cycle: int = 0


@dataclass(frozen=True)
class FrameChoice:
    level: int
    frame: int


def get_contribution_level(
    contribution: float,
    max_contribution: float,
    levels: int = DEFAULT_CONTRIBUTION_LEVELS,
) -> int:
    """Bucket a contribution value into ``0..levels-1``; zero stays at level 0."""
    if levels <= 1 or contribution <= 0 or max_contribution <= 0:
        return 0
    if not math.isfinite(contribution) or not math.isfinite(max_contribution):
        return 0
    level = math.ceil(contribution / max_contribution * (levels - 1))
    return max(0, min(levels - 1, level))


class SpriteFrameScheduler:
    """
    Choose the (level, frame) shown by a sprite slot at each step.

    The displayed level only changes when the current playback cycle of the
    playing level has completed, which keeps a level switch from cutting an
    animation mid-cycle. The same rule applies to every level, level 0
    included.

    The scheduler itself holds configuration only. Per-slot state lives in
    :class:`SpriteSlot` values owned by the caller.
    """

    def __init__(
        self,
        frames_per_level: Sequence[float],
        frame_duration_ms: float,
        logger: logging.Logger | None = None,
    ):
        self.frames_per_level = tuple(frames_per_level)
        self.frame_duration_ms = frame_duration_ms
        self._logger = logger or logging.getLogger(__name__)
        self._warned: set[tuple[str, int]] = set()

    def create(self) -> SpriteSlot:
        return SpriteSlot()

    def step(self, slot: SpriteSlot, t_abs_ms: float, target_level: int) -> FrameChoice:
        """
        Advance ``slot`` to absolute time ``t_abs_ms``.

        Args:
            slot: State for this sprite slot, mutated in place
            t_abs_ms: Absolute animation time of the step in milliseconds
            target_level: Level the slot should play once the cycle allows it

        Returns:
            The level and frame to display at this step
        """
        if slot.playing_level is None:
            slot.playing_level = target_level
            slot.cycle_start_ms = t_abs_ms
            slot.last_completed_cycle = 0
            return FrameChoice(target_level, self._frame_at(target_level, 0))

        elapsed_frames = self._elapsed_frames(t_abs_ms - slot.cycle_start_ms)
        cycle_length = self._frames_in(slot.playing_level) or 1
        current_cycle = elapsed_frames // cycle_length

        if current_cycle > slot.last_completed_cycle:
            if target_level != slot.playing_level:
                slot.playing_level = target_level
                slot.cycle_start_ms = t_abs_ms
                slot.last_completed_cycle = 0
                elapsed_frames = 0
            else:
                slot.last_completed_cycle = current_cycle

        return FrameChoice(slot.playing_level, self._frame_at(slot.playing_level, elapsed_frames))

    def dispose(self, slot: SpriteSlot) -> None:
        slot.playing_level = None
        slot.cycle_start_ms = 0.0
        slot.last_completed_cycle = 0

    def _elapsed_frames(self, elapsed_ms: float) -> int:
        duration = self.frame_duration_ms
        if not _is_positive_finite(duration):
            self._warn_once("duration", 0, f"Invalid frame duration {duration!r}; holding frame 0")
            return 0
        if not math.isfinite(elapsed_ms) or elapsed_ms <= 0:
            return 0
        return int(elapsed_ms // duration)

    def _frames_in(self, level: int) -> int:
        """Frame count of ``level``, or 0 when it is unusable."""
        if 0 <= level < len(self.frames_per_level):
            frames = self.frames_per_level[level]
            if _is_positive_finite(frames):
                return int(frames)
        return 0

    def _frame_at(self, level: int, elapsed_frames: int) -> int:
        frames = self._frames_in(level)
        if frames <= 0:
            self._warn_once("frames", level, f"Level {level} has no usable frames; showing frame 0")
            return 0
        return elapsed_frames % frames

    def _warn_once(self, kind: str, level: int, message: str) -> None:
        key = (kind, level)
        if key in self._warned:
            return
        self._warned.add(key)
        self._logger.warning(message)


def _is_positive_finite(value: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0
