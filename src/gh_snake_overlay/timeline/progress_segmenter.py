"""Partition colored, weighted events into progress-bar runs."""

import math
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ProgressEvent:
    t: float
    color: int
    weight: float


@dataclass(frozen=True)
class ProgressRun:
    color: int
    member_times: tuple[float, ...]
    member_weights: tuple[float, ...]
    start_share: float
    end_share: float

    def member_end_shares(self, total_weight: float) -> list[float]:
        """Cumulative share reached after each member of this run."""
        shares = []
        cumulative = self.start_share
        for weight in self.member_weights:
            cumulative += weight / total_weight if total_weight > 0 else 0.0
            shares.append(min(self.end_share, cumulative))
        return shares


def segment_progress(events: Iterable[ProgressEvent]) -> list[ProgressRun]:
    """
    Group consecutive same-color events into runs with cumulative shares.

    A run ends as soon as an event's color differs from the event right
    before it; the same color appearing again later starts a new run. Shares
    are cumulative weight over the weight of the whole sequence. With no
    usable weight every share is 0.
    """
    ordered = sorted(events, key=lambda event: event.t)
    weights = [_safe_weight(event.weight) for event in ordered]
    total = sum(weights)

    runs: list[ProgressRun] = []
    current_times: list[float] = []
    current_weights: list[float] = []
    current_color: int | None = None
    run_start = 0.0
    cumulative = 0.0

    def close_run() -> None:
        end = cumulative / total if total > 0 else 0.0
        runs.append(
            ProgressRun(
                color=current_color if current_color is not None else 0,
                member_times=tuple(current_times),
                member_weights=tuple(current_weights),
                start_share=run_start,
                end_share=min(1.0, end),
            )
        )

    for event, weight in zip(ordered, weights):
        if current_color is not None and event.color != current_color:
            close_run()
            run_start = runs[-1].end_share
            current_times = []
            current_weights = []
        current_color = event.color
        current_times.append(event.t)
        current_weights.append(weight)
        cumulative += weight

    if current_times:
        close_run()
    return runs


def total_weight(runs: Iterable[ProgressRun]) -> float:
    return sum(sum(run.member_weights) for run in runs)


def _safe_weight(value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)
