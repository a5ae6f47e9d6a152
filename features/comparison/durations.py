"""
Total, average and count of completed run durations.
"""

from __future__ import annotations

import math
from typing import Iterable

from features.comparison.models import DurationSummary
from models.schemas import RunRecord
from utils.formatters import elapsed_seconds


def run_duration(run: RunRecord) -> float | None:
    """Duration of a completed run in seconds.

    None when either timestamp is missing or malformed, or the run ends
    before it starts.
    """
    seconds = elapsed_seconds(run.start_date, run.end_date)
    if seconds is None or seconds < 0:
        return None
    return seconds


def summarize(runs: Iterable[RunRecord]) -> DurationSummary:
    durations = [d for d in (run_duration(r) for r in runs) if d is not None]
    if not durations:
        return DurationSummary()
    # fsum is exactly rounded, so the total does not depend on run order
    total = math.fsum(durations)
    return DurationSummary(
        total_seconds=total,
        average_seconds=total / len(durations),
        run_count=len(durations),
    )
