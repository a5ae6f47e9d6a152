"""
Fan-out aggregator — per-DAG duration stats for a set of DAGs and a window.

One run-listing request is issued per DAG, all concurrently. The call waits
for every request to settle; if any failed, the whole aggregation fails and
the successful results are discarded. Results keep the caller's DAG order.

Aggregator wraps aggregate() with a generation counter so that a run which
was superseded by a newer one never delivers its result or its error.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Mapping, Sequence

from features.comparison.durations import summarize
from features.comparison.errors import FetchFailure
from features.comparison.models import DagStat, RunQuery, TimeWindow
from models.schemas import RunRecord

log = logging.getLogger(__name__)

RunFetcher = Callable[[str, RunQuery], Awaitable[Sequence[RunRecord]]]


async def aggregate(
    pipeline_ids: Sequence[str],
    window: TimeWindow,
    fetch_runs: RunFetcher,
    labels: Mapping[str, str] | None = None,
) -> list[DagStat]:
    """Summarize run durations for each DAG in ``pipeline_ids``.

    Returns an empty list without fetching anything when there are no DAGs
    or the window is invalid. Raises FetchFailure if any fetch fails.
    """
    if not pipeline_ids or not window.is_valid:
        return []

    labels = labels or {}
    query = RunQuery(start=window.start, end=window.end)
    results = await asyncio.gather(
        *(fetch_runs(pid, query) for pid in pipeline_ids),
        return_exceptions=True,
    )

    for pid, result in zip(pipeline_ids, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            log.warning("Run lookup failed for %s: %s", pid, result)
            raise FetchFailure(pid, str(result) or "Failed to load statistics") from result

    stats = []
    for pid, runs in zip(pipeline_ids, results):
        summary = summarize(runs)
        stats.append(DagStat(
            pipeline_id=pid,
            label=labels.get(pid) or pid,
            total_seconds=summary.total_seconds,
            average_seconds=summary.average_seconds,
            run_count=summary.run_count,
        ))
    return stats


class Aggregator:
    """Runs aggregations and drops the outcome of superseded runs."""

    def __init__(self, fetch_runs: RunFetcher):
        self._fetch_runs = fetch_runs
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self) -> int:
        """Supersede any aggregation still in flight."""
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def run(
        self,
        pipeline_ids: Sequence[str],
        window: TimeWindow,
        labels: Mapping[str, str] | None = None,
    ) -> list[DagStat] | None:
        """Aggregate, returning None if a newer run started in the meantime.

        A FetchFailure is raised only while this run is still current.
        """
        generation = self.invalidate()
        try:
            stats = await aggregate(pipeline_ids, window, self._fetch_runs, labels)
        except FetchFailure:
            if not self.is_current(generation):
                log.debug("Dropping failure from superseded aggregation %d", generation)
                return None
            raise
        if not self.is_current(generation):
            log.debug("Dropping result from superseded aggregation %d", generation)
            return None
        return stats
