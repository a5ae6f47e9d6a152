"""
Comparison dashboard controller.

Owns the state behind the duration comparison view: the DAG catalog, the
selection, the time filter and the latest stats. Every change to the
selection or the window re-runs the aggregation; results from superseded
runs are dropped by the Aggregator's generation check.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from datetime import tzinfo
from typing import Any, Protocol, Sequence

import config
from features.comparison.aggregator import Aggregator
from features.comparison.errors import FetchFailure
from features.comparison.models import DagStat, RunQuery, StatsStatus, TimeWindow
from features.comparison.selection import SelectionState
from features.comparison.window import (
    CUSTOM,
    TIME_PRESETS,
    describe_window,
    resolve_timezone,
    resolve_window,
)
from features.overview.metrics import filter_dags
from models.schemas import PipelineRef, RunRecord, parse_dags
from utils.formatters import format_duration, to_minutes

log = logging.getLogger(__name__)


class DashboardSource(Protocol):
    async def list_dags(self, params: dict[str, Any] | None = None) -> dict: ...

    async def fetch_runs(self, dag_id: str, query: RunQuery) -> Sequence[RunRecord]: ...


def serialize_stat(stat: DagStat) -> dict:
    """DagStat plus the display strings and chart minutes the view needs."""
    return {
        **asdict(stat),
        "total_display": format_duration(stat.total_seconds),
        "average_display": format_duration(stat.average_seconds),
        "total_minutes": to_minutes(stat.total_seconds),
        "average_minutes": to_minutes(stat.average_seconds),
    }


class ComparisonDashboard:
    """State machine for the duration comparison view."""

    def __init__(self, source: DashboardSource, tz: tzinfo | None = None):
        self._source = source
        self._tz = tz or resolve_timezone()
        self._aggregator = Aggregator(source.fetch_runs)
        self._load_lock = asyncio.Lock()

        self.selection = SelectionState()
        self.pipelines: list[PipelineRef] = []
        self.catalog_loaded = False
        self.catalog_error: str | None = None

        self.preset = config.DEFAULT_TIME_FILTER
        self.custom_start: str | None = None
        self.custom_end: str | None = None

        self.stats: list[DagStat] = []
        self.status = StatsStatus.IDLE
        self.error: str | None = None

    # ── Derived values ────────────────────────────────────────────────

    @property
    def window(self) -> TimeWindow:
        return resolve_window(self.preset, self.custom_start, self.custom_end, tz=self._tz)

    @property
    def labels(self) -> dict[str, str]:
        return {p.dag_id: p.display_name for p in self.pipelines}

    # ── Catalog ───────────────────────────────────────────────────────

    async def load_pipelines(self) -> bool:
        """Fetch the DAG catalog. Returns True if it loaded."""
        try:
            payload = await self._source.list_dags({"limit": config.CATALOG_LIMIT})
        except Exception as e:
            log.error("Failed to load DAG catalog: %s", e)
            self.catalog_error = str(e) or "Failed to fetch data"
            return False

        self.pipelines = parse_dags(payload)
        self.catalog_loaded = True
        self.catalog_error = None
        self.selection.set_universe(p.dag_id for p in self.pipelines)
        log.info("Loaded %d DAGs into the comparison catalog", len(self.pipelines))
        return True

    async def ensure_loaded(self) -> None:
        """Load the catalog and first stats once; concurrent callers wait for the first."""
        if self.catalog_loaded:
            return
        async with self._load_lock:
            if not self.catalog_loaded and await self.load_pipelines():
                await self.refresh_stats()

    # ── Stats ─────────────────────────────────────────────────────────

    async def refresh_stats(self) -> list[DagStat] | None:
        """Re-run the aggregation for the current selection and window.

        Returns None when a newer refresh superseded this one; in that case
        the dashboard state is left to the newer refresh.
        """
        window = self.window
        selected = self.selection.selected
        if not selected or not window.is_valid:
            self._aggregator.invalidate()
            self.stats = []
            self.error = None
            self.status = StatsStatus.IDLE
            return []

        self.status = StatsStatus.LOADING
        self.error = None
        try:
            stats = await self._aggregator.run(selected, window, self.labels)
        except FetchFailure as e:
            self.stats = []
            self.error = e.message
            self.status = StatsStatus.ERROR
            return None

        if stats is None:
            return None
        self.stats = stats
        self.status = StatsStatus.READY
        return stats

    async def refresh_all(self) -> None:
        """Reload the catalog, then the stats."""
        await self.load_pipelines()
        await self.refresh_stats()

    # ── Selection ─────────────────────────────────────────────────────

    async def toggle(self, pipeline_id: str) -> None:
        self.selection.toggle(pipeline_id)
        await self.refresh_stats()

    async def select_only(self, pipeline_id: str) -> None:
        self.selection.select_only(pipeline_id)
        await self.refresh_stats()

    async def select_all(self) -> None:
        self.selection.select_all()
        await self.refresh_stats()

    async def toggle_all(self) -> None:
        self.selection.toggle_all()
        await self.refresh_stats()

    async def clear(self) -> None:
        self.selection.clear()
        await self.refresh_stats()

    # ── Time filter ───────────────────────────────────────────────────

    async def set_time_filter(
        self, preset: str, custom_start: str | None = None, custom_end: str | None = None,
    ) -> None:
        self.preset = preset
        if preset == CUSTOM:
            self.custom_start = custom_start
            self.custom_end = custom_end
        else:
            self.custom_start = None
            self.custom_end = None
        await self.refresh_stats()

    # ── View ──────────────────────────────────────────────────────────

    def snapshot(self, search: str | None = None) -> dict:
        window = self.window
        selected = set(self.selection.selected)
        return {
            "time_filter": {
                "preset": self.preset,
                "custom_start": self.custom_start,
                "custom_end": self.custom_end,
                "label": describe_window(self.preset, self.custom_start, self.custom_end),
                "start": window.start.isoformat() if window.start else None,
                "end": window.end.isoformat() if window.end else None,
                "error": window.error.value if window.error else None,
                "reason": window.reason,
                "presets": [{"id": p.id, "label": p.label} for p in TIME_PRESETS],
            },
            "selection": {
                "selected": self.selection.selected,
                "count": len(selected),
                "total": len(self.pipelines),
                "all_selected": self.selection.is_all_selected,
                "partially_selected": self.selection.is_partially_selected,
            },
            "pipelines": [
                {
                    "dag_id": p.dag_id,
                    "display_name": p.display_name,
                    "is_paused": p.is_paused,
                    "tag_count": len(p.tags),
                    "selected": p.dag_id in selected,
                }
                for p in filter_dags(self.pipelines, search=search)
            ],
            "catalog_error": self.catalog_error,
            "stats": {
                "status": self.status.value,
                "error": self.error,
                "items": [serialize_stat(s) for s in self.stats],
            },
        }
