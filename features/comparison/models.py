"""
Data models for the duration comparison feature.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import config


class WindowError(str, Enum):
    INVALID_RANGE = "InvalidRange"
    START_AFTER_END = "StartAfterEnd"


class StatsStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class TimeWindow:
    """A resolved ``[start, end]`` interval, or the reason none could be resolved."""
    start: datetime | None = None
    end: datetime | None = None
    error: WindowError | None = None
    reason: str | None = None

    @classmethod
    def between(cls, start: datetime, end: datetime) -> TimeWindow:
        if start > end:
            raise ValueError("window start must not be after end")
        return cls(start=start, end=end)

    @classmethod
    def invalid(cls, error: WindowError, reason: str) -> TimeWindow:
        return cls(error=error, reason=reason)

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.start is not None and self.end is not None


@dataclass(frozen=True)
class TimePreset:
    id: str
    label: str
    days: int | None = None


@dataclass(frozen=True)
class RunQuery:
    """Filters sent with each run-listing request."""
    start: datetime | None
    end: datetime | None
    limit: int = config.MAX_RUN_LOOKUP
    order_by: str = config.RUN_ORDER_BY


@dataclass(frozen=True)
class DurationSummary:
    total_seconds: float = 0.0
    average_seconds: float = 0.0
    run_count: int = 0


@dataclass(frozen=True)
class DagStat:
    """Duration totals for one DAG within the current window."""
    pipeline_id: str
    label: str
    total_seconds: float = 0.0
    average_seconds: float = 0.0
    run_count: int = 0
