"""
Comparison feature — total and average run durations across selected DAGs.

Public API:
    from features.comparison import ComparisonDashboard, resolve_window, summarize, aggregate
"""

from features.comparison.aggregator import Aggregator, aggregate
from features.comparison.dashboard import ComparisonDashboard
from features.comparison.durations import summarize
from features.comparison.errors import ComparisonError, FetchFailure, UnknownPipelineError
from features.comparison.models import DagStat, DurationSummary, RunQuery, TimeWindow, WindowError
from features.comparison.selection import SelectionState
from features.comparison.window import describe_window, resolve_window

__all__ = [
    "Aggregator",
    "ComparisonDashboard",
    "ComparisonError",
    "DagStat",
    "DurationSummary",
    "FetchFailure",
    "RunQuery",
    "SelectionState",
    "TimeWindow",
    "UnknownPipelineError",
    "WindowError",
    "aggregate",
    "describe_window",
    "resolve_window",
    "summarize",
]
