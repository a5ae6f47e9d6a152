"""
Derived values for the overview, catalog and DAG detail views.

All functions are pure and recompute from their inputs on every call.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from models.schemas import PipelineRef, RunRecord, RunState, TaskInstance
from utils.formatters import elapsed_seconds, format_duration, format_state_label

STATUS_FILTERS = ("all", "active", "paused")

# Event log view filter; "" means any event
LOG_EVENT_FILTERS = ("ERROR", "WARNING", "")

# States offered by the run history filter
RUN_FILTER_STATES = tuple(s.value for s in RunState if s is not RunState.SKIPPED)


def filter_dags(
    dags: Iterable[PipelineRef],
    search: str | None = None,
    status: str = "all",
) -> list[PipelineRef]:
    """Case-insensitive search over id and display name, plus active/paused filter."""
    if status not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status}")
    query = (search or "").strip().lower()

    matched = []
    for dag in dags:
        if query and query not in dag.dag_id.lower() and query not in dag.display_name.lower():
            continue
        if status == "active" and dag.is_paused:
            continue
        if status == "paused" and not dag.is_paused:
            continue
        matched.append(dag)
    return matched


def workspace_metrics(dags: Sequence[PipelineRef]) -> list[dict]:
    total = len(dags)
    active = sum(1 for d in dags if not d.is_paused)
    avg_tags = round(sum(len(d.tags) for d in dags) / total, 1) if total else 0
    return [
        {"label": "Total DAGs", "value": total, "caption": "Tracked in workspace"},
        {"label": "Active", "value": active, "caption": "Running on schedule"},
        {"label": "Paused", "value": total - active, "caption": "Manually paused"},
        {"label": "Avg tags per DAG", "value": avg_tags, "caption": "Helps discoverability"},
    ]


def run_state_counts(runs: Iterable[RunRecord]) -> list[dict]:
    """Run count per state, in first-seen order."""
    counts: dict[str, int] = {}
    for run in runs:
        key = (run.state or "unknown").lower()
        counts[key] = counts.get(key, 0) + 1
    return [
        {"state": state, "label": format_state_label(state), "value": value}
        for state, value in counts.items()
    ]


def _timed_row(start: str | None, end: str | None) -> dict:
    # raw elapsed time; negative spans render as 0s
    seconds = elapsed_seconds(start, end)
    return {
        "start_date": start,
        "end_date": end,
        "duration_seconds": seconds,
        "duration_display": format_duration(seconds),
    }


def run_rows(runs: Iterable[RunRecord]) -> list[dict]:
    return [
        {
            "run_id": run.run_id,
            "state": run.state,
            "state_label": format_state_label(run.state),
            "execution_date": run.execution_date,
            **_timed_row(run.start_date, run.end_date),
        }
        for run in runs
    ]


def task_rows(tasks: Iterable[TaskInstance]) -> list[dict]:
    return [
        {
            "task_id": task.task_id,
            "state": task.state,
            "state_label": format_state_label(task.state),
            "try_number": task.try_number,
            **_timed_row(task.start_date, task.end_date),
        }
        for task in tasks
    ]