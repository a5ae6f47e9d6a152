"""Tests for features.overview.metrics."""

from __future__ import annotations

import pytest

from features.overview.metrics import (
    RUN_FILTER_STATES,
    filter_dags,
    run_rows,
    run_state_counts,
    task_rows,
    workspace_metrics,
)
from models.schemas import PipelineRef, RunRecord, TaskInstance

DAGS = [
    PipelineRef("etl", "Nightly ETL", is_paused=False, tags=("core", "daily")),
    PipelineRef("report", "Weekly report", is_paused=True, tags=("bi",)),
    PipelineRef("ml_train", "Model training", is_paused=False),
]


class TestFilterDags:

    def test_no_filters(self):
        assert filter_dags(DAGS) == DAGS

    def test_search_matches_id_or_display_name(self):
        assert [d.dag_id for d in filter_dags(DAGS, "  ETL ")] == ["etl"]
        assert [d.dag_id for d in filter_dags(DAGS, "weekly")] == ["report"]

    @pytest.mark.parametrize("status,expected", [
        ("active", ["etl", "ml_train"]),
        ("paused", ["report"]),
        ("all", ["etl", "report", "ml_train"]),
    ])
    def test_status(self, status, expected):
        assert [d.dag_id for d in filter_dags(DAGS, status=status)] == expected

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            filter_dags(DAGS, status="broken")


def test_workspace_metrics():
    values = {m["label"]: m["value"] for m in workspace_metrics(DAGS)}
    assert values == {"Total DAGs": 3, "Active": 2, "Paused": 1, "Avg tags per DAG": 1.0}


def test_workspace_metrics_empty():
    assert [m["value"] for m in workspace_metrics([])] == [0, 0, 0, 0]


def test_run_state_counts_first_seen_order():
    runs = [RunRecord("1", "failed"), RunRecord("2", "success"), RunRecord("3", "failed"), RunRecord("4", None)]
    assert run_state_counts(runs) == [
        {"state": "failed", "label": "Failed", "value": 2},
        {"state": "success", "label": "Success", "value": 1},
        {"state": "unknown", "label": "Unknown", "value": 1},
    ]


def test_run_filter_states_exclude_skipped():
    assert "skipped" not in RUN_FILTER_STATES
    assert "up_for_retry" in RUN_FILTER_STATES


def test_run_rows():
    rows = run_rows([
        RunRecord("r1", "up_for_retry", "2024-03-05T12:00:00Z", "2024-03-05T12:00:00Z", "2024-03-05T13:01:01Z"),
        RunRecord("r2", "running", None, "2024-03-05T12:00:00Z", None),
    ])
    assert rows[0]["state_label"] == "Up For Retry"
    assert rows[0]["duration_seconds"] == 3661
    assert rows[0]["duration_display"] == "1h 1m 1s"
    assert rows[1]["duration_seconds"] is None
    assert rows[1]["duration_display"] == "N/A"


def test_task_rows_negative_span_renders_zero():
    rows = task_rows([TaskInstance("load", "success", "2024-03-05T12:00:10Z", "2024-03-05T12:00:00Z", 2)])
    assert rows[0]["try_number"] == 2
    assert rows[0]["duration_display"] == "0s"
