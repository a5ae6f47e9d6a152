"""Tests for features.proxy.params."""

from __future__ import annotations

import pytest

from features.proxy.params import (
    MissingParameterError,
    dag_details_request,
    dag_runs_request,
    dags_request,
    event_logs_request,
    task_instances_request,
)


def test_dags_defaults():
    assert dags_request({}).params == {"limit": "50", "offset": "0"}


def test_dags_passes_filters_and_drops_unknown():
    req = dags_request({"limit": "10", "tags": "core", "only_active": "true", "other": "x", "dag_id_pattern": ""})
    assert req.params == {"limit": "10", "offset": "0", "tags": "core", "only_active": "true"}


@pytest.mark.parametrize("key", ["dagId", "dag_id"])
def test_dag_details_accepts_both_spellings(key):
    assert dag_details_request({key: "etl"}).dag_id == "etl"


def test_dag_details_requires_id():
    with pytest.raises(MissingParameterError, match="dagId is required"):
        dag_details_request({})


def test_dag_runs_defaults():
    req = dag_runs_request({"dagId": "etl"})
    assert req.dag_id == "etl"
    assert req.params == {"limit": "25", "offset": "0"}


def test_dag_runs_friendly_dates_override_raw_names():
    req = dag_runs_request({
        "dagId": "etl",
        "state": "failed",
        "execution_date_gte": "2024-01-01",
        "startDate": "2024-03-01",
        "endDate": "2024-03-31",
        "order_by": "-start_date",
    })
    assert req.params == {
        "limit": "25",
        "offset": "0",
        "state": "failed",
        "execution_date_gte": "2024-03-01",
        "execution_date_lte": "2024-03-31",
        "order_by": "-start_date",
    }


def test_dag_runs_requires_id():
    with pytest.raises(MissingParameterError):
        dag_runs_request({"state": "failed"})


def test_task_instances():
    req = task_instances_request({"dag_id": "etl", "dagRunId": "r1", "state": "failed", "map_index": ""})
    assert (req.dag_id, req.dag_run_id) == ("etl", "r1")
    assert req.params == {"state": "failed"}


@pytest.mark.parametrize("query", [{}, {"dagId": "etl"}, {"dagRunId": "r1"}])
def test_task_instances_requires_both_ids(query):
    with pytest.raises(MissingParameterError, match="dagId and dagRunId are required"):
        task_instances_request(query)


def test_event_logs_aliases():
    req = event_logs_request({"dagId": "etl", "taskId": "load", "event": "ERROR"})
    assert req.params == {"limit": "50", "dag_id": "etl", "task_id": "load", "event": "ERROR"}
    assert req.dag_id is None
