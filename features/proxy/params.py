"""
Query normalization for the Airflow pass-through endpoints.

Each function takes the incoming query parameters and returns the path
arguments and the Airflow query to forward. Both camelCase and snake_case
spellings of the ids are accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from utils.airflow import pick_params

DAGS_DEFAULT_LIMIT = "50"
DAG_RUNS_DEFAULT_LIMIT = "25"
EVENT_LOGS_DEFAULT_LIMIT = "50"


class MissingParameterError(ValueError):
    """A required id was not supplied."""


@dataclass
class ProxyRequest:
    dag_id: str | None = None
    dag_run_id: str | None = None
    params: dict[str, Any] = field(default_factory=dict)


def _first(query: Mapping[str, Any], *names: str) -> str | None:
    for name in names:
        value = query.get(name)
        if value:
            return value
    return None


def _require_dag_id(query: Mapping[str, Any]) -> str:
    dag_id = _first(query, "dagId", "dag_id")
    if not dag_id:
        raise MissingParameterError("dagId is required")
    return dag_id


def dags_request(query: Mapping[str, Any]) -> ProxyRequest:
    return ProxyRequest(params={
        "limit": query.get("limit") or DAGS_DEFAULT_LIMIT,
        "offset": query.get("offset") or "0",
        **pick_params(query, ["tags", "only_active", "dag_id_pattern"]),
    })


def dag_details_request(query: Mapping[str, Any]) -> ProxyRequest:
    return ProxyRequest(dag_id=_require_dag_id(query))


def dag_runs_request(query: Mapping[str, Any]) -> ProxyRequest:
    dag_id = _require_dag_id(query)
    params = {
        "limit": query.get("limit") or DAG_RUNS_DEFAULT_LIMIT,
        "offset": query.get("offset") or "0",
        **pick_params(query, ["state", "execution_date_gte", "execution_date_lte", "order_by"]),
    }
    # startDate/endDate take precedence over the raw Airflow names
    if query.get("startDate"):
        params["execution_date_gte"] = query["startDate"]
    if query.get("endDate"):
        params["execution_date_lte"] = query["endDate"]
    return ProxyRequest(dag_id=dag_id, params=params)


def task_instances_request(query: Mapping[str, Any]) -> ProxyRequest:
    dag_id = _first(query, "dagId", "dag_id")
    dag_run_id = _first(query, "dagRunId", "dag_run_id")
    if not dag_id or not dag_run_id:
        raise MissingParameterError("dagId and dagRunId are required")
    return ProxyRequest(
        dag_id=dag_id,
        dag_run_id=dag_run_id,
        params=pick_params(query, ["state", "map_index"]),
    )


def event_logs_request(query: Mapping[str, Any]) -> ProxyRequest:
    params = {
        "limit": query.get("limit") or EVENT_LOGS_DEFAULT_LIMIT,
        **pick_params(query, ["dag_id", "task_id", "event"]),
    }
    if query.get("dagId"):
        params["dag_id"] = query["dagId"]
    if query.get("taskId"):
        params["task_id"] = query["taskId"]
    return ProxyRequest(params=params)
