"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from features.comparison.models import RunQuery
from models.schemas import RunRecord, parse_runs
from utils.airflow import AirflowAPIError

T0 = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat().replace("+00:00", "Z") if value else None


class FakeAirflow:
    """In-memory stand-in for AirflowClient."""

    def __init__(self) -> None:
        self.dags: list[dict] = []
        self.runs: dict[str, list[dict]] = {}
        self.tasks: dict[str, list[dict]] = {}
        self.logs: list[dict] = []
        self.failures: dict[str, str] = {}
        self.calls: list[tuple] = []

    def _maybe_fail(self, key: str) -> None:
        if key in self.failures:
            raise AirflowAPIError(500, self.failures[key])

    async def list_dags(self, params: dict | None = None) -> dict:
        self.calls.append(("dags", params))
        self._maybe_fail("dags")
        return {"dags": self.dags, "total_entries": len(self.dags)}

    async def get_dag(self, dag_id: str) -> dict:
        self.calls.append(("dag", dag_id))
        self._maybe_fail(f"dag:{dag_id}")
        for dag in self.dags:
            if dag["dag_id"] == dag_id:
                return dag
        raise AirflowAPIError(404, "DAG not found")

    async def list_dag_runs(self, dag_id: str, params: dict | None = None) -> dict:
        self.calls.append(("runs", dag_id, params))
        self._maybe_fail(dag_id)
        return {"dag_runs": self.runs.get(dag_id, [])}

    async def fetch_runs(self, dag_id: str, query: RunQuery) -> list[RunRecord]:
        self.calls.append(("fetch_runs", dag_id, query))
        self._maybe_fail(dag_id)
        return parse_runs({"dag_runs": self.runs.get(dag_id, [])})

    async def list_task_instances(self, dag_id: str, dag_run_id: str, params: dict | None = None) -> dict:
        self.calls.append(("tasks", dag_id, dag_run_id))
        self._maybe_fail("tasks")
        return {"task_instances": self.tasks.get(dag_run_id, [])}

    async def list_event_logs(self, params: dict | None = None) -> dict:
        self.calls.append(("logs", params))
        self._maybe_fail("logs")
        return {"event_logs": self.logs}

    def fetched(self) -> list[str]:
        return [c[1] for c in self.calls if c[0] == "fetch_runs"]


@pytest.fixture
def make_dag() -> Callable[..., dict]:
    def _make(dag_id: str, display_name: str | None = None, is_paused: bool = False,
              tags: list[str] | None = None) -> dict:
        return {
            "dag_id": dag_id,
            "dag_display_name": display_name or dag_id,
            "is_paused": is_paused,
            "tags": [{"name": t} for t in tags or []],
        }
    return _make


@pytest.fixture
def make_run() -> Callable[..., dict]:
    """Build an Airflow dag_run payload lasting ``seconds`` (None = still running)."""
    counter = iter(range(1, 10_000))

    def _make(seconds: float | None = 60, state: str = "success",
              start: datetime | None = T0, **overrides: Any) -> dict:
        end = start + timedelta(seconds=seconds) if (start and seconds is not None) else None
        run = {
            "dag_run_id": f"run_{next(counter)}",
            "state": state,
            "execution_date": _iso(start),
            "start_date": _iso(start),
            "end_date": _iso(end),
        }
        run.update(overrides)
        return run
    return _make


@pytest.fixture
def fake_airflow() -> FakeAirflow:
    return FakeAirflow()
