"""
Dataclasses for the Airflow entities the dashboard reads.

Each model keeps only the fields the dashboard uses and is built from the
raw Airflow JSON with a ``from_api`` constructor. Timestamps stay as the
strings Airflow returned; parsing happens where durations are computed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class RunState(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    RUNNING = "running"
    QUEUED = "queued"
    UP_FOR_RETRY = "up_for_retry"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PipelineRef:
    """A DAG as listed in the catalog."""
    dag_id: str
    display_name: str
    is_paused: bool = False
    tags: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PipelineRef:
        dag_id = data["dag_id"]
        tags = tuple(
            t.get("name", "") if isinstance(t, dict) else str(t)
            for t in data.get("tags") or []
        )
        return cls(
            dag_id=dag_id,
            display_name=data.get("dag_display_name") or dag_id,
            is_paused=bool(data.get("is_paused")),
            tags=tags,
        )


@dataclass(frozen=True)
class RunRecord:
    """One execution of a DAG."""
    run_id: str
    state: str | None = None
    execution_date: str | None = None
    start_date: str | None = None
    end_date: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RunRecord:
        return cls(
            run_id=data.get("dag_run_id") or data.get("run_id") or "",
            state=data.get("state"),
            # Airflow 3 renamed execution_date to logical_date
            execution_date=data.get("execution_date") or data.get("logical_date"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
        )


@dataclass(frozen=True)
class TaskInstance:
    """One task's execution within a run."""
    task_id: str
    state: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    try_number: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TaskInstance:
        return cls(
            task_id=data.get("task_id", ""),
            state=data.get("state"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            try_number=data.get("try_number"),
        )


@dataclass(frozen=True)
class EventLog:
    """An audit/error entry emitted by Airflow."""
    event: str
    when: str | None = None
    dag_id: str | None = None
    task_id: str | None = None
    owner: str | None = None
    message: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> EventLog:
        return cls(
            event=data.get("event", ""),
            when=data.get("when"),
            dag_id=data.get("dag_id"),
            task_id=data.get("task_id"),
            owner=data.get("owner"),
            message=str(data.get("extra") or data.get("message") or ""),
        )


def parse_runs(payload: dict[str, Any] | None) -> list[RunRecord]:
    """Extract run records from a ``dagRuns`` response body."""
    return [RunRecord.from_api(r) for r in (payload or {}).get("dag_runs") or []]


def parse_dags(payload: dict[str, Any] | None) -> list[PipelineRef]:
    """Extract DAG references from a ``dags`` response body."""
    return [PipelineRef.from_api(d) for d in (payload or {}).get("dags") or []]


def parse_event_logs(payload: dict[str, Any] | None) -> list[EventLog]:
    """Extract event logs; older Airflow versions used the ``logs`` key."""
    body = payload or {}
    entries = body.get("event_logs") or body.get("logs") or []
    return [EventLog.from_api(e) for e in entries]


def parse_task_instances(payload: dict[str, Any] | None) -> list[TaskInstance]:
    return [TaskInstance.from_api(t) for t in (payload or {}).get("task_instances") or []]
