"""
FastAPI application — read-only monitoring API over an Airflow deployment.

Endpoints:
  GET  /health                  — Health check
  GET  /api/dags                — Proxy: DAG list
  GET  /api/dagDetails          — Proxy: single DAG
  GET  /api/dagRuns             — Proxy: run history for a DAG
  GET  /api/taskInstances       — Proxy: task instances of a run
  GET  /api/eventLogs           — Proxy: event logs
  GET  /overview                — Workspace metrics, run health, latest errors
  GET  /catalog                 — Searchable DAG catalog
  GET  /dags/{dag_id}           — DAG metadata, run history and task instances
  GET  /logs                    — Event logs filtered by type, DAG and task
  GET  /comparison/stats        — Duration comparison for explicit DAGs + window
  GET  /comparison              — Comparison dashboard state
  POST /comparison/selection/…  — Change the comparison selection
  PUT  /comparison/window       — Change the comparison time filter
  POST /comparison/refresh      — Reload catalog and stats
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, Awaitable

import httpx
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import config
from features.comparison import (
    ComparisonDashboard,
    FetchFailure,
    UnknownPipelineError,
    aggregate,
    describe_window,
    resolve_window,
)
from features.comparison.dashboard import serialize_stat
from features.overview.metrics import (
    LOG_EVENT_FILTERS,
    RUN_FILTER_STATES,
    STATUS_FILTERS,
    filter_dags,
    run_rows,
    run_state_counts,
    task_rows,
    workspace_metrics,
)
from features.proxy import params as proxy
from models.schemas import parse_dags, parse_event_logs, parse_runs, parse_task_instances
from utils.airflow import AirflowAPIError, AirflowClient, AirflowConfigError

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)

airflow_client: AirflowClient | None = None
comparison: ComparisonDashboard | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global airflow_client, comparison
    missing = config.missing_settings()
    if missing:
        log.warning("Airflow API not configured: missing %s (proxied calls will fail)", ", ".join(missing))
    airflow_client = AirflowClient()
    comparison = ComparisonDashboard(airflow_client)
    yield
    await airflow_client.aclose()


app = FastAPI(
    title="DAG Insight",
    description="Read-only monitoring dashboard over the Airflow REST API",
    version="1.0.0",
    lifespan=lifespan,
)


def get_airflow() -> AirflowClient:
    if airflow_client is None:
        raise HTTPException(status_code=503, detail="Airflow client not initialized")
    return airflow_client


def get_comparison() -> ComparisonDashboard:
    if comparison is None:
        raise HTTPException(status_code=503, detail="Comparison dashboard not initialized")
    return comparison


# ── Error handling ────────────────────────────────────────────────────

@app.exception_handler(AirflowAPIError)
@app.exception_handler(AirflowConfigError)
@app.exception_handler(httpx.HTTPError)
async def upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("Upstream error on %s: %s", request.url.path, exc)
    status = getattr(exc, "status_code", None)
    if not isinstance(status, int) or status < 400:
        status = 500
    return JSONResponse(
        status_code=status,
        content={"error": "Internal server error", "message": str(exc) or "Unknown error"},
    )


@app.exception_handler(proxy.MissingParameterError)
async def missing_parameter_handler(request: Request, exc: proxy.MissingParameterError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _panel(name: str, call: Awaitable[Any]) -> tuple[Any, str | None]:
    """Await one independent view panel; a failure only blanks that panel."""
    try:
        return await call, None
    except (AirflowAPIError, AirflowConfigError, httpx.HTTPError) as e:
        log.warning("Panel %s failed: %s", name, e)
        return None, str(e) or "Failed to fetch data"


# ── Health ────────────────────────────────────────────────────────────

@app.get("/health")
def health():
    return {
        "status": "ok",
        "service": "dag-insight",
        "airflow_configured": not config.missing_settings(),
    }


# ── Airflow proxy ─────────────────────────────────────────────────────

@app.get("/api/dags")
async def proxy_dags(request: Request, airflow: AirflowClient = Depends(get_airflow)):
    req = proxy.dags_request(request.query_params)
    return await airflow.list_dags(req.params)


@app.get("/api/dagDetails")
async def proxy_dag_details(request: Request, airflow: AirflowClient = Depends(get_airflow)):
    req = proxy.dag_details_request(request.query_params)
    return await airflow.get_dag(req.dag_id)


@app.get("/api/dagRuns")
async def proxy_dag_runs(request: Request, airflow: AirflowClient = Depends(get_airflow)):
    req = proxy.dag_runs_request(request.query_params)
    return await airflow.list_dag_runs(req.dag_id, req.params)


@app.get("/api/taskInstances")
async def proxy_task_instances(request: Request, airflow: AirflowClient = Depends(get_airflow)):
    req = proxy.task_instances_request(request.query_params)
    return await airflow.list_task_instances(req.dag_id, req.dag_run_id, req.params)


@app.get("/api/eventLogs")
async def proxy_event_logs(request: Request, airflow: AirflowClient = Depends(get_airflow)):
    req = proxy.event_logs_request(request.query_params)
    return await airflow.list_event_logs(req.params)


# ── Overview / catalog / detail ───────────────────────────────────────

async def _recent_runs(airflow: AirflowClient, dag_id: str | None) -> tuple[Any, str | None]:
    if not dag_id:
        return None, None
    return await _panel("runs", airflow.list_dag_runs(
        dag_id, {"limit": config.OVERVIEW_RUN_LIMIT, "order_by": config.RUN_ORDER_BY},
    ))


@app.get("/overview")
async def overview(dag_id: str | None = None, airflow: AirflowClient = Depends(get_airflow)):
    """Workspace metrics, run health for one DAG and the latest error logs."""
    dags_panel = _panel("dags", airflow.list_dags({"limit": config.OVERVIEW_DAG_LIMIT}))
    logs_panel = _panel("logs", airflow.list_event_logs(
        {"limit": config.OVERVIEW_LOG_LIMIT, "event": "ERROR"},
    ))

    # runs need a DAG id; without one they wait for the DAG list
    if dag_id:
        (dag_payload, dag_error), (run_payload, run_error), (log_payload, log_error) = await asyncio.gather(
            dags_panel, _recent_runs(airflow, dag_id), logs_panel,
        )
        dags = parse_dags(dag_payload)
        selected = dag_id
    else:
        (dag_payload, dag_error), (log_payload, log_error) = await asyncio.gather(dags_panel, logs_panel)
        dags = parse_dags(dag_payload)
        selected = dags[0].dag_id if dags else None
        run_payload, run_error = await _recent_runs(airflow, selected)

    runs = parse_runs(run_payload)
    logs = parse_event_logs(log_payload)[: config.OVERVIEW_LOG_LIMIT]

    return {
        "metrics": workspace_metrics(dags) if dag_error is None else [],
        "dags": [{"dag_id": d.dag_id, "display_name": d.display_name} for d in dags],
        "dags_error": dag_error,
        "selected_dag": selected,
        "run_states": run_state_counts(runs),
        "runs": run_rows(runs),
        "runs_error": run_error,
        "logs": [asdict(entry) for entry in logs],
        "logs_error": log_error,
    }


@app.get("/catalog")
async def catalog(
    search: str | None = None,
    status: str = "all",
    airflow: AirflowClient = Depends(get_airflow),
):
    """DAG catalog filtered by search term and active/paused status."""
    if status not in STATUS_FILTERS:
        raise HTTPException(status_code=400, detail=f"Unknown status filter: {status}")
    payload = await airflow.list_dags({"limit": config.CATALOG_LIMIT})
    dags = filter_dags(parse_dags(payload), search, status)
    return {"dags": [asdict(d) for d in dags], "count": len(dags)}


@app.get("/dags/{dag_id}")
async def dag_detail(
    dag_id: str,
    run_id: str | None = None,
    state: str | None = None,
    startDate: str | None = None,
    endDate: str | None = None,
    limit: int = 25,
    airflow: AirflowClient = Depends(get_airflow),
):
    """DAG metadata, filtered run history and the task instances of one run.

    The most recent run is selected when run_id is absent or not in the list.
    """
    dag, dag_error = await _panel("dag", airflow.get_dag(dag_id))

    runs_req = proxy.dag_runs_request({
        "dagId": dag_id, "limit": str(limit), "state": state,
        "startDate": startDate, "endDate": endDate,
    })
    run_payload, run_error = await _panel("runs", airflow.list_dag_runs(dag_id, runs_req.params))
    runs = parse_runs(run_payload)

    if runs and run_id not in {r.run_id for r in runs}:
        run_id = runs[0].run_id
    elif not runs:
        run_id = None

    tasks, task_error = [], None
    if run_id:
        task_payload, task_error = await _panel("tasks", airflow.list_task_instances(dag_id, run_id))
        tasks = parse_task_instances(task_payload)

    return {
        "dag": dag,
        "dag_error": dag_error,
        "run_states": list(RUN_FILTER_STATES),
        "runs": run_rows(runs),
        "runs_error": run_error,
        "selected_run": run_id,
        "tasks": task_rows(tasks),
        "tasks_error": task_error,
    }


@app.get("/logs")
async def event_logs(
    event: str = "ERROR",
    dagId: str | None = None,
    taskId: str | None = None,
    limit: int = Query(default=config.EVENT_LOG_LIMIT, ge=1, le=config.EVENT_LOG_MAX_LIMIT),
    airflow: AirflowClient = Depends(get_airflow),
):
    """Event log entries filtered by event type, DAG and task. An empty event means any."""
    if event not in LOG_EVENT_FILTERS:
        raise HTTPException(status_code=400, detail=f"Unknown event filter: {event}")
    req = proxy.event_logs_request({"event": event, "dagId": dagId, "taskId": taskId, "limit": str(limit)})
    logs = parse_event_logs(await airflow.list_event_logs(req.params))
    return {
        "filters": {"event": event, "dag_id": dagId, "task_id": taskId, "limit": limit},
        "event_types": list(LOG_EVENT_FILTERS),
        "logs": [asdict(entry) for entry in logs],
        "count": len(logs),
    }


# ── Duration comparison ───────────────────────────────────────────────

class WindowRequest(BaseModel):
    preset: str = config.DEFAULT_TIME_FILTER
    custom_start: str | None = None
    custom_end: str | None = None


@app.get("/comparison/stats")
async def comparison_stats(
    dag_id: list[str] = Query(default=[]),
    preset: str = config.DEFAULT_TIME_FILTER,
    start: str | None = None,
    end: str | None = None,
    airflow: AirflowClient = Depends(get_airflow),
):
    """Stateless comparison: resolve the window and aggregate the given DAGs."""
    window = resolve_window(preset, start, end)
    if not window.is_valid:
        return JSONResponse(
            status_code=422,
            content={"error": window.error.value, "message": window.reason},
        )
    try:
        stats = await aggregate(dag_id, window, airflow.fetch_runs)
    except FetchFailure as e:
        return JSONResponse(
            status_code=502,
            content={"error": "FetchFailure", "message": e.message, "dag_id": e.pipeline_id},
        )
    return {
        "window": {
            "label": describe_window(preset, start, end),
            "start": window.start.isoformat(),
            "end": window.end.isoformat(),
        },
        "stats": [serialize_stat(s) for s in stats],
    }


@app.get("/comparison")
async def comparison_state(search: str | None = None, dashboard: ComparisonDashboard = Depends(get_comparison)):
    await dashboard.ensure_loaded()
    return dashboard.snapshot(search)


@app.post("/comparison/selection/toggle/{dag_id}")
async def comparison_toggle(dag_id: str, dashboard: ComparisonDashboard = Depends(get_comparison)):
    await dashboard.ensure_loaded()
    try:
        await dashboard.toggle(dag_id)
    except UnknownPipelineError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return dashboard.snapshot()


@app.post("/comparison/selection/only/{dag_id}")
async def comparison_select_only(dag_id: str, dashboard: ComparisonDashboard = Depends(get_comparison)):
    await dashboard.ensure_loaded()
    try:
        await dashboard.select_only(dag_id)
    except UnknownPipelineError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return dashboard.snapshot()


@app.post("/comparison/selection/all")
async def comparison_select_all(dashboard: ComparisonDashboard = Depends(get_comparison)):
    await dashboard.ensure_loaded()
    await dashboard.select_all()
    return dashboard.snapshot()


@app.post("/comparison/selection/toggle-all")
async def comparison_toggle_all(dashboard: ComparisonDashboard = Depends(get_comparison)):
    await dashboard.ensure_loaded()
    await dashboard.toggle_all()
    return dashboard.snapshot()


@app.post("/comparison/selection/clear")
async def comparison_clear(dashboard: ComparisonDashboard = Depends(get_comparison)):
    await dashboard.ensure_loaded()
    await dashboard.clear()
    return dashboard.snapshot()


@app.put("/comparison/window")
async def comparison_window(req: WindowRequest, dashboard: ComparisonDashboard = Depends(get_comparison)):
    await dashboard.ensure_loaded()
    await dashboard.set_time_filter(req.preset, req.custom_start, req.custom_end)
    return dashboard.snapshot()


@app.post("/comparison/refresh")
async def comparison_refresh(dashboard: ComparisonDashboard = Depends(get_comparison)):
    await dashboard.refresh_all()
    return dashboard.snapshot()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level="info")
