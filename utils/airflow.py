"""
Airflow REST API client, shared by the proxy endpoints and the dashboards.

Every request carries the single shared bearer token from config. Empty
query values are dropped before forwarding. Non-2xx responses raise
AirflowAPIError with the upstream status code and body.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping
from urllib.parse import quote

import httpx

import config
from features.comparison.models import RunQuery
from models.schemas import RunRecord, parse_runs

log = logging.getLogger(__name__)

KNOWN_API_SUFFIXES = ("/api/v1", "/api/v2", "/api/v3")
BASE_DELAY = 1.0  # seconds


class AirflowConfigError(RuntimeError):
    """Required Airflow settings are missing."""


class AirflowAPIError(Exception):
    """Airflow answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"Airflow API error ({status_code}) {message}")
        self.status_code = status_code


def resolve_base_url(configured: str, version: str | None = None) -> str:
    """Return the configured base URL with exactly one ``/api/v{N}`` suffix.

    An existing suffix for a different version is replaced.
    """
    if not configured:
        raise AirflowConfigError("AIRFLOW_API_BASE_URL is not configured")

    trimmed = configured.rstrip("/")
    normalized = str(version or "2").lstrip("vV") or "2"
    desired = f"/api/v{normalized}"

    lower = trimmed.lower()
    if lower.endswith(desired):
        return trimmed
    for suffix in KNOWN_API_SUFFIXES:
        if lower.endswith(suffix):
            return trimmed[: -len(suffix)] + desired
    return trimmed + desired


def clean_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop None and empty-string values."""
    if not params:
        return {}
    return {k: v for k, v in params.items() if v is not None and v != ""}


def pick_params(params: Mapping[str, Any], allowed: Iterable[str]) -> dict[str, Any]:
    """Keep only the allowed keys that carry a non-empty value."""
    picked = {}
    for key in allowed:
        value = params.get(key)
        if value is not None and value != "":
            picked[key] = value
    return picked


class AirflowClient:
    """Async client for the Airflow REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = config.AIRFLOW_API_BASE_URL if base_url is None else base_url
        self._token = config.AIRFLOW_API_TOKEN if token is None else token
        self._api_version = api_version or config.AIRFLOW_API_VERSION
        self._timeout = config.AIRFLOW_TIMEOUT_SECONDS if timeout is None else timeout
        self._max_retries = config.AIRFLOW_MAX_RETRIES if max_retries is None else max_retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def configured(self) -> bool:
        return bool(self._base_url and self._token)

    def _ensure_configured(self) -> None:
        missing = []
        if not self._base_url:
            missing.append("AIRFLOW_API_BASE_URL")
        if not self._token:
            missing.append("AIRFLOW_API_TOKEN")
        if missing:
            raise AirflowConfigError(f"Missing environment variables: {', '.join(missing)}")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            kwargs: dict[str, Any] = {
                "base_url": resolve_base_url(self._base_url, self._api_version) + "/",
                "timeout": self._timeout,
                "headers": {
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                },
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, endpoint: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET an Airflow endpoint and return the parsed JSON body.

        Retries up to max_retries times on rate limit (429) responses with
        exponential backoff. Any other non-2xx status raises immediately, as
        does a body that is not JSON.
        """
        self._ensure_configured()
        client = self._get_client()
        path = endpoint.lstrip("/")
        query = clean_params(params)

        for attempt in range(self._max_retries + 1):
            response = await client.get(path, params=query)
            if response.status_code == 429 and attempt < self._max_retries:
                delay = BASE_DELAY * (2 ** attempt)
                log.warning(
                    "Rate limited on %s (attempt %d/%d), retrying in %.1fs",
                    path, attempt + 1, self._max_retries, delay,
                )
                await asyncio.sleep(delay)
                continue
            if response.is_error:
                raise AirflowAPIError(response.status_code, response.text)
            try:
                return response.json()
            except ValueError:
                # usually the web UI login page when the base URL is wrong
                log.error("Non-JSON response from %s: %.200s", path, response.text)
                raise AirflowAPIError(
                    response.status_code, f"Invalid JSON response: {response.text[:200]}",
                ) from None

        raise AirflowAPIError(429, "rate limit retries exhausted")  # unreachable

    # ── Typed endpoints ───────────────────────────────────────────────

    async def list_dags(self, params: Mapping[str, Any] | None = None) -> dict:
        return await self.get("dags", params)

    async def get_dag(self, dag_id: str) -> dict:
        return await self.get(f"dags/{quote(dag_id, safe='')}")

    async def list_dag_runs(self, dag_id: str, params: Mapping[str, Any] | None = None) -> dict:
        return await self.get(f"dags/{quote(dag_id, safe='')}/dagRuns", params)

    async def list_task_instances(
        self, dag_id: str, dag_run_id: str, params: Mapping[str, Any] | None = None,
    ) -> dict:
        return await self.get(
            f"dags/{quote(dag_id, safe='')}/dagRuns/{quote(dag_run_id, safe='')}/taskInstances",
            params,
        )

    async def list_event_logs(self, params: Mapping[str, Any] | None = None) -> dict:
        return await self.get("eventLogs", params)

    async def fetch_runs(self, dag_id: str, query: RunQuery) -> list[RunRecord]:
        """Run fetcher used by the comparison aggregator."""
        payload = await self.list_dag_runs(dag_id, {
            "limit": query.limit,
            "offset": 0,
            "order_by": query.order_by,
            "execution_date_gte": query.start.isoformat() if query.start else None,
            "execution_date_lte": query.end.isoformat() if query.end else None,
        })
        return parse_runs(payload)
