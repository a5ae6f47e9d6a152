"""
Configuration — loads settings from environment / .env file.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Airflow REST API
AIRFLOW_API_BASE_URL = os.getenv("AIRFLOW_API_BASE_URL", "")
AIRFLOW_API_TOKEN = os.getenv("AIRFLOW_API_TOKEN", "")
AIRFLOW_API_VERSION = os.getenv("AIRFLOW_API_VERSION", "2")
AIRFLOW_TIMEOUT_SECONDS = float(os.getenv("AIRFLOW_TIMEOUT_SECONDS", "30"))
AIRFLOW_MAX_RETRIES = int(os.getenv("AIRFLOW_MAX_RETRIES", "2"))

REQUIRED_SETTINGS = ("AIRFLOW_API_BASE_URL", "AIRFLOW_API_TOKEN")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))

# Dashboard
DASHBOARD_TIMEZONE = os.getenv("DASHBOARD_TIMEZONE", "UTC")
DEFAULT_TIME_FILTER = "7d"

# Run history lookup used by the duration comparison
MAX_RUN_LOOKUP = 200
RUN_ORDER_BY = "-execution_date"

# How many DAGs are pre-selected the first time the catalog loads
DEFAULT_SELECTION_SIZE = 3

# Page sizes requested from Airflow
CATALOG_LIMIT = 500
OVERVIEW_DAG_LIMIT = 200
OVERVIEW_RUN_LIMIT = 15
OVERVIEW_LOG_LIMIT = 5
EVENT_LOG_LIMIT = 25
EVENT_LOG_MAX_LIMIT = 200


def missing_settings() -> list[str]:
    """Names of required Airflow settings that are not configured."""
    return [name for name in REQUIRED_SETTINGS if not globals().get(name)]
