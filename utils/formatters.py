"""
Display helpers shared by the overview and comparison views.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an Airflow ISO-8601 timestamp into an aware datetime.

    Returns None for missing or malformed values. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def elapsed_seconds(start: str | datetime | None, end: str | datetime | None) -> float | None:
    """Seconds between two timestamps, or None if either is missing or unparseable."""
    started = parse_timestamp(start)
    ended = parse_timestamp(end)
    if started is None or ended is None:
        return None
    seconds = (ended - started).total_seconds()
    if not math.isfinite(seconds):
        return None
    return seconds


def format_duration(seconds: float | None) -> str:
    """Format seconds as ``1h 2m 3s``; zero components are omitted."""
    if seconds is None:
        return "N/A"
    total = max(0.0, float(seconds))
    hours = int(total // 3600)
    minutes = int((total % 3600) // 60)
    secs = int(total % 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if not parts or secs:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_state_label(state: str | None) -> str:
    """``up_for_retry`` -> ``Up For Retry``."""
    if not state:
        return "Unknown"
    return " ".join(word[:1].upper() + word[1:] for word in state.split("_"))


def format_datetime(value: str | datetime | None) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return "N/A"
    return parsed.strftime("%Y-%m-%d %H:%M")


def format_relative_time(value: str | datetime | None, now: datetime | None = None) -> str:
    """Friendly relative time such as ``5m ago`` or ``2h from now``."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return "N/A"
    now = now or datetime.now(timezone.utc)
    diff = (now - parsed).total_seconds()
    suffix = "ago" if diff >= 0 else "from now"

    minutes = round(abs(diff) / 60)
    if minutes < 60:
        return f"{minutes}m {suffix}"
    hours = round(minutes / 60)
    if hours < 24:
        return f"{hours}h {suffix}"
    return f"{round(hours / 24)}d {suffix}"


def to_minutes(seconds: float) -> float:
    """Seconds to minutes rounded to two decimals, for chart series."""
    return round(seconds / 60, 2)
