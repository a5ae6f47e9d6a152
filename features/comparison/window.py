"""
Time-window resolver — turns the selected time filter into a concrete interval.

Presets are rolling windows ending now. Custom ranges are whole calendar
days in the dashboard timezone: the start date from 00:00:00.000 and the end
date through 23:59:59.999. The resolver never raises; problems are returned
as an invalid TimeWindow carrying a WindowError and a display reason.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

import config
from features.comparison.models import TimePreset, TimeWindow, WindowError
from utils.formatters import parse_timestamp

log = logging.getLogger(__name__)

CUSTOM = "custom"

TIME_PRESETS: tuple[TimePreset, ...] = (
    TimePreset("7d", "Last 7 days", 7),
    TimePreset("30d", "Last month", 30),
    TimePreset("90d", "Last quarter", 90),
    TimePreset("365d", "Last year", 365),
    TimePreset(CUSTOM, "Custom range"),
)

_PRESETS_BY_ID = {p.id: p for p in TIME_PRESETS}

END_OF_DAY = time(23, 59, 59, 999000)

MISSING_DATES = "Select both start and end dates for the custom range."
INVALID_DATES = "Invalid custom date selection."
START_AFTER_END = "Start date must be before end date."


def resolve_timezone(name: str | None = None) -> tzinfo:
    name = name or config.DASHBOARD_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def get_preset(preset_id: str) -> TimePreset | None:
    return _PRESETS_BY_ID.get(preset_id)


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        parsed = parse_timestamp(value)
        return parsed.date() if parsed else None


def resolve_window(
    preset: str,
    custom_start: str | None = None,
    custom_end: str | None = None,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> TimeWindow:
    """Resolve a preset id or ``custom`` date pair into a TimeWindow."""
    if preset == CUSTOM:
        return _resolve_custom(custom_start, custom_end, tz or resolve_timezone())

    option = get_preset(preset)
    if option is None or option.days is None:
        return TimeWindow.invalid(WindowError.INVALID_RANGE, f"Unknown time filter: {preset}")

    end = now or datetime.now(timezone.utc)
    return TimeWindow.between(end - timedelta(days=option.days), end)


def _resolve_custom(custom_start: str | None, custom_end: str | None, tz: tzinfo) -> TimeWindow:
    if not custom_start or not custom_end:
        return TimeWindow.invalid(WindowError.INVALID_RANGE, MISSING_DATES)

    start_day = _parse_date(custom_start)
    end_day = _parse_date(custom_end)
    if start_day is None or end_day is None:
        return TimeWindow.invalid(WindowError.INVALID_RANGE, INVALID_DATES)
    if start_day > end_day:
        return TimeWindow.invalid(WindowError.START_AFTER_END, START_AFTER_END)

    return TimeWindow.between(
        datetime.combine(start_day, time.min, tzinfo=tz),
        datetime.combine(end_day, END_OF_DAY, tzinfo=tz),
    )


def describe_window(preset: str, custom_start: str | None = None, custom_end: str | None = None) -> str:
    """Label shown next to the comparison, e.g. ``Last 7 days``."""
    if preset == CUSTOM:
        if not custom_start or not custom_end:
            return "Awaiting custom dates"
        return f"Custom: {custom_start} → {custom_end}"
    option = get_preset(preset)
    return option.label if option else ""
