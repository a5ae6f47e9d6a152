"""Tests for features.comparison.window."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from features.comparison.models import WindowError
from features.comparison.window import (
    TIME_PRESETS,
    describe_window,
    resolve_timezone,
    resolve_window,
)

NOW = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)


class TestPresets:

    @pytest.mark.parametrize("preset", [p for p in TIME_PRESETS if p.days])
    def test_window_spans_preset_days(self, preset):
        window = resolve_window(preset.id, now=NOW)

        assert window.is_valid
        assert window.end == NOW
        assert window.end - window.start == timedelta(days=preset.days)

    def test_uses_current_time_when_now_not_given(self):
        before = datetime.now(timezone.utc)
        window = resolve_window("7d")
        after = datetime.now(timezone.utc)

        assert before <= window.end <= after
        assert window.end - window.start == timedelta(days=7)

    def test_preset_ignores_custom_dates(self):
        window = resolve_window("30d", "2020-01-01", "2020-01-02", now=NOW)
        assert window.start == NOW - timedelta(days=30)

    def test_unknown_preset_is_invalid(self):
        window = resolve_window("14d", now=NOW)

        assert not window.is_valid
        assert window.error is WindowError.INVALID_RANGE
        assert "14d" in window.reason


class TestCustomRange:

    def test_single_day_covers_whole_day(self):
        window = resolve_window("custom", "2024-03-10", "2024-03-10", tz=timezone.utc)

        assert window.start == datetime(2024, 3, 10, 0, 0, 0, 0, tzinfo=timezone.utc)
        assert window.end == datetime(2024, 3, 10, 23, 59, 59, 999000, tzinfo=timezone.utc)

    def test_range_is_widened_to_full_days(self):
        window = resolve_window("custom", "2024-03-01", "2024-03-10", tz=timezone.utc)

        assert window.start.isoformat() == "2024-03-01T00:00:00+00:00"
        assert window.end.isoformat() == "2024-03-10T23:59:59.999000+00:00"

    def test_start_after_end(self):
        window = resolve_window("custom", "2024-03-10", "2024-03-01")

        assert not window.is_valid
        assert window.error is WindowError.START_AFTER_END
        assert window.start is None and window.end is None

    @pytest.mark.parametrize("start,end", [("", "2024-03-01"), ("2024-03-01", None), (None, None)])
    def test_missing_dates(self, start, end):
        window = resolve_window("custom", start, end)

        assert window.error is WindowError.INVALID_RANGE
        assert "both" in window.reason

    def test_unparseable_date(self):
        window = resolve_window("custom", "2024-13-40", "2024-03-01")

        assert window.error is WindowError.INVALID_RANGE
        assert window.reason == "Invalid custom date selection."

    def test_uses_dashboard_timezone(self):
        tz = ZoneInfo("America/New_York")
        window = resolve_window("custom", "2024-07-04", "2024-07-04", tz=tz)

        assert window.start.utcoffset() == timedelta(hours=-4)
        assert window.start.hour == 0
        assert window.end.hour == 23


class TestHelpers:

    def test_resolve_timezone_utc(self):
        assert resolve_timezone("UTC") is timezone.utc
        assert resolve_timezone("utc") is timezone.utc

    def test_resolve_timezone_named(self):
        assert resolve_timezone("Europe/Paris") == ZoneInfo("Europe/Paris")

    def test_describe_preset(self):
        assert describe_window("90d") == "Last quarter"

    def test_describe_custom(self):
        assert describe_window("custom") == "Awaiting custom dates"
        assert describe_window("custom", "2024-03-01", "2024-03-10") == "Custom: 2024-03-01 → 2024-03-10"

    def test_describe_unknown(self):
        assert describe_window("nope") == ""
