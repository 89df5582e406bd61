"""Tests for date-key helpers and explorer window resolution."""

from datetime import date, datetime, timezone

import pytest

from raas_analytics.transformation.date_keys import (
    ALL_TIME_START,
    date_from_unix_seconds,
    date_range,
    month_key,
    parse_day,
    parse_launch_date,
    previous_week_key,
    quarter_key,
    resolve_date_range,
    to_unix_ms,
    trailing_days,
    week_key,
    week_start,
)


class TestKeys:
    def test_week_key_uses_iso_year(self):
        # Monday 2024-12-30 belongs to ISO week 1 of 2025
        assert week_key(date(2024, 12, 30)) == "2025-01"
        assert week_key("2024-01-01") == "2024-01"

    def test_week_start_and_previous(self):
        assert week_start("2025-01") == date(2024, 12, 30)
        assert previous_week_key("2025-01") == "2024-52"

    def test_month_and_quarter(self):
        assert month_key("2024-06-30") == "2024-06"
        assert quarter_key(date(2024, 11, 2)) == "2024-Q4"

    def test_parse_day_accepts_timestamps(self):
        assert parse_day("2024-05-01T00:00:00Z") == date(2024, 5, 1)
        assert parse_day(datetime(2024, 5, 1, 13)) == date(2024, 5, 1)

    def test_unix_conversions(self):
        assert date_from_unix_seconds(1717977600) == date(2024, 6, 10)
        assert to_unix_ms(datetime(1970, 1, 1, 0, 0, 1)) == 1000
        assert to_unix_ms(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0


class TestLaunchDates:
    @pytest.mark.parametrize(
        "raw",
        ["2024-06-01", "Jun 1, 2024", "June 1, 2024", "6/1/2024", "06/01/2024"],
    )
    def test_sheet_formats(self, raw):
        assert parse_launch_date(raw) == date(2024, 6, 1)

    @pytest.mark.parametrize("raw", [None, "", "soon", "2024-13-01"])
    def test_unparseable(self, raw):
        assert parse_launch_date(raw) is None


class TestDateRange:
    def test_inclusive(self):
        assert date_range(date(2024, 2, 27), date(2024, 3, 1)) == [
            "2024-02-27",
            "2024-02-28",
            "2024-02-29",
            "2024-03-01",
        ]

    def test_empty_when_reversed(self):
        assert date_range(date(2024, 3, 2), date(2024, 3, 1)) == []

    def test_trailing_days_includes_today(self):
        days = trailing_days(7, date(2024, 6, 10))
        assert days[0] == "2024-06-03"
        assert days[-1] == "2024-06-10"
        assert len(days) == 8


class TestResolveDateRange:
    today = date(2024, 6, 10)

    @pytest.mark.parametrize(
        "window, start",
        [
            ("daily", date(2024, 6, 10)),
            ("1month", date(2024, 5, 10)),
            ("4months", date(2024, 2, 10)),
            ("6months", date(2023, 12, 10)),
            ("all", ALL_TIME_START),
        ],
    )
    def test_windows(self, window, start):
        assert resolve_date_range(window, self.today) == (start, self.today)

    def test_launch_window(self):
        launch = date(2024, 3, 1)
        assert resolve_date_range("launch", self.today, launch) == (launch, self.today)
        assert resolve_date_range("launch", self.today) == (ALL_TIME_START, self.today)

    def test_unknown_window(self):
        with pytest.raises(ValueError, match="Invalid time range"):
            resolve_date_range("fortnight", self.today)
