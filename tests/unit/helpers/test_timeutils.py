"""Unit tests for helpers.timeutils module.

# Test Coverage

The tests cover:
  - first_day_of_month / last_day_of_month, including leap years
  - add_months with day clamping and year rollover in both directions
  - months_between for whole, partial and negative spans
  - Time zone preservation

# Running Tests

Run with: pytest tests/unit/helpers/test_timeutils.py
"""

from datetime import datetime, timedelta, timezone

import pytest

from helpers.timeutils import add_months, first_day_of_month, last_day_of_month, months_between

DAY_LAYOUT = "%Y-%m-%d"


def day(text: str) -> datetime:
    return datetime.strptime(text, DAY_LAYOUT)


class TestMonthBoundaries:
    """Test suite for first_day_of_month and last_day_of_month."""

    @pytest.mark.parametrize(
        ("date", "expected"),
        [
            ("2022-11-12", "2022-11-01"),
            ("2022-11-01", "2022-11-01"),
            ("2012-12-21", "2012-12-01"),
            ("2032-01-31", "2032-01-01"),
        ],
    )
    def test_first_day_of_month(self, date: str, expected: str) -> None:
        assert first_day_of_month(day(date)).strftime(DAY_LAYOUT) == expected

    def test_first_day_resets_time(self) -> None:
        assert first_day_of_month(datetime(2024, 3, 15, 13, 45, 7, 99)) == datetime(2024, 3, 1)

    @pytest.mark.parametrize(
        ("date", "expected"),
        [
            ("2024-02-10", "2024-02-29"),
            ("2023-02-10", "2023-02-28"),
            ("2023-04-30", "2023-04-30"),
            ("2023-12-01", "2023-12-31"),
        ],
    )
    def test_last_day_of_month(self, date: str, expected: str) -> None:
        assert last_day_of_month(day(date)).strftime(DAY_LAYOUT) == expected

    def test_timezone_is_preserved(self) -> None:
        tz = timezone(timedelta(hours=-5))
        moment = datetime(2024, 7, 20, 22, 0, tzinfo=tz)

        assert first_day_of_month(moment).tzinfo is tz
        assert last_day_of_month(moment).tzinfo is tz
        assert add_months(moment, 1).tzinfo is tz


class TestAddMonths:
    """Test suite for add_months."""

    @pytest.mark.parametrize(
        ("date", "months", "expected"),
        [
            ("2024-01-31", 1, "2024-02-29"),
            ("2023-01-31", 1, "2023-02-28"),
            ("2023-03-31", -1, "2023-02-28"),
            ("2023-11-15", 2, "2024-01-15"),
            ("2024-01-15", -13, "2022-12-15"),
            ("2024-05-31", 0, "2024-05-31"),
            ("2024-08-31", 12, "2025-08-31"),
        ],
    )
    def test_add_months(self, date: str, months: int, expected: str) -> None:
        """Test month shifting with day clamping.

        **Why this test is important:**
          - Billing periods anchored on the 31st must land on the last day of
            shorter months instead of overflowing into the next one

        **What it tests:**
          - Clamping to month length, leap years, year rollover both ways
        """
        assert add_months(day(date), months).strftime(DAY_LAYOUT) == expected

    def test_time_of_day_kept(self) -> None:
        assert add_months(datetime(2024, 1, 10, 8, 30), 1) == datetime(2024, 2, 10, 8, 30)


class TestMonthsBetween:
    """Test suite for months_between."""

    @pytest.mark.parametrize(
        ("start", "end", "expected"),
        [
            ("2024-01-15", "2024-02-14", 0),
            ("2024-01-15", "2024-02-15", 1),
            ("2024-01-15", "2025-01-15", 12),
            ("2024-01-31", "2024-02-29", 1),
            ("2024-03-15", "2024-01-16", -1),
            ("2024-03-15", "2024-01-15", -2),
            ("2024-05-05", "2024-05-30", 0),
        ],
    )
    def test_whole_months(self, start: str, end: str, expected: int) -> None:
        assert months_between(day(start), day(end)) == expected

    def test_mixing_naive_and_aware_raises(self) -> None:
        with pytest.raises(TypeError):
            months_between(datetime(2024, 1, 1), datetime(2024, 3, 1, tzinfo=timezone.utc))
