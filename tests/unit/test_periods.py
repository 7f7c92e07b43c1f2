"""Unit tests for calendar periods (resale_kernel/domain/periods.py)."""

from datetime import date

import pytest

from resale_kernel.domain.periods import (
    Granularity,
    Period,
    month_period,
    month_range,
    period_for,
    week_range,
)
from resale_kernel.exceptions import InvalidPeriodError


class TestWeekRange:
    """Monday..Sunday containing the anchor."""

    def test_midweek(self):
        # 2025-02-12 is a Wednesday
        assert week_range(date(2025, 2, 12)) == (date(2025, 2, 10), date(2025, 2, 16))

    def test_monday_starts_its_own_week(self):
        assert week_range(date(2025, 2, 10))[0] == date(2025, 2, 10)

    def test_sunday_closes_week(self):
        assert week_range(date(2025, 2, 16)) == (date(2025, 2, 10), date(2025, 2, 16))

    def test_crosses_year_boundary(self):
        assert week_range(date(2025, 1, 1)) == (date(2024, 12, 30), date(2025, 1, 5))


class TestMonthRange:

    def test_leap_february(self):
        assert month_range(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_common_february(self):
        assert month_range(2, 2025)[1] == date(2025, 2, 28)

    def test_invalid_month(self):
        with pytest.raises(InvalidPeriodError):
            month_range(13, 2025)


class TestPeriodFor:

    def test_date(self):
        p = period_for("date", "2025-02-12")
        assert (p.start, p.end) == (date(2025, 2, 12), date(2025, 2, 12))
        assert p.value == "2025-02-12"

    def test_week_value_is_anchor(self):
        p = period_for(Granularity.WEEK, "2025-02-12")
        assert p.start == date(2025, 2, 10)
        assert p.value == "2025-02-12"
        assert p.days == 7

    def test_month(self):
        p = period_for("month", "2025-2")
        assert (p.start, p.end) == (date(2025, 2, 1), date(2025, 2, 28))
        assert p.value == "2025-02"

    def test_year(self):
        p = period_for("year", "2025")
        assert (p.start, p.end) == (date(2025, 1, 1), date(2025, 12, 31))
        assert p.value == "2025"

    def test_date_anchor_accepted(self):
        assert period_for("month", date(2025, 2, 17)).start == date(2025, 2, 1)

    @pytest.mark.parametrize("granularity,value", [
        ("month", "2025"),
        ("year", "25"),
        ("date", "yesterday"),
        ("decade", "2020"),
        ("month", "2025-13"),
    ])
    def test_malformed(self, granularity, value):
        with pytest.raises(InvalidPeriodError):
            period_for(granularity, value)


class TestPeriod:

    def test_contains_is_inclusive(self):
        p = period_for("month", "2025-02")
        assert p.contains(date(2025, 2, 1))
        assert p.contains(date(2025, 2, 28))
        assert not p.contains(date(2025, 3, 1))

    def test_undated_never_contained(self):
        assert not period_for("year", "2025").contains(None)

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            Period(Granularity.DATE, date(2025, 2, 2), date(2025, 2, 1))

    def test_month_period_from_selector(self):
        p = month_period("2025", "02")
        assert p.value == "2025-02"
        with pytest.raises(InvalidPeriodError):
            month_period("2025", "feb")
