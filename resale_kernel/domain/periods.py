"""
Periods -- Calendar buckets for reporting.

Responsibility:
    Turns a granularity (date / week / month / year) and an anchor into an
    inclusive [start, end] calendar range, and renders the value string
    the dashboard endpoints expect.

Architecture position:
    Kernel > Domain -- pure, zero I/O. Never reads the clock; callers pass
    the anchor date explicitly.

Semantics:
    date   exact calendar day
    week   Monday..Sunday containing the anchor
           (first = anchor - (isoweekday - 1), last = first + 6)
    month  first..last day of the calendar month
    year   January 1..December 31
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from resale_kernel.exceptions import InvalidPeriodError

_MONTH_VALUE = re.compile(r"^(\d{4})-(\d{1,2})$")
_YEAR_VALUE = re.compile(r"^\d{4}$")


class Granularity(str, Enum):
    DATE = "date"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class Period:
    """An inclusive calendar range at a given granularity."""

    granularity: Granularity
    start: date
    end: date
    anchor: date | None = None

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("Period end cannot precede its start")

    def contains(self, day: date | None) -> bool:
        if day is None:
            return False
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def value(self) -> str:
        """The path value the dashboard endpoint takes for this period."""
        match self.granularity:
            case Granularity.DATE:
                return self.start.isoformat()
            case Granularity.WEEK:
                return (self.anchor or self.start).isoformat()
            case Granularity.MONTH:
                return f"{self.start.year:04d}-{self.start.month:02d}"
            case Granularity.YEAR:
                return f"{self.start.year:04d}"
        raise ValueError(f"Unknown granularity: {self.granularity}")

    def __str__(self) -> str:
        return f"{self.granularity.value}:{self.start.isoformat()}..{self.end.isoformat()}"


def week_range(day: date) -> tuple[date, date]:
    """Monday..Sunday of the week containing ``day``."""
    first = day - timedelta(days=day.isoweekday() - 1)
    return first, first + timedelta(days=6)


def month_range(month: int, year: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    if not 1 <= month <= 12:
        raise InvalidPeriodError("month", f"{year}-{month}")
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def _parse_anchor(granularity: Granularity, value: date | str) -> date:
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        match granularity:
            case Granularity.DATE | Granularity.WEEK:
                return date.fromisoformat(text)
            case Granularity.MONTH:
                m = _MONTH_VALUE.match(text)
                if not m:
                    raise ValueError(text)
                return date(int(m.group(1)), int(m.group(2)), 1)
            case Granularity.YEAR:
                if not _YEAR_VALUE.match(text):
                    raise ValueError(text)
                return date(int(text), 1, 1)
    except ValueError:
        raise InvalidPeriodError(granularity.value, text) from None
    raise InvalidPeriodError(granularity.value, text)


def period_for(granularity: Granularity | str, anchor: date | str) -> Period:
    """
    Build the period of ``granularity`` containing ``anchor``.

    ``anchor`` is a date or the dashboard value string: ``YYYY-MM-DD`` for
    date and week, ``YYYY-MM`` for month, ``YYYY`` for year.

    Raises:
        InvalidPeriodError: on an unknown granularity or malformed value.
    """
    try:
        g = Granularity(granularity)
    except ValueError:
        raise InvalidPeriodError(str(granularity), str(anchor)) from None

    day = _parse_anchor(g, anchor)
    match g:
        case Granularity.DATE:
            return Period(g, day, day, anchor=day)
        case Granularity.WEEK:
            start, end = week_range(day)
            return Period(g, start, end, anchor=day)
        case Granularity.MONTH:
            start, end = month_range(day.month, day.year)
            return Period(g, start, end, anchor=day)
        case Granularity.YEAR:
            return Period(g, date(day.year, 1, 1), date(day.year, 12, 31), anchor=day)
    raise InvalidPeriodError(g.value, str(anchor))


def month_period(year: int | str, month: int | str) -> Period:
    """The month period for the overview screens' ``YYYY-MM`` selector."""
    try:
        y, m = int(year), int(month)
    except (TypeError, ValueError):
        raise InvalidPeriodError("month", f"{year}-{month}") from None
    start, end = month_range(m, y)
    return Period(Granularity.MONTH, start, end, anchor=start)
