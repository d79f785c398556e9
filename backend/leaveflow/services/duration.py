from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

_SATURDAY = 5
_HALF_DAY = 0.5


def is_working_day(day: date, holidays: Collection[date] = ()) -> bool:
    """A working day is any weekday that is not a listed holiday."""
    return day.weekday() < _SATURDAY and day not in holidays


def count_working_days(
    start_date: date,
    end_date: date,
    half_day: bool = False,
    holidays: Collection[date] = (),
) -> float:
    """Return the days a leave over ``[start_date, end_date]`` consumes.

    Every calendar day in the inclusive range counts once unless it falls on a
    Saturday, Sunday or one of ``holidays``. A half-day request takes a single
    flat 0.5 off the total, however long the range is, and only when at least
    one working day was counted, so the result is never negative.
    """
    if start_date > end_date:
        return 0.0

    working_days = 0
    current = start_date
    one_day = timedelta(days=1)
    while current <= end_date:
        if is_working_day(current, holidays):
            working_days += 1
        current += one_day

    if half_day and working_days > 0:
        return working_days - _HALF_DAY
    return float(working_days)


@runtime_checkable
class HolidayCalendar(Protocol):
    """Source of non-working dates excluded from leave counting."""

    async def holidays_between(self, start_date: date, end_date: date) -> set[date]:
        """Return holiday dates within the inclusive range."""
        ...


class NoHolidayCalendar:
    """Default calendar: only weekends are excluded."""

    async def holidays_between(self, start_date: date, end_date: date) -> set[date]:
        return set()


class StaticHolidayCalendar:
    """Calendar backed by a fixed set of dates."""

    def __init__(self, holidays: Collection[date] = ()) -> None:
        self._holidays = set(holidays)

    async def holidays_between(self, start_date: date, end_date: date) -> set[date]:
        return {d for d in self._holidays if start_date <= d <= end_date}


_holiday_calendar: HolidayCalendar = NoHolidayCalendar()


def get_holiday_calendar() -> HolidayCalendar:
    return _holiday_calendar


def set_holiday_calendar(calendar: HolidayCalendar) -> None:
    """Override the calendar (for testing or production wiring)."""
    global _holiday_calendar
    _holiday_calendar = calendar


async def calculate_consumed_days(start_date: date, end_date: date, half_day: bool = False) -> float:
    """Consumed days for a request, honoring the configured holiday calendar."""
    holidays = await get_holiday_calendar().holidays_between(start_date, end_date)
    return count_working_days(start_date, end_date, half_day, holidays)
