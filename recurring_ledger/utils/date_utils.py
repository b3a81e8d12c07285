"""Date manipulation utilities"""

import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo


def today_in(tz_name: str) -> date:
    """Today's calendar date in the given timezone (the job's notion of midnight)"""
    return datetime.now(ZoneInfo(tz_name)).date()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(from_date: date, months: int, day: int | None = None) -> date:
    """
    Step a date by whole months, clamping the day to the target month's length.

    `day` overrides the anchor day-of-month (defaults to from_date.day), so
    Jan 31 + 1 month -> Feb 28/29, and a bill anchored on the 31st returns to
    the 31st in months that have one.
    """
    anchor = day if day is not None else from_date.day
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(anchor, days_in_month(year, month)))


def month_start(d: date) -> date:
    return d.replace(day=1)


def is_last_day_of_month(d: date) -> bool:
    return d.day == days_in_month(d.year, d.month)
