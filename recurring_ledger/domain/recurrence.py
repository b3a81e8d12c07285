"""Recurrence advancer - next due dates for bills and installment plans"""

from datetime import date, timedelta

from recurring_ledger.domain.exceptions import InvalidScheduleError
from recurring_ledger.domain.models import Frequency
from recurring_ledger.utils.date_utils import add_months

_DAY_STEPS = {
    Frequency.WEEKLY: 7,
    Frequency.BIWEEKLY: 14,
}

_MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.ANNUAL: 12,
}


def _coerce_frequency(frequency: Frequency | str) -> Frequency:
    try:
        return Frequency(frequency)
    except ValueError as e:
        raise InvalidScheduleError(f"Unknown frequency: {frequency!r}") from e


def advance_once(from_date: date, frequency: Frequency | str, day_of_month: int) -> date:
    """
    Advance a due date by exactly one occurrence.

    WEEKLY/BIWEEKLY step 7/14 calendar days. MONTHLY/QUARTERLY/ANNUAL build
    year/month+{1,3,12}/day_of_month, clamped to the target month's last day.
    """
    freq = _coerce_frequency(frequency)

    if freq in _DAY_STEPS:
        return from_date + timedelta(days=_DAY_STEPS[freq])

    if not 1 <= day_of_month <= 31:
        raise InvalidScheduleError(f"day_of_month must be 1-31, got {day_of_month}")

    return add_months(from_date, _MONTH_STEPS[freq], day=day_of_month)


def advance_until_future(
    current: date,
    frequency: Frequency | str,
    day_of_month: int,
    today: date,
) -> date:
    """
    Advance at least once, then keep advancing until the date is strictly after today.

    A bill that missed several periods still produces one transaction per run;
    only its stored next due date is fast-forwarded.
    """
    next_date = advance_once(current, frequency, day_of_month)
    while next_date <= today:
        next_date = advance_once(next_date, frequency, day_of_month)
    return next_date


def advance_by_frequency(from_date: date, frequency: Frequency | str, anchor_day: int | None = None) -> date:
    """
    Step an installment date by one period.

    Monthly-style steps land on anchor_day (clamped), so a plan due on the
    31st goes Jan 31 -> Feb 29 -> Mar 31 instead of drifting to the 29th.
    Without an anchor the date's own day-of-month is used.
    """
    return advance_once(from_date, frequency, anchor_day or from_date.day)
