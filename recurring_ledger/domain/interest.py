"""Interest accrual computer - credit card APR resolution, grace periods, savings yield"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from recurring_ledger.domain.models import AprRateType, DailyAccrual
from recurring_ledger.domain.money import Number, ZERO, round_cents, to_decimal
from recurring_ledger.utils.date_utils import add_months


class RateLike(Protocol):
    id: str
    rate_type: str
    apr: Decimal
    is_active: bool


class PurchaseLike(Protocol):
    date: date
    amount: Decimal
    apr_rate_id: Optional[str]


class StatementTermsLike(Protocol):
    statement_close_day: int
    last_statement_paid_in_full: bool


def effective_apr(transaction: PurchaseLike, account_rates: Sequence[RateLike]) -> Optional[Decimal]:
    """
    Resolve the APR that applies to one purchase.

    Priority:
    1. The rate linked to the transaction, if it is still active
    2. The account's active STANDARD rate
    3. None - the purchase contributes nothing today
    """
    if transaction.apr_rate_id:
        linked = next((r for r in account_rates if r.id == transaction.apr_rate_id), None)
        if linked is not None and linked.is_active:
            return to_decimal(linked.apr)

    standard = next(
        (r for r in account_rates if r.rate_type == AprRateType.STANDARD.value and r.is_active),
        None,
    )
    return to_decimal(standard.apr) if standard is not None else None


def last_statement_close_date(today: date, close_day: int) -> date:
    """
    Most recent statement close on or before today.

    close_day=15: Feb 20 -> Feb 15, Feb 15 -> Feb 15, Feb 10 -> Jan 15.
    """
    if today.day >= close_day:
        return add_months(today, 0, day=close_day)
    return add_months(today, -1, day=close_day)


def should_accrue(transaction_date: date, cc_details: StatementTermsLike, today: date) -> bool:
    """
    Grace-period test for one purchase.

    Not paid in full last cycle -> every outstanding purchase accrues.
    Paid in full -> purchases posted after the last close belong to the
    current cycle and are exempt; older purchases still accrue.
    """
    if not cc_details.last_statement_paid_in_full:
        return True

    last_close = last_statement_close_date(today, cc_details.statement_close_day)
    return transaction_date <= last_close


def daily_interest(amount: Number, apr: Number) -> Decimal:
    """|amount| * (apr / 100 / 365), unrounded"""
    return abs(to_decimal(amount)) * to_decimal(apr) / Decimal(100) / Decimal(365)


def compute_daily_accrual(
    purchases: Iterable[PurchaseLike],
    account_rates: Sequence[RateLike],
    cc_details: StatementTermsLike,
    today: date,
) -> DailyAccrual:
    """Sum today's interest across every purchase that qualifies"""
    total = ZERO
    accruing = 0
    skipped_no_rate = 0

    for purchase in purchases:
        if not should_accrue(purchase.date, cc_details, today):
            continue

        apr = effective_apr(purchase, account_rates)
        if apr is None:
            skipped_no_rate += 1
            continue

        total += daily_interest(purchase.amount, apr)
        accruing += 1

    return DailyAccrual(total=total, accruing_count=accruing, skipped_no_rate=skipped_no_rate)


def monthly_savings_interest(balance: Number, apy: Number) -> Decimal:
    """
    Monthly savings payout: balance * (apy / 100 / 12), rounded half away from zero.

    10000 @ 4.5 -> 37.50; 1000 @ 1.0 -> 0.83; 0.01 @ 0.01 -> 0.00
    """
    return round_cents(to_decimal(balance) * to_decimal(apy) / Decimal(100) / Decimal(12))


def previous_statement_date(close_day: int, today: date) -> date:
    """Same close day one calendar month earlier, clamped to that month's length"""
    return add_months(today, -1, day=close_day)


def is_paid_in_full(payments: Number, last_statement_balance: Number) -> bool:
    """A statement is paid in full when nothing was owed or payments cover the owed amount"""
    owed = abs(to_decimal(last_statement_balance))
    return owed == ZERO or to_decimal(payments) >= owed


def minimum_payment_due(statement_balance: Number, pct: Number, floor: Number) -> Decimal:
    """Greater of pct * balance and the floor, never more than what is owed"""
    owed = abs(to_decimal(statement_balance))
    if owed == ZERO:
        return round_cents(ZERO)
    return min(owed, max(round_cents(owed * to_decimal(pct)), to_decimal(floor)))
