"""Amortization engine - principal/interest splits, schedules, and loan fee math"""

from decimal import Decimal
from typing import List, Optional

from recurring_ledger.domain.models import AmortizationRow, ExtraPaymentImpact, PaymentSplit
from recurring_ledger.domain.money import Number, ZERO, round_cents, to_decimal

MAX_SCHEDULE_MONTHS = 600  # 50-year cap keeps non-amortizing loans bounded
PAYOFF_TOLERANCE = Decimal("0.005")


def _monthly_rate(apr: Number) -> Decimal:
    return to_decimal(apr) / Decimal(100) / Decimal(12)


def split_payment(balance: Number, apr: Number, payment: Number) -> PaymentSplit:
    """
    Split one monthly payment into principal and interest.

    Requirements:
    - interest = |balance| * (apr / 100 / 12), rounded to cents
    - principal = payment - interest, floored at zero
    - interest capped at the payment (payment below interest due -> all interest)

    Balances may be stored negative (liabilities); the absolute value is used.

    Example:
        balance=-10000, apr=6, payment=200 -> interest 50.00, principal 150.00
    """
    payment = to_decimal(payment)
    interest = round_cents(abs(to_decimal(balance)) * _monthly_rate(apr))
    principal = round_cents(payment - interest)

    return PaymentSplit(
        principal=max(principal, ZERO),
        interest=min(interest, payment),
    )


def generate_schedule(
    balance: Number,
    apr: Number,
    payment: Number,
    max_months: int = MAX_SCHEDULE_MONTHS,
) -> List[AmortizationRow]:
    """
    Generate the remaining amortization schedule of a loan.

    Each month's interest is charged on the running balance and every
    intermediate value is rounded to cents, the way statements are. The final
    payment is capped at remaining + that month's interest so the loan is
    never overpaid. Stops once the balance is within half a cent of zero or
    max_months rows have been produced.
    """
    payment = to_decimal(payment)
    monthly_rate = _monthly_rate(apr)
    remaining = abs(to_decimal(balance))
    schedule: List[AmortizationRow] = []

    month = 1
    while month <= max_months and remaining > PAYOFF_TOLERANCE:
        interest = round_cents(remaining * monthly_rate)
        month_payment = min(payment, remaining + interest)
        principal = round_cents(month_payment - interest)
        remaining = round_cents(remaining - principal)

        schedule.append(
            AmortizationRow(
                month=month,
                payment=round_cents(month_payment),
                principal=principal,
                interest=interest,
                remaining_balance=max(remaining, ZERO),
            )
        )
        month += 1

    return schedule


def _total_interest(schedule: List[AmortizationRow]) -> Decimal:
    return sum((row.interest for row in schedule), ZERO)


def extra_payment_impact(
    balance: Number,
    apr: Number,
    payment: Number,
    extra: Number,
) -> ExtraPaymentImpact:
    """Compare payoff with and without an extra amount added to every payment"""
    base_schedule = generate_schedule(balance, apr, payment, MAX_SCHEDULE_MONTHS)
    extra_schedule = generate_schedule(
        balance, apr, to_decimal(payment) + to_decimal(extra), MAX_SCHEDULE_MONTHS
    )

    base_interest = _total_interest(base_schedule)
    new_interest = _total_interest(extra_schedule)

    return ExtraPaymentImpact(
        months_to_payoff=len(extra_schedule),
        interest_saved=round_cents(base_interest - new_interest),
        new_total_interest=round_cents(new_interest),
    )


def total_interest_remaining(balance: Number, apr: Number, payment: Number) -> Decimal:
    """Interest still to be paid over the life of the loan (schedule-based, no I/O)"""
    return round_cents(_total_interest(generate_schedule(balance, apr, payment, MAX_SCHEDULE_MONTHS)))


def bnpl_installment_amount(
    original_balance: Number,
    total_installments: Optional[int],
    flat_payment: Number,
) -> Decimal:
    """Equal installment of the original purchase, or the stored flat payment when unset"""
    if total_installments and total_installments > 0:
        return round_cents(to_decimal(original_balance) / Decimal(total_installments))
    return round_cents(flat_payment)


def payday_fee(original_balance: Number, fee_per_hundred: Optional[Number]) -> Decimal:
    """Flat payday fee: original_balance * (fee_per_hundred / 100)"""
    if fee_per_hundred is None:
        return round_cents(ZERO)
    return round_cents(to_decimal(original_balance) * to_decimal(fee_per_hundred) / Decimal(100))


def payday_effective_apr(fee_per_hundred: Optional[Number], term_days: Optional[int]) -> Optional[Decimal]:
    """
    Annualized cost of a payday fee, in percent.

    $15 per $100 over 14 days -> 15 * 365 / 14 = 391.07%. Informational only;
    the loan's stored interest rate is left untouched.
    """
    if fee_per_hundred is None or not term_days:
        return None
    return round_cents(to_decimal(fee_per_hundred) * Decimal(365) / Decimal(term_days))
