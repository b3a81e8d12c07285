"""Unit tests for the amortization engine"""

from decimal import Decimal
from recurring_ledger.domain.amortization import (
    MAX_SCHEDULE_MONTHS,
    bnpl_installment_amount,
    extra_payment_impact,
    generate_schedule,
    payday_effective_apr,
    payday_fee,
    split_payment,
    total_interest_remaining,
)


def test_split_payment_standard():
    """balance 10000 at 6% -> 50.00 interest, 150.00 principal"""
    split = split_payment(Decimal("-10000"), Decimal("6"), Decimal("200"))
    assert split.interest == Decimal("50.00")
    assert split.principal == Decimal("150.00")


def test_split_payment_below_interest_due():
    """Payment smaller than the interest: all interest, no principal"""
    split = split_payment(Decimal("10000"), Decimal("24"), Decimal("100"))
    assert split.interest == Decimal("100")
    assert split.principal == Decimal("0")


def test_split_payment_zero_rate():
    split = split_payment(Decimal("400"), Decimal("0"), Decimal("100"))
    assert split.interest == Decimal("0.00")
    assert split.principal == Decimal("100.00")


def test_generate_schedule_pays_off_exactly():
    schedule = generate_schedule(Decimal("1000"), Decimal("12"), Decimal("100"))

    assert schedule[0].interest == Decimal("10.00")
    assert schedule[0].principal == Decimal("90.00")
    assert schedule[0].remaining_balance == Decimal("910.00")

    assert schedule[-1].remaining_balance == Decimal("0.00")
    # Final payment is capped, never an overpayment
    assert schedule[-1].payment <= Decimal("100")
    assert sum(row.principal for row in schedule) == Decimal("1000.00")


def test_generate_schedule_non_amortizing_loan_is_capped():
    """Payment equal to the interest never reduces the balance"""
    schedule = generate_schedule(Decimal("10000"), Decimal("12"), Decimal("100"))
    assert len(schedule) == MAX_SCHEDULE_MONTHS
    assert schedule[-1].remaining_balance == Decimal("10000.00")


def test_generate_schedule_zero_balance():
    assert generate_schedule(Decimal("0"), Decimal("5"), Decimal("100")) == []


def test_extra_payment_impact_shortens_payoff():
    base = generate_schedule(Decimal("5000"), Decimal("10"), Decimal("200"))
    impact = extra_payment_impact(Decimal("5000"), Decimal("10"), Decimal("200"), Decimal("100"))

    assert impact.months_to_payoff < len(base)
    assert impact.interest_saved > Decimal("0")
    assert impact.new_total_interest + impact.interest_saved == total_interest_remaining(
        Decimal("5000"), Decimal("10"), Decimal("200")
    )


def test_bnpl_installment_amount():
    assert bnpl_installment_amount(Decimal("400"), 4, Decimal("0")) == Decimal("100.00")
    assert bnpl_installment_amount(Decimal("100"), 3, Decimal("0")) == Decimal("33.33")
    assert bnpl_installment_amount(Decimal("100"), None, Decimal("25")) == Decimal("25.00")


def test_payday_fee_and_effective_apr():
    assert payday_fee(Decimal("500"), Decimal("15")) == Decimal("75.00")
    assert payday_fee(Decimal("500"), None) == Decimal("0.00")
    assert payday_effective_apr(Decimal("15"), 14) == Decimal("391.07")
    assert payday_effective_apr(None, 14) is None
    assert payday_effective_apr(Decimal("15"), None) is None
