"""Integration tests for the BNPL and payday auto-payment jobs"""

from datetime import date
from decimal import Decimal
from recurring_ledger.infrastructure.database.models import Account, InterestLog, Loan
from recurring_ledger.jobs.bnpl_payments import BnplPaymentsJob
from recurring_ledger.jobs.payday_payments import PaydayPaymentsJob


def _by_type(transactions, tx_type):
    return [t for t in transactions if t.type == tx_type]


def test_bnpl_zero_rate_posts_linked_transfer_pair(store, ledger):
    checking = ledger.account(balance="1000.00")
    loan_account, loan = ledger.bnpl_loan(checking)

    summary = BnplPaymentsJob(store).run(today=date(2024, 3, 1))

    assert summary.processed == 1
    assert ledger.reload(Account, checking.id).balance == Decimal("900.00")
    assert ledger.reload(Account, loan_account.id).balance == Decimal("-300.00")

    outgoing = ledger.transactions(checking.id)
    incoming = ledger.transactions(loan_account.id)
    assert len(outgoing) == 1
    assert len(incoming) == 1
    assert outgoing[0].type == "TRANSFER"
    assert incoming[0].type == "LOAN_PRINCIPAL"

    # Zero-sum pair that references each other
    assert outgoing[0].amount + incoming[0].amount == Decimal("0")
    assert outgoing[0].linked_transaction_id == incoming[0].id
    assert incoming[0].linked_transaction_id == outgoing[0].id

    loan = ledger.reload(Loan, loan.id)
    assert loan.completed_installments == 1
    assert loan.next_payment_date == date(2024, 3, 15)


def test_bnpl_interest_bearing_splits_principal_and_interest(db, store, ledger):
    checking = ledger.account(balance="1000.00")
    loan_account, loan = ledger.bnpl_loan(
        checking, original_balance="1200.00", total_installments=12, interest_rate="12",
        installment_frequency="MONTHLY",
    )

    BnplPaymentsJob(store).run(today=date(2024, 3, 1))

    # 1200 * 12% / 12 = 12.00 interest, 88.00 principal
    assert ledger.reload(Account, checking.id).balance == Decimal("900.00")
    assert ledger.reload(Account, loan_account.id).balance == Decimal("-1112.00")

    incoming = ledger.transactions(loan_account.id)
    assert _by_type(incoming, "LOAN_PRINCIPAL")[0].amount == Decimal("88.00")
    assert _by_type(incoming, "LOAN_INTEREST")[0].amount == Decimal("-12.00")

    log = db.query(InterestLog).filter(InterestLog.account_id == loan_account.id).one()
    assert log.type == "CHARGED"
    assert log.amount == Decimal("12")
    assert ledger.reload(Loan, loan.id).next_payment_date == date(2024, 4, 1)


def test_bnpl_interest_rounding_to_zero_books_principal_only(db, store, ledger):
    checking = ledger.account(balance="1000.00")
    loan_account, _ = ledger.bnpl_loan(checking, interest_rate="0.01")

    BnplPaymentsJob(store).run(today=date(2024, 3, 1))

    # 400 * 0.01% / 12 rounds to 0.00: the whole installment is principal
    incoming = ledger.transactions(loan_account.id)
    assert _by_type(incoming, "LOAN_INTEREST") == []
    assert _by_type(incoming, "LOAN_PRINCIPAL")[0].amount == Decimal("100.00")
    assert db.query(InterestLog).count() == 0
    assert ledger.reload(Account, loan_account.id).balance == Decimal("-300.00")


def test_bnpl_monthly_plan_on_the_31st_returns_to_month_end(store, ledger):
    """Jan 31 -> Feb 29 -> Mar 31, not Mar 29"""
    checking = ledger.account(balance="1000.00")
    _, loan = ledger.bnpl_loan(
        checking, next_payment_date=date(2024, 1, 31), installment_frequency="MONTHLY",
    )
    job = BnplPaymentsJob(store)

    job.run(today=date(2024, 1, 31))
    assert ledger.reload(Loan, loan.id).next_payment_date == date(2024, 2, 29)

    job.run(today=date(2024, 2, 29))
    assert ledger.reload(Loan, loan.id).next_payment_date == date(2024, 3, 31)

    job.run(today=date(2024, 3, 31))
    assert ledger.reload(Loan, loan.id).next_payment_date == date(2024, 4, 30)
    assert ledger.reload(Account, checking.id).balance == Decimal("700.00")


def test_bnpl_due_day_differing_from_start_day_keeps_its_own_day(store, ledger):
    checking = ledger.account(balance="1000.00")
    _, loan = ledger.bnpl_loan(
        checking, next_payment_date=date(2024, 3, 10), start_date=date(2024, 2, 25),
        installment_frequency="MONTHLY",
    )

    BnplPaymentsJob(store).run(today=date(2024, 3, 10))

    assert ledger.reload(Loan, loan.id).next_payment_date == date(2024, 4, 10)


def test_bnpl_final_installment_deactivates_loan_account(store, ledger):
    checking = ledger.account(balance="500.00")
    loan_account, loan = ledger.bnpl_loan(checking, completed_installments=3, balance="-100.00")

    summary = BnplPaymentsJob(store).run(today=date(2024, 3, 1))

    assert summary.processed == 1
    assert summary.counters["completed_loans"] == 1
    reloaded = ledger.reload(Account, loan_account.id)
    assert reloaded.balance == Decimal("0.00")
    assert reloaded.is_active is False
    assert ledger.reload(Loan, loan.id).completed_installments == 4


def test_bnpl_already_complete_is_deactivated_without_payment(store, ledger):
    checking = ledger.account(balance="500.00")
    loan_account, _ = ledger.bnpl_loan(checking, completed_installments=4, balance="0")

    summary = BnplPaymentsJob(store).run(today=date(2024, 3, 1))

    assert summary.skipped == 1
    assert ledger.transactions(checking.id) == []
    assert ledger.reload(Account, checking.id).balance == Decimal("500.00")
    assert ledger.reload(Account, loan_account.id).is_active is False


def test_bnpl_not_yet_due_is_not_selected(store, ledger):
    checking = ledger.account(balance="500.00")
    ledger.bnpl_loan(checking, next_payment_date=date(2024, 3, 2))

    summary = BnplPaymentsJob(store).run(today=date(2024, 3, 1))

    assert summary.selected == 0


def test_payday_balloon_payment(db, store, ledger):
    """$500 at $15 per $100: 575.00 out, loan cleared, account deactivated"""
    checking = ledger.account(balance="1000.00")
    loan_account, loan = ledger.payday_loan(checking)

    summary = PaydayPaymentsJob(store).run(today=date(2024, 3, 15))

    assert summary.processed == 1
    assert ledger.reload(Account, checking.id).balance == Decimal("425.00")

    reloaded = ledger.reload(Account, loan_account.id)
    assert reloaded.balance == Decimal("0.00")
    assert reloaded.is_active is False

    outgoing = ledger.transactions(checking.id)
    incoming = ledger.transactions(loan_account.id)
    assert outgoing[0].amount == Decimal("-575.00")
    principal = _by_type(incoming, "LOAN_PRINCIPAL")[0]
    assert principal.amount == Decimal("500.00")
    assert principal.linked_transaction_id == outgoing[0].id
    assert outgoing[0].linked_transaction_id == principal.id
    assert _by_type(incoming, "LOAN_INTEREST")[0].amount == Decimal("-75.00")

    log = db.query(InterestLog).filter(InterestLog.account_id == loan_account.id).one()
    assert log.amount == Decimal("75")

    # Stored rate is never back-filled with the effective APR
    assert ledger.reload(Loan, loan.id).interest_rate == Decimal("0")


def test_payday_uses_next_payment_date_when_set(store, ledger):
    checking = ledger.account(balance="1000.00")
    ledger.payday_loan(checking, due_date=date(2024, 3, 1), next_payment_date=date(2024, 3, 20))

    summary = PaydayPaymentsJob(store).run(today=date(2024, 3, 15))

    assert summary.selected == 0


def test_payday_without_fee_repays_principal_only(store, ledger):
    checking = ledger.account(balance="1000.00")
    loan_account, _ = ledger.payday_loan(checking, fee_per_hundred=None)

    PaydayPaymentsJob(store).run(today=date(2024, 3, 15))

    assert ledger.reload(Account, checking.id).balance == Decimal("500.00")
    assert ledger.reload(Account, loan_account.id).balance == Decimal("0.00")


def test_payday_with_nothing_owed_is_deactivated_without_payment(db, store, ledger):
    checking = ledger.account(balance="1000.00")
    loan_account, _ = ledger.payday_loan(checking, balance="0")

    summary = PaydayPaymentsJob(store).run(today=date(2024, 3, 15))

    assert summary.skipped == 1
    assert summary.processed == 0
    assert ledger.reload(Account, checking.id).balance == Decimal("1000.00")

    reloaded = ledger.reload(Account, loan_account.id)
    assert reloaded.balance == Decimal("0.00")
    assert reloaded.is_active is False
    assert ledger.transactions(checking.id) == []
    assert ledger.transactions(loan_account.id) == []
    assert db.query(InterestLog).count() == 0


def test_payday_overpaid_loan_is_never_credited_further(store, ledger):
    checking = ledger.account(balance="1000.00")
    loan_account, _ = ledger.payday_loan(checking, balance="25.00")

    summary = PaydayPaymentsJob(store).run(today=date(2024, 3, 15))

    assert summary.skipped == 1
    assert ledger.reload(Account, checking.id).balance == Decimal("1000.00")
    assert ledger.reload(Account, loan_account.id).balance == Decimal("25.00")
