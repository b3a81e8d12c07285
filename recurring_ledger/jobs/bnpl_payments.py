"""Daily BNPL installment auto-payment"""

import logging
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from recurring_ledger.domain.amortization import bnpl_installment_amount, split_payment
from recurring_ledger.domain.models import (
    DueEntity,
    EntityOutcome,
    InterestLogType,
    LedgerEntry,
    TransactionType,
)
from recurring_ledger.domain.money import ZERO, to_decimal
from recurring_ledger.domain.recurrence import advance_by_frequency
from recurring_ledger.infrastructure.database.repositories import (
    AccountRepository,
    InterestLogRepository,
    LoanRepository,
    TransactionRepository,
)
from recurring_ledger.jobs.base import BatchJob
from recurring_ledger.utils.date_utils import days_in_month

logger = logging.getLogger("recurring_ledger.jobs.bnpl_payments")

LOAN_PAYMENT_CATEGORY = "Loan Payment"


def _anchor_day(start_date: Optional[date], due_date: date) -> int:
    """Day-of-month the plan was set up on, unless the stored due date does not follow it"""
    if start_date is None:
        return due_date.day
    anchor = start_date.day
    if due_date.day != min(anchor, days_in_month(due_date.year, due_date.month)):
        return due_date.day
    return anchor


class BnplPaymentsJob(BatchJob):
    """
    Pay the next installment of every due BNPL plan from its funding account.

    0% plans post a pure transfer pair. Interest-bearing plans split the
    installment into principal and interest; the interest is charged on the
    loan account's current balance, not on a stored amortization state.
    The loan account is deactivated once the last installment is paid.
    """

    name = "bnpl-payments"
    schedule = "0 7 * * *"
    description = "Auto-pay due BNPL installments"

    def select(self, db: Session, today: date) -> List[DueEntity]:
        return [
            DueEntity(id=loan.id, label=f'loan={loan.id} ("{loan.merchant_name or "BNPL"}")')
            for loan in LoanRepository(db).get_due_bnpl(today)
        ]

    def process(self, db: Session, entity: DueEntity, today: date, counters: Dict[str, int]) -> EntityOutcome:
        loan = LoanRepository(db).get(entity.id)
        accounts = AccountRepository(db)
        transactions = TransactionRepository(db)
        loan_account = accounts.get(loan.account_id)

        total_installments = loan.total_installments or 0
        if total_installments and loan.completed_installments >= total_installments:
            accounts.deactivate(loan.account_id)
            logger.warning(
                f"{entity.label} already has {loan.completed_installments}/{total_installments} installments, deactivating",
                extra={"job": self.name, "step": "entity_skipped", "entity_id": loan.id},
            )
            counters["completed_loans"] = 1
            return EntityOutcome.SKIPPED

        installment = bnpl_installment_amount(loan.original_balance, loan.total_installments, loan.monthly_payment)
        annual_rate = to_decimal(loan.interest_rate)
        payment_date = loan.next_payment_date
        description = f"BNPL Payment - {loan.merchant_name}" if loan.merchant_name else "BNPL Payment"

        outgoing = LedgerEntry(
            account_id=loan.payment_account_id,
            user_id=loan_account.user_id,
            date=payment_date,
            description=description,
            amount=-installment,
            type=TransactionType.TRANSFER,
        )

        if annual_rate == ZERO:
            principal_amount = installment
            interest_amount = ZERO
        else:
            split = split_payment(loan_account.balance, annual_rate, installment)
            principal_amount = split.principal
            interest_amount = split.interest

        transactions.create_linked_pair(
            outgoing,
            LedgerEntry(
                account_id=loan.account_id,
                user_id=loan_account.user_id,
                date=payment_date,
                description=description,
                amount=principal_amount,
                type=TransactionType.LOAN_PRINCIPAL,
                category=LOAN_PAYMENT_CATEGORY,
            ),
        )

        if interest_amount != ZERO:
            transactions.create(
                LedgerEntry(
                    account_id=loan.account_id,
                    user_id=loan_account.user_id,
                    date=payment_date,
                    description=description,
                    amount=-interest_amount,
                    type=TransactionType.LOAN_INTEREST,
                    category=LOAN_PAYMENT_CATEGORY,
                )
            )
            InterestLogRepository(db).create(
                loan_account,
                payment_date,
                interest_amount,
                InterestLogType.CHARGED,
                notes=f"BNPL installment interest at {annual_rate}% APR",
            )

        accounts.adjust_balance(loan.payment_account_id, -installment)
        accounts.adjust_balance(loan.account_id, principal_amount)

        completed = loan.completed_installments + 1
        loan.completed_installments = completed
        loan.next_payment_date = (
            advance_by_frequency(payment_date, loan.installment_frequency, _anchor_day(loan.start_date, payment_date))
            if loan.installment_frequency
            else None
        )

        if total_installments and completed >= total_installments:
            accounts.deactivate(loan.account_id)
            counters["completed_loans"] = 1
            logger.info(
                f"COMPLETED {entity.label}: all {total_installments} installments paid",
                extra={"job": self.name, "step": "loan_completed", "entity_id": loan.id},
            )

        logger.info(
            f"OK {entity.label} amount=${installment} principal=${principal_amount} interest=${interest_amount} "
            f"installment={completed}/{total_installments or '-'}",
            extra={"job": self.name, "step": "entity_posted", "entity_id": loan.id},
        )
        return EntityOutcome.PROCESSED
