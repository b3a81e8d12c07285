"""Daily payday loan balloon repayment"""

import logging
from datetime import date
from typing import Dict, List

from sqlalchemy.orm import Session

from recurring_ledger.domain.amortization import payday_effective_apr, payday_fee
from recurring_ledger.domain.models import (
    DueEntity,
    EntityOutcome,
    InterestLogType,
    LedgerEntry,
    TransactionType,
)
from recurring_ledger.domain.money import ZERO, round_cents, to_decimal
from recurring_ledger.infrastructure.database.repositories import (
    AccountRepository,
    InterestLogRepository,
    LoanRepository,
    TransactionRepository,
)
from recurring_ledger.jobs.base import BatchJob
from recurring_ledger.jobs.bnpl_payments import LOAN_PAYMENT_CATEGORY

logger = logging.getLogger("recurring_ledger.jobs.payday_payments")


class PaydayPaymentsJob(BatchJob):
    """
    Repay every due payday loan in one balloon payment: principal + flat fee.

    The fee is original_balance * fee_per_hundred / 100 and is booked as loan
    interest. The loan's stored interest rate stays as it is (0 for payday
    loans); the equivalent APR only appears in the log line.
    """

    name = "payday-payments"
    schedule = "0 7 * * *"
    description = "Auto-pay due payday loans"

    def select(self, db: Session, today: date) -> List[DueEntity]:
        return [
            DueEntity(id=loan.id, label=f'loan={loan.id} ("{loan.lender_name or "Payday"}")')
            for loan in LoanRepository(db).get_due_payday(today)
        ]

    def process(self, db: Session, entity: DueEntity, today: date, counters: Dict[str, int]) -> EntityOutcome:
        loan = LoanRepository(db).get(entity.id)
        accounts = AccountRepository(db)
        transactions = TransactionRepository(db)
        loan_account = accounts.get(loan.account_id)

        # Liabilities are stored negative; zero or positive means nothing is owed
        principal = round_cents(max(-to_decimal(loan_account.balance), ZERO))
        if principal == ZERO:
            accounts.deactivate(loan.account_id)
            counters["already_repaid"] = 1
            logger.warning(
                f"{entity.label} has nothing owed (balance ${loan_account.balance}), deactivating",
                extra={"job": self.name, "step": "entity_skipped", "entity_id": loan.id},
            )
            return EntityOutcome.SKIPPED

        fee = payday_fee(loan.original_balance, loan.fee_per_hundred)
        total_payment = principal + fee

        payment_date = loan.due_date or loan.next_payment_date or today
        description = f"Payday Loan Payment - {loan.lender_name}" if loan.lender_name else "Payday Loan Payment"

        def leg(account_id: str, amount, tx_type: TransactionType, category=None) -> LedgerEntry:
            return LedgerEntry(
                account_id=account_id,
                user_id=loan_account.user_id,
                date=payment_date,
                description=description,
                amount=amount,
                type=tx_type,
                category=category,
            )

        transactions.create_linked_pair(
            leg(loan.payment_account_id, -total_payment, TransactionType.TRANSFER),
            leg(loan.account_id, principal, TransactionType.LOAN_PRINCIPAL, LOAN_PAYMENT_CATEGORY),
        )
        if fee != ZERO:
            transactions.create(leg(loan.account_id, -fee, TransactionType.LOAN_INTEREST, LOAN_PAYMENT_CATEGORY))
            InterestLogRepository(db).create(
                loan_account,
                payment_date,
                fee,
                InterestLogType.CHARGED,
                notes=f"Payday loan fee at ${loan.fee_per_hundred} per $100",
            )

        accounts.adjust_balance(loan.payment_account_id, -total_payment)
        accounts.adjust_balance(loan.account_id, principal)

        # Payday loans are single payment
        accounts.deactivate(loan.account_id)

        apr = payday_effective_apr(loan.fee_per_hundred, loan.term_days)
        logger.info(
            f"OK {entity.label} principal=${principal} fee=${fee} total=${total_payment}"
            f"{f' effective_apr={apr}%' if apr is not None else ''}",
            extra={"job": self.name, "step": "entity_posted", "entity_id": loan.id},
        )
        return EntityOutcome.PROCESSED
