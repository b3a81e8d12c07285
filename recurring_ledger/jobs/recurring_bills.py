"""Daily recurring bill generation"""

import logging
from datetime import date
from typing import Dict, List

from sqlalchemy.orm import Session

from recurring_ledger.config import settings
from recurring_ledger.domain.models import (
    DueEntity,
    EntityOutcome,
    LedgerEntry,
    TransactionSource,
    TransactionType,
)
from recurring_ledger.domain.money import round_cents
from recurring_ledger.domain.recurrence import advance_until_future
from recurring_ledger.infrastructure.database.repositories import (
    AccountRepository,
    RecurringBillRepository,
    TransactionRepository,
)
from recurring_ledger.jobs.base import BatchJob

logger = logging.getLogger("recurring_ledger.jobs.recurring_bills")


class RecurringBillsJob(BatchJob):
    """
    Post one EXPENSE per due bill and move its next due date into the future.

    Fixed-amount bills debit the account and get a BillPayment row.
    Variable-amount bills post the estimate tagged as pending confirmation and
    leave the balance alone until the user confirms the real amount.
    A bill several periods behind still gets exactly one transaction per run.
    """

    name = "recurring-bills"
    schedule = "0 6 * * *"
    description = "Generate transactions for recurring bills that are due"

    def select(self, db: Session, today: date) -> List[DueEntity]:
        return [
            DueEntity(id=bill.id, label=f'bill={bill.id} ("{bill.name}")')
            for bill in RecurringBillRepository(db).get_due(today)
        ]

    def process(self, db: Session, entity: DueEntity, today: date, counters: Dict[str, int]) -> EntityOutcome:
        bills = RecurringBillRepository(db)
        bill = bills.get(entity.id)

        amount = round_cents(abs(bill.amount))
        due_date = bill.next_due_date
        next_due_date = advance_until_future(due_date, bill.frequency, bill.day_of_month, today)

        entry = LedgerEntry(
            account_id=bill.account_id,
            user_id=bill.user_id,
            date=due_date,
            description=bill.name,
            amount=-amount,  # expenses are stored negative
            type=TransactionType.EXPENSE,
            source=TransactionSource.RECURRING,
            category=bill.category,
        )

        if bill.is_variable_amount:
            entry.notes = settings.pending_confirmation_marker
            TransactionRepository(db).create(entry)
            counters["variable_pending"] = 1
        else:
            created = TransactionRepository(db).create(entry)
            AccountRepository(db).adjust_balance(bill.account_id, -amount)
            bills.record_payment(bill, due_date, amount, created.id)

        bill.next_due_date = next_due_date

        logger.info(
            f"OK {entity.label} due={due_date.isoformat()} amount=${amount}"
            f"{' (pending confirmation)' if bill.is_variable_amount else ''} next_due={next_due_date.isoformat()}",
            extra={"job": self.name, "step": "entity_posted", "entity_id": bill.id},
        )
        return EntityOutcome.PROCESSED
