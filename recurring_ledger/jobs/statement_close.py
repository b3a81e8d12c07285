"""Daily credit card statement close"""

import logging
from datetime import date
from typing import Dict, List

from sqlalchemy.orm import Session

from recurring_ledger.domain.interest import is_paid_in_full, minimum_payment_due, previous_statement_date
from recurring_ledger.domain.models import DueEntity, EntityOutcome
from recurring_ledger.domain.money import round_cents, to_decimal
from recurring_ledger.infrastructure.database.repositories import (
    AccountRepository,
    CreditCardRepository,
    TransactionRepository,
)
from recurring_ledger.jobs.base import BatchJob

logger = logging.getLogger("recurring_ledger.jobs.statement_close")


class StatementCloseJob(BatchJob):
    """
    Close the statement of every card whose cycle ends today.

    Paid in full means payments since the previous close covered the previous
    statement balance. That flag drives tomorrow's grace-period decision in
    the interest job.
    """

    name = "statement-close"
    schedule = "0 0 * * *"
    description = "Close credit card statements"

    def select(self, db: Session, today: date) -> List[DueEntity]:
        return [
            DueEntity(id=details.account_id, label=f"card account={details.account_id}")
            for details in CreditCardRepository(db).closing_on(today.day)
        ]

    def process(self, db: Session, entity: DueEntity, today: date, counters: Dict[str, int]) -> EntityOutcome:
        account = AccountRepository(db).get(entity.id)
        details = CreditCardRepository(db).get_for_account(account.id)

        since = previous_statement_date(details.statement_close_day, today)
        payments = TransactionRepository(db).sum_payments_since(account.id, since)
        previous_balance = to_decimal(details.last_statement_balance)
        paid_in_full = is_paid_in_full(payments, previous_balance)

        new_balance = round_cents(account.balance)
        details.last_statement_balance = new_balance
        details.last_statement_paid_in_full = paid_in_full
        if not paid_in_full:
            counters["not_paid_in_full"] = 1

        minimum = minimum_payment_due(new_balance, details.minimum_payment_pct, details.minimum_payment_floor)
        logger.info(
            f"OK {entity.label} statement_balance=${new_balance} paid_in_full={paid_in_full} "
            f"payments=${payments} since={since.isoformat()} minimum_due=${minimum}",
            extra={"job": self.name, "step": "entity_posted", "entity_id": account.id},
        )
        return EntityOutcome.PROCESSED
