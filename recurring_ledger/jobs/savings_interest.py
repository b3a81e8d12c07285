"""Monthly savings interest payout"""

import logging
from datetime import date
from typing import Dict, List

from sqlalchemy.orm import Session

from recurring_ledger.domain.interest import monthly_savings_interest
from recurring_ledger.domain.models import (
    DueEntity,
    EntityOutcome,
    InterestLogType,
    LedgerEntry,
    TransactionType,
)
from recurring_ledger.domain.money import ZERO, format_usd, to_decimal
from recurring_ledger.infrastructure.database.repositories import (
    AccountRepository,
    AprRateRepository,
    InterestLogRepository,
    TransactionRepository,
)
from recurring_ledger.jobs.base import BatchJob
from recurring_ledger.utils.date_utils import month_start

logger = logging.getLogger("recurring_ledger.jobs.savings_interest")


class SavingsInterestJob(BatchJob):
    """Credit one month of interest to every savings account with a positive balance"""

    name = "savings-interest"
    schedule = "0 0 1 * *"
    description = "Pay monthly savings interest"

    def select(self, db: Session, today: date) -> List[DueEntity]:
        return [
            DueEntity(id=account.id, label=f'account={account.id} ("{account.name}")')
            for account in AccountRepository(db).eligible_savings()
        ]

    def process(self, db: Session, entity: DueEntity, today: date, counters: Dict[str, int]) -> EntityOutcome:
        accounts = AccountRepository(db)
        account = accounts.get(entity.id)

        interest_logs = InterestLogRepository(db)
        if interest_logs.has_logged(account.id, InterestLogType.EARNED, month_start(today), today):
            logger.info(
                f"{entity.label}: interest already credited this month, skipping",
                extra={"job": self.name, "step": "entity_skipped", "entity_id": account.id},
            )
            return EntityOutcome.SKIPPED

        rates = AprRateRepository(db).active_for_account(account.id)
        if not rates:
            logger.warning(
                f"{entity.label}: no active rate, skipping",
                extra={"job": self.name, "step": "apr_missing", "entity_id": account.id},
            )
            return EntityOutcome.SKIPPED

        apy = to_decimal(rates[0].apr)
        balance = to_decimal(account.balance)
        interest = monthly_savings_interest(balance, apy)

        if interest == ZERO:
            logger.info(
                f"{entity.label}: interest rounds to $0.00 on balance {format_usd(balance)}, skipping",
                extra={"job": self.name, "step": "entity_skipped", "entity_id": account.id},
            )
            return EntityOutcome.SKIPPED

        interest_logs.create(
            account,
            today,
            interest,
            InterestLogType.EARNED,
            notes=f"Monthly savings interest at {apy}% APY on balance {format_usd(balance)}",
        )
        TransactionRepository(db).create(
            LedgerEntry(
                account_id=account.id,
                user_id=account.user_id,
                date=today,
                description="Monthly savings interest",
                amount=interest,
                type=TransactionType.INTEREST_EARNED,
            )
        )
        accounts.adjust_balance(account.id, interest)

        logger.info(
            f"OK {entity.label} interest={format_usd(interest)} apy={apy}%",
            extra={"job": self.name, "step": "entity_posted", "entity_id": account.id},
        )
        return EntityOutcome.PROCESSED
