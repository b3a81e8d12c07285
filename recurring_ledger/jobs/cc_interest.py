"""Daily credit card interest accrual with month-end posting"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.orm import Session

from recurring_ledger.domain.interest import compute_daily_accrual
from recurring_ledger.domain.models import (
    DueEntity,
    EntityOutcome,
    InterestLogType,
    LedgerEntry,
    TransactionType,
)
from recurring_ledger.domain.money import ZERO, format_usd, round_cents
from recurring_ledger.infrastructure.database.repositories import (
    AccountRepository,
    AprRateRepository,
    CreditCardRepository,
    InterestLogRepository,
    TransactionRepository,
)
from recurring_ledger.jobs.base import BatchJob
from recurring_ledger.utils.date_utils import is_last_day_of_month, month_start

logger = logging.getLogger("recurring_ledger.jobs.cc_interest")

ACCRUAL_PRECISION = Decimal("0.000001")
INTEREST_CATEGORY = "Interest"


class CCInterestJob(BatchJob):
    """
    Accrue one day of purchase interest on every active credit card.

    daily interest = |amount| * (APR / 100 / 365) per qualifying purchase,
    honouring the grace period. A non-zero daily total is written to the
    interest log. On the last day of the month the month's CHARGED logs are
    summed, posted as one INTEREST_CHARGED transaction, and debited from the
    card balance.
    """

    name = "cc-interest"
    schedule = "0 0 * * *"
    description = "Accrue daily credit card interest"

    def select(self, db: Session, today: date) -> List[DueEntity]:
        return [
            DueEntity(id=account.id, label=f'account={account.id} ("{account.name}")')
            for account in AccountRepository(db).active_credit_cards()
        ]

    def process(self, db: Session, entity: DueEntity, today: date, counters: Dict[str, int]) -> EntityOutcome:
        account = AccountRepository(db).get(entity.id)
        details = CreditCardRepository(db).get_for_account(account.id)
        purchases = TransactionRepository(db).expenses_for_account(account.id)
        month_end = is_last_day_of_month(today)

        if not purchases and not month_end:
            logger.info(
                f"{entity.label}: no expense transactions, skipping",
                extra={"job": self.name, "step": "entity_skipped", "entity_id": account.id},
            )
            return EntityOutcome.SKIPPED

        rates = AprRateRepository(db).active_for_account(account.id)
        accrual = compute_daily_accrual(purchases, rates, details, today)

        if accrual.skipped_no_rate:
            logger.warning(
                f"{entity.label}: {accrual.skipped_no_rate} transaction(s) have no applicable APR rate",
                extra={"job": self.name, "step": "apr_missing", "entity_id": account.id},
            )

        interest_logs = InterestLogRepository(db)
        daily_total = accrual.total.quantize(ACCRUAL_PRECISION)

        if daily_total != ZERO:
            interest_logs.create(
                account,
                today,
                daily_total,
                InterestLogType.CHARGED,
                notes=(
                    f"Daily accrual: {format_usd(daily_total)} on {accrual.accruing_count} "
                    f"transaction(s). Date: {today.isoformat()}"
                ),
            )
        elif not month_end:
            logger.info(
                f"{entity.label}: {len(purchases)} expense(s) evaluated, none subject to interest today",
                extra={"job": self.name, "step": "entity_skipped", "entity_id": account.id},
            )
            return EntityOutcome.SKIPPED

        posted = ZERO
        if month_end:
            first_day = month_start(today)
            posted = round_cents(interest_logs.sum_charged(account.id, first_day, today))
            if posted != ZERO:
                TransactionRepository(db).create(
                    LedgerEntry(
                        account_id=account.id,
                        user_id=account.user_id,
                        date=today,
                        description=f"Interest Charge - {today.strftime('%B %Y')}",
                        amount=-posted,
                        type=TransactionType.INTEREST_CHARGED,
                        category=INTEREST_CATEGORY,
                        notes=(
                            f"Monthly interest posted on {today.isoformat()}. Daily accruals summed "
                            f"from {first_day.isoformat()} to {today.isoformat()}."
                        ),
                    )
                )
                AccountRepository(db).adjust_balance(account.id, -posted)
                counters["interest_posted"] = 1

        if daily_total == ZERO and posted == ZERO:
            return EntityOutcome.SKIPPED

        logger.info(
            f"{entity.label}: daily accrual {format_usd(daily_total)} ({accrual.accruing_count} transaction(s))"
            f"{f', month-end charge {format_usd(posted)}' if posted != ZERO else ''}",
            extra={"job": self.name, "step": "entity_posted", "entity_id": account.id},
        )
        return EntityOutcome.PROCESSED
