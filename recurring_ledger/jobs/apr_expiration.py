"""Daily APR expiration and transaction reassignment"""

import logging
from datetime import date
from typing import Dict, List

from sqlalchemy.orm import Session

from recurring_ledger.domain.models import DueEntity, EntityOutcome
from recurring_ledger.infrastructure.database.repositories import AprRateRepository, TransactionRepository
from recurring_ledger.jobs.base import BatchJob

logger = logging.getLogger("recurring_ledger.jobs.apr_expiration")


class AprExpirationJob(BatchJob):
    """
    Deactivate expired APR rates.

    Transactions still linked to an expired rate move to the account's active
    STANDARD rate, or lose their rate reference when there is none.
    """

    name = "apr-expiration"
    schedule = "0 0 * * *"
    description = "Expire APR rates and reassign their transactions"

    def select(self, db: Session, today: date) -> List[DueEntity]:
        return [
            DueEntity(id=rate.id, label=f"rate={rate.id} ({rate.rate_type} {rate.apr}%)")
            for rate in AprRateRepository(db).get_expired(today)
        ]

    def process(self, db: Session, entity: DueEntity, today: date, counters: Dict[str, int]) -> EntityOutcome:
        rates = AprRateRepository(db)
        transactions = TransactionRepository(db)

        rate = rates.get(entity.id)
        rate.is_active = False
        db.flush()
        counters["deactivated"] = 1

        linked = transactions.count_by_apr_rate(rate.id)
        if linked == 0:
            logger.info(
                f"OK {entity.label} deactivated, no linked transactions",
                extra={"job": self.name, "step": "entity_posted", "entity_id": rate.id},
            )
            return EntityOutcome.PROCESSED

        # The expired rate was flushed inactive above, so it cannot be its own fallback
        standard = rates.standard_for_account(rate.account_id)
        if standard is not None:
            moved = transactions.reassign_apr_rate(rate.id, standard.id)
            counters["reassigned"] = moved
            logger.info(
                f"OK {entity.label} deactivated, {moved} transaction(s) reassigned to standard rate {standard.id}",
                extra={"job": self.name, "step": "entity_posted", "entity_id": rate.id},
            )
        else:
            cleared = transactions.reassign_apr_rate(rate.id, None)
            counters["cleared"] = cleared
            logger.info(
                f"OK {entity.label} deactivated, no standard rate, {cleared} transaction(s) cleared",
                extra={"job": self.name, "step": "entity_posted", "entity_id": rate.id},
            )
        return EntityOutcome.PROCESSED
