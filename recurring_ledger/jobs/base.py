"""Shared select / compute / write state machine for the batch jobs"""

import logging
import time
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from recurring_ledger.config import settings
from recurring_ledger.domain.models import DueEntity, EntityOutcome, JobSummary
from recurring_ledger.infrastructure.database.repositories import LedgerStore
from recurring_ledger.infrastructure.observability.logging import log_job_summary
from recurring_ledger.infrastructure.observability.metrics import job_runs_counter, record_job_summary
from recurring_ledger.utils.date_utils import today_in

logger = logging.getLogger("recurring_ledger.jobs")


class BatchJob:
    """
    Base class for one scheduled ledger job.

    Flow per run:
    1. Select entities due today (read-only session)
    2. Nothing due -> log and return, no unit of work is opened
    3. For each entity, compute and write inside one atomic unit
    4. A failing entity is rolled back, logged, counted, and skipped
    5. Log and record the summary, then return it

    Subclasses provide `select` and `process`. `process` receives a fresh
    counters dict per entity; it is merged into the summary only after that
    entity's unit of work commits.
    """

    name: str = ""
    schedule: str = ""  # cron expression for the external scheduler
    description: str = ""

    def __init__(self, store: LedgerStore, timezone: Optional[str] = None):
        self.store = store
        self.timezone = timezone or settings.timezone

    def select(self, db: Session, today: date) -> List[DueEntity]:
        raise NotImplementedError

    def process(self, db: Session, entity: DueEntity, today: date, counters: Dict[str, int]) -> EntityOutcome:
        raise NotImplementedError

    def run(self, today: Optional[date] = None) -> JobSummary:
        run_date = today or today_in(self.timezone)
        summary = JobSummary(job=self.name, run_date=run_date)
        start_time = time.time()

        job_runs_counter.labels(job=self.name).inc()
        logger.info("Job started", extra={"job": self.name, "step": "job_start", "run_date": run_date.isoformat()})

        due = self.store.find_due(lambda db: self.select(db, run_date))
        summary.selected = len(due)

        if not due:
            logger.info("Nothing due, no writes", extra={"job": self.name, "step": "select"})
            self._finish(summary, start_time)
            return summary

        logger.info(f"Found {len(due)} entity(ies) due", extra={"job": self.name, "step": "select"})

        for entity in due:
            counters: Dict[str, int] = {}
            try:
                outcome = self.store.run_atomic(
                    entity.id,
                    lambda db, entity=entity: self.process(db, entity, run_date, counters),
                )
            except Exception as e:
                summary.failed += 1
                logger.error(
                    f"Failed {entity.label}: {e}",
                    extra={"job": self.name, "step": "entity_failed", "entity_id": entity.id},
                    exc_info=True,
                )
                continue

            if outcome == EntityOutcome.PROCESSED:
                summary.processed += 1
            else:
                summary.skipped += 1
            for counter, value in counters.items():
                summary.bump(counter, value)

        self._finish(summary, start_time)
        return summary

    def _finish(self, summary: JobSummary, start_time: float) -> None:
        duration = time.time() - start_time
        record_job_summary(summary, duration)
        log_job_summary(summary, duration * 1000)
