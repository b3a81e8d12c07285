"""Name -> job class lookup used by the CLI and the API"""

from typing import Dict, List, Optional, Type

from recurring_ledger.domain.exceptions import UnknownJobError
from recurring_ledger.infrastructure.database.repositories import LedgerStore
from recurring_ledger.jobs.apr_expiration import AprExpirationJob
from recurring_ledger.jobs.base import BatchJob
from recurring_ledger.jobs.bnpl_payments import BnplPaymentsJob
from recurring_ledger.jobs.cc_interest import CCInterestJob
from recurring_ledger.jobs.payday_payments import PaydayPaymentsJob
from recurring_ledger.jobs.recurring_bills import RecurringBillsJob
from recurring_ledger.jobs.savings_interest import SavingsInterestJob
from recurring_ledger.jobs.statement_close import StatementCloseJob

# Order used by run-all: expire rates and close statements before interest accrues
JOB_CLASSES: List[Type[BatchJob]] = [
    RecurringBillsJob,
    BnplPaymentsJob,
    PaydayPaymentsJob,
    AprExpirationJob,
    StatementCloseJob,
    CCInterestJob,
    SavingsInterestJob,
]

JOBS: Dict[str, Type[BatchJob]] = {job.name: job for job in JOB_CLASSES}


def get_job(name: str, store: LedgerStore, timezone: Optional[str] = None) -> BatchJob:
    """Instantiate the job registered under name"""
    job_class = JOBS.get(name)
    if job_class is None:
        raise UnknownJobError(f"Unknown job '{name}'. Available: {', '.join(JOBS)}")
    return job_class(store, timezone=timezone)
