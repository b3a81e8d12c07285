"""Command-line entry point for the external scheduler (cron, k8s CronJob, ...)"""

import argparse
import logging
import sys
from datetime import date, datetime
from typing import List, Optional

from recurring_ledger.config import settings
from recurring_ledger.domain.exceptions import UnknownJobError
from recurring_ledger.infrastructure.database.repositories import LedgerStore
from recurring_ledger.infrastructure.observability.logging import setup_logging
from recurring_ledger.jobs.registry import JOB_CLASSES, get_job

logger = logging.getLogger("recurring_ledger.cli")


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recurring-ledger",
        description="Run the scheduled ledger jobs: recurring bills, loan payments, interest and statements.",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help=f"Timezone used to compute today.  eg America/New_York.  Defaults to {settings.timezone}.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one job")
    run_parser.add_argument("job", type=str, help="Job name, see `list`")
    run_parser.add_argument(
        "--date",
        type=_parse_date,
        default=None,
        help="Business date to run as (yyyy-MM-dd).  Default is today.",
    )

    run_all_parser = subparsers.add_parser("run-all", help="Run every job in sequence")
    run_all_parser.add_argument(
        "--date",
        type=_parse_date,
        default=None,
        help="Business date to run as (yyyy-MM-dd).  Default is today.",
    )

    subparsers.add_parser("list", help="List jobs and their cron schedules")
    subparsers.add_parser("init-db", help="Create the ledger tables")
    return parser


def _default_store() -> LedgerStore:
    from recurring_ledger.infrastructure.database.session import SessionLocal

    return LedgerStore(SessionLocal)


def _init_db() -> None:
    from recurring_ledger.infrastructure.database.models import Base
    from recurring_ledger.infrastructure.database.session import engine

    Base.metadata.create_all(bind=engine)
    logger.info("Tables created", extra={"step": "init_db"})


def main(argv: Optional[List[str]] = None, store: Optional[LedgerStore] = None) -> int:
    """
    Exit codes:
        0 - every requested run completed (isolated entity failures included)
        1 - a run could not start or the job name is unknown
    """
    args = build_parser().parse_args(argv)
    setup_logging(settings.log_level, settings.service_name)

    if args.command == "list":
        for job_class in JOB_CLASSES:
            print(f"{job_class.name:<18} {job_class.schedule:<12} {job_class.description}")
        return 0

    if args.command == "init-db":
        _init_db()
        return 0

    store = store or _default_store()
    names = [args.job] if args.command == "run" else [job_class.name for job_class in JOB_CLASSES]

    exit_code = 0
    for name in names:
        try:
            job = get_job(name, store, timezone=args.timezone)
            job.run(today=args.date)
        except UnknownJobError as e:
            logger.error(str(e), extra={"job": name, "step": "job_lookup"})
            return 1
        except Exception as e:
            logger.error(f"Job {name} aborted: {e}", extra={"job": name, "step": "job_aborted"}, exc_info=True)
            exit_code = 1
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
