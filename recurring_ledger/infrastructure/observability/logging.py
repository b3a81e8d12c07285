"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from recurring_ledger.domain.models import JobSummary


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "recurring-ledger", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "recurring-ledger") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_job_summary(summary: JobSummary, duration_ms: float) -> None:
    """Log the end-of-run counters for operational tooling"""
    logging.getLogger("recurring_ledger.jobs").info(
        "Job complete",
        extra={
            "job": summary.job,
            "step": "job_complete",
            "run_date": summary.run_date.isoformat(),
            "selected": summary.selected,
            "processed": summary.processed,
            "skipped": summary.skipped,
            "failed": summary.failed,
            **summary.counters,
            "duration_ms": duration_ms,
        },
    )
