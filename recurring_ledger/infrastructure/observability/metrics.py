"""Prometheus metrics for batch job throughput and failures"""

from prometheus_client import Counter, Histogram

from recurring_ledger.domain.models import JobSummary

# Job metrics
job_runs_counter = Counter(
    "ledger_job_runs_total",
    "Batch job runs started",
    ["job"],
)

job_entities_counter = Counter(
    "ledger_job_entities_total",
    "Entities handled by batch jobs",
    ["job", "outcome"],  # processed | skipped | failed
)

job_duration_histogram = Histogram(
    "ledger_job_duration_seconds",
    "Wall-clock duration of a batch job run",
    ["job"],
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_job_summary(summary: JobSummary, duration_seconds: float) -> None:
    """Record per-outcome entity counts and the run duration"""
    job_entities_counter.labels(job=summary.job, outcome="processed").inc(summary.processed)
    job_entities_counter.labels(job=summary.job, outcome="skipped").inc(summary.skipped)
    job_entities_counter.labels(job=summary.job, outcome="failed").inc(summary.failed)
    job_duration_histogram.labels(job=summary.job).observe(duration_seconds)
