"""GET /v1/jobs and POST /v1/jobs/{name}/run - on-demand batch runs"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from recurring_ledger.api.dependencies import get_request_id, get_store
from recurring_ledger.api.v1.schemas import JobInfo, JobListResponse, JobSummaryResponse, RunJobRequest
from recurring_ledger.domain.exceptions import UnknownJobError
from recurring_ledger.infrastructure.database.repositories import LedgerStore
from recurring_ledger.jobs.registry import JOB_CLASSES, get_job

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/jobs", response_model=JobListResponse)
def list_jobs():
    """List every registered job with its cron schedule"""
    return JobListResponse(
        jobs=[JobInfo(name=job.name, schedule=job.schedule, description=job.description) for job in JOB_CLASSES]
    )


@router.post("/jobs/{name}/run", response_model=JobSummaryResponse)
def run_job(
    name: str,
    request: Request,
    request_body: Optional[RunJobRequest] = None,
    store: LedgerStore = Depends(get_store),
):
    """
    Run one batch job now and return its summary.

    Entity-level failures are reported in the summary's `failed` count and
    do not fail the request. A run that cannot start (e.g. the selection
    query fails) returns 500.
    """
    request_id = get_request_id(request)

    try:
        job = get_job(name, store)
    except UnknownJobError as e:
        logger.warning(str(e), extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    run_date = request_body.run_date if request_body else None

    try:
        summary = job.run(today=run_date)
    except Exception as e:
        logger.error(f"Job {name} aborted: {e}", extra={"request_id": request_id, "job": name}, exc_info=True)
        raise HTTPException(status_code=500, detail="Job run failed")

    return JobSummaryResponse(**summary.as_dict())
