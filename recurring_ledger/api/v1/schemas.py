"""Pydantic schemas for API request/response validation"""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class JobInfo(BaseModel):
    """One registered batch job"""

    name: str
    schedule: str = Field(..., description="Cron expression for the external scheduler")
    description: str


class JobListResponse(BaseModel):
    """Response for GET /v1/jobs"""

    jobs: List[JobInfo]


class RunJobRequest(BaseModel):
    """Optional body for POST /v1/jobs/{name}/run"""

    run_date: Optional[date] = Field(None, description="Business date to run as; defaults to today in the configured timezone")


class JobSummaryResponse(BaseModel):
    """Response for POST /v1/jobs/{name}/run"""

    job: str
    run_date: date
    selected: int
    processed: int
    skipped: int
    failed: int
    counters: Dict[str, int] = Field(default_factory=dict)
