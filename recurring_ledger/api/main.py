"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from recurring_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from recurring_ledger.api.v1 import jobs
from recurring_ledger.infrastructure.observability.logging import setup_logging
from recurring_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Recurring Ledger",
        description="Scheduled ledger jobs: bills, loan payments, interest, statements",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(jobs.router, prefix="/v1", tags=["jobs"])

    return app


app = create_app()
