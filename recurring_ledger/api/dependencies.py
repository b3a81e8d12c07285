"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from recurring_ledger.infrastructure.database.repositories import LedgerStore
from recurring_ledger.infrastructure.database.session import SessionLocal


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_store() -> LedgerStore:
    """Provide a ledger store bound to the configured database"""
    return LedgerStore(SessionLocal)
