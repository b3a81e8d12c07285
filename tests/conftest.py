"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from recurring_ledger.api.dependencies import get_store
from recurring_ledger.api.main import create_app
from recurring_ledger.infrastructure.database.models import (
    Account,
    AprRate,
    Base,
    CreditCardDetails,
    Loan,
    RecurringBill,
    Transaction,
)
from recurring_ledger.infrastructure.database.repositories import LedgerStore


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db: Session) -> LedgerStore:
    """Ledger store over the test database; each unit of work gets its own session"""
    return LedgerStore(TestingSessionLocal)


@pytest.fixture
def client(store: LedgerStore) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    return TestClient(app)


@pytest.fixture
def ledger(db: Session) -> "LedgerFactory":
    return LedgerFactory(db)


class LedgerFactory:
    """Seeds committed rows so jobs see them from their own sessions"""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        return row

    def reload(self, model, row_id: str):
        """Fresh read of a row after a job committed changes to it"""
        self.db.expire_all()
        return self.db.get(model, row_id)

    def transactions(self, account_id: str):
        self.db.expire_all()
        return (
            self.db.query(Transaction)
            .filter(Transaction.account_id == account_id)
            .order_by(Transaction.created_at, Transaction.type)
            .all()
        )

    def account(self, type: str = "CHECKING", balance: str = "0", name: str = "Checking", user_id: str = "user_1", **kwargs) -> Account:
        return self._save(Account(user_id=user_id, name=name, type=type, balance=Decimal(balance), **kwargs))

    def bill(
        self,
        account: Account,
        amount: str = "50.00",
        next_due_date: date = date(2024, 3, 15),
        frequency: str = "MONTHLY",
        day_of_month: int = 15,
        is_variable_amount: bool = False,
        name: str = "Internet",
        account_id: Optional[str] = None,
    ) -> RecurringBill:
        return self._save(
            RecurringBill(
                user_id=account.user_id,
                account_id=account_id or account.id,
                name=name,
                amount=Decimal(amount),
                frequency=frequency,
                day_of_month=day_of_month,
                is_variable_amount=is_variable_amount,
                category="Utilities",
                next_due_date=next_due_date,
            )
        )

    def bnpl_loan(
        self,
        funding: Account,
        original_balance: str = "400.00",
        total_installments: int = 4,
        completed_installments: int = 0,
        interest_rate: str = "0",
        next_payment_date: date = date(2024, 3, 1),
        installment_frequency: Optional[str] = "BIWEEKLY",
        balance: Optional[str] = None,
        start_date: Optional[date] = None,
    ):
        loan_account = self.account(
            type="LOAN",
            balance=balance if balance is not None else f"-{original_balance}",
            name="BNPL - Gadget Store",
            user_id=funding.user_id,
        )
        loan = self._save(
            Loan(
                account_id=loan_account.id,
                loan_type="BNPL",
                original_balance=Decimal(original_balance),
                interest_rate=Decimal(interest_rate),
                start_date=start_date or next_payment_date,
                merchant_name="Gadget Store",
                completed_installments=completed_installments,
                total_installments=total_installments,
                installment_frequency=installment_frequency,
                next_payment_date=next_payment_date,
                payment_account_id=funding.id,
            )
        )
        return loan_account, loan

    def payday_loan(
        self,
        funding: Account,
        original_balance: str = "500.00",
        fee_per_hundred: Optional[str] = "15.00",
        term_days: int = 14,
        due_date: Optional[date] = date(2024, 3, 15),
        next_payment_date: Optional[date] = None,
        balance: Optional[str] = None,
    ):
        loan_account = self.account(
            type="LOAN",
            balance=balance if balance is not None else f"-{original_balance}",
            name="Payday - QuickCash",
            user_id=funding.user_id,
        )
        loan = self._save(
            Loan(
                account_id=loan_account.id,
                loan_type="PAYDAY",
                original_balance=Decimal(original_balance),
                interest_rate=Decimal("0"),
                start_date=date(2024, 3, 1),
                lender_name="QuickCash",
                fee_per_hundred=Decimal(fee_per_hundred) if fee_per_hundred is not None else None,
                term_days=term_days,
                due_date=due_date,
                next_payment_date=next_payment_date,
                payment_account_id=funding.id,
            )
        )
        return loan_account, loan

    def credit_card(
        self,
        balance: str = "-1000.00",
        statement_close_day: int = 15,
        last_statement_balance: str = "0",
        last_statement_paid_in_full: bool = False,
    ):
        card = self.account(type="CREDIT_CARD", balance=balance, name="Visa", credit_limit=Decimal("5000.00"))
        details = self._save(
            CreditCardDetails(
                account_id=card.id,
                statement_close_day=statement_close_day,
                payment_due_day=10,
                last_statement_balance=Decimal(last_statement_balance),
                last_statement_paid_in_full=last_statement_paid_in_full,
                minimum_payment_pct=Decimal("0.02"),
                minimum_payment_floor=Decimal("25.00"),
            )
        )
        return card, details

    def apr_rate(
        self,
        account: Account,
        apr: str = "24.99",
        rate_type: str = "STANDARD",
        effective_date: date = date(2024, 1, 1),
        expiration_date: Optional[date] = None,
        is_active: bool = True,
    ) -> AprRate:
        return self._save(
            AprRate(
                account_id=account.id,
                rate_type=rate_type,
                apr=Decimal(apr),
                effective_date=effective_date,
                expiration_date=expiration_date,
                is_active=is_active,
            )
        )

    def transaction(
        self,
        account: Account,
        amount: str,
        tx_date: date,
        type: str = "EXPENSE",
        apr_rate: Optional[AprRate] = None,
        description: str = "Purchase",
    ) -> Transaction:
        return self._save(
            Transaction(
                user_id=account.user_id,
                account_id=account.id,
                date=tx_date,
                description=description,
                amount=Decimal(amount),
                type=type,
                source="MANUAL",
                apr_rate_id=apr_rate.id if apr_rate is not None else None,
            )
        )
