"""Data access layer for ledger entities"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional, Tuple, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, sessionmaker

from recurring_ledger.domain.exceptions import LedgerStoreError
from recurring_ledger.domain.models import (
    AccountType,
    AprRateType,
    DueEntity,
    InterestLogType,
    LedgerEntry,
    LoanType,
    PAYMENT_TYPES,
    TransactionType,
)
from recurring_ledger.domain.money import ZERO, to_decimal
from recurring_ledger.infrastructure.database.models import (
    Account,
    AprRate,
    BillPayment,
    CreditCardDetails,
    InterestLog,
    Loan,
    RecurringBill,
    Transaction,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LedgerStore:
    """
    Transactional boundary used by the batch jobs.

    Reads go through `find_due`; every write for one entity goes through
    `run_atomic`, which commits everything `fn` did or nothing at all.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def find_due(self, select: Callable[[Session], List[DueEntity]]) -> List[DueEntity]:
        """Run a selection query in a short-lived read session"""
        db = self.session_factory()
        try:
            return select(db)
        finally:
            db.close()

    def run_atomic(self, entity_id: str, fn: Callable[[Session], T]) -> T:
        """Run fn inside one database transaction scoped to a single entity"""
        db = self.session_factory()
        try:
            result = fn(db)
            db.commit()
            return result
        except Exception:
            db.rollback()
            logger.debug("Rolled back unit of work", extra={"entity_id": entity_id})
            raise
        finally:
            db.close()


class AccountRepository:
    """Repository for accounts and their balances"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, account_id: str) -> Account:
        """Fetch an account or fail the unit of work"""
        account = self.db.get(Account, account_id)
        if account is None:
            raise LedgerStoreError(f"Account {account_id} not found")
        return account

    def adjust_balance(self, account_id: str, delta: Decimal) -> None:
        """Add delta (signed) to the stored balance in a single UPDATE"""
        updated = (
            self.db.query(Account)
            .filter(Account.id == account_id)
            .update({Account.balance: Account.balance + delta}, synchronize_session=False)
        )
        if updated == 0:
            raise LedgerStoreError(f"Account {account_id} not found for balance update")

    def deactivate(self, account_id: str) -> None:
        """Mark an account inactive; accounts are never deleted"""
        updated = (
            self.db.query(Account)
            .filter(Account.id == account_id)
            .update({Account.is_active: False}, synchronize_session=False)
        )
        if updated == 0:
            raise LedgerStoreError(f"Account {account_id} not found for deactivation")

    def eligible_savings(self) -> List[Account]:
        """Active savings accounts with a positive balance and an active rate"""
        return (
            self.db.query(Account)
            .filter(
                Account.type == AccountType.SAVINGS.value,
                Account.is_active.is_(True),
                Account.balance > 0,
                Account.apr_rates.any(AprRate.is_active.is_(True)),
            )
            .order_by(Account.id)
            .all()
        )

    def active_credit_cards(self) -> List[Account]:
        """Active card accounts that have statement terms configured"""
        return (
            self.db.query(Account)
            .join(CreditCardDetails, CreditCardDetails.account_id == Account.id)
            .filter(Account.type == AccountType.CREDIT_CARD.value, Account.is_active.is_(True))
            .order_by(Account.id)
            .all()
        )


class TransactionRepository:
    """Repository for ledger transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, entry: LedgerEntry, linked_transaction_id: Optional[str] = None) -> Transaction:
        """Insert one transaction and flush to obtain its id"""
        db_transaction = Transaction(
            user_id=entry.user_id,
            account_id=entry.account_id,
            date=entry.date,
            description=entry.description,
            amount=entry.amount,
            type=entry.type.value,
            source=entry.source.value,
            category=entry.category,
            notes=entry.notes,
            linked_transaction_id=linked_transaction_id,
        )
        self.db.add(db_transaction)
        self.db.flush()  # Get ID without committing
        return db_transaction

    def create_linked_pair(self, first: LedgerEntry, second: LedgerEntry) -> Tuple[Transaction, Transaction]:
        """
        Create two legs that reference each other.

        The first leg is inserted unlinked, the second is inserted pointing at
        the first, then the first is patched to point back.
        """
        first_row = self.create(first)
        second_row = self.create(second, linked_transaction_id=first_row.id)
        first_row.linked_transaction_id = second_row.id
        self.db.flush()
        return first_row, second_row

    def expenses_for_account(self, account_id: str) -> List[Transaction]:
        """Outstanding purchases on a card, oldest first"""
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.account_id == account_id,
                Transaction.type == TransactionType.EXPENSE.value,
            )
            .order_by(Transaction.date.asc())
            .all()
        )

    def sum_payments_since(self, account_id: str, since: date) -> Decimal:
        """Total of positive payment/credit amounts posted on or after `since`"""
        total = (
            self.db.query(func.sum(Transaction.amount))
            .filter(
                Transaction.account_id == account_id,
                Transaction.date >= since,
                Transaction.amount > 0,
                Transaction.type.in_([t.value for t in PAYMENT_TYPES]),
            )
            .scalar()
        )
        return to_decimal(total) if total is not None else ZERO

    def count_by_apr_rate(self, apr_rate_id: str) -> int:
        """Number of transactions still pointing at a rate"""
        return self.db.query(Transaction).filter(Transaction.apr_rate_id == apr_rate_id).count()

    def reassign_apr_rate(self, from_rate_id: str, to_rate_id: Optional[str]) -> int:
        """Bulk-move (or clear, when to_rate_id is None) a rate reference"""
        return (
            self.db.query(Transaction)
            .filter(Transaction.apr_rate_id == from_rate_id)
            .update({Transaction.apr_rate_id: to_rate_id}, synchronize_session=False)
        )


class RecurringBillRepository:
    """Repository for recurring bills and their payment ledger"""

    def __init__(self, db: Session):
        self.db = db

    def get_due(self, today: date) -> List[RecurringBill]:
        """Active bills whose next due date is on or before today"""
        return (
            self.db.query(RecurringBill)
            .filter(RecurringBill.is_active.is_(True), RecurringBill.next_due_date <= today)
            .order_by(RecurringBill.next_due_date.asc(), RecurringBill.id)
            .all()
        )

    def get(self, bill_id: str) -> RecurringBill:
        bill = self.db.get(RecurringBill, bill_id)
        if bill is None:
            raise LedgerStoreError(f"Recurring bill {bill_id} not found")
        return bill

    def record_payment(self, bill: RecurringBill, due_date: date, amount: Decimal, transaction_id: str) -> BillPayment:
        """Append a row to the bill payment ledger"""
        payment = BillPayment(
            recurring_bill_id=bill.id,
            month=due_date.month,
            year=due_date.year,
            amount=amount,
            transaction_id=transaction_id,
        )
        self.db.add(payment)
        return payment


class LoanRepository:
    """Repository for loans with automatic payments"""

    def __init__(self, db: Session):
        self.db = db

    def _auto_pay_query(self, loan_type: LoanType):
        return (
            self.db.query(Loan)
            .join(Account, Account.id == Loan.account_id)
            .filter(
                Loan.loan_type == loan_type.value,
                Loan.payment_account_id.isnot(None),
                Account.is_active.is_(True),
            )
        )

    def get_due_bnpl(self, today: date) -> List[Loan]:
        """BNPL loans with an installment due and a funding account"""
        return (
            self._auto_pay_query(LoanType.BNPL)
            .filter(Loan.next_payment_date <= today)
            .order_by(Loan.next_payment_date.asc(), Loan.id)
            .all()
        )

    def get_due_payday(self, today: date) -> List[Loan]:
        """Payday loans whose balloon payment is due"""
        return (
            self._auto_pay_query(LoanType.PAYDAY)
            .filter(
                or_(
                    Loan.next_payment_date <= today,
                    (Loan.next_payment_date.is_(None) & (Loan.due_date <= today)),
                )
            )
            .order_by(Loan.id)
            .all()
        )

    def get(self, loan_id: str) -> Loan:
        loan = self.db.get(Loan, loan_id)
        if loan is None:
            raise LedgerStoreError(f"Loan {loan_id} not found")
        return loan


class CreditCardRepository:
    """Repository for card statement terms"""

    def __init__(self, db: Session):
        self.db = db

    def closing_on(self, close_day: int) -> List[CreditCardDetails]:
        """Statement terms of active cards whose cycle closes on close_day"""
        return (
            self.db.query(CreditCardDetails)
            .join(Account, Account.id == CreditCardDetails.account_id)
            .filter(CreditCardDetails.statement_close_day == close_day, Account.is_active.is_(True))
            .order_by(CreditCardDetails.account_id)
            .all()
        )

    def get_for_account(self, account_id: str) -> CreditCardDetails:
        details = (
            self.db.query(CreditCardDetails)
            .filter(CreditCardDetails.account_id == account_id)
            .first()
        )
        if details is None:
            raise LedgerStoreError(f"Account {account_id} has no credit card details")
        return details


class AprRateRepository:
    """Repository for APR tiers"""

    def __init__(self, db: Session):
        self.db = db

    def get_expired(self, today: date) -> List[AprRate]:
        """Active rates whose expiration date is today or earlier"""
        return (
            self.db.query(AprRate)
            .filter(AprRate.is_active.is_(True), AprRate.expiration_date <= today)
            .order_by(AprRate.expiration_date.asc(), AprRate.id)
            .all()
        )

    def get(self, rate_id: str) -> AprRate:
        rate = self.db.get(AprRate, rate_id)
        if rate is None:
            raise LedgerStoreError(f"APR rate {rate_id} not found")
        return rate

    def active_for_account(self, account_id: str) -> List[AprRate]:
        """Active rates, most recently effective first"""
        return (
            self.db.query(AprRate)
            .filter(AprRate.account_id == account_id, AprRate.is_active.is_(True))
            .order_by(AprRate.effective_date.desc(), AprRate.id)
            .all()
        )

    def standard_for_account(self, account_id: str) -> Optional[AprRate]:
        """The account's active STANDARD rate, if any"""
        return (
            self.db.query(AprRate)
            .filter(
                AprRate.account_id == account_id,
                AprRate.rate_type == AprRateType.STANDARD.value,
                AprRate.is_active.is_(True),
            )
            .order_by(AprRate.effective_date.desc())
            .first()
        )


class InterestLogRepository:
    """Repository for the interest audit trail"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        account: Account,
        log_date: date,
        amount: Decimal,
        log_type: InterestLogType,
        notes: Optional[str] = None,
    ) -> InterestLog:
        """Append one interest event"""
        log = InterestLog(
            user_id=account.user_id,
            account_id=account.id,
            date=log_date,
            amount=amount,
            type=log_type.value,
            notes=notes,
        )
        self.db.add(log)
        self.db.flush()
        return log

    def sum_charged(self, account_id: str, start: date, end: date) -> Decimal:
        """Total CHARGED interest logged for an account between two dates (inclusive)"""
        total = (
            self.db.query(func.sum(InterestLog.amount))
            .filter(
                InterestLog.account_id == account_id,
                InterestLog.type == InterestLogType.CHARGED.value,
                InterestLog.date >= start,
                InterestLog.date <= end,
            )
            .scalar()
        )
        return to_decimal(total) if total is not None else ZERO

    def has_logged(self, account_id: str, log_type: InterestLogType, start: date, end: date) -> bool:
        """Whether an event of this type was already logged between two dates (inclusive)"""
        return (
            self.db.query(InterestLog.id)
            .filter(
                InterestLog.account_id == account_id,
                InterestLog.type == log_type.value,
                InterestLog.date >= start,
                InterestLog.date <= end,
            )
            .first()
            is not None
        )
