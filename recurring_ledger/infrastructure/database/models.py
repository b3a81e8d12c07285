"""SQLAlchemy ORM models for the ledger tables"""

import uuid
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, Date, Integer, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(12, 2)
RATE = Numeric(8, 4)


def _new_id() -> str:
    return str(uuid.uuid4())


class Account(Base):
    """Checking, savings, card, or loan account; liabilities carry negative balances"""

    __tablename__ = "account"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, index=True)
    balance = Column(MONEY, nullable=False, default=0)
    credit_limit = Column(MONEY, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    credit_card_details = relationship("CreditCardDetails", back_populates="account", uselist=False)
    apr_rates = relationship("AprRate", back_populates="account", order_by="AprRate.effective_date.desc()")
    loan = relationship("Loan", back_populates="account", uselist=False, foreign_keys="Loan.account_id")


class Transaction(Base):
    """Ledger record; debits are negative"""

    __tablename__ = "ledger_transaction"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("account.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(MONEY, nullable=False)
    type = Column(String(20), nullable=False)
    source = Column(String(20), nullable=False, default="MANUAL")
    category = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    linked_transaction_id = Column(String(36), ForeignKey("ledger_transaction.id"), nullable=True, unique=True)
    apr_rate_id = Column(String(36), ForeignKey("apr_rate.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class RecurringBill(Base):
    """Bill that generates an expense every period"""

    __tablename__ = "recurring_bill"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("account.id"), nullable=False)
    name = Column(Text, nullable=False)
    amount = Column(MONEY, nullable=False)
    frequency = Column(String(20), nullable=False)
    day_of_month = Column(Integer, nullable=False)
    is_variable_amount = Column(Boolean, nullable=False, default=False)
    category = Column(Text, nullable=True)
    next_due_date = Column(Date, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    payments = relationship("BillPayment", back_populates="bill", cascade="all, delete-orphan")


class BillPayment(Base):
    """Which bill-months have been paid; several payments per month are allowed"""

    __tablename__ = "bill_payment"

    id = Column(String(36), primary_key=True, default=_new_id)
    recurring_bill_id = Column(String(36), ForeignKey("recurring_bill.id", ondelete="CASCADE"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(MONEY, nullable=False)
    transaction_id = Column(String(36), ForeignKey("ledger_transaction.id"), nullable=True, unique=True)
    paid_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    bill = relationship("RecurringBill", back_populates="payments")


class Loan(Base):
    """Loan terms attached 1:1 to a LOAN/MORTGAGE account"""

    __tablename__ = "loan"

    id = Column(String(36), primary_key=True, default=_new_id)
    account_id = Column(String(36), ForeignKey("account.id"), nullable=False, unique=True)
    loan_type = Column(String(20), nullable=False, index=True)
    original_balance = Column(MONEY, nullable=False)
    interest_rate = Column(RATE, nullable=False, default=0)  # annual percent
    term_months = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    monthly_payment = Column(MONEY, nullable=False, default=0)
    extra_payment_amount = Column(MONEY, nullable=False, default=0)

    # BNPL
    merchant_name = Column(Text, nullable=True)
    completed_installments = Column(Integer, nullable=False, default=0)
    total_installments = Column(Integer, nullable=True)
    installment_frequency = Column(String(20), nullable=True)
    next_payment_date = Column(Date, nullable=True)
    payment_account_id = Column(String(36), ForeignKey("account.id"), nullable=True)

    # Payday
    lender_name = Column(Text, nullable=True)
    fee_per_hundred = Column(Numeric(8, 2), nullable=True)
    term_days = Column(Integer, nullable=True)
    due_date = Column(Date, nullable=True)

    account = relationship("Account", back_populates="loan", foreign_keys=[account_id])


class CreditCardDetails(Base):
    """Statement cycle terms of a credit card account"""

    __tablename__ = "credit_card_details"

    id = Column(String(36), primary_key=True, default=_new_id)
    account_id = Column(String(36), ForeignKey("account.id"), nullable=False, unique=True)
    statement_close_day = Column(Integer, nullable=False)
    payment_due_day = Column(Integer, nullable=False)
    grace_period_days = Column(Integer, nullable=False, default=25)
    last_statement_balance = Column(MONEY, nullable=False, default=0)
    last_statement_paid_in_full = Column(Boolean, nullable=False, default=True)
    minimum_payment_pct = Column(Numeric(5, 4), nullable=False, default=0.02)
    minimum_payment_floor = Column(MONEY, nullable=False, default=25)

    account = relationship("Account", back_populates="credit_card_details")


class AprRate(Base):
    """APR tier on a card (or the yield on a savings account)"""

    __tablename__ = "apr_rate"

    id = Column(String(36), primary_key=True, default=_new_id)
    account_id = Column(String(36), ForeignKey("account.id"), nullable=False, index=True)
    rate_type = Column(String(20), nullable=False)
    apr = Column(RATE, nullable=False)
    effective_date = Column(Date, nullable=False)
    expiration_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("Account", back_populates="apr_rates")


class InterestLog(Base):
    """Append-only audit trail of interest events"""

    __tablename__ = "interest_log"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("account.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 6), nullable=False)  # daily accruals keep sub-cent precision
    type = Column(String(10), nullable=False)
    notes = Column(Text, nullable=True)
