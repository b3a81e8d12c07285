"""Domain models - enums and plain dataclasses shared by the engines and jobs"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT_CARD = "CREDIT_CARD"
    LOAN = "LOAN"
    MORTGAGE = "MORTGAGE"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"
    LOAN_PRINCIPAL = "LOAN_PRINCIPAL"
    LOAN_INTEREST = "LOAN_INTEREST"
    INTEREST_EARNED = "INTEREST_EARNED"
    INTEREST_CHARGED = "INTEREST_CHARGED"


class TransactionSource(str, Enum):
    MANUAL = "MANUAL"
    IMPORT = "IMPORT"
    PLAID = "PLAID"
    RECURRING = "RECURRING"
    SYSTEM = "SYSTEM"


class Frequency(str, Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUAL = "ANNUAL"


class LoanType(str, Enum):
    MORTGAGE = "MORTGAGE"
    AUTO = "AUTO"
    STUDENT = "STUDENT"
    PERSONAL = "PERSONAL"
    BNPL = "BNPL"
    PAYDAY = "PAYDAY"


class AprRateType(str, Enum):
    STANDARD = "STANDARD"
    INTRO = "INTRO"
    BALANCE_TRANSFER = "BALANCE_TRANSFER"
    CASH_ADVANCE = "CASH_ADVANCE"
    PENALTY = "PENALTY"
    PROMOTIONAL = "PROMOTIONAL"


class InterestLogType(str, Enum):
    CHARGED = "CHARGED"
    EARNED = "EARNED"


# Positive-amount transaction types that count as a payment toward a card statement
PAYMENT_TYPES = (TransactionType.INCOME, TransactionType.TRANSFER, TransactionType.INTEREST_EARNED)


@dataclass
class PaymentSplit:
    """A single payment split into principal and interest portions"""

    principal: Decimal
    interest: Decimal


@dataclass
class AmortizationRow:
    """One month of an amortization schedule"""

    month: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    remaining_balance: Decimal


@dataclass
class ExtraPaymentImpact:
    """Payoff comparison with vs without an extra monthly payment"""

    months_to_payoff: int
    interest_saved: Decimal
    new_total_interest: Decimal


@dataclass
class DailyAccrual:
    """Result of evaluating one credit card's purchases for a single day"""

    total: Decimal
    accruing_count: int
    skipped_no_rate: int


class EntityOutcome(str, Enum):
    """What a job did with one selected entity"""

    PROCESSED = "processed"
    SKIPPED = "skipped"


@dataclass
class DueEntity:
    """An entity selected for processing: its id plus a human label for logs"""

    id: str
    label: str


@dataclass
class JobSummary:
    """Per-run accumulator, returned by value at the end of a batch"""

    job: str
    run_date: date
    selected: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    counters: Dict[str, int] = field(default_factory=dict)

    def bump(self, counter: str, by: int = 1) -> None:
        self.counters[counter] = self.counters.get(counter, 0) + by

    def as_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job,
            "run_date": self.run_date.isoformat(),
            "selected": self.selected,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "counters": dict(self.counters),
        }


@dataclass
class LedgerEntry:
    """A transaction leg to be posted; the store assigns the id"""

    account_id: str
    user_id: str
    date: date
    description: str
    amount: Decimal
    type: TransactionType
    source: TransactionSource = TransactionSource.SYSTEM
    category: Optional[str] = None
    notes: Optional[str] = None
