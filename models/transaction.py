from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    """Banking direction of a transaction."""

    DEBIT = "DEBIT"  # money leaves the account
    CREDIT = "CREDIT"  # money arrives in the account


class TransactionState(str, Enum):
    """Processing state of an imported transaction."""

    PENDING = "PENDING"  # imported, waiting for categorization
    PROCESSED = "PROCESSED"  # categorization pass completed
    FAILED = "FAILED"  # import or processing failed, retryable
    CANCELLED = "CANCELLED"  # invalid, never retried

    @property
    def is_processable(self) -> bool:
        return self in (TransactionState.PENDING, TransactionState.FAILED)

    @property
    def is_complete(self) -> bool:
        return self is TransactionState.PROCESSED


@dataclass
class Transaction:
    bank_name: str  # e.g. "Sparkasse", "DKB"
    booking_date: date
    type: TransactionType
    amount: Decimal  # signed: expenses are negative
    reference: Optional[str]  # purpose / description text
    counterparty: Optional[str]  # payer or payee
    id: Optional[int] = None
    account_number: Optional[str] = None  # IBAN or account number
    value_date: Optional[date] = None
    currency: str = "EUR"
    category_id: Optional[int] = None
    state: TransactionState = TransactionState.PENDING
    import_source: Optional[str] = None  # "CSV", "PDF", "MT940"
    import_timestamp: Optional[datetime] = field(default_factory=datetime.now)
    raw_data: Optional[str] = None  # original export line, kept for audit

    @property
    def is_expense(self) -> bool:
        """DEBIT with a negative amount. A positive DEBIT (refund) is neither."""
        return self.type == TransactionType.DEBIT and self.amount < 0

    @property
    def is_income(self) -> bool:
        """CREDIT with a positive amount."""
        return self.type == TransactionType.CREDIT and self.amount > 0

    @property
    def absolute_amount(self) -> Decimal:
        return abs(self.amount)
