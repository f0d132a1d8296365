"""Value objects returned by the analytics and statistics operations."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict

from models.category import Category


@dataclass
class MonthlyReport:
    """Income/expense summary for one calendar month.

    Attributes:
        year: Report year.
        month: Report month (1-12).
        transaction_count: Number of transactions booked in the month.
        total_income: Sum of CREDIT transactions with a positive amount.
        total_expenses: Sum of absolute amounts of DEBIT transactions with a
            negative amount.
        net_income: total_income - total_expenses, may be negative.
        expenses_by_category: Expense total per category. Only categories with
            at least one categorized expense in the month appear.
    """

    year: int
    month: int
    transaction_count: int
    total_income: Decimal
    total_expenses: Decimal
    net_income: Decimal
    expenses_by_category: Dict[Category, Decimal] = field(default_factory=dict)

    @property
    def month_key(self) -> str:
        return f"{self.year:04d}/{self.month:02d}"


@dataclass
class CategorySummary:
    category: Category
    total_amount: Decimal
    transaction_count: int


@dataclass
class CounterpartyStats:
    counterparty: str
    transaction_count: int


@dataclass
class DashboardStats:
    total_transactions: int
    uncategorized_transactions: int
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_balance: Decimal
    bank_count: int


@dataclass
class CategoryStatistics:
    """Categorization coverage across the whole store.

    categorization_rate is a percentage (0-100), 0.0 when the store is empty.
    """

    total_categories: int
    total_transactions: int
    uncategorized_transactions: int
    categorization_rate: float
