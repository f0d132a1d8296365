"""Transaction analytics: income/expense totals, category and counterparty reports.

All functions are read-only and take the Services container as their first
argument. Money is summed as Decimal; an empty window yields Decimal("0").
Each entry point runs its queries on one connection inside one read
transaction, so all figures of a call come from the same database snapshot.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from dateutil.relativedelta import relativedelta
from db.manager import read_transaction
from models.category import Category
from models.report import CategorySummary, CounterpartyStats, DashboardStats, MonthlyReport
from models.transaction import Transaction

ZERO = Decimal("0")


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Get the first and last day of a calendar month.

    Args:
        year: Year (e.g., 2024).
        month: Month (1-12).

    Returns:
        (first_day, last_day), both inclusive.
    """
    start = date(year, month, 1)
    return start, start + relativedelta(day=31)


def current_month_bounds(today: Optional[date] = None) -> Tuple[date, date]:
    today = today or date.today()
    return month_bounds(today.year, today.month)


def calculate_total_income(services, start_date: date, end_date: date) -> Decimal:
    """Sum of CREDIT amounts above zero booked in [start_date, end_date]."""
    with read_transaction(services.db_manager) as conn:
        return services.transactions.sum_income_in_period(start_date, end_date, conn)


def calculate_total_expenses(services, start_date: date, end_date: date) -> Decimal:
    """Sum of absolute DEBIT amounts below zero booked in [start_date, end_date]."""
    with read_transaction(services.db_manager) as conn:
        return services.transactions.sum_expenses_in_period(start_date, end_date, conn)


def calculate_net_income(services, start_date: date, end_date: date) -> Decimal:
    """Income minus expenses over the window. Negative when expenses are higher."""
    with read_transaction(services.db_manager) as conn:
        income, expenses = _income_and_expenses(services, start_date, end_date, conn)
    return income - expenses


def calculate_current_month_balance(services, today: Optional[date] = None) -> Decimal:
    start_date, end_date = current_month_bounds(today)
    return calculate_net_income(services, start_date, end_date)


def _income_and_expenses(
    services, start_date: date, end_date: date, conn
) -> Tuple[Decimal, Decimal]:
    return (
        services.transactions.sum_income_in_period(start_date, end_date, conn),
        services.transactions.sum_expenses_in_period(start_date, end_date, conn),
    )


def _group_expenses(
    services, transactions: Iterable[Transaction], conn
) -> Dict[Category, Decimal]:
    """Group categorized expenses by category.

    Inactive categories are still reported: transactions keep pointing at a
    category after it has been soft-deleted.
    """
    categories = {c.id: c for c in services.categories.find_all(conn)}

    grouped: Dict[Category, Decimal] = {}
    for transaction in transactions:
        if not transaction.is_expense or transaction.category_id is None:
            continue
        category = categories[transaction.category_id]
        grouped[category] = grouped.get(category, ZERO) + transaction.absolute_amount
    return grouped


def get_expenses_by_category(
    services, start_date: date, end_date: date
) -> Dict[Category, Decimal]:
    """Get expense totals per category for a date range.

    Only categories with at least one categorized expense in the range are
    included.

    Args:
        services: Services container.
        start_date: First booking date, inclusive.
        end_date: Last booking date, inclusive.

    Returns:
        Mapping of Category to the summed absolute expense amount.
    """
    with read_transaction(services.db_manager) as conn:
        transactions = services.transactions.find_by_date_range(start_date, end_date, conn)
        return _group_expenses(services, transactions, conn)


def generate_monthly_report(services, year: int, month: int) -> MonthlyReport:
    """Build the income/expense report for one calendar month.

    Example:
        A December 2024 with one 3500.00 CREDIT and two DEBITs of -89.95 and
        -45.80 gives total_income=3500.00, total_expenses=135.75 and
        net_income=3364.25.
    """
    start_date, end_date = month_bounds(year, month)
    with read_transaction(services.db_manager) as conn:
        transactions = services.transactions.find_by_date_range(start_date, end_date, conn)
        expenses_by_category = _group_expenses(services, transactions, conn)

    total_income = sum((t.amount for t in transactions if t.is_income), ZERO)
    total_expenses = sum((t.absolute_amount for t in transactions if t.is_expense), ZERO)

    return MonthlyReport(
        year=year,
        month=month,
        transaction_count=len(transactions),
        total_income=total_income,
        total_expenses=total_expenses,
        net_income=total_income - total_expenses,
        expenses_by_category=expenses_by_category,
    )


def get_category_summary(
    services, start_date: date, end_date: date
) -> List[CategorySummary]:
    """Get per-category expense totals with transaction counts.

    The count covers every transaction of the category in the window, not only
    its expenses.

    Returns:
        CategorySummary list sorted by total_amount, largest first. The order of
        equal totals is not defined.
    """
    with read_transaction(services.db_manager) as conn:
        transactions = services.transactions.find_by_date_range(start_date, end_date, conn)
        grouped = _group_expenses(services, transactions, conn)

    counts: Dict[int, int] = {}
    for transaction in transactions:
        if transaction.category_id is not None:
            counts[transaction.category_id] = counts.get(transaction.category_id, 0) + 1

    summaries = [
        CategorySummary(
            category=category,
            total_amount=total,
            transaction_count=counts[category.id],
        )
        for category, total in grouped.items()
    ]
    summaries.sort(key=lambda s: s.total_amount, reverse=True)
    return summaries


def get_top_counterparties(services, limit: int = 10) -> List[CounterpartyStats]:
    """Get the counterparties with the most transactions, over all dates.

    Transactions without a counterparty are ignored. The order of equal counts
    is not defined.

    Raises:
        ValueError: If limit is negative.
    """
    if limit < 0:
        raise ValueError(f"limit must not be negative, got {limit}")

    with read_transaction(services.db_manager) as conn:
        counts = services.transactions.find_counterparty_counts(conn)

    return [
        CounterpartyStats(counterparty=name, transaction_count=count)
        for name, count in counts[:limit]
    ]


def get_bank_transaction_counts(services) -> Dict[str, int]:
    with read_transaction(services.db_manager) as conn:
        return services.transactions.count_by_bank(conn)


def get_dashboard_stats(services, today: Optional[date] = None) -> DashboardStats:
    """Compute the dashboard figures from one snapshot. Nothing is cached between calls."""
    start_date, end_date = current_month_bounds(today)
    with read_transaction(services.db_manager) as conn:
        monthly_income, monthly_expenses = _income_and_expenses(
            services, start_date, end_date, conn
        )
        total_transactions = services.transactions.count(conn)
        uncategorized_transactions = services.transactions.count_uncategorized(conn)
        bank_count = len(services.transactions.find_bank_names(conn))

    return DashboardStats(
        total_transactions=total_transactions,
        uncategorized_transactions=uncategorized_transactions,
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_balance=monthly_income - monthly_expenses,
        bank_count=bank_count,
    )
