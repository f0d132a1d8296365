#!/usr/bin/env python3

import sys
import argparse
from datetime import date
from logger import get_logger
from tools.analytics import (
    generate_monthly_report,
    get_bank_transaction_counts,
    get_category_summary,
    get_dashboard_stats,
    get_top_counterparties,
)

logger = get_logger()


def _parse_month(value: str):
    """Parse YYYY/MM (or YYYY-MM) into (year, month)."""
    year, month = value.replace("-", "/").split("/")
    year, month = int(year), int(month)
    if month < 1 or month > 12:
        raise ValueError("Month must be between 1 and 12")
    return year, month


def non_negative_int(value: str) -> int:
    """argparse type for counts: an integer of zero or more."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{value}'")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {number}")
    return number


def cmd_monthly(args, services):
    """Show the income/expense report for a month."""
    try:
        year, month = _parse_month(args.month)
    except ValueError as e:
        logger.error(f"Invalid month '{args.month}': {e}. Use YYYY/MM.")
        sys.exit(1)

    report = generate_monthly_report(services, year, month)

    logger.info(f"\nMonthly report {report.month_key}")
    logger.info("=" * 60)
    logger.info(f"Transactions:  {report.transaction_count}")
    logger.info(f"Income:        {report.total_income:>12}")
    logger.info(f"Expenses:      {report.total_expenses:>12}")
    logger.info(f"Net:           {report.net_income:>12}")

    if report.expenses_by_category:
        logger.info("\nExpenses by category:")
        ranked = sorted(report.expenses_by_category.items(), key=lambda kv: kv[1], reverse=True)
        for category, total in ranked:
            logger.info(f"  {category.full_display_name:<36} {total:>12}")


def cmd_summary(args, services):
    """Show per-category expense totals for a date range."""
    try:
        start_date = date.fromisoformat(args.start_date)
        end_date = date.fromisoformat(args.end_date)
    except ValueError as e:
        logger.error(f"Invalid date: {e}. Use YYYY-MM-DD.")
        sys.exit(1)

    summaries = get_category_summary(services, start_date, end_date)
    if not summaries:
        logger.info("No categorized expenses in this period.")
        return

    for summary in summaries:
        logger.info(
            f"{summary.category.full_display_name:<36} {summary.total_amount:>12}"
            f"  ({summary.transaction_count} transactions)"
        )


def cmd_counterparties(args, services):
    """Show the counterparties with the most transactions."""
    for stats in get_top_counterparties(services, args.limit):
        logger.info(f"{stats.transaction_count:>6}  {stats.counterparty}")


def cmd_banks(args, services):
    """Show the number of transactions per bank."""
    for bank_name, count in get_bank_transaction_counts(services).items():
        logger.info(f"{count:>6}  {bank_name}")


def cmd_dashboard(args, services):
    """Show the dashboard figures for the current month."""
    stats = get_dashboard_stats(services)
    logger.info(f"Transactions:        {stats.total_transactions}")
    logger.info(f"Uncategorized:       {stats.uncategorized_transactions}")
    logger.info(f"Income this month:   {stats.monthly_income}")
    logger.info(f"Expenses this month: {stats.monthly_expenses}")
    logger.info(f"Balance this month:  {stats.monthly_balance}")
    logger.info(f"Banks:               {stats.bank_count}")


def setup_parser(subparsers):
    """Setup reports subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "reports",
        help="Financial reports",
        description="Income, expense, category and counterparty reports",
    )

    reports_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available reports",
        dest="subcommand",
        required=True,
    )

    monthly_parser = reports_subparsers.add_parser("monthly", help="Monthly report")
    monthly_parser.add_argument("month", help="Month in YYYY/MM format")
    monthly_parser.set_defaults(func=cmd_monthly)

    summary_parser = reports_subparsers.add_parser(
        "summary", help="Expenses per category for a date range"
    )
    summary_parser.add_argument("start_date", help="YYYY-MM-DD")
    summary_parser.add_argument("end_date", help="YYYY-MM-DD")
    summary_parser.set_defaults(func=cmd_summary)

    counterparties_parser = reports_subparsers.add_parser(
        "counterparties", help="Top counterparties by transaction count"
    )
    counterparties_parser.add_argument(
        "--limit", type=non_negative_int, default=10, help="Rows to show"
    )
    counterparties_parser.set_defaults(func=cmd_counterparties)

    banks_parser = reports_subparsers.add_parser(
        "banks", help="Transaction count per bank"
    )
    banks_parser.set_defaults(func=cmd_banks)

    dashboard_parser = reports_subparsers.add_parser(
        "dashboard", help="Current month dashboard"
    )
    dashboard_parser.set_defaults(func=cmd_dashboard)
