#!/usr/bin/env python3
"""
Bankfolio CLI - categorize bank transactions and report on them.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Manage categories
    transactions Record, list and categorize transactions
    reports      Monthly, category, counterparty and dashboard reports
    migrate      Database schema setup

Examples:
    python -m cli migrate apply
    python -m cli categories seed
    python -m cli transactions add --bank DKB --date 2024-12-15 --amount -89.95 --reference "REWE Markt"
    python -m cli transactions categorize
    python -m cli reports monthly 2024/12
"""

import sys
import argparse
from cli import categories, migrate, reports, transactions
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Bankfolio - Bank transaction categorization and analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    categories.setup_parser(subparsers)
    transactions.setup_parser(subparsers)
    reports.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config()
        setup_logging(config)

        # migrate works on raw connections, everything else on services
        if args.command == "migrate":
            args.func(args, DatabaseManager(config))
        else:
            args.func(args, Services(config))
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
