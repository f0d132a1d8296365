#!/usr/bin/env python3

import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from cli.reports import non_negative_int
from models.transaction import Transaction, TransactionState, TransactionType
from logger import get_logger

logger = get_logger()


def _parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD or YYYY/MM/DD date."""
    return date.fromisoformat(value.replace("/", "-"))


def cmd_add(args, services):
    """Record a single transaction and categorize it.

    Args:
        args: Parsed command-line arguments
        services: Services container
    """
    try:
        amount = Decimal(args.amount)
        booking_date = _parse_date(args.date)
        value_date = _parse_date(args.value_date) if args.value_date else None
    except (InvalidOperation, ValueError) as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)

    if not amount.is_finite():
        logger.error(f"Invalid amount '{args.amount}': must be a finite number.")
        sys.exit(1)

    transaction_type = args.type
    if transaction_type is None:
        transaction_type = TransactionType.DEBIT if amount < 0 else TransactionType.CREDIT

    transaction = Transaction(
        bank_name=args.bank,
        account_number=args.account,
        booking_date=booking_date,
        value_date=value_date,
        type=TransactionType(transaction_type),
        amount=amount,
        currency=args.currency or services.config.default_currency,
        reference=args.reference,
        counterparty=args.counterparty,
        import_source="MANUAL",
    )

    [saved] = services.categorization.process_batch([transaction])
    category = services.categories.find(saved.category_id) if saved.category_id else None

    logger.info(f"✓ Transaction recorded with ID: {saved.id}")
    logger.info(f"  Category: {category.full_display_name if category else '-'}")


def cmd_list(args, services):
    """List transactions, optionally restricted to a date range or filter."""
    if args.uncategorized:
        transactions = services.transactions.find_uncategorized()
    elif args.state:
        transactions = services.transactions.find_by_state(TransactionState(args.state))
    elif args.search:
        transactions = services.transactions.search_by_reference(args.search)
    elif args.start_date or args.end_date:
        if not (args.start_date and args.end_date):
            logger.error("--start-date and --end-date must be given together")
            sys.exit(1)
        transactions = services.transactions.find_by_date_range(
            _parse_date(args.start_date), _parse_date(args.end_date)
        )
    else:
        transactions = services.transactions.find_all()

    if not transactions:
        logger.info("No transactions found for the specified criteria.")
        return

    category_map = {c.id: c.name for c in services.categories.find_all()}
    for t in transactions[: args.limit]:
        logger.info(
            f"{t.id:>6}  {t.booking_date.isoformat()}  {t.type.value:<6} "
            f"{t.amount:>12} {t.currency}  {category_map.get(t.category_id, '-'):<16} "
            f"{t.state.value:<9}  {(t.reference or '')[:40]}"
        )

    logger.info(f"\nShowing {min(len(transactions), args.limit)} of {len(transactions)}")


def cmd_categorize(args, services):
    """Categorize every transaction that has no category yet."""
    services.categories.clear_cache()
    processed = services.categorization.recategorize_all()
    logger.info(f"✓ Processed {len(processed)} transaction(s)")


def cmd_set_category(args, services):
    """Set the category of a transaction, by category ID or name."""
    transaction = services.transactions.find(args.transaction_id)
    if not transaction:
        logger.error(f"Transaction with ID {args.transaction_id} not found.")
        sys.exit(1)

    try:
        category = services.categories.find(int(args.category))
    except ValueError:
        category = services.categories.find_by_name(args.category)

    if not category or not category.is_active:
        logger.error(f"Category '{args.category}' not found.")
        logger.info("Use 'python -m cli categories list' to see available categories.")
        sys.exit(1)

    transaction.category_id = category.id
    transaction.state = TransactionState.PROCESSED
    services.transactions.save(transaction)

    logger.info("✓ Transaction categorized successfully")
    logger.info(f"  Transaction: {(transaction.reference or '')[:50]}")
    logger.info(f"  Category: {category.full_display_name}")


def cmd_set_state(args, services):
    """Set the processing state of one or more transactions."""
    updated = services.transactions.update_states(
        args.transaction_ids, TransactionState(args.state)
    )
    logger.info(f"✓ Updated {updated} transaction(s) to {args.state}")


def setup_parser(subparsers):
    """Setup transactions subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "transactions",
        help="Manage transactions",
        description="Record, list and categorize bank transactions",
    )

    transactions_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available transaction commands",
        dest="subcommand",
        required=True,
    )

    states = [s.value for s in TransactionState]

    # transactions add
    add_parser = transactions_subparsers.add_parser(
        "add", help="Record a transaction and categorize it"
    )
    add_parser.add_argument("--bank", required=True, help="Bank name, e.g. Sparkasse")
    add_parser.add_argument("--date", required=True, help="Booking date (YYYY-MM-DD)")
    add_parser.add_argument(
        "--amount", required=True, help="Signed amount, negative for expenses"
    )
    add_parser.add_argument("--reference", help="Purpose / reference text")
    add_parser.add_argument("--counterparty", help="Payer or payee")
    add_parser.add_argument(
        "--type",
        choices=[t.value for t in TransactionType],
        help="Direction (default: derived from the amount's sign)",
    )
    add_parser.add_argument("--account", help="IBAN or account number")
    add_parser.add_argument("--value-date", help="Value date (YYYY-MM-DD)")
    add_parser.add_argument("--currency", help="ISO 4217 currency code")
    add_parser.set_defaults(func=cmd_add)

    # transactions list
    list_parser = transactions_subparsers.add_parser("list", help="List transactions")
    list_parser.add_argument("--start-date", help="First booking date (YYYY-MM-DD)")
    list_parser.add_argument("--end-date", help="Last booking date (YYYY-MM-DD)")
    list_parser.add_argument(
        "--uncategorized", action="store_true", help="Only transactions without category"
    )
    list_parser.add_argument("--state", choices=states, help="Filter by state")
    list_parser.add_argument("--search", help="Search in the reference text")
    list_parser.add_argument(
        "--limit", type=non_negative_int, default=50, help="Rows to show"
    )
    list_parser.set_defaults(func=cmd_list)

    # transactions categorize
    categorize_parser = transactions_subparsers.add_parser(
        "categorize", help="Categorize all uncategorized transactions"
    )
    categorize_parser.set_defaults(func=cmd_categorize)

    # transactions set-category
    set_category_parser = transactions_subparsers.add_parser(
        "set-category", help="Set the category of a transaction"
    )
    set_category_parser.add_argument("transaction_id", type=int)
    set_category_parser.add_argument("category", help="Category ID or name")
    set_category_parser.set_defaults(func=cmd_set_category)

    # transactions set-state
    set_state_parser = transactions_subparsers.add_parser(
        "set-state", help="Set the processing state of transactions"
    )
    set_state_parser.add_argument("state", choices=states)
    set_state_parser.add_argument("transaction_ids", type=int, nargs="+")
    set_state_parser.set_defaults(func=cmd_set_state)
