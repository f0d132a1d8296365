#!/usr/bin/env python3

import sys
import json
from typing import List, Tuple
from logger import get_logger

logger = get_logger()


def cmd_list(args, services):
    """List categories, main categories first with their children indented."""
    categories = services.categories.find_all() if args.all else services.categories.find_active()

    if not categories:
        logger.info("No categories found.")
        return

    by_parent = {}
    for category in categories:
        by_parent.setdefault(category.parent_id, []).append(category)

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category in by_parent.get(None, []):
        _log_category(category)
        for child in by_parent.get(category.id, []):
            _log_category(child, indent="    ")

    # Children whose parent is filtered out (inactive) would otherwise vanish
    shown = {c.id for c in by_parent.get(None, [])}
    for parent_id, children in by_parent.items():
        if parent_id is not None and parent_id not in shown:
            for child in children:
                _log_category(child)

    logger.info(f"\nTotal categories: {len(categories)}")


def _log_category(category, indent=""):
    kind = "expense" if category.is_expense else "income"
    status = "" if category.is_active else " [inactive]"
    logger.info(
        f"{indent}{category.id:>4}  {category.full_display_name} ({category.name}, {kind}){status}"
    )
    if category.keywords:
        logger.info(f"{indent}      keywords: {category.keywords}")


def cmd_create(args, services):
    """Interactively create a new category."""
    print("\nCreate New Category")
    print("=" * 80)

    name = input("Category name (e.g., groceries): ").strip()
    if not name:
        logger.error("Category name cannot be empty.")
        sys.exit(1)

    display_name = input("Display name (optional, press Enter to use name): ").strip()
    keywords = input("Keywords, comma separated (optional): ").strip() or None
    icon = input("Icon (optional): ").strip() or None
    kind = input("Expense or income category? [expense]: ").strip().lower() or "expense"
    if kind not in ("expense", "income"):
        logger.error("Category kind must be 'expense' or 'income'.")
        sys.exit(1)

    parent_id = None
    parent_input = input("Parent category ID (optional, press Enter to skip): ").strip()
    if parent_input:
        try:
            parent_id = int(parent_input)
        except ValueError:
            logger.error("Parent category ID must be a number.")
            sys.exit(1)
        if not services.categories.find(parent_id):
            logger.error(f"Parent category with ID {parent_id} not found.")
            sys.exit(1)

    try:
        category = services.categories.create(
            name,
            display_name or None,
            icon=icon,
            parent_id=parent_id,
            keywords=keywords,
            is_expense=(kind == "expense"),
        )
    except Exception as e:
        logger.error(f"Error creating category: {e}")
        sys.exit(1)

    logger.info(f"\n✓ Category created successfully with ID: {category.id}")


def cmd_delete(args, services):
    """Deactivate a category by ID."""
    category = services.categories.find(args.category_id)
    if not category or not category.is_active:
        logger.error(f"Active category with ID {args.category_id} not found.")
        sys.exit(1)

    used_by = services.categories.count_transactions(category.id)
    logger.info(f"\nCategory to deactivate: {category.full_display_name} (ID: {category.id})")
    logger.info(f"  Used by {used_by} transaction(s); they keep their category.")

    if not args.yes:
        confirm = input("\nDeactivate this category? (yes/no): ").strip().lower()
        if confirm != "yes":
            logger.info("Deactivation cancelled.")
            return

    if services.categories.delete(category.id):
        logger.info(f"✓ Category '{category.name}' deactivated.")
    else:
        logger.error("Failed to deactivate category.")
        sys.exit(1)


def seed_categories(services, categories_data: List[dict]) -> Tuple[int, int]:
    """Create categories from seed data, skipping names that already exist.

    Args:
        services: Services container.
        categories_data: List of category dicts; each may carry a "children"
            list of subcategory dicts.

    Returns:
        (created_count, skipped_count)
    """
    created_count = 0
    skipped_count = 0

    def _seed_one(data, parent_id=None, indent=""):
        nonlocal created_count, skipped_count
        name = data.get("name")
        if not name:
            logger.warning(f"{indent}Skipping category with no name")
            return None

        existing = services.categories.find_by_name(name)
        if existing:
            logger.info(f"{indent}⊘ Skipped '{name}' (already exists)")
            skipped_count += 1
            return existing

        category = services.categories.create(
            name,
            data.get("display_name"),
            color_hex=data.get("color_hex", "#6C5CE7"),
            icon=data.get("icon"),
            parent_id=parent_id,
            keywords=data.get("keywords") or None,
            is_expense=data.get("is_expense", True),
        )
        logger.info(f"{indent}✓ Created '{name}' (ID: {category.id})")
        created_count += 1
        return category

    for category_data in categories_data:
        parent = _seed_one(category_data)
        if parent is None:
            continue
        for child_data in category_data.get("children", []):
            _seed_one(child_data, parent.id, indent="  ")

    return created_count, skipped_count


def cmd_seed(args, services):
    """Seed categories from the configured JSON file."""
    seed_file = services.config.category_seed_path

    if not seed_file.exists():
        logger.error(f"Seed file not found: {seed_file}")
        sys.exit(1)

    try:
        with open(seed_file, "r", encoding="utf-8") as f:
            categories_data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON file: {e}")
        sys.exit(1)

    logger.info(f"\nSeeding categories from {seed_file}")
    logger.info("=" * 80)

    created, skipped = seed_categories(services, categories_data)

    logger.info("=" * 80)
    logger.info(f"Created: {created}  Skipped: {skipped}  Total: {created + skipped}")


def cmd_stats(args, services):
    """Show how much of the store is categorized."""
    stats = services.categories.get_statistics()
    logger.info(f"Active categories:          {stats.total_categories}")
    logger.info(f"Transactions:               {stats.total_transactions}")
    logger.info(f"Uncategorized transactions: {stats.uncategorized_transactions}")
    logger.info(f"Categorization rate:        {stats.categorization_rate:.1f}%")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, deactivate and seed transaction categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    list_parser = categories_subparsers.add_parser("list", help="List categories")
    list_parser.add_argument(
        "--all", action="store_true", help="Include deactivated categories"
    )
    list_parser.set_defaults(func=cmd_list)

    create_parser = categories_subparsers.add_parser(
        "create", help="Create a new category interactively"
    )
    create_parser.set_defaults(func=cmd_create)

    delete_parser = categories_subparsers.add_parser(
        "delete", help="Deactivate a category by ID"
    )
    delete_parser.add_argument("category_id", type=int, help="ID of the category")
    delete_parser.add_argument(
        "--yes", action="store_true", help="Do not ask for confirmation"
    )
    delete_parser.set_defaults(func=cmd_delete)

    seed_parser = categories_subparsers.add_parser(
        "seed", help="Seed categories from JSON file"
    )
    seed_parser.set_defaults(func=cmd_seed)

    stats_parser = categories_subparsers.add_parser(
        "stats", help="Show categorization statistics"
    )
    stats_parser.set_defaults(func=cmd_stats)
