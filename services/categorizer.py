"""Categorization service: runs the strategy chain against stored categories."""

from typing import List, Optional
from categorization import UNCATEGORIZED, ActiveCategoryCache, categorize, find_by_name
from models.category import Category
from models.transaction import Transaction, TransactionState
from logger import get_logger

logger = get_logger()


class CategorizationService:
    """Assigns categories to transactions and persists the result.

    Args:
        category_service: Source of the active categories.
        transaction_service: Used to persist categorized transactions.
        cache: Active category cache shared with category_service, so every
            category write made there is seen here on the next call.
    """

    def __init__(
        self,
        category_service,
        transaction_service,
        cache: Optional[ActiveCategoryCache] = None,
    ):
        self.categories = category_service
        self.transactions = transaction_service
        self.cache = cache or category_service.cache

    def get_active_categories(self) -> List[Category]:
        return self.cache.get(self.categories.find_active)

    def categorize(self, transaction: Transaction) -> Optional[Category]:
        """Find the category for a single transaction without modifying it.

        Returns:
            The matching Category, or None if nothing matches.
        """
        logger.debug(f"Categorizing transaction: {transaction.reference}")
        return categorize(transaction, self.get_active_categories())

    def process_batch(self, transactions: List[Transaction]) -> List[Transaction]:
        """Categorize every transaction in the list that has no category yet.

        Transactions that already carry a category are left untouched. Every
        other transaction gets the matched category (or "uncategorized" when it
        exists, otherwise no category) and is marked PROCESSED. The whole list
        is then saved in one database transaction.

        Args:
            transactions: Transactions to categorize and persist.

        Returns:
            The same list, in the same order, persisted.
        """
        logger.info(f"Processing batch of {len(transactions)} transactions")

        categorized_count = 0
        for transaction in transactions:
            if transaction.category_id is not None:
                continue

            category = self.categorize(transaction)
            if category is not None:
                transaction.category_id = category.id
                categorized_count += 1
                logger.debug(
                    f"Categorized: {transaction.reference} -> {category.full_display_name}"
                )
            else:
                fallback = find_by_name(self.get_active_categories(), UNCATEGORIZED)
                if fallback is not None:
                    transaction.category_id = fallback.id
            transaction.state = TransactionState.PROCESSED

        saved = self.transactions.save_all(transactions)
        logger.info(
            f"Batch processed: {categorized_count}/{len(transactions)} transactions categorized"
        )
        return saved

    def save_transaction(self, transaction: Transaction) -> Transaction:
        """Persist a transaction, auto-categorizing it first if it has no category.

        Unlike process_batch, the processing state is left as it is.
        """
        if transaction.category_id is None:
            category = self.categorize(transaction)
            if category is not None:
                transaction.category_id = category.id
        return self.transactions.save(transaction)

    def recategorize_all(self) -> List[Transaction]:
        """Run process_batch over every stored transaction without a category."""
        logger.info("Starting re-categorization of all transactions")

        uncategorized = self.transactions.find_uncategorized()
        logger.info(f"Found {len(uncategorized)} uncategorized transactions")

        processed = self.process_batch(uncategorized)
        logger.info("Re-categorization completed")
        return processed
