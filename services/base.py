"""Base services container for dependency injection."""

from categorization import ActiveCategoryCache
from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject mock services for testing. It owns the single
    ActiveCategoryCache and hands the same instance to every service that
    reads or writes categories.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is ignored.
    """

    def __init__(self, config: Config, db_manager=None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)
        self.category_cache = ActiveCategoryCache()

        # Lazy import to avoid circular dependencies
        from services.categories import CategoryService
        from services.transactions import TransactionService
        from services.categorizer import CategorizationService

        self.categories = CategoryService(self.db_manager, self.category_cache)
        self.transactions = TransactionService(self.db_manager)
        self.categorization = CategorizationService(
            self.categories, self.transactions, self.category_cache
        )
