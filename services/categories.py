"""Category service for database operations."""

from typing import List, Optional
from categorization import ActiveCategoryCache
from db.manager import connection
from models.category import Category, DEFAULT_COLOR
from models.report import CategoryStatistics
from logger import get_logger

logger = get_logger()

_CATEGORY_SELECT_FIELDS = (
    "id, name, display_name, color_hex, icon, parent_id, keywords, is_expense, is_active"
)


class CategoryService:
    """Service for managing categories.

    Categories are never hard-deleted: delete() deactivates them so historical
    transactions keep a valid reference.
    """

    def __init__(self, db_manager, cache: Optional[ActiveCategoryCache] = None):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
            cache: Active category cache to invalidate on every write.
        """
        self.db_manager = db_manager
        self.cache = cache or ActiveCategoryCache()

    def _query(
        self, where: str = "", params=(), order_by: str = "id", conn=None
    ) -> List[Category]:
        query = f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories"
        if where:
            query += f" WHERE {where}"
        query += f" ORDER BY {order_by}"

        with connection(self.db_manager, conn) as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_category(row) for row in rows]

    def find_all(self, conn=None) -> List[Category]:
        """Get all categories, active or not, ordered by name."""
        return self._query(order_by="name", conn=conn)

    def find_active(self) -> List[Category]:
        """Get all active categories.

        Returns:
            Active categories ordered by id. This order decides which category
            wins when several match the same transaction.
        """
        return self._query("is_active = 1")

    def get_active_categories(self) -> List[Category]:
        """Get the active categories through the cache."""
        return self.cache.get(self.find_active)

    def find_main(self) -> List[Category]:
        """Get active top-level categories."""
        return self._query("parent_id IS NULL AND is_active = 1")

    def find_children(self, parent_id: int) -> List[Category]:
        """Get active subcategories of a category."""
        return self._query("parent_id = ? AND is_active = 1", (parent_id,))

    def find_expense_categories(self) -> List[Category]:
        return self._query("is_expense = 1 AND is_active = 1")

    def find_income_categories(self) -> List[Category]:
        return self._query("is_expense = 0 AND is_active = 1")

    def find_active_colors(self) -> List[str]:
        """Get chart colors of the active categories, in id order."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT color_hex FROM categories "
                "WHERE is_active = 1 AND color_hex IS NOT NULL ORDER BY id"
            )
            return [row[0] for row in cursor.fetchall()]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID, whether active or not.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        rows = self._query("id = ?", (category_id,))
        return rows[0] if rows else None

    def find_by_name(self, name: str) -> Optional[Category]:
        """Get a single active category by name.

        Args:
            name: The category name to find (case-sensitive).

        Returns:
            Category object if found and active, None otherwise.
        """
        rows = self._query("name = ? AND is_active = 1", (name,))
        return rows[0] if rows else None

    def create(
        self,
        name: str,
        display_name: Optional[str] = None,
        *,
        color_hex: str = DEFAULT_COLOR,
        icon: Optional[str] = None,
        parent_id: Optional[int] = None,
        keywords: Optional[str] = None,
        is_expense: bool = True,
    ) -> Category:
        """Create a new category.

        Args:
            name: Category name (must be unique).
            display_name: Label for the UI, defaults to the name.
            color_hex: Chart color.
            icon: Optional icon.
            parent_id: Optional parent category ID.
            keywords: Delimited keyword string, e.g. "REWE,EDEKA".
            is_expense: False for income categories.

        Returns:
            The created Category object with id populated.

        Raises:
            sqlite3.IntegrityError: If the name is taken or the parent does not exist.
        """
        category = Category(
            id=None,
            name=name,
            display_name=display_name or name,
            color_hex=color_hex,
            icon=icon,
            parent_id=parent_id,
            keywords=keywords,
            is_expense=is_expense,
        )

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO categories
                    (name, display_name, color_hex, icon, parent_id, keywords, is_expense, is_active)
                VALUES (?, ?, ?, ?, ?, ?, ?, 1)
                """,
                (
                    category.name,
                    category.display_name,
                    category.color_hex,
                    category.icon,
                    category.parent_id,
                    category.keywords,
                    int(category.is_expense),
                ),
            )
            conn.commit()
            category.id = cursor.lastrowid

        self.cache.invalidate()
        logger.info(f"Saved category: {category.full_display_name}")
        return category

    def update(self, category: Category) -> Category:
        """Write all fields of an existing category.

        Args:
            category: Category with id set and the new field values.

        Returns:
            The same Category object.

        Raises:
            ValueError: If no category with that ID exists.
            sqlite3.IntegrityError: If the new name is already taken.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE categories
                SET name = ?, display_name = ?, color_hex = ?, icon = ?, parent_id = ?,
                    keywords = ?, is_expense = ?, is_active = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (
                    category.name,
                    category.display_name,
                    category.color_hex,
                    category.icon,
                    category.parent_id,
                    category.keywords,
                    int(category.is_expense),
                    int(category.is_active),
                    category.id,
                ),
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise ValueError(f"Category with ID {category.id} not found")

        self.cache.invalidate()
        logger.info(f"Updated category: {category.full_display_name}")
        return category

    def delete(self, category_id: int) -> bool:
        """Soft-delete a category by marking it inactive.

        Args:
            category_id: The category ID to deactivate.

        Returns:
            True if the category was deactivated, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "UPDATE categories SET is_active = 0, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ?",
                (category_id,),
            )
            conn.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            self.cache.invalidate()
            logger.info(f"Deactivated category ID {category_id}")
        return deleted

    def clear_cache(self) -> None:
        self.cache.invalidate()

    def count_transactions(self, category_id: int) -> int:
        """Count all transactions assigned to a category."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE category_id = ?",
                (category_id,),
            )
            return cursor.fetchone()[0]

    def get_statistics(self) -> CategoryStatistics:
        """Summarize how much of the transaction store is categorized."""
        active = self.get_active_categories()
        with self.db_manager.connect() as conn:
            total, uncategorized = conn.execute(
                "SELECT COUNT(*), COUNT(*) - COUNT(category_id) FROM transactions"
            ).fetchone()

        rate = (total - uncategorized) / total * 100 if total > 0 else 0.0
        return CategoryStatistics(
            total_categories=len(active),
            total_transactions=total,
            uncategorized_transactions=uncategorized,
            categorization_rate=rate,
        )

    def _row_to_category(self, row: tuple) -> Category:
        """Convert a database row to a Category object."""
        return Category(
            id=row[0],
            name=row[1],
            display_name=row[2],
            color_hex=row[3],
            icon=row[4],
            parent_id=row[5],
            keywords=row[6],
            is_expense=bool(row[7]),
            is_active=bool(row[8]),
        )
