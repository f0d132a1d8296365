"""Transaction service for database operations."""

from typing import Dict, List, Optional, Tuple
from datetime import date, datetime
from decimal import Decimal
from db.manager import connection
from models.transaction import Transaction, TransactionState, TransactionType
from logger import get_logger

logger = get_logger()

# SQL Query Constants
_TRANSACTION_FIELDS = """bank_name, account_number, booking_date, value_date,
    transaction_type, amount, currency, reference, counterparty, category_id,
    processing_state, import_source, import_timestamp, raw_data"""

_TRANSACTION_SELECT_FIELDS = f"id, {_TRANSACTION_FIELDS}"

# Automatically generate placeholders from field count
_TRANSACTION_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_TRANSACTION_FIELDS.split(',')))})"
)

_TRANSACTION_UPDATE_SET = ", ".join(
    f"{field.strip()} = ?" for field in _TRANSACTION_FIELDS.split(",")
)

_ORDER_NEWEST_FIRST = "booking_date DESC, id"


class TransactionService:
    """Service for managing transactions.

    Amounts are written as decimal strings and read back into Decimal, and all
    sums are computed in Python so no amount is ever rounded through a float.
    """

    def __init__(self, db_manager):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(self, transaction: Transaction) -> Transaction:
        """Insert a new transaction.

        Args:
            transaction: Transaction object to insert. Its id is set on return.

        Returns:
            The same Transaction object with id populated.

        Raises:
            sqlite3.IntegrityError: If a constraint is violated (unknown category,
                invalid direction or state).
        """
        with self.db_manager.connect() as conn:
            self._insert(conn, transaction)
            conn.commit()

        logger.debug(f"Saved transaction: {transaction.id} - {transaction.reference}")
        return transaction

    def save(self, transaction: Transaction) -> Transaction:
        """Insert the transaction if it has no id yet, otherwise update it."""
        return self.save_all([transaction])[0]

    def save_all(self, transactions: List[Transaction]) -> List[Transaction]:
        """Persist a list of transactions in a single database transaction.

        New transactions (id is None) are inserted, the rest are updated.
        Either all rows are written or none are.

        Args:
            transactions: Transactions to persist.

        Returns:
            The same list, in the same order, with ids populated.

        Raises:
            ValueError: If an amount is NaN or infinite; nothing is written.
            Exception: Any storage error, after the whole batch is rolled back.
        """
        if not transactions:
            return transactions

        with self.db_manager.connect() as conn:
            try:
                for transaction in transactions:
                    if transaction.id is None:
                        self._insert(conn, transaction)
                    else:
                        conn.execute(
                            f"""
                            UPDATE transactions
                            SET {_TRANSACTION_UPDATE_SET}, updated_at = CURRENT_TIMESTAMP
                            WHERE id = ?
                            """,
                            (*self._to_params(transaction), transaction.id),
                        )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return transactions

    def update_states(
        self, transaction_ids: List[int], new_state: TransactionState
    ) -> int:
        """Set the processing state of several transactions.

        Args:
            transaction_ids: IDs of the transactions to update.
            new_state: State to set.

        Returns:
            Number of transactions updated.

        Raises:
            ValueError: If new_state is not a valid TransactionState.
        """
        new_state = TransactionState(new_state)
        if not transaction_ids:
            return 0

        with self.db_manager.connect() as conn:
            cursor = conn.executemany(
                "UPDATE transactions SET processing_state = ?, "
                "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                [(new_state.value, transaction_id) for transaction_id in transaction_ids],
            )
            conn.commit()
            updated = cursor.rowcount

        logger.info(f"Updated {updated} transactions to state: {new_state.value}")
        return updated

    def delete(self, transaction_id: int) -> bool:
        """Delete a transaction by ID.

        Returns:
            True if the transaction was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE id = ?", (transaction_id,)
            )
            conn.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted transaction: {transaction_id}")
        return deleted

    def find(self, transaction_id: int) -> Optional[Transaction]:
        """Get a single transaction by ID.

        Args:
            transaction_id: The transaction ID.

        Returns:
            Transaction object if found, None otherwise.
        """
        rows = self._select("id = ?", (transaction_id,))
        return rows[0] if rows else None

    def find_all(self) -> List[Transaction]:
        """Get all transactions, newest first."""
        return self._select()

    def find_by_ids(self, transaction_ids: List[int]) -> List[Transaction]:
        if not transaction_ids:
            return []
        placeholders = ", ".join(["?"] * len(transaction_ids))
        return self._select(f"id IN ({placeholders})", list(transaction_ids))

    def find_by_date_range(
        self, start_date: date, end_date: date, conn=None
    ) -> List[Transaction]:
        """Get transactions booked within a date range.

        Args:
            start_date: First booking date, inclusive.
            end_date: Last booking date, inclusive.

        Returns:
            List of Transaction objects ordered by booking date (newest first).
        """
        return self._select(
            "booking_date >= ? AND booking_date <= ?",
            (start_date.isoformat(), end_date.isoformat()),
            conn=conn,
        )

    def find_by_bank_name(self, bank_name: str) -> List[Transaction]:
        return self._select("bank_name = ?", (bank_name,))

    def find_by_account(self, account_number: str) -> List[Transaction]:
        return self._select("account_number = ?", (account_number,))

    def find_by_state(self, state: TransactionState) -> List[Transaction]:
        return self._select("processing_state = ?", (TransactionState(state).value,))

    def find_by_type(self, transaction_type: TransactionType) -> List[Transaction]:
        return self._select(
            "transaction_type = ?", (TransactionType(transaction_type).value,)
        )

    def find_expenses(self) -> List[Transaction]:
        """Get all DEBIT transactions with a negative amount."""
        return [t for t in self.find_by_type(TransactionType.DEBIT) if t.is_expense]

    def find_income(self) -> List[Transaction]:
        """Get all CREDIT transactions with a positive amount."""
        return [t for t in self.find_by_type(TransactionType.CREDIT) if t.is_income]

    def find_uncategorized(self) -> List[Transaction]:
        return self._select("category_id IS NULL")

    def search_by_reference(self, keyword: str) -> List[Transaction]:
        """Find transactions whose reference contains keyword (case-insensitive)."""
        return self._select("LOWER(reference) LIKE LOWER(?)", (f"%{keyword}%",))

    def find_by_counterparty(self, counterparty: str) -> List[Transaction]:
        """Find transactions whose counterparty contains the text (case-insensitive)."""
        return self._select("LOWER(counterparty) LIKE LOWER(?)", (f"%{counterparty}%",))

    def count(self, conn=None) -> int:
        with connection(self.db_manager, conn) as conn:
            return conn.execute("SELECT COUNT(*) FROM transactions").fetchone()[0]

    def count_uncategorized(self, conn=None) -> int:
        with connection(self.db_manager, conn) as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE category_id IS NULL"
            ).fetchone()[0]

    def count_by_category(
        self,
        category_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        """Count transactions of a category, optionally within a date range.

        Args:
            category_id: Category to count.
            start_date: Optional first booking date, inclusive.
            end_date: Optional last booking date, inclusive.

        Returns:
            Number of matching transactions of any direction.
        """
        query = "SELECT COUNT(*) FROM transactions WHERE category_id = ?"
        params = [category_id]

        if start_date is not None:
            query += " AND booking_date >= ?"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND booking_date <= ?"
            params.append(end_date.isoformat())

        with self.db_manager.connect() as conn:
            return conn.execute(query, params).fetchone()[0]

    def sum_income_in_period(
        self, start_date: date, end_date: date, conn=None
    ) -> Decimal:
        """Sum CREDIT amounts greater than zero booked in [start_date, end_date].

        Returns:
            The total, Decimal("0") when nothing matches.
        """
        amounts = self._amounts_in_period(
            TransactionType.CREDIT, start_date, end_date, conn
        )
        return sum((a for a in amounts if a > 0), Decimal("0"))

    def sum_expenses_in_period(
        self, start_date: date, end_date: date, conn=None
    ) -> Decimal:
        """Sum absolute DEBIT amounts below zero booked in [start_date, end_date].

        Returns:
            The total as a positive number, Decimal("0") when nothing matches.
        """
        amounts = self._amounts_in_period(
            TransactionType.DEBIT, start_date, end_date, conn
        )
        return sum((abs(a) for a in amounts if a < 0), Decimal("0"))

    def find_bank_names(self, conn=None) -> List[str]:
        """Get the distinct bank names, alphabetically."""
        with connection(self.db_manager, conn) as conn:
            cursor = conn.execute(
                "SELECT DISTINCT bank_name FROM transactions ORDER BY bank_name"
            )
            return [row[0] for row in cursor.fetchall()]

    def count_by_bank(self, conn=None) -> Dict[str, int]:
        """Count transactions per bank name."""
        with connection(self.db_manager, conn) as conn:
            cursor = conn.execute(
                "SELECT bank_name, COUNT(*) FROM transactions "
                "GROUP BY bank_name ORDER BY bank_name"
            )
            return {row[0]: row[1] for row in cursor.fetchall()}

    def find_counterparty_counts(self, conn=None) -> List[Tuple[str, int]]:
        """Count transactions per counterparty, ignoring rows without one.

        Returns:
            (counterparty, count) pairs, most frequent first.
        """
        with connection(self.db_manager, conn) as conn:
            cursor = conn.execute(
                """
                SELECT counterparty, COUNT(*) AS transaction_count
                FROM transactions
                WHERE counterparty IS NOT NULL
                GROUP BY counterparty
                ORDER BY transaction_count DESC, counterparty
                """
            )
            return [(row[0], row[1]) for row in cursor.fetchall()]

    def _amounts_in_period(
        self,
        transaction_type: TransactionType,
        start_date: date,
        end_date: date,
        conn=None,
    ) -> List[Decimal]:
        with connection(self.db_manager, conn) as conn:
            cursor = conn.execute(
                """
                SELECT amount FROM transactions
                WHERE transaction_type = ? AND booking_date >= ? AND booking_date <= ?
                """,
                (transaction_type.value, start_date.isoformat(), end_date.isoformat()),
            )
            return [Decimal(row[0]) for row in cursor.fetchall()]

    def _select(
        self,
        where: str = "",
        params=(),
        order_by: str = _ORDER_NEWEST_FIRST,
        conn=None,
    ) -> List[Transaction]:
        query = f"SELECT {_TRANSACTION_SELECT_FIELDS} FROM transactions"
        if where:
            query += f" WHERE {where}"
        query += f" ORDER BY {order_by}"

        with connection(self.db_manager, conn) as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_transaction(row) for row in rows]

    def _insert(self, conn, transaction: Transaction) -> None:
        cursor = conn.execute(
            f"""
            INSERT INTO transactions ({_TRANSACTION_FIELDS})
            VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
            """,
            self._to_params(transaction),
        )
        transaction.id = cursor.lastrowid

    def _to_params(self, t: Transaction) -> tuple:
        """Convert a Transaction to column values, in _TRANSACTION_FIELDS order.

        Raises:
            ValueError: If the amount is NaN or infinite.
        """
        amount = Decimal(t.amount)
        if not amount.is_finite():
            raise ValueError(f"Transaction amount must be a finite number, got {amount}")
        return (
            t.bank_name,
            t.account_number,
            t.booking_date.isoformat(),
            t.value_date.isoformat() if t.value_date else None,
            TransactionType(t.type).value,
            str(amount),
            t.currency,
            t.reference,
            t.counterparty,
            t.category_id,
            TransactionState(t.state).value,
            t.import_source,
            t.import_timestamp.isoformat() if t.import_timestamp else None,
            t.raw_data,
        )

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row[0],
            bank_name=row[1],
            account_number=row[2],
            booking_date=date.fromisoformat(row[3]),
            value_date=date.fromisoformat(row[4]) if row[4] else None,
            type=TransactionType(row[5]),
            amount=Decimal(row[6]),
            currency=row[7],
            reference=row[8],
            counterparty=row[9],
            category_id=row[10],
            state=TransactionState(row[11]),
            import_source=row[12],
            import_timestamp=datetime.fromisoformat(row[13]) if row[13] else None,
            raw_data=row[14],
        )
