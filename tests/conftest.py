"""Shared pytest fixtures for all tests."""

import sqlite3
import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path

from cli.migrate import apply_pending
from config import Config, get_migrations_dir
from models.transaction import Transaction, TransactionType
from services.base import Services


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:")
    conn.execute("PRAGMA foreign_keys = ON")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary database.

    Args:
        tmp_path: pytest tmp_path fixture for temporary directory.

    Returns:
        Config: Test configuration object.
    """
    return Config(
        base_dir=tmp_path / "bankfolio",
        db_data_dir=tmp_path / "bankfolio" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "bankfolio" / "logs",
    )


class TestDatabaseManager:
    """Test database manager that uses a single in-memory connection."""

    __test__ = False

    def __init__(self, conn):
        self.conn = conn

    def connect(self):
        """Return a context manager for the test connection."""
        return _TestConnectionContext(self.conn)

    def get_db_path(self):
        """Return a fake path for the test database."""
        return Path(":memory:")

    def get_migrations_dir(self):
        return get_migrations_dir()


class _TestConnectionContext:
    """Context manager for test database connections."""

    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Don't close the connection - let the fixture handle it
        pass


@pytest.fixture
def db_manager_with_schema(test_db):
    """Create a DatabaseManager with the schema already applied.

    Args:
        test_db: In-memory database connection fixture.

    Returns:
        TestDatabaseManager: Database manager with schema ready.
    """
    db_manager = TestDatabaseManager(test_db)
    apply_pending(db_manager)
    return db_manager


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Create a Services container with test database.

    Args:
        test_config: Test configuration fixture.
        db_manager_with_schema: Database manager with schema set up.

    Returns:
        Services: Services container for testing.
    """
    return Services(test_config, db_manager=db_manager_with_schema)


@pytest.fixture
def make_transaction():
    """Factory for unsaved transactions with sensible defaults."""

    def _make(
        amount="-10.00",
        reference="Kartenzahlung",
        counterparty=None,
        booking_date=date(2024, 12, 15),
        type=None,
        bank_name="Sparkasse",
        **kwargs,
    ):
        amount = Decimal(amount)
        if type is None:
            type = TransactionType.DEBIT if amount < 0 else TransactionType.CREDIT
        return Transaction(
            bank_name=bank_name,
            booking_date=booking_date,
            type=type,
            amount=amount,
            reference=reference,
            counterparty=counterparty,
            **kwargs,
        )

    return _make
