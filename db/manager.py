"""Database manager for SQLite connections and path management."""

import sqlite3
from contextlib import contextmanager
from config import Config, get_migrations_dir


class DatabaseManager:
    """Manages database connections and paths.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        self.config = config

    @contextmanager
    def connect(self):
        """Get a database connection with automatic cleanup.

        Foreign keys are enforced on every connection so that transactions
        cannot point at a category that does not exist.

        Yields:
            sqlite3.Connection: Database connection.
        """
        db_path = self.config.db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def get_db_path(self):
        """Get the current database path.

        Returns:
            Path: Path to the database file.
        """
        return self.config.db_path

    def get_migrations_dir(self):
        """Get the migrations directory path.

        Returns:
            Path: Path to the migrations directory.
        """
        return get_migrations_dir()


@contextmanager
def connection(db_manager, conn=None):
    """Yield conn when given, otherwise a fresh connection from db_manager.

    Lets read methods join a caller's connection, and with it the caller's
    database transaction.
    """
    if conn is not None:
        yield conn
    else:
        with db_manager.connect() as new_conn:
            yield new_conn


@contextmanager
def read_transaction(db_manager):
    """Open one connection inside a read-only database transaction.

    Every query run on the yielded connection sees the same snapshot of the
    database. The transaction is rolled back on exit; nothing is written.

    Yields:
        sqlite3.Connection: Connection with an open transaction.
    """
    with db_manager.connect() as conn:
        started = not conn.in_transaction
        if started:
            conn.execute("BEGIN")
        try:
            yield conn
        finally:
            if started:
                conn.rollback()
