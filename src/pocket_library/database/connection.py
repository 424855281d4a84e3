"""SQLite connection management with context manager."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional


class DatabaseConnection:
    """Opens one short-lived SQLite connection per unit of work.

    Write units pass ``write=True`` to take the database write lock at
    BEGIN, so a second process holding the file waits up to
    ``BUSY_TIMEOUT_SECONDS`` and then fails with ``sqlite3.OperationalError``.
    """

    BUSY_TIMEOUT_SECONDS = 10.0

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self, write: bool = False):
        """Yield a connection that commits on success, rolls back on error."""
        conn = sqlite3.connect(
            str(self.db_path), timeout=self.BUSY_TIMEOUT_SECONDS
        )
        conn.row_factory = sqlite3.Row
        try:
            if write:
                conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Run a single statement and return the fetched rows."""
        with self.get_connection() as conn:
            return conn.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """First row of a query, or None."""
        with self.get_connection() as conn:
            return conn.execute(sql, params).fetchone()

    def execute_script(self, sql_script: str):
        """Run a multi-statement SQL script."""
        with self.get_connection() as conn:
            conn.executescript(sql_script)
