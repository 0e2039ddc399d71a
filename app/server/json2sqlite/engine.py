"""
Narrow command interface to the relational engine.

The loader only ever needs to run DDL/DML text, run one prepared statement
per row, control a transaction and export the database as bytes. SQLiteEngine
provides exactly that over an in-memory sqlite3 connection.
"""

import logging
import sqlite3
from typing import Any, Iterable, Optional, Sequence

from .sql_security import execute_query_safely

logger = logging.getLogger(__name__)


class SQLiteEngine:
    """sqlite3-backed engine with explicit transaction control"""

    def __init__(self, database: str = ":memory:"):
        self.database = database
        # isolation_level=None: no implicit BEGIN, transactions are explicit
        self.connection = sqlite3.connect(database, isolation_level=None)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None, identifier_params=None) -> sqlite3.Cursor:
        return execute_query_safely(self.connection, sql, params, identifier_params)

    def run_many(self, sql: str, rows: Iterable[Sequence[Any]]) -> int:
        """Prepare `sql` once and run it for every row. Returns the row count."""
        cursor = self.connection.executemany(sql, rows)
        return cursor.rowcount

    @property
    def in_transaction(self) -> bool:
        return self.connection.in_transaction

    def begin(self):
        self.connection.execute("BEGIN")

    def commit(self):
        self.connection.execute("COMMIT")

    def rollback(self):
        if self.connection.in_transaction:
            self.connection.execute("ROLLBACK")

    def export(self) -> bytes:
        """Serialize the whole database into a standalone SQLite file image"""
        return self.connection.serialize()

    def close(self):
        self.connection.close()
