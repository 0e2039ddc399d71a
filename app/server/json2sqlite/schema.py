"""
Schema registry: the authoritative, append-only column list of the table.

Lifecycle:
    EMPTY -> MATERIALIZING   first sampled row observed
    MATERIALIZING -> MATERIALIZED   materialize() creates the table
After materialization, unknown keys discovered in rows are queued as pending
columns and applied with ALTER TABLE by the batch loader.
"""

import logging
import sqlite3
from enum import Enum
from typing import Any, Dict, List, Set, Tuple

from .exceptions import EmptySchemaError, MigrationError, PipelineStateError, TableCreationError
from .inference import TypeInferencer, infer_sql_type
from .models import ColumnSpec
from .sql_security import SQLSecurityError, quote_identifier

logger = logging.getLogger(__name__)


class RegistryState(str, Enum):
    EMPTY = "empty"
    MATERIALIZING = "materializing"
    MATERIALIZED = "materialized"


class SchemaRegistry:
    """Owns the ordered column list, its membership set and the pending queue"""

    def __init__(self, table_name: str):
        self.table_name = table_name
        self._inferencer = TypeInferencer()
        self._columns: List[ColumnSpec] = []
        # Names in the table plus names queued for ALTER TABLE
        self._known: Set[str] = set()
        self._pending: List[ColumnSpec] = []
        self.state = RegistryState.EMPTY

    @property
    def columns(self) -> Tuple[ColumnSpec, ...]:
        return tuple(self._columns)

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self._columns]

    @property
    def pending(self) -> Tuple[ColumnSpec, ...]:
        return tuple(self._pending)

    @property
    def sample_count(self) -> int:
        return self._inferencer.observed

    @property
    def is_materialized(self) -> bool:
        return self.state == RegistryState.MATERIALIZED

    def is_known(self, name: str) -> bool:
        return name in self._known

    def observe(self, row: Dict[str, Any]):
        """Feed a sampled row to type inference"""
        if self.is_materialized:
            raise PipelineStateError("Schema is already materialized; sampling has ended")
        self._inferencer.observe(row)
        self.state = RegistryState.MATERIALIZING

    def create_table_sql(self, columns=None) -> str:
        columns = self._columns if columns is None else columns
        definitions = ", ".join(
            f"{quote_identifier(column.identifier, 'column')} {column.sql_type}"
            for column in columns
        )
        return f"CREATE TABLE {quote_identifier(self.table_name, 'table')} ({definitions})"

    def add_column_sql(self, column: ColumnSpec) -> str:
        return (
            f"ALTER TABLE {quote_identifier(self.table_name, 'table')} "
            f"ADD COLUMN {quote_identifier(column.identifier, 'column')} {column.sql_type}"
        )

    def insert_sql(self) -> str:
        names = ", ".join(quote_identifier(column.identifier, 'column') for column in self._columns)
        placeholders = ", ".join("?" for _ in self._columns)
        return f"INSERT INTO {quote_identifier(self.table_name, 'table')} ({names}) VALUES ({placeholders})"

    def materialize(self, engine) -> str:
        """
        Finalize the sampled types and create the table.

        Returns:
            The CREATE TABLE statement that was executed

        Raises:
            EmptySchemaError: If the sample produced no columns
            TableCreationError: If the engine rejects the DDL
        """
        if self.is_materialized:
            raise PipelineStateError(f"Table {self.table_name!r} is already materialized")

        columns = self._inferencer.finalize()
        if not columns:
            raise EmptySchemaError(
                f"No schema could be detected from {self.sample_count} sampled object(s)"
            )

        try:
            ddl = self.create_table_sql(columns)
            engine.execute(ddl)
        except (SQLSecurityError, sqlite3.Error) as e:
            raise TableCreationError(f"Failed to create table {self.table_name!r}: {e}") from e

        self._columns = list(columns)
        self._known = {column.name for column in columns}
        self.state = RegistryState.MATERIALIZED
        logger.info("Table %r created with %d columns", self.table_name, len(columns))
        return ddl

    def discover(self, row: Dict[str, Any]) -> List[ColumnSpec]:
        """
        Queue every key of `row` that is not yet known.

        The type of a newly discovered column is guessed from this single
        value; later rows never revise it.
        """
        if not self.is_materialized:
            raise PipelineStateError("Cannot discover columns before the table exists")

        discovered = []
        for key, value in row.items():
            if key in self._known:
                continue
            column = ColumnSpec(key, infer_sql_type(value))
            self._known.add(key)
            self._pending.append(column)
            discovered.append(column)
            logger.debug("Queued new column %r (%s)", key, column.sql_type)
        return discovered

    def apply_pending(self, engine) -> List[ColumnSpec]:
        """
        Execute one ALTER TABLE per pending column.

        Each column joins the schema as soon as its ALTER succeeds. Must run
        inside the caller's transaction; the queue itself is only cleared by
        clear_pending() once that transaction commits.

        Raises:
            MigrationError: On the first ALTER TABLE that fails
        """
        applied = []
        for column in self._pending:
            try:
                engine.execute(self.add_column_sql(column))
            except (SQLSecurityError, sqlite3.Error) as e:
                raise MigrationError(f"Failed to add column {column.name!r}: {e}") from e
            self._columns.append(column)
            applied.append(column)
        return applied

    def clear_pending(self):
        self._pending.clear()

    def revert_to(self, column_count: int):
        """
        Return to the committed schema after a rollback.

        Columns appended after `column_count` are dropped, the pending queue is
        emptied and the membership set is rebuilt from the remaining columns.
        """
        del self._columns[column_count:]
        self._pending.clear()
        self._known = {column.name for column in self._columns}
