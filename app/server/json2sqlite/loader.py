"""
Batched, transactional row loading.

Rows are buffered in arrival order. Each flush is one all-or-nothing unit of
work: pending ALTER TABLE migrations, then one prepared INSERT run per row,
then COMMIT. Any failure rolls the whole unit back.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .constants import SQLITE_MAX_INTEGER, SQLITE_MIN_INTEGER
from .exceptions import BatchInsertError, ConversionError
from .models import ColumnSpec
from .schema import SchemaRegistry

logger = logging.getLogger(__name__)


def row_values(row: Dict[str, Any], columns: Sequence[ColumnSpec]) -> tuple:
    """
    Positional insert values for `row`, ordered by `columns`.

    Missing keys become NULL and booleans become 0/1. Integers beyond the
    64-bit range SQLite can bind are passed as floats.
    """
    values = []
    for column in columns:
        value = row.get(column.name)
        if isinstance(value, bool):
            value = int(value)
        elif isinstance(value, int) and not SQLITE_MIN_INTEGER <= value <= SQLITE_MAX_INTEGER:
            value = float(value)
        values.append(value)
    return tuple(values)


class BatchLoader:
    """
    Buffers flat rows and commits them in batches of `batch_size`.

    Args:
        engine: Relational engine (see engine.SQLiteEngine)
        registry: Materialized schema registry for the target table
        batch_size: Number of buffered rows that triggers a flush
        on_progress: Called with the cumulative row count after each commit
        on_new_column: Called with each column whose migration was committed
    """

    def __init__(
        self,
        engine,
        registry: SchemaRegistry,
        batch_size: int,
        on_progress: Optional[Callable[[int], None]] = None,
        on_new_column: Optional[Callable[[ColumnSpec], None]] = None,
    ):
        self.engine = engine
        self.registry = registry
        self.batch_size = batch_size
        self.on_progress = on_progress
        self.on_new_column = on_new_column
        self._rows: List[Dict[str, Any]] = []
        self.total_rows = 0
        self.batches_committed = 0
        self.columns_added: List[ColumnSpec] = []

    @property
    def buffered(self) -> int:
        return len(self._rows)

    def add(self, row: Dict[str, Any]):
        """Buffer a row, flushing once the buffer reaches batch_size"""
        self._rows.append(row)
        if len(self._rows) >= self.batch_size:
            self.flush()

    def flush(self) -> int:
        """
        Commit the buffered rows, applying pending migrations first.

        Returns:
            Number of rows committed (0 when the buffer is empty)

        Raises:
            MigrationError: If an ALTER TABLE failed; nothing was committed
            BatchInsertError: If any row failed to insert; nothing was committed
        """
        if not self._rows:
            return 0

        rows = self._rows
        self._rows = []
        column_mark = len(self.registry.columns)

        self.engine.begin()
        try:
            applied = self.registry.apply_pending(self.engine)
            columns = self.registry.columns
            try:
                self.engine.run_many(
                    self.registry.insert_sql(),
                    (row_values(row, columns) for row in rows),
                )
            except Exception as e:
                raise BatchInsertError(
                    f"Failed to insert batch of {len(rows)} rows: {e}"
                ) from e
            self.engine.commit()
        except ConversionError:
            self._rollback(column_mark)
            raise
        except Exception as e:
            self._rollback(column_mark)
            raise BatchInsertError(f"Failed to commit batch of {len(rows)} rows: {e}") from e

        self.registry.clear_pending()
        self.total_rows += len(rows)
        self.batches_committed += 1
        logger.debug(
            "Committed batch %d: %d rows, %d new columns, %d total rows",
            self.batches_committed, len(rows), len(applied), self.total_rows,
        )

        for column in applied:
            logger.info("Added column %r (%s)", column.name, column.sql_type)
            self.columns_added.append(column)
            if self.on_new_column:
                self.on_new_column(column)
        if self.on_progress:
            self.on_progress(self.total_rows)
        return len(rows)

    def _rollback(self, column_mark: int):
        self.engine.rollback()
        self.registry.revert_to(column_mark)

    def finish(self) -> int:
        """Flush whatever remains at end of stream"""
        return self.flush()
