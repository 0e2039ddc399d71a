"""
Host notifications.

Subclass ConversionListener and override the hooks you care about; every
hook is a no-op by default. Hooks are called synchronously from the thread
driving the pipeline.
"""

from typing import List

from .exceptions import ErrorKind


class ConversionListener:

    def on_schema(self, table_name: str, columns: List[str], ddl: str):
        """The table was created with `columns`, using the `ddl` statement"""

    def on_progress(self, total_rows: int):
        """A batch was committed; `total_rows` rows are now in the table"""

    def on_new_column(self, name: str, sql_type: str):
        """A migration adding column `name` was committed"""

    def on_complete(self, total_rows: int, db_size: int):
        """The stream ended and the last batch was committed"""

    def on_error(self, kind: ErrorKind, message: str, fatal: bool):
        """A per-object warning (fatal=False) or a run-halting error (fatal=True)"""
