"""
Column type inference over a bounded sample of flat rows.

The merge policy is deliberately conservative: the first non-null
observation sets a column's type and any later disagreement collapses the
column to TEXT. INTEGER and REAL disagreeing also yields TEXT; there is no
numeric promotion.
"""

import logging
from typing import Any, Dict, List, Optional

from .constants import SQL_INTEGER, SQL_REAL, SQL_TEXT
from .models import ColumnSpec

logger = logging.getLogger(__name__)


def infer_sql_type(value: Any) -> str:
    """
    Map a flat row value onto a column type.

    None infers TEXT; callers sampling many rows treat None as "unknown" and
    skip it when merging.
    """
    if value is None:
        return SQL_TEXT
    if isinstance(value, bool):
        return SQL_INTEGER
    if isinstance(value, int):
        return SQL_INTEGER
    if isinstance(value, float):
        return SQL_INTEGER if value.is_integer() else SQL_REAL
    return SQL_TEXT


def merge_types(old: Optional[str], new: Optional[str]) -> Optional[str]:
    """
    Combine the running type of a column with a new observation.

    None on either side means "not observed yet" and yields the other side.
    """
    if old is None:
        return new
    if new is None or new == old:
        return old
    return SQL_TEXT


class TypeInferencer:
    """Accumulates per-column type observations across the sample"""

    def __init__(self):
        # Insertion order is first-seen order, which becomes column order
        self._types: Dict[str, Optional[str]] = {}
        self.observed = 0

    def observe(self, row: Dict[str, Any]):
        for key, value in row.items():
            observed_type = None if value is None else infer_sql_type(value)
            previous = self._types.get(key)
            merged = merge_types(previous, observed_type)
            if previous is not None and merged != previous:
                logger.debug("Column %r widened from %s to %s", key, previous, merged)
            self._types[key] = merged
        self.observed += 1

    @property
    def column_names(self) -> List[str]:
        return list(self._types)

    def finalize(self) -> List[ColumnSpec]:
        """
        Freeze the observations into column specs.

        Columns only ever observed as null finalize as TEXT.
        """
        return [
            ColumnSpec(name, sql_type or SQL_TEXT)
            for name, sql_type in self._types.items()
        ]
