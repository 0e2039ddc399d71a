from dataclasses import dataclass

from .sql_security import sanitize_identifier


@dataclass(frozen=True)
class ColumnSpec:
    """
    One column of the loaded table.

    `name` is the canonical flattened key path used for row lookups;
    `identifier` is its sanitized form, used only in emitted SQL.
    """

    name: str
    sql_type: str

    @property
    def identifier(self) -> str:
        return sanitize_identifier(self.name)
