"""
SQL identifier handling and safe query execution.

Identifiers and values travel through two separate paths: identifiers are
sanitized against an allow-list, validated and double-quoted before being
formatted into SQL text; values are only ever bound as positional parameters.
"""

import re
import sqlite3
from typing import Any, Dict, Optional, Sequence

_UNSAFE_IDENTIFIER_CHARS = re.compile(r'[^a-zA-Z0-9_]')
_SAFE_IDENTIFIER = re.compile(r'[a-zA-Z0-9_]+')
RESERVED_TABLE_PREFIX = 'sqlite_'


class SQLSecurityError(Exception):
    """Raised when an identifier fails validation"""


def sanitize_identifier(name: str) -> str:
    """
    Map a canonical (flattened) name onto the SQL identifier allow-list.

    Every character outside [a-zA-Z0-9_] becomes an underscore. An empty
    name becomes a single underscore.
    """
    sanitized = _UNSAFE_IDENTIFIER_CHARS.sub('_', name)
    return sanitized or '_'


def validate_identifier(identifier: str, kind: str = "identifier") -> str:
    """
    Check that an identifier only contains allow-listed characters.

    Raises:
        SQLSecurityError: If the identifier is empty or contains
            characters outside [a-zA-Z0-9_]
    """
    if not identifier:
        raise SQLSecurityError(f"Empty {kind} name")
    if not _SAFE_IDENTIFIER.fullmatch(identifier):
        raise SQLSecurityError(f"Invalid {kind} name: {identifier!r}")
    return identifier


def quote_identifier(identifier: str, kind: str = "identifier") -> str:
    """Validate and double-quote an identifier for use in SQL text"""
    return f'"{validate_identifier(identifier, kind)}"'


def format_query(query: str, identifier_params: Optional[Dict[str, str]] = None) -> str:
    """
    Substitute {name} placeholders in a query with quoted identifiers.

    Example:
        >>> format_query("SELECT COUNT(*) FROM {table}", {"table": "users"})
        'SELECT COUNT(*) FROM "users"'
    """
    if not identifier_params:
        return query
    quoted = {
        key: quote_identifier(value, key)
        for key, value in identifier_params.items()
    }
    return query.format(**quoted)


def execute_query_safely(
    conn: sqlite3.Connection,
    query: str,
    params: Optional[Sequence[Any]] = None,
    identifier_params: Optional[Dict[str, str]] = None,
) -> sqlite3.Cursor:
    """
    Execute a query with validated identifiers and bound values.

    Args:
        conn: Open SQLite connection
        query: SQL text, with {name} placeholders for identifiers and ? for values
        params: Positional values bound to the ? placeholders
        identifier_params: Identifiers substituted into the {name} placeholders

    Returns:
        The cursor the query was executed on
    """
    sql = format_query(query, identifier_params)
    return conn.execute(sql, tuple(params) if params is not None else ())


def sanitize_table_name(table_name: str) -> str:
    """
    Sanitize table name for SQLite by removing/replacing bad characters
    and validating against SQL injection
    """
    sanitized = sanitize_identifier(table_name.strip())

    # Ensure it starts with a letter or underscore
    if not sanitized[0].isalpha() and sanitized[0] != '_':
        sanitized = '_' + sanitized

    # SQLite reserves the sqlite_ prefix for its own tables
    if sanitized.lower().startswith(RESERVED_TABLE_PREFIX):
        sanitized = '_' + sanitized

    return validate_identifier(sanitized, "table")
