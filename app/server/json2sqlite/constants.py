"""
Constants configuration for streaming JSON conversion.

This module defines configuration constants used across the loader,
particularly for flattening nested objects and sizing the sample and batch
windows of a conversion run.
"""

# Delimiter used to concatenate nested object keys when flattening JSON objects
# Example: {"user": {"name": "John"}} becomes {"user_name": "John"}
NESTED_FIELD_DELIMITER = "_"

# Default name of the table a conversion run materializes
DEFAULT_TABLE_NAME = "data"

# Number of leading objects used to infer the base schema
DEFAULT_SAMPLE_SIZE = 100

# Number of rows committed together in one transaction
DEFAULT_BATCH_SIZE = 1000

# Size of the byte slices read from an input file and fed to the pipeline
DEFAULT_CHUNK_SIZE = 64 * 1024

# Column types emitted in DDL
SQL_INTEGER = "INTEGER"
SQL_REAL = "REAL"
SQL_TEXT = "TEXT"

# Range of a SQLite INTEGER; integers outside it are stored as REAL
SQLITE_MIN_INTEGER = -2 ** 63
SQLITE_MAX_INTEGER = 2 ** 63 - 1

# Prefix for environment variable overrides (JSON2SQLITE_SAMPLE_SIZE, ...)
ENV_PREFIX = "JSON2SQLITE_"

# Extension of exported database files
DATABASE_SUFFIX = ".sqlite"

"""
Delimiter Usage Rationale:

NESTED_FIELD_DELIMITER ("_"):
- Produces short, readable column names (user_name, address_geo_lat)
- Compatible with SQL identifiers without quoting
- Arrays are never indexed with a delimiter: they are stored whole as JSON text

Flattened names are the canonical column names. SQL identifier sanitization
happens only when DDL/DML is emitted (see sql_security.sanitize_identifier),
so two source keys that sanitize to the same identifier surface as a schema
error instead of being silently merged.
"""
