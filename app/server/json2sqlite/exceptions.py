"""
Error taxonomy for conversion runs.

Every error the pipeline reports to its host carries an ErrorKind. Kinds in
FATAL_KINDS halt the run; the others are reported and the run continues.
"""

from enum import Enum


class ErrorKind(str, Enum):
    MALFORMED_OBJECT = "malformed_object"
    TRUNCATED_INPUT = "truncated_input"
    PREMATURE_CHUNK = "premature_chunk"
    EMPTY_SCHEMA = "empty_schema"
    TABLE_CREATION_FAILURE = "table_creation_failure"
    MIGRATION_FAILURE = "migration_failure"
    INSERT_FAILURE = "insert_failure"
    EXPORT_FAILURE = "export_failure"
    CONFIGURATION = "configuration"
    INVALID_STATE = "invalid_state"


FATAL_KINDS = frozenset({
    ErrorKind.EMPTY_SCHEMA,
    ErrorKind.TABLE_CREATION_FAILURE,
    ErrorKind.MIGRATION_FAILURE,
    ErrorKind.INSERT_FAILURE,
})


class ConversionError(Exception):
    """Base class for all errors raised by a conversion run"""

    kind = ErrorKind.INVALID_STATE

    @property
    def fatal(self) -> bool:
        return self.kind in FATAL_KINDS


class ConfigurationError(ConversionError, ValueError):
    kind = ErrorKind.CONFIGURATION


class MalformedObjectError(ConversionError):
    """A scanned object's text is not a valid JSON object"""

    kind = ErrorKind.MALFORMED_OBJECT


class IncompleteObjectError(ConversionError):
    """The stream ended while a top-level object was still open"""

    kind = ErrorKind.TRUNCATED_INPUT


class PrematureChunkError(ConversionError):
    kind = ErrorKind.PREMATURE_CHUNK


class EmptySchemaError(ConversionError):
    """The sample produced no columns, so no table can be created"""

    kind = ErrorKind.EMPTY_SCHEMA


class TableCreationError(ConversionError):
    kind = ErrorKind.TABLE_CREATION_FAILURE


class MigrationError(ConversionError):
    """An ALTER TABLE inside a flush failed; the flush was rolled back"""

    kind = ErrorKind.MIGRATION_FAILURE


class BatchInsertError(ConversionError):
    """A row inside a flush failed to insert; the flush was rolled back"""

    kind = ErrorKind.INSERT_FAILURE


class ExportError(ConversionError):
    kind = ErrorKind.EXPORT_FAILURE


class PipelineStateError(ConversionError):
    """An operation was called in a lifecycle state that does not allow it"""

    kind = ErrorKind.INVALID_STATE
