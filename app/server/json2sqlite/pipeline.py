"""
Pipeline controller for one conversion run.

    pipeline = ConversionPipeline(ConversionConfig(table_name="users"))
    pipeline.initialize()
    for chunk in chunks:
        pipeline.feed(chunk)
    summary = pipeline.finish()
    database = pipeline.export()

Each chunk is scanned for complete objects; every object is parsed,
flattened, then either sampled for schema inference (until the table is
materialized) or handed to the batch loader. A pipeline holds the state of
exactly one run; reset() discards it and starts over.
"""

import codecs
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .config import ConversionConfig
from .engine import SQLiteEngine
from .events import ConversionListener
from .exceptions import (
    ConversionError,
    ExportError,
    IncompleteObjectError,
    MalformedObjectError,
    PipelineStateError,
    PrematureChunkError,
)
from .flattener import flatten_json_object, parse_object
from .loader import BatchLoader
from .models import ColumnSpec
from .scanner import ObjectBoundaryScanner
from .schema import SchemaRegistry
from .sql_security import sanitize_table_name

logger = logging.getLogger(__name__)

Chunk = Union[str, bytes, bytearray, memoryview]


class PipelineState(str, Enum):
    CREATED = "created"
    READY = "ready"
    FINISHED = "finished"
    HALTED = "halted"
    CLOSED = "closed"


@dataclass
class ConversionSummary:
    table_name: str
    columns: List[str]
    total_rows: int
    db_size: int
    skipped_objects: int = 0
    columns_added: List[str] = field(default_factory=list)


class ConversionPipeline:
    """
    Drives scanner, flattener, schema registry and batch loader for one run.

    Args:
        config: Run configuration; defaults to ConversionConfig()
        listener: Receives host notifications; defaults to a no-op listener
        engine_factory: Zero-argument callable returning a fresh engine
    """

    def __init__(
        self,
        config: Optional[ConversionConfig] = None,
        listener: Optional[ConversionListener] = None,
        engine_factory=SQLiteEngine,
    ):
        self.config = config or ConversionConfig()
        self.listener = listener or ConversionListener()
        self.engine_factory = engine_factory
        self.table_name = sanitize_table_name(self.config.table_name)
        self.engine = None
        self.state = PipelineState.CREATED
        self._new_run()

    def _new_run(self):
        self.scanner = ObjectBoundaryScanner()
        self.registry = SchemaRegistry(self.table_name)
        self.loader: Optional[BatchLoader] = None
        self._sample_rows: List[Dict[str, Any]] = []
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.objects_seen = 0
        self.skipped_objects = 0
        self.ddl: Optional[str] = None
        self.summary: Optional[ConversionSummary] = None

    # -- lifecycle ---------------------------------------------------------

    def initialize(self):
        """Open the engine; chunks are accepted from here on"""
        if self.state != PipelineState.CREATED:
            raise PipelineStateError(f"Cannot initialize a pipeline in state {self.state.value!r}")
        self.engine = self.engine_factory()
        self.state = PipelineState.READY
        logger.info(
            "Pipeline ready: table=%r sample_size=%d batch_size=%d",
            self.table_name, self.config.sample_size, self.config.batch_size,
        )

    def reset(self):
        """Discard all run state, including the database, and return to CREATED"""
        self._close_engine()
        self._new_run()
        self.state = PipelineState.CREATED

    def close(self):
        self._close_engine()
        self.state = PipelineState.CLOSED

    def _close_engine(self):
        if self.engine is not None:
            self.engine.close()
            self.engine = None

    def __enter__(self):
        if self.state == PipelineState.CREATED:
            self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # -- reporting ---------------------------------------------------------

    @property
    def total_rows(self) -> int:
        return self.loader.total_rows if self.loader else 0

    @property
    def columns(self) -> List[str]:
        return self.registry.column_names

    def _warn(self, error: ConversionError):
        logger.warning("%s", error)
        self.listener.on_error(error.kind, str(error), error.fatal)

    def _halt(self, error: ConversionError):
        self.state = PipelineState.HALTED
        logger.error("Conversion halted (%s): %s", error.kind.value, error)
        self.listener.on_error(error.kind, str(error), error.fatal)

    def _require(self, *states: PipelineState):
        if self.state not in states:
            raise PipelineStateError(f"Operation not allowed in state {self.state.value!r}")

    # -- streaming ---------------------------------------------------------

    def feed(self, chunk: Chunk) -> int:
        """
        Process the next chunk of the input document.

        Chunks may be text or UTF-8 bytes and need not align with JSON syntax.

        Returns:
            Number of objects accepted from this chunk
        """
        if self.state == PipelineState.CREATED:
            self._warn(PrematureChunkError(
                f"Dropped chunk of {len(chunk)} characters received before initialization"
            ))
            return 0
        self._require(PipelineState.READY)

        if isinstance(chunk, (bytes, bytearray, memoryview)):
            chunk = self._decoder.decode(bytes(chunk))
        return self._scan(chunk)

    def _scan(self, text: str) -> int:
        accepted = 0
        for object_text in self.scanner.feed(text):
            if self._process_object_text(object_text):
                accepted += 1
        return accepted

    def _process_object_text(self, object_text: str) -> bool:
        try:
            obj = parse_object(object_text)
        except MalformedObjectError as e:
            self.skipped_objects += 1
            self._warn(MalformedObjectError(f"Skipping object #{self.objects_seen + self.skipped_objects}: {e}"))
            return False

        self.objects_seen += 1
        row = flatten_json_object(obj)

        if self.registry.is_materialized:
            self._load(row)
        else:
            self.registry.observe(row)
            self._sample_rows.append(row)
            if self.registry.sample_count >= self.config.sample_size:
                self._materialize()
        return True

    def _materialize(self):
        try:
            self.ddl = self.registry.materialize(self.engine)
        except ConversionError as e:
            self._halt(e)
            raise

        self.loader = BatchLoader(
            self.engine,
            self.registry,
            self.config.batch_size,
            on_progress=self.listener.on_progress,
            on_new_column=self._column_added,
        )
        self.listener.on_schema(self.table_name, self.registry.column_names, self.ddl)

        sample_rows, self._sample_rows = self._sample_rows, []
        for row in sample_rows:
            self._load(row)

    def _column_added(self, column: ColumnSpec):
        self.listener.on_new_column(column.name, column.sql_type)

    def _load(self, row: Dict[str, Any]):
        self.registry.discover(row)
        try:
            self.loader.add(row)
        except ConversionError as e:
            self._halt(e)
            raise

    def finish(self) -> ConversionSummary:
        """
        Signal end of stream.

        Materializes the table if fewer than sample_size objects arrived,
        commits the final partial batch and reports completion.

        Raises:
            EmptySchemaError: If no columns could be inferred at all
            MigrationError, BatchInsertError: If the final flush failed
        """
        self._require(PipelineState.READY)

        self._scan(self._decoder.decode(b"", final=True))
        try:
            self.scanner.finish()
        except IncompleteObjectError as e:
            self._warn(e)

        if not self.registry.is_materialized:
            self._materialize()

        try:
            self.loader.finish()
        except ConversionError as e:
            self._halt(e)
            raise

        try:
            db_size = len(self._export())
        except ExportError as e:
            self._warn(e)
            db_size = 0

        self.state = PipelineState.FINISHED
        self.summary = ConversionSummary(
            table_name=self.table_name,
            columns=self.registry.column_names,
            total_rows=self.loader.total_rows,
            db_size=db_size,
            skipped_objects=self.skipped_objects,
            columns_added=[column.name for column in self.loader.columns_added],
        )
        logger.info(
            "Successfully processed %d rows into %r (%d bytes, %d skipped objects)",
            self.summary.total_rows, self.table_name, db_size, self.skipped_objects,
        )
        self.listener.on_complete(self.summary.total_rows, db_size)
        return self.summary

    # -- export ------------------------------------------------------------

    def _export(self) -> bytes:
        if self.engine is None or not self.registry.is_materialized:
            raise ExportError("Nothing to export: the table has not been created yet")
        try:
            return self.engine.export()
        except Exception as e:
            raise ExportError(f"Failed to export database: {e}") from e

    def export(self) -> bytes:
        """
        Return the whole database as a standalone SQLite file image.

        Raises:
            ExportError: If the table does not exist yet or serialization failed
        """
        try:
            data = self._export()
        except ExportError as e:
            self._warn(e)
            raise
        logger.info("Database exported successfully (%d bytes)", len(data))
        return data
