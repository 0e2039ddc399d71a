import json
import sqlite3
from pathlib import Path

import pytest

from json2sqlite.config import ConversionConfig
from json2sqlite.engine import SQLiteEngine
from json2sqlite.events import ConversionListener
from json2sqlite.pipeline import ConversionPipeline


class RecordingListener(ConversionListener):
    """Collects every notification the pipeline sends to its host"""

    def __init__(self):
        self.schemas = []
        self.progress = []
        self.new_columns = []
        self.completions = []
        self.errors = []

    def on_schema(self, table_name, columns, ddl):
        self.schemas.append((table_name, columns, ddl))

    def on_progress(self, total_rows):
        self.progress.append(total_rows)

    def on_new_column(self, name, sql_type):
        self.new_columns.append((name, sql_type))

    def on_complete(self, total_rows, db_size):
        self.completions.append((total_rows, db_size))

    def on_error(self, kind, message, fatal):
        self.errors.append((kind, message, fatal))


class RowRejectingEngine(SQLiteEngine):
    """In-memory engine whose batch insert fails on the row at index `fail_at`"""

    def __init__(self, fail_at: int):
        super().__init__()
        self.fail_at = fail_at

    def run_many(self, sql, rows):
        def rows_until_rejected():
            for index, row in enumerate(rows):
                if index == self.fail_at:
                    raise sqlite3.IntegrityError(f"row {index + 1} rejected")
                yield row

        return super().run_many(sql, rows_until_rejected())


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def engine():
    """A fresh in-memory engine"""
    engine = SQLiteEngine()
    yield engine
    engine.close()


@pytest.fixture
def rejecting_engine():
    """Factory for engines that reject one row of every batch"""
    engines = []

    def _make(fail_at: int) -> RowRejectingEngine:
        engine = RowRejectingEngine(fail_at)
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        engine.close()


@pytest.fixture
def test_assets_dir():
    """Get the path to test assets directory"""
    return Path(__file__).parent / "assets"


@pytest.fixture
def open_database():
    """Open an exported database image as a regular sqlite3 connection"""
    connections = []

    def _open(data: bytes) -> sqlite3.Connection:
        conn = sqlite3.connect(":memory:")
        conn.deserialize(data)
        connections.append(conn)
        return conn

    yield _open

    for conn in connections:
        conn.close()


@pytest.fixture
def run_pipeline(listener):
    """Stream a document through a fresh pipeline in chunks of `chunk_size`"""
    pipelines = []

    def _run(document, chunk_size=1000, **config):
        if not isinstance(document, (str, bytes)):
            document = json.dumps(document)
        pipeline = ConversionPipeline(ConversionConfig(**config), listener=listener)
        pipelines.append(pipeline)
        pipeline.initialize()
        for offset in range(0, len(document), chunk_size):
            pipeline.feed(document[offset:offset + chunk_size])
        summary = pipeline.finish()
        return pipeline, summary

    yield _run

    for pipeline in pipelines:
        pipeline.close()
