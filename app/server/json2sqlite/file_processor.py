import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import pandas as pd

from .config import ConversionConfig
from .constants import (
    DATABASE_SUFFIX,
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_SAMPLE_SIZE,
    DEFAULT_TABLE_NAME,
)
from .events import ConversionListener
from .exceptions import ConversionError
from .pipeline import ConversionPipeline
from .sql_security import execute_query_safely, format_query

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 5


def iter_content_chunks(content: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Slice in-memory content into chunks the way a file would be read"""
    for offset in range(0, len(content), chunk_size):
        yield content[offset:offset + chunk_size]


def iter_file_chunks(path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Read a file in fixed-size byte chunks without loading it whole"""
    with open(path, 'rb') as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            yield chunk


def default_output_path(input_path: Union[str, Path]) -> Path:
    """
    Derive the database file name from the input file name.

    Example:
        >>> default_output_path("exports/users.json")
        PosixPath('exports/users.sqlite')
    """
    return Path(input_path).with_suffix(DATABASE_SUFFIX)


def preview_table(conn, table_name: str, limit: int = PREVIEW_ROWS) -> Tuple[Dict[str, str], list, int]:
    """
    Describe a loaded table.

    Returns:
        (schema, sample_data, row_count) where schema maps column name to
        declared type and sample_data holds up to `limit` rows as dictionaries
    """
    # Get schema information using safe query execution
    cursor_info = execute_query_safely(
        conn,
        "PRAGMA table_info({table})",
        identifier_params={'table': table_name}
    )
    schema = {}
    for col in cursor_info.fetchall():
        schema[col[1]] = col[2]  # column_name: data_type

    # Get sample data through pandas, with NULLs as None rather than NaN
    df = pd.read_sql_query(
        format_query("SELECT * FROM {table} LIMIT ?", {'table': table_name}),
        conn,
        params=(limit,),
    )
    sample_data = df.astype(object).where(df.notna(), None).to_dict(orient='records')

    cursor_count = execute_query_safely(
        conn,
        "SELECT COUNT(*) FROM {table}",
        identifier_params={'table': table_name}
    )
    row_count = cursor_count.fetchone()[0]

    return schema, sample_data, row_count


def _run(pipeline: ConversionPipeline, chunks) -> Dict[str, Any]:
    pipeline.initialize()
    for chunk in chunks:
        pipeline.feed(chunk)
    summary = pipeline.finish()
    database = pipeline.export()
    schema, sample_data, row_count = preview_table(pipeline.engine.connection, summary.table_name)
    return {
        'table_name': summary.table_name,
        'schema': schema,
        'row_count': row_count,
        'sample_data': sample_data,
        'db_size': len(database),
        'columns_added': summary.columns_added,
        'skipped_objects': summary.skipped_objects,
        'database': database,
    }


def convert_json_to_sqlite(
    json_content: bytes,
    table_name: str = DEFAULT_TABLE_NAME,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    batch_size: int = DEFAULT_BATCH_SIZE,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    listener: Optional[ConversionListener] = None,
) -> Dict[str, Any]:
    """
    Convert the content of a JSON array-of-objects document to a SQLite database.

    The content is streamed through the pipeline in `chunk_size` slices, the
    same way a file is, so memory use does not depend on the whole document.

    Returns:
        A dictionary containing:
        - table_name: The sanitized table name
        - schema: Dictionary mapping column names to data types
        - row_count: Total number of rows
        - sample_data: List of the first rows as dictionaries
        - db_size: Size of the exported database in bytes
        - columns_added: Columns added after the table was created
        - skipped_objects: Number of malformed objects that were skipped
        - database: The exported database file image

    Raises:
        ConversionError: If the run could not be completed
    """
    config = ConversionConfig(table_name=table_name, sample_size=sample_size, batch_size=batch_size)
    pipeline = ConversionPipeline(config, listener=listener)
    try:
        result = _run(pipeline, iter_content_chunks(json_content, chunk_size))
        return result
    except ConversionError as e:
        raise type(e)(f"Error converting JSON to SQLite: {e}") from e
    finally:
        pipeline.close()


def convert_json_file_to_sqlite(
    input_path: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    config: Optional[ConversionConfig] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    listener: Optional[ConversionListener] = None,
) -> Dict[str, Any]:
    """
    Stream a JSON file into a SQLite database file.

    Args:
        input_path: JSON document holding an array of objects
        output_path: Where to write the database; defaults to the input path
            with a .sqlite suffix
        config: Run configuration; defaults to ConversionConfig()
        chunk_size: Bytes read from the input per chunk

    Returns:
        The same dictionary as convert_json_to_sqlite, without the database
        image and with an 'output_path' entry
    """
    output_path = Path(output_path) if output_path else default_output_path(input_path)
    pipeline = ConversionPipeline(config or ConversionConfig(), listener=listener)
    try:
        result = _run(pipeline, iter_file_chunks(input_path, chunk_size))
    except ConversionError as e:
        raise type(e)(f"Error converting JSON to SQLite: {e}") from e
    finally:
        pipeline.close()

    database = result.pop('database')
    output_path.write_bytes(database)
    logger.info("Wrote %d bytes to %s", len(database), output_path)
    result['output_path'] = str(output_path)
    return result
