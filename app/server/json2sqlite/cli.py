"""Command line entry point: stream a JSON array file into a SQLite database."""

import argparse
import logging
import pathlib
import sys
from typing import List, Optional

from .config import ConversionConfig
from .constants import DEFAULT_CHUNK_SIZE
from .events import ConversionListener
from .exceptions import ConversionError, ErrorKind
from .file_processor import convert_json_file_to_sqlite

logger = logging.getLogger("json2sqlite")


class _LoggingListener(ConversionListener):

    def on_schema(self, table_name, columns, ddl):
        logger.info("Schema detected: %d columns", len(columns))
        logger.info("Columns: %s", ", ".join(columns))

    def on_progress(self, total_rows):
        logger.info("Processing... %s rows", f"{total_rows:,}")

    def on_new_column(self, name, sql_type):
        logger.info("New column %s (%s)", name, sql_type)

    def on_error(self, kind: ErrorKind, message, fatal):
        # The pipeline already logged it
        pass


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="json2sqlite",
        description="Stream a JSON array of objects into a SQLite database file.",
    )
    ap.add_argument("file", type=pathlib.Path, help="input JSON file")
    ap.add_argument("-o", "--output", type=pathlib.Path,
                    help="output database (default: input name with .sqlite)")
    ap.add_argument("--table-name", help="table to create (default: data)")
    ap.add_argument("--sample-size", type=int, help="objects used to infer the schema (default: 100)")
    ap.add_argument("--batch-size", type=int, help="rows per transaction (default: 1000)")
    ap.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE,
                    help="bytes read per chunk (default: 65536)")
    ap.add_argument("-v", "--verbose", action="count", default=0)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ConversionConfig.from_env(
            table_name=args.table_name,
            sample_size=args.sample_size,
            batch_size=args.batch_size,
        )
        result = convert_json_file_to_sqlite(
            args.file,
            args.output,
            config=config,
            chunk_size=args.chunk_size,
            listener=_LoggingListener(),
        )
    except (ConversionError, OSError) as e:
        print(f"json2sqlite: {e}", file=sys.stderr)
        return 1

    print(
        f"{result['row_count']} rows, {len(result['schema'])} columns -> "
        f"{result['output_path']} ({result['db_size']} bytes)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
