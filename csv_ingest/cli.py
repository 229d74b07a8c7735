"""Command line entry point.

Usage:
    csv-ingest serve [--host HOST] [--port PORT]
    csv-ingest ingest FILE [--table NAME] [--db-url URL]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from csv_ingest.config.settings import get_settings
from csv_ingest.db.gateway import TableGateway
from csv_ingest.db.session import build_engine
from csv_ingest.errors import IngestError
from csv_ingest.ingestion.pipeline import IngestOptions, ingest_csv_bytes, schema_from_settings
from csv_ingest.logging.logger import configure_logging

logger = logging.getLogger("csv_ingest.cli")


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "csv_ingest.api.app:app",
        host=args.host or settings.API_HOST,
        port=args.port or settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
    return 0


def _ingest(args: argparse.Namespace) -> int:
    settings = get_settings()
    overrides = {}
    if args.db_url:
        overrides["DATABASE_URL"] = args.db_url
    if args.table:
        overrides["TABLE_NAME"] = args.table
    if overrides:
        settings = settings.model_copy(update=overrides)

    path = Path(args.file)
    if not path.is_file():
        logger.error("File not found: %s", path)
        return 1

    engine = build_engine(settings)
    try:
        result = ingest_csv_bytes(
            path.read_bytes(),
            gateway=TableGateway(engine),
            options=IngestOptions.from_settings(settings),
            schema=schema_from_settings(settings),
            filename=path.name,
        )
    except IngestError as e:
        logger.error("Ingestion failed: %s", e.message)
        return 2
    finally:
        engine.dispose()

    logger.info("Done. %d rows inserted into %s.", result.rows_inserted, result.table_name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="csv-ingest", description="CSV upload service")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: API_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: API_PORT)")
    serve.set_defaults(func=_serve)

    ingest = sub.add_parser("ingest", help="Load a local CSV file into the table")
    ingest.add_argument("file", help="Path to CSV file")
    ingest.add_argument("--table", default=None, help="Destination table (default: TABLE_NAME)")
    ingest.add_argument("--db-url", default=None, help="Database URL (default: DATABASE_URL)")
    ingest.set_defaults(func=_ingest)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
