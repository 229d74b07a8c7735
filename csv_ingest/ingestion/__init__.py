from csv_ingest.ingestion.csv_parser import parse_csv_bytes, parse_csv_text
from csv_ingest.ingestion.normalizer import canonical_timestamp, normalize_row, normalize_value
from csv_ingest.ingestion.pipeline import IngestOptions, IngestResult, ingest_csv_bytes
from csv_ingest.ingestion.reconciler import ReconcileResult, ensure_table
from csv_ingest.ingestion.schema_validator import (
    BERKAS_SCHEMA,
    make_schema,
    validate_row,
    validate_rows,
)

__all__ = [
    "parse_csv_bytes",
    "parse_csv_text",
    "validate_row",
    "validate_rows",
    "make_schema",
    "BERKAS_SCHEMA",
    "canonical_timestamp",
    "normalize_row",
    "normalize_value",
    "ensure_table",
    "ReconcileResult",
    "ingest_csv_bytes",
    "IngestOptions",
    "IngestResult",
]
