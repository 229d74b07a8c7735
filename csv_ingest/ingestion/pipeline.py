"""Upload pipeline — parse → validate → normalize → reconcile → insert."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from csv_ingest.config.settings import Settings
from csv_ingest.db.gateway import ID_COLUMN, INSERTED_AT_COLUMN, TableGateway
from csv_ingest.db.models import UploadRecord
from csv_ingest.errors import EmptyInput, InputError, SchemaViolation
from csv_ingest.ingestion.csv_parser import parse_csv_bytes
from csv_ingest.ingestion.normalizer import normalize_rows
from csv_ingest.ingestion.reconciler import ensure_table
from csv_ingest.ingestion.schema_validator import (
    BERKAS_FIELDS,
    ExtraColumns,
    make_schema,
    validate_rows,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestOptions:
    table_name: str = "berkas_verifikasi"
    storage_mode: Literal["columns", "blob"] = "columns"
    auto_add_columns: bool = True
    create_id_column: bool = True
    create_inserted_at_column: bool = True
    extra_columns: ExtraColumns = "keep"

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestOptions":
        return cls(
            table_name=settings.TABLE_NAME,
            storage_mode=settings.STORAGE_MODE,
            auto_add_columns=settings.AUTO_ADD_COLUMNS,
            create_id_column=settings.CREATE_ID_COLUMN,
            create_inserted_at_column=settings.CREATE_INSERTED_AT_COLUMN,
            extra_columns=settings.EXTRA_COLUMNS,
        )

    def reserved_columns(self) -> frozenset[str]:
        """Bookkeeping columns the store fills in; uploads never write them."""
        if self.storage_mode != "columns":
            return frozenset()
        names = set()
        if self.create_id_column:
            names.add(ID_COLUMN)
        if self.create_inserted_at_column:
            names.add(INSERTED_AT_COLUMN)
        return frozenset(names)


@dataclass(frozen=True)
class IngestResult:
    rows_inserted: int
    table_name: str
    table_created: bool = False
    columns_added: list[str] = field(default_factory=list)


def drop_reserved_columns(
    rows: list[dict[str, Any]],
    reserved: frozenset[str],
) -> list[dict[str, Any]]:
    """Remove bookkeeping columns (matched case-insensitively) from every row.

    A CSV exported from the destination table carries ``id`` and
    ``inserted_at``; re-uploading it inserts the data columns only.
    """
    if not reserved or not rows:
        return rows
    dropped = [k for k in rows[0] if k.lower() in reserved]
    if not dropped:
        return rows
    logger.info("Ignoring bookkeeping column(s) in upload: %s", dropped)
    kept = [{k: v for k, v in row.items() if k not in dropped} for row in rows]
    if not kept[0]:
        raise InputError(f"CSV has no data columns besides {', '.join(dropped)}")
    return kept


def schema_from_settings(settings: Settings) -> dict[str, dict[str, Any]]:
    """The default field spec, lenient when ``REQUIRE_FIELDS`` is off."""
    return make_schema(BERKAS_FIELDS, required=None if settings.REQUIRE_FIELDS else False)


def ingest_csv_bytes(
    data: bytes,
    *,
    gateway: TableGateway,
    options: IngestOptions | None = None,
    schema: dict[str, dict[str, Any]] | None = None,
    filename: str | None = None,
) -> IngestResult:
    """Run one upload end to end.

    Steps:
        1. Decode + parse (blank / all-empty lines skipped)
        2. Zero rows → ``EmptyInput``
        3. Drop ``id`` / ``inserted_at`` when the store generates them
        4. Validate every row; any violation aborts the whole batch
        5. Normalize
        6. Reconcile the destination table with the upload's columns
        7. Insert all rows in one transaction (rolled back on any failure)

    Nothing touches the store before step 6, so input and validation
    failures leave the database untouched.
    """
    options = options or IngestOptions()
    schema = schema if schema is not None else make_schema()

    rows = parse_csv_bytes(data)
    if not rows:
        raise EmptyInput("CSV file contains no data rows")

    rows = drop_reserved_columns(rows, options.reserved_columns())

    validated = validate_rows(rows, schema=schema, extra_columns=options.extra_columns)
    normalized = normalize_rows(validated, schema)

    if options.storage_mode == "blob":
        created = gateway.ensure_blob_table()
        inserted = gateway.insert_records(normalized, filename=filename)
        logger.info(
            "Stored %d rows as JSON records",
            inserted,
            extra={"table": UploadRecord.__tablename__, "upload_filename": filename},
        )
        return IngestResult(
            rows_inserted=inserted,
            table_name=UploadRecord.__tablename__,
            table_created=created,
        )

    # Rows share the header's key set, so the first row speaks for all.
    columns = list(normalized[0].keys())
    reconciled = ensure_table(
        gateway,
        options.table_name,
        columns,
        schema=schema,
        auto_add_columns=options.auto_add_columns,
        id_column=options.create_id_column,
        inserted_at_column=options.create_inserted_at_column,
    )

    missing = [c for c in columns if not gateway.has_column(reconciled.columns, c)]
    if missing:
        raise SchemaViolation(
            f"Column(s) not present in table {options.table_name}: {', '.join(missing)}",
            errors=[
                {"row": 0, "field": c, "message": f"Unknown column: {c}"} for c in missing
            ],
        )

    with gateway.transaction() as conn:
        inserted = gateway.insert_rows(conn, options.table_name, columns, normalized)

    logger.info(
        "Inserted %d rows into %s",
        inserted,
        options.table_name,
        extra={"table": options.table_name, "upload_filename": filename},
    )
    return IngestResult(
        rows_inserted=inserted,
        table_name=options.table_name,
        table_created=reconciled.created,
        columns_added=reconciled.added,
    )
