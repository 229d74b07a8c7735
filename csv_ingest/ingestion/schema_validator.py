"""Schema validation for uploaded rows against the declared field spec."""

from __future__ import annotations

from typing import Any, Literal

from csv_ingest.errors import SchemaViolation

Row = dict[str, Any]
ExtraColumns = Literal["keep", "drop", "reject"]

TRANSFORMS = frozenset({"identity", "empty_to_null", "timestamp"})


# ---------------------------------------------------------------------------
# Schema definition
# ---------------------------------------------------------------------------

# Field order is the column order used when the destination table is created.
BERKAS_FIELDS: list[tuple[str, bool, str]] = [
    # (name, required, transform)
    ("nomor_surat", True, "empty_to_null"),
    ("nama_pegawai", True, "empty_to_null"),
    ("nip", True, "empty_to_null"),
    ("status_verifikasi", True, "empty_to_null"),
    ("created_at", False, "timestamp"),
    ("jabatan", True, "empty_to_null"),
    ("perihal", True, "empty_to_null"),
]


def make_schema(
    fields: list[tuple[str, bool, str]] | None = None,
    *,
    required: bool | None = None,
) -> dict[str, dict[str, Any]]:
    """Build a field spec from ``(name, required, transform)`` tuples.

    ``required`` overrides every field's flag; ``make_schema(required=False)``
    gives the lenient variant where only non-empty values are checked.
    """
    schema: dict[str, dict[str, Any]] = {}
    for name, is_required, transform in fields or BERKAS_FIELDS:
        if transform not in TRANSFORMS:
            raise ValueError(f"Unknown transform for {name}: {transform}")
        schema[name] = {
            "type": "str",
            "required": is_required if required is None else required,
            "transform": transform,
        }
    return schema


BERKAS_SCHEMA: dict[str, dict[str, Any]] = make_schema()


# ---------------------------------------------------------------------------
# Row-level validation
# ---------------------------------------------------------------------------


def _error(row_index: int, field: str, message: str) -> dict[str, Any]:
    return {"row": row_index, "field": field, "message": message}


def validate_row(
    row: Row,
    row_index: int = 0,
    *,
    schema: dict[str, dict[str, Any]] = BERKAS_SCHEMA,
    extra_columns: ExtraColumns = "keep",
) -> list[dict[str, Any]]:
    """Validate a single row against *schema*.

    Returns a (possibly empty) list of error dicts:
        [{"row": int, "field": str, "message": str}, ...]
    """
    errors: list[dict[str, Any]] = []

    for field, spec in schema.items():
        value = row.get(field)

        if value is None:
            if spec["required"]:
                errors.append(_error(row_index, field, f"Missing required field: {field}"))
            continue

        if not isinstance(value, str):
            errors.append(
                _error(
                    row_index,
                    field,
                    f"Invalid type for {field}: expected str, got {type(value).__name__}",
                )
            )
            continue

        if spec["required"] and value.strip() == "":
            errors.append(_error(row_index, field, f"Empty required field: {field}"))

    for column, value in row.items():
        if column in schema:
            continue
        if not isinstance(column, str) or column.strip() == "":
            errors.append(_error(row_index, str(column), "Empty column name"))
            continue
        if extra_columns == "reject":
            errors.append(_error(row_index, column, f"Unexpected column: {column}"))
        elif value is not None and not isinstance(value, str):
            errors.append(
                _error(
                    row_index,
                    column,
                    f"Invalid type for {column}: expected str, got {type(value).__name__}",
                )
            )

    return errors


# ---------------------------------------------------------------------------
# Batch validation
# ---------------------------------------------------------------------------


def validate_rows(
    rows: list[Row],
    *,
    schema: dict[str, dict[str, Any]] = BERKAS_SCHEMA,
    extra_columns: ExtraColumns = "keep",
) -> list[Row]:
    """Validate every row; the batch is accepted only if all rows pass.

    Row indexes in the reported errors are 1-based data-row numbers (the
    header line is not counted).

    Raises:
        SchemaViolation: carrying every error found across the batch.
    """
    all_errors: list[dict[str, Any]] = []
    for idx, row in enumerate(rows, start=1):
        all_errors.extend(
            validate_row(row, row_index=idx, schema=schema, extra_columns=extra_columns)
        )

    if all_errors:
        fields = sorted({e["field"] for e in all_errors})
        raise SchemaViolation(
            f"{len(all_errors)} validation error(s) in field(s): {', '.join(fields)}",
            errors=all_errors,
        )

    if extra_columns == "drop":
        return [{k: v for k, v in row.items() if k in schema} for row in rows]
    return [dict(row) for row in rows]
