"""Per-field value normalization applied to validated rows before insert."""

from __future__ import annotations

import logging
import warnings
from typing import Any

import pandas as pd

from csv_ingest.ingestion.schema_validator import BERKAS_SCHEMA, Row

logger = logging.getLogger(__name__)

DEFAULT_TRANSFORM = "empty_to_null"


def canonical_timestamp(value: str) -> str | None:
    """Rewrite a date/time string as an ISO-8601 UTC instant.

    ``2024-01-01`` becomes ``2024-01-01T00:00:00.000Z``. Values without an
    offset are read as UTC. Anything pandas cannot parse gives ``None``.
    """
    if value.strip() == "":
        return None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            ts = pd.to_datetime(value.strip(), utc=True, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        ts = pd.NaT
    if pd.isna(ts):
        logger.debug("Unparseable timestamp %r treated as null", value)
        return None
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def normalize_value(field: str, value: Any, transform: str = DEFAULT_TRANSFORM) -> Any:
    """Apply *transform* to a single cell value."""
    if value is None:
        return None
    if transform == "identity":
        return value
    if transform == "timestamp":
        return canonical_timestamp(value)
    if transform == "empty_to_null":
        return None if value == "" else value
    raise ValueError(f"Unknown transform for {field}: {transform}")


def normalize_row(
    row: Row,
    schema: dict[str, dict[str, Any]] = BERKAS_SCHEMA,
) -> Row:
    """Return a new row with each field's transform applied.

    Columns outside *schema* get ``empty_to_null``.
    """
    return {
        field: normalize_value(
            field, value, schema.get(field, {}).get("transform", DEFAULT_TRANSFORM)
        )
        for field, value in row.items()
    }


def normalize_rows(
    rows: list[Row],
    schema: dict[str, dict[str, Any]] = BERKAS_SCHEMA,
) -> list[Row]:
    return [normalize_row(row, schema) for row in rows]
