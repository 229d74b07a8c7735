"""CSV parsing — raw upload bytes to header-keyed rows."""

from __future__ import annotations

import io
import logging

import pandas as pd

from csv_ingest.errors import EmptyInput, InputError
from csv_ingest.ingestion.schema_validator import Row

logger = logging.getLogger(__name__)


def decode_csv_bytes(data: bytes) -> str:
    """Decode an upload as UTF-8, dropping a leading byte-order mark."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise InputError(f"File is not valid UTF-8 text: {e.reason} at byte {e.start}") from e


def _cell(value) -> str | None:
    # Short lines leave NaN in the trailing cells
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return str(value)


def parse_csv_text(text: str) -> list[Row]:
    """Parse CSV text with header-row semantics.

    The first line names the columns; each later line becomes one row keyed
    by those names. Blank lines and lines whose cells are all empty are
    skipped and not counted.

    Raises:
        EmptyInput: no header, or no data rows.
        InputError: the text is not well-formed CSV.
    """
    if text.strip() == "":
        raise EmptyInput("CSV file is empty")

    # header=None keeps the header line verbatim: no "Unnamed: 0" or "a.1"
    # names invented by pandas.
    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise EmptyInput("CSV file has no header row") from e
    except (pd.errors.ParserError, ValueError) as e:
        raise InputError(f"Could not parse CSV: {e}") from e

    records = list(df.itertuples(index=False, name=None))
    if not records:
        raise EmptyInput("CSV file has no header row")

    columns = [(_cell(c) or "").strip() for c in records[0]]
    duplicates = sorted({c for c in columns if c and columns.count(c) > 1})
    if duplicates:
        raise InputError(f"Duplicate column names in header: {', '.join(duplicates)}")

    rows: list[Row] = []
    for values in records[1:]:
        row = {col: _cell(v) for col, v in zip(columns, values)}
        if all(v is None or v.strip() == "" for v in row.values()):
            continue
        rows.append(row)

    if not rows:
        raise EmptyInput("CSV file contains no data rows")

    logger.debug("Parsed %d rows with columns %s", len(rows), columns)
    return rows


def parse_csv_bytes(data: bytes) -> list[Row]:
    """Decode and parse an uploaded CSV buffer."""
    return parse_csv_text(decode_csv_bytes(data))
