"""Schema reconciliation — make the destination table fit an upload.

Columns are only ever added, never dropped or retyped. All DDL goes through
check-first or re-probe paths in the gateway, so running ``ensure_table``
again after a partial failure (or concurrently with another upload)
converges instead of failing on "already exists".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from csv_ingest.db.gateway import TableGateway
from csv_ingest.ingestion.schema_validator import BERKAS_SCHEMA

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    columns: list[str]
    created: bool = False
    added: list[str] = field(default_factory=list)


def ensure_table(
    gateway: TableGateway,
    table_name: str,
    columns: list[str],
    *,
    schema: dict[str, dict[str, Any]] = BERKAS_SCHEMA,
    auto_add_columns: bool = True,
    id_column: bool = True,
    inserted_at_column: bool = True,
) -> ReconcileResult:
    """Ensure *table_name* exists and, if allowed, holds every upload column.

    Steps:
        1. Probe existence (absence is ``False``, not an error)
        2. Create from the field spec when absent
        3. Read the current columns
        4. ``ADD COLUMN ... TEXT`` for each upload column not present
        5. Re-read and return the final column list

    Raises:
        StoreError: any probe or DDL failure. Columns added before the
            failure stay in place.
    """
    created = False
    if not gateway.table_exists(table_name):
        created = gateway.create_table(
            table_name,
            list(schema.keys()),
            id_column=id_column,
            inserted_at_column=inserted_at_column,
        )

    existing = gateway.list_columns(table_name)

    added: list[str] = []
    if auto_add_columns:
        present = {gateway.column_key(c) for c in existing}
        for name in dict.fromkeys(columns):
            key = gateway.column_key(name)
            if key in present:
                continue
            if gateway.add_column(table_name, name):
                added.append(name)
            present.add(key)
        if added:
            logger.info("Added %d column(s) to %s: %s", len(added), table_name, added)

    final_columns = gateway.list_columns(table_name)
    return ReconcileResult(columns=final_columns, created=created, added=added)
