"""Persistence gateway — table probes, DDL and row inserts over one Engine.

The gateway is constructed around an explicitly created SQLAlchemy
``Engine`` and handed to the pipeline; nothing here holds process-wide state.
Every SQLAlchemy failure leaves this module as a ``StoreError`` carrying the
store's own message. Errors are not interpreted or retried.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    Table,
    Text,
    column,
    func,
    inspect,
    select,
    table,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from csv_ingest.db.models import Base, UploadRecord
from csv_ingest.errors import StoreError

logger = logging.getLogger(__name__)

ID_COLUMN = "id"
INSERTED_AT_COLUMN = "inserted_at"

# Dialects whose column names match case-insensitively, quoted or not.
_CASE_FOLDING_DIALECTS = frozenset({"sqlite", "mysql", "mariadb"})


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        message = str(getattr(e, "orig", None) or e)
        logger.error("Store operation %s failed: %s", operation, message)
        raise StoreError(message) from e


class TableGateway:
    """Blocking store operations used by the upload pipeline."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def _quote(self, identifier: str) -> str:
        return self._engine.dialect.identifier_preparer.quote(identifier)

    def column_key(self, column_name: str) -> str:
        """Name under which the store tells columns apart."""
        if self._engine.dialect.name in _CASE_FOLDING_DIALECTS:
            return column_name.lower()
        return column_name

    def has_column(self, columns: list[str], column_name: str) -> bool:
        key = self.column_key(column_name)
        return any(self.column_key(c) == key for c in columns)

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True when a connection can be checked out and used."""
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Store ping failed", exc_info=True)
            return False
        return True

    def table_exists(self, table_name: str) -> bool:
        # A missing table is a plain False, never an error.
        with _store_errors("table_exists"):
            return inspect(self._engine).has_table(table_name)

    def list_columns(self, table_name: str) -> list[str]:
        with _store_errors("list_columns"):
            return [c["name"] for c in inspect(self._engine).get_columns(table_name)]

    # ------------------------------------------------------------------
    # DDL
    # ------------------------------------------------------------------

    def create_table(
        self,
        table_name: str,
        columns: list[str],
        *,
        id_column: bool = True,
        inserted_at_column: bool = True,
    ) -> bool:
        """Create *table_name* with every column typed ``TEXT``.

        Returns False when the table already existed (including when a
        concurrent request created it between the probe and the CREATE).
        """
        cols: list[Column] = []
        reserved: set[str] = set()
        if id_column:
            cols.append(Column(ID_COLUMN, Integer, primary_key=True, autoincrement=True))
            reserved.add(ID_COLUMN)
        if inserted_at_column:
            reserved.add(INSERTED_AT_COLUMN)
        cols.extend(Column(name, Text, nullable=True) for name in columns if name not in reserved)
        if inserted_at_column:
            cols.append(
                Column(
                    INSERTED_AT_COLUMN,
                    DateTime(timezone=True),
                    nullable=False,
                    server_default=func.current_timestamp(),
                )
            )
        target = Table(table_name, MetaData(), *cols)

        try:
            with self._engine.begin() as conn:
                if inspect(conn).has_table(table_name):
                    return False
                target.create(conn)
        except SQLAlchemyError as e:
            if self.table_exists(table_name):
                logger.info("Table %s was created concurrently", table_name)
                return False
            raise StoreError(str(getattr(e, "orig", None) or e)) from e

        logger.info("Created table %s with columns %s", table_name, [c.name for c in cols])
        return True

    def add_column(self, table_name: str, column_name: str) -> bool:
        """``ALTER TABLE ... ADD COLUMN <name> TEXT``.

        Returns False when the column is already there, including when a
        concurrent request added it first.
        """
        ddl = text(
            f"ALTER TABLE {self._quote(table_name)} ADD COLUMN {self._quote(column_name)} TEXT"
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(ddl)
        except SQLAlchemyError as e:
            if self.has_column(self.list_columns(table_name), column_name):
                logger.info("Column %s.%s was added concurrently", table_name, column_name)
                return False
            raise StoreError(str(getattr(e, "orig", None) or e)) from e

        logger.info("Added column %s to %s", column_name, table_name)
        return True

    # ------------------------------------------------------------------
    # Transactions and inserts
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Yield a pooled connection inside a transaction.

        Commits when the block exits normally, rolls back on any exception,
        and always returns the connection to the pool.
        """
        with _store_errors("transaction"):
            with self._engine.begin() as conn:
                yield conn

    def insert_rows(
        self,
        conn: Connection,
        table_name: str,
        columns: list[str],
        rows: list[dict[str, Any]],
    ) -> int:
        """Insert *rows* on *conn*; the caller owns the transaction."""
        if not rows:
            return 0
        target = table(table_name, *(column(c) for c in columns))
        params = [{c: row.get(c) for c in columns} for row in rows]
        with _store_errors("insert_rows"):
            conn.execute(target.insert(), params)
        return len(params)

    # ------------------------------------------------------------------
    # Blob storage
    # ------------------------------------------------------------------

    def ensure_blob_table(self) -> bool:
        """Create the semi-structured uploads table if absent.

        Returns False when it already existed, including when a concurrent
        request created it between the probe and the CREATE.
        """
        table_name = UploadRecord.__tablename__
        if self.table_exists(table_name):
            return False
        try:
            Base.metadata.create_all(bind=self._engine, checkfirst=True)
        except SQLAlchemyError as e:
            if self.table_exists(table_name):
                logger.info("Table %s was created concurrently", table_name)
                return False
            raise StoreError(str(getattr(e, "orig", None) or e)) from e

        logger.info("Created table %s", table_name)
        return True

    def insert_records(
        self,
        payloads: list[dict[str, Any]],
        *,
        filename: str | None = None,
    ) -> int:
        """Store each payload as one JSON record, all in one transaction."""
        with _store_errors("insert_records"):
            with Session(self._engine) as session, session.begin():
                session.add_all(
                    UploadRecord(filename=filename, payload=payload) for payload in payloads
                )
        return len(payloads)

    def recent_records(self, limit: int) -> list[UploadRecord]:
        """Most recent blob records, newest first."""
        stmt = (
            select(UploadRecord)
            .order_by(UploadRecord.created_at.desc(), UploadRecord.id.desc())
            .limit(limit)
        )
        with _store_errors("recent_records"):
            with Session(self._engine, expire_on_commit=False) as session:
                return list(session.scalars(stmt))
