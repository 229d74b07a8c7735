"""SQLAlchemy ORM model for the blob storage mode.

In ``STORAGE_MODE=blob`` each uploaded row is kept as one JSON payload in a
generic table instead of being spread over relational columns.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadRecord(Base):
    __tablename__ = "csv_uploads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    filename: Mapped[str | None] = mapped_column(String(512), nullable=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (Index("ix_csv_uploads_created_at", "created_at"),)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at,
            "filename": self.filename,
            "payload": self.payload,
        }

    def __repr__(self) -> str:
        return f"<UploadRecord(id={self.id}, filename={self.filename!r})>"
