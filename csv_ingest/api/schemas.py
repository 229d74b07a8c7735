"""Pydantic response models for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str


class UploadResponse(BaseModel):
    ok: bool = True
    rows_inserted: int
    message: str
    table: str


class HealthResponse(BaseModel):
    ok: bool


class UploadRecordResponse(BaseModel):
    id: int
    created_at: datetime | None = None
    filename: str | None = None
    payload: dict[str, Any]


class UploadListResponse(BaseModel):
    items: list[UploadRecordResponse]
    count: int
