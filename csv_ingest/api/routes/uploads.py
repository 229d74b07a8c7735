"""Recent uploads listing (blob storage mode)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from csv_ingest.api.deps import get_app_settings, get_gateway
from csv_ingest.api.schemas import ErrorResponse, UploadListResponse, UploadRecordResponse
from csv_ingest.config.settings import Settings
from csv_ingest.db.gateway import TableGateway
from csv_ingest.db.models import UploadRecord
from csv_ingest.errors import NotAvailable

router = APIRouter(tags=["uploads"])


@router.get(
    "/uploads",
    response_model=UploadListResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def list_uploads(
    limit: int | None = Query(default=None, ge=1, le=100),
    settings: Settings = Depends(get_app_settings),
    gateway: TableGateway = Depends(get_gateway),
):
    if settings.STORAGE_MODE != "blob":
        raise NotAvailable("Upload listing is only available with STORAGE_MODE=blob")

    if not gateway.table_exists(UploadRecord.__tablename__):
        return UploadListResponse(items=[], count=0)

    records = gateway.recent_records(limit or settings.UPLOADS_DEFAULT_LIMIT)
    items = [UploadRecordResponse(**r.to_dict()) for r in records]
    return UploadListResponse(items=items, count=len(items))
