"""CSV upload endpoint."""

from __future__ import annotations

import logging
from typing import IO

from fastapi import APIRouter, Depends, File, UploadFile

from csv_ingest.api.deps import get_app_settings, get_gateway
from csv_ingest.api.schemas import ErrorResponse, UploadResponse
from csv_ingest.config.settings import Settings
from csv_ingest.db.gateway import TableGateway
from csv_ingest.errors import InputError, PayloadTooLarge
from csv_ingest.ingestion.pipeline import IngestOptions, ingest_csv_bytes, schema_from_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])

_READ_CHUNK = 1024 * 1024  # 1 MiB


def read_upload_bytes(stream: IO[bytes], max_bytes: int) -> bytes:
    """Read the whole upload into memory, enforcing *max_bytes*."""
    buf = bytearray()
    while True:
        chunk = stream.read(_READ_CHUNK)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise PayloadTooLarge(f"File too large. Max is {max_bytes} bytes.")
    return bytes(buf)


@router.post(
    "/upload-csv",
    response_model=UploadResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def upload_csv(
    file: UploadFile | None = File(default=None),
    settings: Settings = Depends(get_app_settings),
    gateway: TableGateway = Depends(get_gateway),
):
    if file is None:
        raise InputError("No CSV file attached (expected multipart field 'file')")

    data = read_upload_bytes(file.file, settings.MAX_UPLOAD_BYTES)
    logger.info(
        "Received upload %s (%d bytes)",
        file.filename,
        len(data),
        extra={"upload_filename": file.filename},
    )

    result = ingest_csv_bytes(
        data,
        gateway=gateway,
        options=IngestOptions.from_settings(settings),
        schema=schema_from_settings(settings),
        filename=file.filename,
    )

    return UploadResponse(
        rows_inserted=result.rows_inserted,
        table=result.table_name,
        message=f"CSV uploaded: {result.rows_inserted} row(s) added to {result.table_name}",
    )
