from csv_ingest.db.gateway import TableGateway
from csv_ingest.db.models import Base, UploadRecord
from csv_ingest.db.session import build_engine

__all__ = [
    "Base",
    "UploadRecord",
    "TableGateway",
    "build_engine",
]
