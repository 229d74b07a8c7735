from csv_ingest.logging.logger import configure_logging, get_logger, request_id_ctx

__all__ = [
    "configure_logging",
    "get_logger",
    "request_id_ctx",
]
