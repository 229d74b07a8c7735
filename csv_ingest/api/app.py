"""FastAPI application — main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from csv_ingest import __version__
from csv_ingest.api.routes import health, upload, uploads
from csv_ingest.config.settings import Settings, get_settings
from csv_ingest.db.session import build_engine
from csv_ingest.errors import IngestError, SchemaViolation, StoreError
from csv_ingest.logging.logger import configure_logging, request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    """Build the application.

    The engine is created in the lifespan from ``DATABASE_URL`` unless one is
    passed in, and disposed on shutdown only when the app created it.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_engine = app.state.engine is None
        if owns_engine:
            app.state.engine = build_engine(settings)
        logger.info(
            "Starting csv-ingest API",
            extra={"table": settings.TABLE_NAME, "storage_mode": settings.STORAGE_MODE},
        )
        try:
            yield
        finally:
            if owns_engine:
                app.state.engine.dispose()
                app.state.engine = None
            logger.info("Shutting down csv-ingest API")

    app = FastAPI(
        title="csv-ingest",
        description="Upload CSV files into a relational table",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials="*" not in settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        with request_id_ctx(request.headers.get(REQUEST_ID_HEADER)) as rid:
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response

    app.include_router(health.router)
    app.include_router(upload.router)
    app.include_router(uploads.router)

    @app.exception_handler(IngestError)
    async def ingest_error_handler(request: Request, exc: IngestError):
        content: dict = {"error": exc.message}
        if isinstance(exc, SchemaViolation):
            content["errors"] = exc.errors
        if isinstance(exc, StoreError):
            logger.error("Store failure on %s: %s", request.url.path, exc.message)
            content["error"] = "Database error"
            if settings.DEBUG:
                content["detail"] = exc.message
        else:
            logger.warning("Rejected request to %s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", ())), "message": e.get("msg", "")} for e in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "errors": jsonable_encoder(errors)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        content = {"error": "Internal server error"}
        if settings.DEBUG:
            content["detail"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    return app


app = create_app()
