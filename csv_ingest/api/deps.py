"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from csv_ingest.config.settings import Settings
from csv_ingest.db.gateway import TableGateway


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with."""
    return request.app.state.settings


def get_gateway(request: Request) -> TableGateway:
    """Gateway over the engine created in the app lifespan.

    Constructing it does not touch the database. Override this dependency
    in tests with a gateway over an in-memory SQLite engine.
    """
    return TableGateway(request.app.state.engine)
