"""Engine construction from settings.

The engine is built once by whoever owns the process (the FastAPI lifespan or
the CLI) and passed down; there is no module-level engine.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from csv_ingest.config.settings import Settings


def engine_kwargs(settings: Settings) -> dict[str, Any]:
    url = make_url(settings.DATABASE_URL)
    kwargs: dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        return kwargs

    kwargs["pool_size"] = settings.DATABASE_POOL_SIZE
    kwargs["pool_timeout"] = settings.DATABASE_POOL_TIMEOUT
    if settings.DATABASE_SSLMODE and url.get_backend_name() == "postgresql":
        kwargs["connect_args"] = {"sslmode": settings.DATABASE_SSLMODE}
    return kwargs


def build_engine(settings: Settings) -> Engine:
    """Create the pooled engine described by *settings*."""
    return create_engine(settings.DATABASE_URL, **engine_kwargs(settings))
