"""Error taxonomy for the upload pipeline.

Each error knows the HTTP status it maps to; the API layer turns them into
``{"error": ...}`` responses (see ``csv_ingest.api.app``).
"""

from __future__ import annotations

from typing import Any


class IngestError(Exception):
    """Base class for every failure the upload pipeline reports to callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputError(IngestError):
    """No file attached, undecodable bytes or malformed CSV."""

    status_code = 400


class EmptyInput(InputError):
    """The CSV parsed fine but produced zero data rows."""


class PayloadTooLarge(InputError):
    status_code = 413


class SchemaViolation(IngestError):
    """One or more rows failed the field spec.

    ``errors`` holds ``{"row": int, "field": str, "message": str}`` dicts.
    """

    status_code = 400

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class StoreError(IngestError):
    """A persistence operation failed; ``message`` is the store's own text."""

    status_code = 500


class NotAvailable(IngestError):
    """The endpoint does not apply to the configured storage mode."""

    status_code = 404
