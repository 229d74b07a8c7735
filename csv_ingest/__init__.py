"""csv-ingest — upload CSV files into a relational table over HTTP."""

__version__ = "0.1.0"
