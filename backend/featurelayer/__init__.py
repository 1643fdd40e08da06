"""Feature layer ingestion and service symbology."""

__version__ = "1.0.0"
