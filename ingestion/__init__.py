"""
Upload ingestion for the 21 source files.

Modules:
    formats: Per-source header maps, filters and derived fields
    uploads: Raw upload records and the active blob per source type
    staging: Wholesale replacement of staging relations
    ingestor: Validation and parsing of uploads into staging rows
    scheduler: APScheduler integration for periodic builds

Subpackages:
    transformers: Value normalizers and derived-field rules

Usage:
    from ingestion.ingestor import Ingestor

    ingestor = Ingestor(session)
    await ingestor.ingest(SourceType.WEAMS, raw_bytes)
    if await ingestor.is_complete():
        ...

Error Handling:
    A rejected upload raises a subclass of core.exceptions.IngestionError
    and leaves the previous upload and staging contents untouched.
"""

__all__ = [
    "Ingestor",
    "RawUploadStore",
    "StagingStore",
    "SourceFormat",
    "get_format",
    "BuildScheduler",
]
