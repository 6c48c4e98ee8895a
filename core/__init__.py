"""
Core utilities and configuration for the institution data service.

Modules:
    config: Application configuration and environment variable management
    database: Database engines, sessions and identity restarts
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import get_session
    from core.exceptions import IngestionError, LoadError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "get_session",
    "setup_logging",
    # Exceptions
    "ETLException",
    "IngestionError",
    "EmptyUploadError",
    "UnknownSourceTypeError",
    "MissingHeaderError",
    "RowParseError",
    "UploadNotFoundError",
    "MergeError",
    "MergeStepError",
    "LoadError",
]
