"""
Custom exceptions for the institution data pipeline with structured error context.

Each exception carries a context dictionary so failures can be logged and
reported without re-parsing the message.

Exception Hierarchy:
    ETLException (base)
    ├── IngestionError
    │   ├── EmptyUploadError
    │   ├── UnknownSourceTypeError
    │   ├── MissingHeaderError
    │   ├── RowParseError
    │   └── UploadNotFoundError
    ├── MergeError
    │   └── MergeStepError
    └── LoadError
"""

from typing import Optional, Dict, Any, List
from datetime import datetime


class ETLException(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source type, row, step, ...)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Ingestion Errors
# ============================================================================

class IngestionError(ETLException):
    """Base exception for upload and staging failures."""
    pass


class EmptyUploadError(IngestionError):
    """Raised when an upload carries no bytes."""

    def __init__(self, source_type: str):
        super().__init__(
            f"No content uploaded for {source_type}",
            context={"source_type": source_type}
        )
        self.source_type = source_type


class UnknownSourceTypeError(IngestionError):
    """Raised for a source type with no registered format."""

    def __init__(self, source_type: str):
        super().__init__(
            f"Unknown source type: {source_type}",
            context={"source_type": source_type}
        )
        self.source_type = source_type


class MissingHeaderError(IngestionError):
    """
    Raised when required headers are absent from an upload.

    Context includes:
        - source_type: Source the upload was submitted for
        - missing: Required header names not found in the header line
    """

    def __init__(self, source_type: str, missing: List[str]):
        super().__init__(
            f"Missing headers in {source_type}: {', '.join(missing)}",
            context={"source_type": source_type, "missing": missing}
        )
        self.source_type = source_type
        self.missing = missing


class RowParseError(IngestionError):
    """
    Raised when a data line cannot be parsed or stored.

    The message embeds the physical row number and the cleaned line so the
    uploader can locate the problem in the original file.
    """

    def __init__(
        self,
        source_type: str,
        row_number: int,
        raw_line: str,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            f"Row {row_number} in {source_type}: {raw_line}",
            context={"source_type": source_type, "row_number": row_number},
            original_exception=cause
        )
        self.source_type = source_type
        self.row_number = row_number
        self.raw_line = raw_line


class UploadNotFoundError(IngestionError):
    """Raised when an upload record does not exist."""

    def __init__(self, upload_id: int):
        super().__init__(
            f"Upload {upload_id} not found",
            context={"upload_id": upload_id}
        )
        self.upload_id = upload_id


# ============================================================================
# Merge Errors
# ============================================================================

class MergeError(ETLException):
    """Base exception for canonical table build failures."""
    pass


class MergeStepError(MergeError):
    """
    Raised when one merge step fails.

    Steps committed before the failing one stay applied.
    """

    def __init__(self, step_name: str, cause: Exception):
        super().__init__(
            f"Merge step '{step_name}' failed",
            context={"step_name": step_name},
            original_exception=cause
        )
        self.step_name = step_name


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """
    Raised when a bulk-load batch fails.

    Context includes:
        - batch_index: Zero-based index of the failing batch
        - table_name: Target table
    """

    def __init__(
        self,
        message: str,
        batch_index: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        context = context or {}
        if batch_index is not None:
            context["batch_index"] = batch_index
        super().__init__(message, context, original_exception)
        self.batch_index = batch_index


