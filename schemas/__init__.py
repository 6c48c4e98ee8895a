"""
Pydantic schemas for API responses.

Usage:
    from schemas.api import UploadResponse, BuildResponse, HealthCheckResponse
"""

__all__ = [
    "UploadResponse",
    "DeleteUploadResponse",
    "BuildResponse",
    "PushResponse",
    "HealthCheckResponse",
    "ErrorResponse",
]
