"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
from models.base import SourceType


# ============================================================================
# Upload Schemas
# ============================================================================

class UploadResponse(BaseModel):
    """Result of an accepted upload"""
    source_type: SourceType
    rows_staged: int
    complete: bool = Field(..., description="Whether every source type now has an active upload")

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "source_type": "weams",
                "rows_staged": 17342,
                "complete": False
            }
        }


class DeleteUploadResponse(BaseModel):
    upload_id: int
    active_data_cleared: bool


# ============================================================================
# Build / Export Schemas
# ============================================================================

class BuildResponse(BaseModel):
    """Result of a build request"""
    built: bool
    institutions: int = 0
    missing_sources: List[str] = Field(default_factory=list)


class PushResponse(BaseModel):
    rows_loaded: int
    target_table: str


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field("healthy", description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    database_connected: bool
    uploads_complete: bool = False
    missing_sources: List[str] = Field(default_factory=list)
    canonical_institutions: Optional[int] = None

    @model_validator(mode="after")
    def determine_status(self):
        """Determine overall health status"""
        if not self.database_connected:
            self.status = "unhealthy"
        elif not self.uploads_complete:
            self.status = "degraded"
        else:
            self.status = "healthy"
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "status": "degraded",
                "timestamp": "2024-01-15T10:30:00Z",
                "database_connected": True,
                "uploads_complete": False,
                "missing_sources": ["outcome"],
                "canonical_institutions": 17001
            }
        }


# ============================================================================
# Error Response Schema
# ============================================================================

class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx answer; mirrors ``ETLException.to_dict()``"""
    error_type: str
    message: str
    context: dict = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    original_error: Optional[str] = None
