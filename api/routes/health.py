"""
Health check endpoint with database and upload status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select, text
from core.database import get_session
from ingestion.uploads import RawUploadStore
from merge.steps import canonical
from schemas.api import HealthCheckResponse
from datetime import datetime
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_session)):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Source types still missing an upload
    - Size of the canonical table
    """

    # Check database connectivity
    db_connected = False

    try:
        await db.execute(text("SELECT 1"))
        db_connected = True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {str(e)}")

    missing = []
    status_read = False
    institutions = None

    if db_connected:
        try:
            missing = [t.value for t in await RawUploadStore(db).missing_source_types()]
            institutions = await db.scalar(select(func.count()).select_from(canonical))
            status_read = True
        except SQLAlchemyError as e:
            logger.error(f"Failed to read upload status: {str(e)}")
            await db.rollback()

    return HealthCheckResponse(
        timestamp=datetime.utcnow(),
        database_connected=db_connected,
        uploads_complete=status_read and not missing,
        missing_sources=missing,
        canonical_institutions=institutions
    )
