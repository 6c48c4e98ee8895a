"""
Build endpoint
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from core.database import get_session, write_lock
from ingestion.uploads import RawUploadStore
from merge.engine import MergeEngine
from merge.steps import canonical
from schemas.api import BuildResponse, ErrorResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Builds"])


@router.post(
    "/builds",
    response_model=BuildResponse,
    responses={500: {"model": ErrorResponse, "description": "A merge step failed"}}
)
async def create_build(db: AsyncSession = Depends(get_session)):
    """
    Rebuild the canonical table.

    Nothing is rebuilt while a source type lacks an upload; the response
    then lists the missing ones.
    """
    async with write_lock:
        missing = await RawUploadStore(db).missing_source_types()
        if missing:
            return BuildResponse(built=False, missing_sources=[t.value for t in missing])

        built = await MergeEngine(db).build()
        count = await db.scalar(select(func.count()).select_from(canonical))

    return BuildResponse(built=built, institutions=count or 0)
