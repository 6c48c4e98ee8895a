"""
Export endpoints: dashboard CSV and bulk load
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from core.database import get_session, write_lock
from core.config import settings
from export.csv_export import CsvExporter
from export.institution_loader import InstitutionLoader
from schemas.api import ErrorResponse, PushResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/exports", tags=["Exports"])


@router.get("/institutions.csv")
async def export_csv(db: AsyncSession = Depends(get_session)):
    content = await CsvExporter(db).to_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="institutions.csv"'}
    )


@router.post(
    "/push",
    response_model=PushResponse,
    responses={502: {"model": ErrorResponse, "description": "The downstream store rejected a batch"}}
)
async def push(db: AsyncSession = Depends(get_session)):
    """Replace the downstream institutions table with the canonical table"""
    async with write_lock:
        count = await InstitutionLoader(db).push()
    return PushResponse(rows_loaded=count, target_table=settings.TARGET_INSTITUTION_TABLE)
