"""
Upload endpoints: accept a source file as the raw request body
"""

from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from core.database import get_session, write_lock
from ingestion.ingestor import Ingestor
from schemas.api import DeleteUploadResponse, ErrorResponse, UploadResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post(
    "/{source_type}",
    response_model=UploadResponse,
    status_code=201,
    responses={422: {"model": ErrorResponse, "description": "Upload rejected"}}
)
async def create_upload(
    source_type: str,
    request: Request,
    x_filename: Optional[str] = Header(None, description="Name of the uploaded file"),
    db: AsyncSession = Depends(get_session)
):
    """
    Replace the active file for ``source_type``.

    The body is the CSV file itself. A rejected file leaves the previous
    upload active and answers 422 with the failing row or missing headers.
    """
    request_id = getattr(request.state, "request_id", "-")
    raw = await request.body()
    logger.info(f"[{request_id}] POST /uploads/{source_type} - {len(raw)} bytes")

    async with write_lock:
        ingestor = Ingestor(db)
        count = await ingestor.ingest(source_type, raw, original_filename=x_filename)
        complete = await ingestor.is_complete()

    return UploadResponse(source_type=source_type, rows_staged=count, complete=complete)


@router.delete(
    "/{upload_id}",
    response_model=DeleteUploadResponse,
    responses={404: {"model": ErrorResponse, "description": "No such upload"}}
)
async def delete_upload(upload_id: int, db: AsyncSession = Depends(get_session)):
    async with write_lock:
        cleared = await Ingestor(db).delete_upload(upload_id)
    return DeleteUploadResponse(upload_id=upload_id, active_data_cleared=cleared)
