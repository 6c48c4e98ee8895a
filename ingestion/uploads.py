"""
Upload records and the active blob per source type.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from ingestion.formats import registered_source_types
from models.base import SourceType
from models.upload import RawUpload, UploadStore
import logging

logger = logging.getLogger(__name__)


def storage_name(source_type: SourceType, when: datetime) -> str:
    """Display name ``{yyMMddHHmmssSSS}_{source_type}.csv``; sorts chronologically"""
    return f"{when.strftime('%y%m%d%H%M%S')}{when.microsecond // 1000:03d}_{source_type.value}.csv"


class RawUploadStore:
    """
    Keeps at most one active blob per source type.

    Methods never commit; the caller owns the transaction so an upload and
    its staging rows land together or not at all.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def put(
        self,
        source_type: SourceType,
        content: bytes,
        original_filename: Optional[str] = None
    ) -> RawUpload:
        """Record a new upload and make ``content`` the active blob"""
        now = datetime.utcnow()
        upload = RawUpload(
            source_type=source_type,
            name=storage_name(source_type, now),
            original_filename=original_filename,
            upload_date=now,
        )
        self.db.add(upload)

        store = await self._store(source_type)
        if store is None:
            self.db.add(UploadStore(source_type=source_type, data_store=content, updated_at=now))
        else:
            store.data_store = content
            store.updated_at = now

        await self.db.flush()
        logger.info(f"Stored {len(content)} bytes for {source_type.value} as {upload.name}")
        return upload

    async def get_blob(self, source_type: SourceType) -> Optional[bytes]:
        store = await self._store(source_type)
        return store.data_store if store else None

    async def clear(self, source_type: SourceType) -> None:
        store = await self._store(source_type)
        if store is not None:
            store.data_store = None
            store.updated_at = datetime.utcnow()
            await self.db.flush()

    async def latest(self, source_type: SourceType) -> Optional[RawUpload]:
        result = await self.db.execute(
            select(RawUpload)
            .where(RawUpload.source_type == source_type)
            .order_by(RawUpload.upload_date.desc(), RawUpload.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def missing_source_types(self) -> List[SourceType]:
        """Registered source types without a non-empty active blob"""
        result = await self.db.execute(
            select(UploadStore.source_type).where(
                UploadStore.data_store.is_not(None),
                func.length(UploadStore.data_store) > 0,
            )
        )
        present = set(result.scalars().all())
        return [t for t in registered_source_types() if t not in present]

    async def is_complete(self) -> bool:
        """True only when every registered source type has a non-empty blob"""
        missing = await self.missing_source_types()
        if missing:
            logger.info(f"Uploads incomplete, missing: {', '.join(t.value for t in missing)}")
            return False
        return True

    async def _store(self, source_type: SourceType) -> Optional[UploadStore]:
        result = await self.db.execute(
            select(UploadStore).where(UploadStore.source_type == source_type)
        )
        return result.scalar_one_or_none()
