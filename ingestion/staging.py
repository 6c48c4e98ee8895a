"""
Replace-all access to the per-source staging relations.
"""

from typing import Any, Dict, List
from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from ingestion.formats import get_format
from models.base import SourceType
import logging

logger = logging.getLogger(__name__)


class StagingStore:
    """Staging rows are only ever replaced wholesale, never updated"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def replace_all(self, source_type: SourceType, rows: List[Dict[str, Any]]) -> int:
        """Delete every row of the source's relation and insert ``rows``; no commit"""
        model = get_format(source_type).model

        await self.db.execute(delete(model))
        if rows:
            await self.db.execute(insert(model), rows)

        logger.info(f"Replaced {model.__tablename__} with {len(rows)} rows")
        return len(rows)

    async def clear(self, source_type: SourceType) -> None:
        model = get_format(source_type).model
        await self.db.execute(delete(model))
        logger.info(f"Cleared {model.__tablename__}")

    async def count(self, source_type: SourceType) -> int:
        model = get_format(source_type).model
        return await self.db.scalar(select(func.count()).select_from(model))
