"""
Database session management with SQLAlchemy async
"""

import asyncio
from typing import AsyncGenerator, Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine, AsyncConnection, AsyncEngine, AsyncSession, async_sessionmaker
)
from sqlalchemy.pool import NullPool
from core.config import settings
import logging

logger = logging.getLogger(__name__)

# Create async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.ENVIRONMENT == "development",
    poolclass=NullPool,
    future=True
)

# Create session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session"""
    async with async_session_maker() as session:
        yield session


def create_target_engine(url: Optional[str] = None) -> AsyncEngine:
    """Engine for the downstream store; callers dispose it when done."""
    return create_async_engine(
        url or settings.TARGET_DATABASE_URL,
        echo=False,
        poolclass=NullPool,
        future=True
    )


async def restart_identity(conn: AsyncConnection, table_name: str) -> None:
    """
    Restart the id sequence of ``table_name`` so the next insert gets id 1.

    Only PostgreSQL keeps a separate sequence; SQLite reuses rowids once
    the table is empty, unless it was declared AUTOINCREMENT.
    """
    dialect = conn.dialect.name
    if dialect == "postgresql":
        await conn.execute(text(f"ALTER SEQUENCE {table_name}_id_seq RESTART WITH 1"))
    elif dialect == "sqlite":
        has_sequence = await conn.scalar(
            text("SELECT count(*) FROM sqlite_master WHERE name = 'sqlite_sequence'")
        )
        if has_sequence:
            await conn.execute(
                text("DELETE FROM sqlite_sequence WHERE name = :name"), {"name": table_name}
            )
    else:
        logger.warning(f"Identity restart not supported for dialect {dialect}")


# Uploads, builds and pushes share the staging and canonical tables; the API
# routes and the build scheduler take this lock around each write.
write_lock = asyncio.Lock()
