"""
Pytest configuration and fixtures
"""

import os
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from models import Base
from models.target import target_metadata
from ingestion.ingestor import Ingestor
from tests.sample_sources import SAMPLES
from typing import AsyncGenerator

# Test database URL; set TEST_DATABASE_URL to run against PostgreSQL
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection so every session sees the same in-memory database
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"poolclass": NullPool}


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, **_engine_options(TEST_DATABASE_URL))

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def target_url(tmp_path) -> str:
    """File-backed SQLite standing in for the downstream store"""
    url = f"sqlite+aiosqlite:///{tmp_path / 'target.db'}"
    engine = create_async_engine(url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(target_metadata.create_all)
    await engine.dispose()
    return url


@pytest_asyncio.fixture(scope="function")
async def loaded_session(db_session) -> AsyncSession:
    """Session whose database holds an accepted upload for every source type"""
    ingestor = Ingestor(db_session)
    for source_type, content in SAMPLES.items():
        await ingestor.ingest(source_type, content, original_filename=f"{source_type.value}.csv")
    return db_session


@pytest.fixture
def samples():
    return dict(SAMPLES)
