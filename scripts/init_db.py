"""
Create the service schema and, optionally, a local downstream schema
"""

import argparse
import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from sqlalchemy.ext.asyncio import create_async_engine
from core.config import settings
from core.database import create_target_engine
from core.logging import setup_logging
# Importing the package registers every table on Base.metadata
from models import Base
from models.target import target_metadata

logger = logging.getLogger(__name__)


async def init_database(with_target: bool = False):
    logger.info("Connecting to database...")
    engine = create_async_engine(settings.DATABASE_URL, echo=False)

    try:
        async with engine.begin() as conn:
            logger.info("Creating tables...")
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Tables created successfully.")
    finally:
        await engine.dispose()

    if with_target:
        target = create_target_engine()
        try:
            async with target.begin() as conn:
                logger.info("Creating downstream tables...")
                await conn.run_sync(target_metadata.create_all)
                logger.info("Downstream tables created successfully.")
        finally:
            await target.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--with-target", action="store_true", help="Also create the downstream tables")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(init_database(with_target=args.with_target))
