"""
Ingest a directory of source files, build the canonical table and export it.

Files are matched by name: ``<source_type>.csv`` (for example ``weams.csv``).
"""

import argparse
import asyncio
import logging
import sys
import os
from pathlib import Path

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import async_session_maker, engine
from core.exceptions import ETLException
from core.logging import setup_logging
from export.csv_export import CsvExporter
from export.institution_loader import InstitutionLoader
from ingestion.formats import registered_source_types
from ingestion.ingestor import Ingestor
from merge.engine import MergeEngine

logger = logging.getLogger(__name__)


async def run_build(source_dir: Path, output: Path, push: bool = False) -> int:
    """Returns the process exit code"""
    try:
        async with async_session_maker() as session:
            ingestor = Ingestor(session)

            for source_type in registered_source_types():
                path = source_dir / f"{source_type.value}.csv"
                if not path.exists():
                    logger.info(f"No file for {source_type.value}, keeping the active upload")
                    continue
                await ingestor.ingest(source_type, path.read_bytes(), original_filename=path.name)

            if not await MergeEngine(session).build():
                logger.error("Build skipped: uploads incomplete")
                return 1

            await CsvExporter(session).write(str(output))

            if push:
                count = await InstitutionLoader(session).push()
                logger.info(f"Pushed {count} institutions")

        return 0
    except ETLException as e:
        logger.error(f"Build failed: {e}", extra={"error_context": e.to_dict()})
        return 1
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("source_dir", type=Path, help="Directory holding <source_type>.csv files")
    parser.add_argument("--output", type=Path, default=Path(settings.EXPORT_PATH), help="CSV export path")
    parser.add_argument("--push", action="store_true", help="Bulk load into the downstream store")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL, e.g. DEBUG")
    args = parser.parse_args()

    setup_logging(args.log_level)
    sys.exit(asyncio.run(run_build(args.source_dir, args.output, push=args.push)))
