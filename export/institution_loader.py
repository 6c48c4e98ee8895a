"""
Bulk load of the canonical table into the downstream comparison-tool store.

The target schema is reflected at push time, so columns the target lacks
are skipped and columns it adds are filled with their type's empty value.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy import (
    Boolean, Float, Integer, MetaData, Numeric, String, Table, delete, func, insert, select
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession
from sqlalchemy.types import TypeEngine
from core.config import settings
from core.database import create_target_engine, restart_identity
from core.exceptions import LoadError
from ingestion.transformers.normalizer import parse_float, parse_int
from models.institution import CanonicalInstitution
import logging

logger = logging.getLogger(__name__)

canonical = CanonicalInstitution.__table__

MAX_BIND_PARAMETERS = 65536

# Drivers that refuse statements binding more arguments than this
DRIVER_MAX_ARGUMENTS = {"asyncpg": 32767, "aiosqlite": 32766, "pysqlite": 32766}

TIMESTAMP_COLUMNS = ("created_at", "updated_at")
EXCLUDED_COLUMNS = {"id", *TIMESTAMP_COLUMNS}

BOOLEAN_TOKENS = {"true", "t", "yes", "y", "1", "on"}


def map_value_to_type(value: Any, column_type: TypeEngine) -> Any:
    """
    Convert a canonical value to what a target column of ``column_type`` takes.

    Numbers default to zero, booleans to False; strings keep NULL.
    """
    if isinstance(column_type, Boolean):
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in BOOLEAN_TOKENS

    if isinstance(column_type, Integer):
        number = parse_int(value)
        return number if number is not None else 0

    if isinstance(column_type, (Float, Numeric)):
        number = parse_float(value)
        return number if number is not None else 0.0

    if isinstance(column_type, String):
        return None if value is None else str(value)

    return value


def partition_rows(n_rows: int, n_columns: int, max_params: int = MAX_BIND_PARAMETERS) -> List[range]:
    """
    Split ``n_rows`` row indexes into batches of at most ``max_params // n_columns``.

    >>> partition_rows(5, 2, max_params=4)
    [range(0, 2), range(2, 4), range(4, 5)]
    """
    if n_columns < 1:
        raise ValueError("n_columns must be positive")

    batch_size = max_params // n_columns
    if batch_size < 1:
        raise ValueError(f"{n_columns} columns exceed {max_params} parameters per statement")

    return [range(start, min(start + batch_size, n_rows)) for start in range(0, n_rows, batch_size)]


def effective_max_params(max_params: int, driver: str) -> int:
    """``max_params`` capped at what the target driver accepts in one statement"""
    limit = DRIVER_MAX_ARGUMENTS.get(driver)
    return min(max_params, limit) if limit else max_params


class InstitutionLoader:
    """
    Replaces the target institutions and institution types with the canonical table.

    Each batch is committed on its own; a failed batch leaves the earlier
    ones in place and is reported through ``LoadError.batch_index``.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        target_url: Optional[str] = None,
        max_params: Optional[int] = None
    ):
        self.db = db_session
        self.target_url = target_url
        self.max_params = max_params or settings.MAX_BIND_PARAMETERS
        self.table_name = settings.TARGET_INSTITUTION_TABLE
        self.type_table_name = settings.TARGET_INSTITUTION_TYPE_TABLE

    async def fetch_rows(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(select(canonical).order_by(canonical.c.id))
        return [dict(row._mapping) for row in result]

    async def push(self) -> int:
        """
        Load every canonical row into the target store.

        Returns:
            Number of rows inserted
        """
        rows = await self.fetch_rows()
        engine = create_target_engine(self.target_url)

        try:
            async with engine.connect() as conn:
                try:
                    table = await self._reflect(conn, self.table_name)
                    types_table = await self._reflect(conn, self.type_table_name)
                except SQLAlchemyError as e:
                    raise LoadError(
                        "Target tables unavailable",
                        context={"tables": [self.table_name, self.type_table_name]},
                        original_exception=e
                    )

                try:
                    types = await self.build_dimension(conn, types_table, rows)
                    await conn.commit()
                except SQLAlchemyError as e:
                    await conn.rollback()
                    raise LoadError(
                        "Failed to rebuild institution types",
                        context={"table_name": self.type_table_name},
                        original_exception=e
                    )

                columns = [c for c in table.columns if c.name not in EXCLUDED_COLUMNS]
                timestamps = [name for name in TIMESTAMP_COLUMNS if name in table.c]
                max_params = effective_max_params(self.max_params, engine.dialect.driver)
                batches = partition_rows(len(rows), len(columns), max_params)

                logger.info(
                    f"Pushing {len(rows)} institutions to {self.table_name} "
                    f"in {len(batches)} batches ({max_params} parameters per statement)"
                )

                for index, batch in enumerate(batches):
                    try:
                        if index == 0:
                            await conn.execute(delete(table))
                            await restart_identity(conn, table.name)

                        values = [self.to_target_row(rows[i], columns, types) for i in batch]
                        for value in values:
                            value.update({name: func.now() for name in timestamps})

                        await conn.execute(insert(table).values(values))
                        await conn.commit()
                    except SQLAlchemyError as e:
                        await conn.rollback()
                        logger.error(f"Batch {index} of {self.table_name} failed: {e}")
                        raise LoadError(
                            f"Failed to load batch {index} into {self.table_name}",
                            batch_index=index,
                            context={"rows": len(batch)},
                            original_exception=e
                        )

                    logger.info(f"Batch {index + 1}/{len(batches)}: loaded {len(batch)} rows")
        finally:
            await engine.dispose()

        return len(rows)

    async def build_dimension(
        self,
        conn: AsyncConnection,
        types_table: Table,
        rows: List[Dict[str, Any]]
    ) -> Dict[str, int]:
        """
        Rebuild the institution type table from the distinct types of ``rows``.

        Returns:
            Type name to target id
        """
        await conn.execute(delete(types_table))
        await restart_identity(conn, types_table.name)

        types: Dict[str, int] = {}
        for row in rows:
            name = row.get("type")
            if name is None or name in types:
                continue
            result = await conn.execute(insert(types_table).values(name=name))
            types[name] = result.inserted_primary_key[0]

        logger.info(f"Built {len(types)} institution types")
        return types

    @staticmethod
    def to_target_row(row: Dict[str, Any], columns, types: Dict[str, int]) -> Dict[str, Any]:
        source = dict(row)
        # Target ope holds the 6-character parent id
        source["ope"] = source.get("ope6")
        source["institution_type_id"] = types.get(source.get("type"))
        return {column.name: map_value_to_type(source.get(column.name), column.type) for column in columns}

    @staticmethod
    async def _reflect(conn: AsyncConnection, table_name: str) -> Table:
        return await conn.run_sync(
            lambda sync_conn: Table(table_name, MetaData(), autoload_with=sync_conn)
        )
