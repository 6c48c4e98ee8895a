"""
Generic ingestion of upload files into staging relations.

One routine serves every source; per-source behaviour comes from the
``SourceFormat`` registered for the source type.
"""

import io
import re
from typing import Any, Callable, Dict, List, Optional, Sequence
import pandas as pd
from sqlalchemy import BigInteger, Integer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from core.exceptions import (
    EmptyUploadError, IngestionError, MissingHeaderError, RowParseError, UploadNotFoundError
)
from ingestion.formats import SourceFormat, get_format
from ingestion.staging import StagingStore
from ingestion.transformers.normalizer import coerce_value
from ingestion.uploads import RawUploadStore
from models.upload import RawUpload
import logging

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
RowPredicate = Callable[[Row], bool]

_LINE_BREAKS = re.compile(r"\r\n?")
_REPORTED_LINE = re.compile(r"line (\d+)")

INT32_MIN, INT32_MAX = -2**31, 2**31 - 1


class Ingestor:
    """
    Validates, parses and stores upload files.

    Every row is parsed before anything is written, and the blob, the upload
    record and the staging rows are committed in one transaction. A failure
    anywhere leaves the previous upload and staging contents in place.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.uploads = RawUploadStore(db_session)
        self.staging = StagingStore(db_session)

    async def ingest(
        self,
        source_type,
        raw: bytes,
        keep: Optional[RowPredicate] = None,
        original_filename: Optional[str] = None
    ) -> int:
        """
        Accept an upload for ``source_type`` and reload its staging relation.

        Args:
            source_type: SourceType member or its value
            raw: File content
            keep: Extra predicate a parsed row must satisfy to be stored
            original_filename: Name the file was uploaded under

        Returns:
            Number of staging rows written
        """
        fmt = get_format(source_type)
        if not raw:
            raise EmptyUploadError(fmt.source_type.value)

        rows = self.parse(fmt, raw, keep)

        try:
            await self.uploads.put(fmt.source_type, raw, original_filename)
            count = await self.staging.replace_all(fmt.source_type, rows)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to store {fmt.source_type.value} upload: {e}")
            raise IngestionError(
                f"Failed to store rows for {fmt.source_type.value}",
                context={"source_type": fmt.source_type.value, "table_name": fmt.table_name},
                original_exception=e
            )

        logger.info(f"Ingested {count} rows for {fmt.source_type.value}")
        return count

    async def reingest(self, source_type, keep: Optional[RowPredicate] = None) -> int:
        """Rebuild a staging relation from the active blob without a new upload record"""
        fmt = get_format(source_type)
        raw = await self.uploads.get_blob(fmt.source_type)
        if not raw:
            raise EmptyUploadError(fmt.source_type.value)

        rows = self.parse(fmt, raw, keep)

        try:
            count = await self.staging.replace_all(fmt.source_type, rows)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise IngestionError(
                f"Failed to store rows for {fmt.source_type.value}",
                context={"source_type": fmt.source_type.value},
                original_exception=e
            )

        logger.info(f"Re-ingested {count} rows for {fmt.source_type.value}")
        return count

    async def delete_upload(self, upload_id: int) -> bool:
        """
        Delete an upload record.

        Deleting the newest upload of a source type also clears its blob and
        empties its staging relation, so the source counts as missing until a
        new file arrives.

        Returns:
            True when the deleted upload was the active one
        """
        upload = await self.db.get(RawUpload, upload_id)
        if upload is None:
            raise UploadNotFoundError(upload_id)

        source_type = upload.source_type
        latest = await self.uploads.latest(source_type)
        was_active = latest is not None and latest.id == upload.id

        await self.db.delete(upload)
        if was_active:
            await self.uploads.clear(source_type)
            await self.staging.clear(source_type)
        await self.db.commit()

        logger.info(
            f"Deleted upload {upload_id} ({source_type.value})"
            + (", active data cleared" if was_active else "")
        )
        return was_active

    async def is_complete(self) -> bool:
        return await self.uploads.is_complete()

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def clean(raw: bytes) -> str:
        """Decode to 7-bit ASCII with ``\\n`` line endings; undecodable bytes are dropped"""
        text = raw.decode("utf-8", errors="replace")
        text = text.replace('\n\r"', "")
        text = _LINE_BREAKS.sub("\n", text)
        return text.encode("ascii", errors="ignore").decode("ascii")

    def parse(self, fmt: SourceFormat, raw: bytes, keep: Optional[RowPredicate] = None) -> List[Row]:
        """Parse a whole file into staging rows without touching the database"""
        text = self.clean(raw)
        lines = text.split("\n")
        source = fmt.source_type.value

        try:
            frame = self.read_frame(fmt, text)
        except pd.errors.ParserError as e:
            row_number = self.reported_line(e, default=len(lines))
            logger.error(f"{source}: row {row_number} rejected: {e}")
            raise RowParseError(source, row_number, self._line(lines, row_number), e)

        headers = self.parse_header(fmt, frame.columns)
        positions = {field: headers.index(header) for header, field in fmt.header_map.items()}

        # 1-based line of the header; frame row i sits on the line after it plus i
        header_line = fmt.skip_lines_before_header + 1
        rows = []

        for offset, values in enumerate(frame.itertuples(index=False, name=None)):
            if offset < fmt.skip_lines_after_header:
                continue

            row_number = header_line + 1 + offset
            try:
                picked = self.parse_row(fmt, values, positions)
                if picked is None:
                    continue

                row = self.build_row(fmt, picked)
                if fmt.keep is not None and not fmt.keep(row):
                    continue
                if keep is not None and not keep(row):
                    continue
            except (ValueError, TypeError, KeyError, AttributeError, OverflowError) as e:
                logger.error(f"{source}: row {row_number} rejected: {e}")
                raise RowParseError(source, row_number, self._line(lines, row_number), e)

            rows.append(row)

        logger.info(f"Parsed {len(rows)} rows from {len(lines)} lines of {source}")
        return rows

    def read_frame(self, fmt: SourceFormat, text: str) -> pd.DataFrame:
        """
        Every line from the header on as strings; blank lines stay as rows
        so frame positions map back to physical lines.
        """
        try:
            frame = pd.read_csv(
                io.StringIO(text),
                sep=fmt.delimiter,
                dtype=str,
                keep_default_na=False,
                skiprows=fmt.skip_lines_before_header,
                skip_blank_lines=False,
                index_col=False,
            )
        except pd.errors.EmptyDataError:
            raise MissingHeaderError(fmt.source_type.value, fmt.required_headers)
        return frame.fillna("")

    def parse_header(self, fmt: SourceFormat, columns) -> List[str]:
        """Lower-cased, trimmed header tokens; every required header must be present"""
        headers = [str(column).strip().lower() for column in columns]
        missing = [header for header in fmt.required_headers if header not in headers]
        if missing:
            raise MissingHeaderError(fmt.source_type.value, missing)
        return headers

    def parse_row(self, fmt: SourceFormat, values: Sequence[str], positions: Dict[str, int]) -> Optional[Dict[str, str]]:
        """
        Registered columns of one line, filtered and trimmed.

        Returns None for a line whose every registered value is blank.
        """
        row = {}
        for field, position in positions.items():
            value = values[position] if position < len(values) else ""
            row[field] = fmt.disallowed_chars.sub("", value or "").strip()

        if not any(row.values()):
            return None
        return row

    def build_row(self, fmt: SourceFormat, values: Dict[str, str]) -> Row:
        """Apply normalizers and derived fields, then coerce to the staging columns"""
        row: Row = dict(values)
        for field, normalizer in fmt.normalizers.items():
            if field in row:
                row[field] = normalizer(row[field])

        if fmt.derive is not None:
            row = fmt.derive(row)

        staged = {}
        for column in fmt.model.__table__.columns:
            if column.primary_key:
                continue
            value = coerce_value(row.get(column.name), column.type)
            if value is None and not column.nullable:
                raise ValueError(f"{column.name} is required")
            check_fits(column, value)
            staged[column.name] = value
        return staged

    @staticmethod
    def reported_line(error: Exception, default: int) -> int:
        """Physical line number pandas names in a tokenizer error"""
        match = _REPORTED_LINE.search(str(error))
        return int(match.group(1)) if match else default

    @staticmethod
    def _line(lines: List[str], row_number: int) -> str:
        return lines[row_number - 1] if 0 < row_number <= len(lines) else ""


def check_fits(column, value: Any) -> None:
    """Raise ValueError when ``value`` would overflow the staging ``column``"""
    if value is None:
        return

    length = getattr(column.type, "length", None)
    if isinstance(value, str) and length is not None and len(value) > length:
        raise ValueError(f"{column.name} exceeds {length} characters: {value!r}")

    if isinstance(column.type, Integer) and not isinstance(column.type, BigInteger):
        if not INT32_MIN <= value <= INT32_MAX:
            raise ValueError(f"{column.name} out of integer range: {value}")
