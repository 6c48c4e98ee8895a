"""
Unit tests for the CSV export and the bulk loader
"""

import csv
import io
import pytest
from unittest.mock import AsyncMock
from sqlalchemy import Boolean, Float, Integer, String, Text
from core.exceptions import LoadError
from export.csv_export import EXPORT_COLUMNS, CsvExporter, rows_to_csv
from export.institution_loader import (
    EXCLUDED_COLUMNS, InstitutionLoader, effective_max_params, map_value_to_type, partition_rows
)
from models.institution import CanonicalInstitution
from models.target import institutions

TARGET_COLUMNS = [c for c in institutions.columns if c.name not in EXCLUDED_COLUMNS]


class TestPartition:
    """Test batch sizing"""

    def test_batches_respect_parameter_ceiling(self):
        batches = partition_rows(10, 3, max_params=9)
        assert [len(batch) for batch in batches] == [3, 3, 3, 1]
        assert [i for batch in batches for i in batch] == list(range(10))

    def test_default_ceiling(self):
        batches = partition_rows(1000, 90)
        assert len(batches[0]) == 65536 // 90
        assert len(batches) == 2

    def test_no_rows_no_batches(self):
        assert partition_rows(0, 5) == []

    def test_too_many_columns(self):
        with pytest.raises(ValueError):
            partition_rows(10, 11, max_params=10)

    @pytest.mark.parametrize("n_columns", [90, len(TARGET_COLUMNS)])
    def test_asyncpg_batches_stay_within_driver_limit(self, n_columns):
        max_params = effective_max_params(65536, "asyncpg")
        batches = partition_rows(5000, n_columns, max_params)

        assert max_params == 32767
        assert all(len(batch) * n_columns <= 32767 for batch in batches)
        assert sum(len(batch) for batch in batches) == 5000

    def test_smaller_setting_wins_over_driver_limit(self):
        assert effective_max_params(200, "asyncpg") == 200

    def test_unlisted_driver_keeps_the_setting(self):
        assert effective_max_params(65536, "psycopg2") == 65536


class TestValueMapping:
    """Test coercion to target column types"""

    @pytest.mark.parametrize("value,expected", [
        (None, 0), ("12", 12), ("12.7", 12), ("abc", 0), (5, 5),
    ])
    def test_integer(self, value, expected):
        assert map_value_to_type(value, Integer()) == expected

    @pytest.mark.parametrize("value,expected", [
        (None, 0.0), ("2.5", 2.5), ("x", 0.0), (3, 3.0),
    ])
    def test_float(self, value, expected):
        assert map_value_to_type(value, Float()) == expected

    @pytest.mark.parametrize("value,expected", [
        (True, True), (False, False), (None, False), ("yes", True), ("On", True), ("1", True),
        ("no", False), ("ye", False),
    ])
    def test_boolean(self, value, expected):
        assert map_value_to_type(value, Boolean()) is expected

    def test_strings_keep_null(self):
        assert map_value_to_type(None, String(20)) is None
        assert map_value_to_type(12, Text()) == "12"


class TestCsvExport:
    """Test the fixed CSV layout"""

    def _row(self, **values):
        row = {column: None for column in EXPORT_COLUMNS}
        row.update(values)
        return row

    def _parse(self, content):
        return list(csv.reader(io.StringIO(content)))

    def test_header_is_the_fixed_layout(self):
        lines = self._parse(rows_to_csv([]))
        assert lines == [EXPORT_COLUMNS]
        assert len(EXPORT_COLUMNS) == len(set(EXPORT_COLUMNS))

    def test_layout_columns_exist_on_canonical_table(self):
        columns = set(CanonicalInstitution.__table__.columns.keys())
        assert set(EXPORT_COLUMNS) <= columns

    def test_values_are_rendered(self):
        content = rows_to_csv([self._row(
            facility_code="11000001",
            institution="State University",
            type="for profit",
            ope="00100100",
            caution_flag=False,
            student_veteran=True,
            bah=1500.5,
            gibill=1250,
            caution_flag_reason="Settlement with FTC, Settlement with State AG",
        )])
        header, values = self._parse(content)
        row = dict(zip(header, values))

        assert row["facility_code"] == "11000001"
        assert row["type"] == "FOR PROFIT"
        assert row["ope"] == "'00100100'"
        assert row["caution_flag"] == ""
        assert row["student_veteran"] == "true"
        assert row["bah"] == "1500.5"
        assert row["gibill"] == "1250"
        assert row["dodmou"] == ""
        assert row["caution_flag_reason"] == "Settlement with FTC, Settlement with State AG"

    def test_integers_stay_integers_next_to_nulls(self):
        content = rows_to_csv([self._row(gibill=3), self._row(gibill=None)])
        _, first, second = self._parse(content)
        position = EXPORT_COLUMNS.index("gibill")
        assert first[position] == "3"
        assert second[position] == ""

    @pytest.mark.asyncio
    async def test_rows_are_ordered_by_institution(self, db_session):
        db_session.add_all([
            CanonicalInstitution(facility_code="2", institution="Beta College"),
            CanonicalInstitution(facility_code="1", institution="Alpha College"),
        ])
        await db_session.commit()

        lines = self._parse(await CsvExporter(db_session).to_csv())
        assert [line[1] for line in lines[1:]] == ["Alpha College", "Beta College"]


class TestInstitutionLoader:
    """Test target row mapping and failures"""

    def test_target_row_uses_parent_ope_and_type_id(self):
        class Col:
            def __init__(self, name, type_):
                self.name = name
                self.type = type_

        columns = [
            Col("institution_type_id", Integer()), Col("ope", String(20)),
            Col("gibill", Integer()), Col("dodmou", Boolean()), Col("new_column", Float()),
        ]
        row = {"type": "public", "ope": "00100100", "ope6": "01001", "gibill": None, "dodmou": None}

        assert InstitutionLoader.to_target_row(row, columns, {"public": 7}) == {
            "institution_type_id": 7, "ope": "01001", "gibill": 0, "dodmou": False, "new_column": 0.0,
        }

    @pytest.mark.asyncio
    async def test_missing_target_table_is_reported(self, db_session, tmp_path):
        db_session.add(CanonicalInstitution(facility_code="1", institution="Alpha", type="public"))
        await db_session.commit()

        loader = InstitutionLoader(db_session, target_url=f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        with pytest.raises(LoadError) as exc_info:
            await loader.push()
        assert exc_info.value.batch_index is None

    @pytest.mark.asyncio
    async def test_failed_batch_reports_its_index(self, db_session, target_url):
        db_session.add_all([
            CanonicalInstitution(facility_code=str(i), institution=f"School {i}", type="public")
            for i in range(5)
        ])
        await db_session.commit()

        loader = InstitutionLoader(db_session, target_url=target_url, max_params=200)
        rows = await loader.fetch_rows()
        # The last row breaks the NOT NULL on institution
        rows[4]["institution"] = None
        loader.fetch_rows = AsyncMock(return_value=rows)

        n_columns = len(TARGET_COLUMNS)
        expected = next(i for i, batch in enumerate(partition_rows(5, n_columns, 200)) if 4 in batch)

        with pytest.raises(LoadError) as exc_info:
            await loader.push()
        assert expected > 0
        assert exc_info.value.batch_index == expected
