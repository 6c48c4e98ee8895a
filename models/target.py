"""
Schema of the downstream comparison-tool store.

The bulk load reflects whatever schema the target actually has; these
definitions only exist so local setups and tests can create one.
"""

from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table
from core.config import settings
from models.institution import CanonicalInstitution

target_metadata = MetaData()

_NOT_IN_TARGET = {"id", "type", "ope6"}

institution_types = Table(
    settings.TARGET_INSTITUTION_TYPE_TABLE,
    target_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(50), nullable=False, unique=True),
)

institutions = Table(
    settings.TARGET_INSTITUTION_TABLE,
    target_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("institution_type_id", Integer, nullable=False, index=True),
    *[
        Column(
            column.name, column.type, nullable=column.nullable,
            index=column.name in ("facility_code", "institution"),
        )
        for column in CanonicalInstitution.__table__.columns
        if column.name not in _NOT_IN_TARGET
    ],
    Column("created_at", DateTime, nullable=False, default=datetime.utcnow),
    Column("updated_at", DateTime, nullable=False, default=datetime.utcnow),
)
