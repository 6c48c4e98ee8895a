from datetime import datetime
from sqlalchemy import Column, String, Integer, Enum, DateTime, LargeBinary, Index
from models.base import Base, SourceType


class RawUpload(Base):
    """
    One record per accepted upload.

    The newest record per source type is the active one; older records are
    an audit trail only and never feed a build.
    """
    __tablename__ = "raw_uploads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_type = Column(Enum(SourceType), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    original_filename = Column(String(255), nullable=True)
    upload_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("idx_raw_uploads_type_date", "source_type", "upload_date"),
    )


class UploadStore(Base):
    """Active blob per source type; replaced by every new upload"""
    __tablename__ = "upload_store"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_type = Column(Enum(SourceType), nullable=False, unique=True)
    data_store = Column(LargeBinary, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
