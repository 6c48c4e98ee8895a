"""
SQLAlchemy ORM models for database tables.

Models:
    base: Declarative base, the SourceType enum and the staging mixin
    upload: Upload records and the active blob per source type
    staging: One staging relation per source type
    institution: The canonical merged institution table
    target: Schema of the downstream store (separate metadata)

Usage:
    from models import CanonicalInstitution, RawUpload
    from models.base import SourceType
"""

from models.base import Base, SourceType
from models.upload import RawUpload, UploadStore
from models.institution import CanonicalInstitution
from models.staging import (
    Weam, VaCrosswalk, Sva, Vsoc, EightKey, Accreditation, ArfGibill,
    P911Tf, P911Yr, Mou, Scorecard, IpedsIc, IpedsHd, IpedsIcAy, IpedsIcPy,
    Sec702School, Sec702, Settlement, Hcm, Complaint, Outcome,
)

__all__ = [
    "Base",
    "SourceType",
    "RawUpload",
    "UploadStore",
    "CanonicalInstitution",
    "Weam",
    "VaCrosswalk",
    "Sva",
    "Vsoc",
    "EightKey",
    "Accreditation",
    "ArfGibill",
    "P911Tf",
    "P911Yr",
    "Mou",
    "Scorecard",
    "IpedsIc",
    "IpedsHd",
    "IpedsIcAy",
    "IpedsIcPy",
    "Sec702School",
    "Sec702",
    "Settlement",
    "Hcm",
    "Complaint",
    "Outcome",
]
