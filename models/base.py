import enum
from sqlalchemy import Column, Integer
from sqlalchemy.orm import declarative_base

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SourceType(str, enum.Enum):
    """Registered upload sources, one staging relation each"""
    WEAMS = "weams"
    CROSSWALK = "crosswalk"
    SVA = "sva"
    VSOC = "vsoc"
    EIGHT_KEY = "eight_key"
    ACCREDITATION = "accreditation"
    ARF_GIBILL = "arf_gibill"
    P911_TF = "p911_tf"
    P911_YR = "p911_yr"
    MOU = "mou"
    SCORECARD = "scorecard"
    IPEDS_IC = "ipeds_ic"
    IPEDS_HD = "ipeds_hd"
    IPEDS_IC_AY = "ipeds_ic_ay"
    IPEDS_IC_PY = "ipeds_ic_py"
    SEC702_SCHOOL = "sec702_school"
    SEC702 = "sec702"
    SETTLEMENT = "settlement"
    HCM = "hcm"
    COMPLAINT = "complaint"
    OUTCOME = "outcome"


class StagingMixin:
    """Surrogate key shared by every staging relation; higher id = later in file"""
    id = Column(Integer, primary_key=True, autoincrement=True)
