"""
Format descriptors for every upload source.

A ``SourceFormat`` says how to read one source's file: which header names
are required and what staging column each feeds, which characters are
stripped from values, how many lines surround the header, and which
normalizers and derived-field rules run before a row is stored.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Type

from core.exceptions import UnknownSourceTypeError
from ingestion.transformers.normalizer import (
    IpedsId, OpeId, State, Truth,
    derive_accreditation, derive_complaint, derive_ipeds_ic, derive_ipeds_ic_py,
    derive_mou, derive_ope6, derive_weams, facility_code,
)
from models.base import SourceType
from models import staging

Row = Dict[str, Any]

DEFAULT_DISALLOWED_CHARS = re.compile(r"[^#&'\w@:\- \.\/\(\)\+,\$%]")


@dataclass(frozen=True)
class SourceFormat:
    """Immutable reading instructions for one source type"""
    source_type: SourceType
    model: Type
    header_map: Dict[str, str]
    disallowed_chars: re.Pattern = DEFAULT_DISALLOWED_CHARS
    skip_lines_before_header: int = 0
    skip_lines_after_header: int = 0
    delimiter: str = ","
    normalizers: Dict[str, Callable[[Optional[str]], Any]] = field(default_factory=dict)
    derive: Optional[Callable[[Row], Row]] = None
    keep: Optional[Callable[[Row], bool]] = None

    @property
    def required_headers(self):
        return list(self.header_map)

    @property
    def table_name(self) -> str:
        return self.model.__tablename__


_ID_NORMALIZERS = {"cross": IpedsId.pad, "ope": OpeId.pad}


def _has_any_id(row: Row) -> bool:
    return bool(row.get("cross") or row.get("ope"))


_FORMATS = [
    SourceFormat(
        source_type=SourceType.WEAMS,
        model=staging.Weam,
        header_map={
            "facility code": "facility_code",
            "institution name": "institution",
            "institution city": "city",
            "institution state": "state",
            "institution zip code": "zip",
            "institution country": "country",
            "accredited": "accredited",
            "current academic year bah rate": "bah",
            "principles of excellence": "poe",
            "current academic year yellow ribbon": "yr",
            "poo status": "poo_status",
            "applicable law code": "applicable_law_code",
            "institution of higher learning indicator": "institution_of_higher_learning_indicator",
            "ojt indicator": "ojt_indicator",
            "correspondence indicator": "correspondence_indicator",
            "flight indicator": "flight_indicator",
            "non-college degree indicator": "non_college_degree_indicator",
        },
        normalizers={"facility_code": facility_code, "state": State.to_abbreviation},
        derive=derive_weams,
    ),
    SourceFormat(
        source_type=SourceType.CROSSWALK,
        model=staging.VaCrosswalk,
        header_map={
            "facility code": "facility_code",
            "institution name": "institution",
            "ipeds": "cross",
            "ope": "ope",
        },
        normalizers={"facility_code": facility_code, **_ID_NORMALIZERS},
        derive=derive_ope6,
    ),
    SourceFormat(
        source_type=SourceType.SVA,
        model=staging.Sva,
        header_map={
            "school": "institution",
            "ipeds_code": "cross",
            "city": "city",
            "state": "state",
            "website": "student_veteran_link",
        },
        normalizers={"cross": IpedsId.pad, "state": State.to_abbreviation},
    ),
    SourceFormat(
        source_type=SourceType.VSOC,
        model=staging.Vsoc,
        header_map={
            "facility_code": "facility_code",
            "institution": "institution",
            "vetsuccess_name": "vetsuccess_name",
            "vetsuccess_email": "vetsuccess_email",
        },
        normalizers={"facility_code": facility_code},
    ),
    SourceFormat(
        source_type=SourceType.EIGHT_KEY,
        model=staging.EightKey,
        header_map={
            "institution of higher education": "institution",
            "city": "city",
            "state": "state",
            "ipeds id": "cross",
            "ope id": "ope",
        },
        # The published list opens with a title line
        skip_lines_before_header=1,
        normalizers={"state": State.to_abbreviation, **_ID_NORMALIZERS},
        derive=derive_ope6,
        # State sub-heading lines carry a name but no ids
        keep=_has_any_id,
    ),
    SourceFormat(
        source_type=SourceType.ACCREDITATION,
        model=staging.Accreditation,
        header_map={
            "institution_name": "institution_name",
            "institution_ipeds_unitid": "institution_ipeds_unitid",
            "campus_name": "campus_name",
            "campus_ipeds_unitid": "campus_ipeds_unitid",
            "institution_opeid": "ope",
            "agency_name": "agency_name",
            "periods": "periods",
            "accreditation_type": "csv_accreditation_type",
            "accreditation_status": "accreditation_status",
        },
        normalizers={"ope": OpeId.pad},
        derive=derive_accreditation,
    ),
    SourceFormat(
        source_type=SourceType.ARF_GIBILL,
        model=staging.ArfGibill,
        header_map={
            "facility no.": "facility_code",
            "name of institution": "institution",
            "total count of students": "gibill",
        },
        normalizers={"facility_code": facility_code},
    ),
    SourceFormat(
        source_type=SourceType.P911_TF,
        model=staging.P911Tf,
        header_map={
            "facility code": "facility_code",
            "name of institution": "institution",
            "count of post-911 students": "p911_recipients",
            "total paid": "p911_tuition_fees",
        },
        normalizers={"facility_code": facility_code},
    ),
    SourceFormat(
        source_type=SourceType.P911_YR,
        model=staging.P911Yr,
        header_map={
            "facility code": "facility_code",
            "name of institution": "institution",
            "count of post-911 students": "p911_yr_recipients",
            "total paid": "p911_yellow_ribbon",
        },
        normalizers={"facility_code": facility_code},
    ),
    SourceFormat(
        source_type=SourceType.MOU,
        model=staging.Mou,
        header_map={
            "ope id": "ope",
            "institution name": "institution",
            "institution's status": "status",
        },
        normalizers={"ope": OpeId.pad},
        derive=derive_mou,
    ),
    SourceFormat(
        source_type=SourceType.SCORECARD,
        model=staging.Scorecard,
        header_map={
            "unitid": "cross",
            "opeid": "ope",
            "instnm": "institution",
            "insturl": "insturl",
            "preddeg": "pred_degree_awarded",
            "locale": "locale",
            "ugds": "undergrad_enrollment",
            "ret_ft4": "retention_all_students_ba",
            "ret_ftl4": "retention_all_students_otb",
            "c150_4_pooled_supp": "graduation_rate_all_students",
            "md_earn_wne_p10": "salary_all_students",
            "rpy_3yr_rt_supp": "repayment_rate_all_students",
            "grad_debt_mdn_supp": "avg_stu_loan_debt",
        },
        normalizers=dict(_ID_NORMALIZERS),
        derive=derive_ope6,
    ),
    SourceFormat(
        source_type=SourceType.IPEDS_IC,
        model=staging.IpedsIc,
        header_map={
            "unitid": "cross",
            "vet2": "credit_for_mil_training",
            "vet3": "vet_poc",
            "vet4": "student_vet_grp_ipeds",
            "vet5": "soc_member",
            "calsys": "calendar",
            "distnced": "online_all",
            "level3": "level3",
            "level5": "level5",
        },
        disallowed_chars=re.compile(r"[^\w@\- \.\/]"),
        normalizers={
            "cross": IpedsId.pad,
            "credit_for_mil_training": IpedsId.vetx,
            "vet_poc": IpedsId.vetx,
            "student_vet_grp_ipeds": IpedsId.vetx,
            "soc_member": IpedsId.vetx,
            "calendar": IpedsId.calendar,
            "online_all": IpedsId.distance_education,
        },
        derive=derive_ipeds_ic,
    ),
    SourceFormat(
        source_type=SourceType.IPEDS_HD,
        model=staging.IpedsHd,
        header_map={
            "unitid": "cross",
            "veturl": "vet_tuition_policy_url",
        },
        disallowed_chars=re.compile(r"[^#&'\w@:\- \.\/\(\)\+]"),
        normalizers={"cross": IpedsId.pad},
    ),
    SourceFormat(
        source_type=SourceType.IPEDS_IC_AY,
        model=staging.IpedsIcAy,
        header_map={
            "unitid": "cross",
            "tuition2": "tuition_in_state",
            "tuition3": "tuition_out_of_state",
            "chg4ay3": "books",
        },
        disallowed_chars=re.compile(r"[^\w@\- \.\/]"),
        normalizers={"cross": IpedsId.pad},
    ),
    SourceFormat(
        source_type=SourceType.IPEDS_IC_PY,
        model=staging.IpedsIcPy,
        header_map={
            "unitid": "cross",
            "chg1py3": "chg1py3",
            "chg5py3": "chg5py3",
        },
        disallowed_chars=re.compile(r"[^\w@\- \.\/]"),
        normalizers={"cross": IpedsId.pad},
        derive=derive_ipeds_ic_py,
    ),
    SourceFormat(
        source_type=SourceType.SEC702_SCHOOL,
        model=staging.Sec702School,
        header_map={
            "facility code": "facility_code",
            "section_702": "sec_702",
        },
        disallowed_chars=re.compile(r"[^#\w@\- \.\/]"),
        normalizers={"facility_code": facility_code, "sec_702": Truth.truthy},
    ),
    SourceFormat(
        source_type=SourceType.SEC702,
        model=staging.Sec702,
        header_map={
            "state": "state",
            "sec_702": "sec_702",
        },
        disallowed_chars=re.compile(r"[^#\w@\- \.\/]"),
        normalizers={"state": State.to_abbreviation, "sec_702": Truth.truthy},
    ),
    SourceFormat(
        source_type=SourceType.SETTLEMENT,
        model=staging.Settlement,
        header_map={
            "school": "institution",
            "ipeds": "cross",
            "settlement description": "settlement_description",
        },
        normalizers={"cross": IpedsId.pad},
    ),
    SourceFormat(
        source_type=SourceType.HCM,
        model=staging.Hcm,
        header_map={
            "opeid": "ope",
            "institution name": "institution",
            "city": "city",
            "state": "state",
            "hcm type": "hcm_type",
            "reason for": "hcm_reason",
        },
        normalizers={"ope": OpeId.pad, "state": State.to_abbreviation},
        derive=derive_ope6,
    ),
    SourceFormat(
        source_type=SourceType.COMPLAINT,
        model=staging.Complaint,
        header_map={
            "facility code": "facility_code",
            "ope id": "ope",
            "status": "status",
            "closed reason": "closed_reason",
            "issues": "issues",
        },
        normalizers={"facility_code": facility_code, "ope": OpeId.pad},
        derive=derive_complaint,
    ),
    SourceFormat(
        source_type=SourceType.OUTCOME,
        model=staging.Outcome,
        header_map={
            "va facility code": "facility_code",
            "va facility name": "institution",
            "retention rate veteran ba": "retention_rate_veteran_ba",
            "retention rate veteran otb": "retention_rate_veteran_otb",
            "persistance rate veteran ba": "persistance_rate_veteran_ba",
            "persistance rate veteran otb": "persistance_rate_veteran_otb",
            "graduation rate veteran": "graduation_rate_veteran",
            "transfer out rate veteran": "transfer_out_rate_veteran",
            "transfer out rate all students": "transfer_out_rate_all_students",
        },
        normalizers={"facility_code": facility_code},
    ),
]

FORMATS: Dict[SourceType, SourceFormat] = {fmt.source_type: fmt for fmt in _FORMATS}


def get_format(source_type) -> SourceFormat:
    """Look up a format by enum member or its string value"""
    try:
        return FORMATS[SourceType(source_type)]
    except (ValueError, KeyError):
        raise UnknownSourceTypeError(str(source_type)) from None


def registered_source_types():
    return list(FORMATS)
