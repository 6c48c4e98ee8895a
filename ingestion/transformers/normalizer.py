"""
Value normalizers and derived-field rules shared by the source formats.

Every function here takes raw strings as they come off a CSV line (already
trimmed and stripped of disallowed characters) and returns a value that can
be stored in a staging column, or ``None`` for blanks.
"""

import re
from typing import Any, Dict, Optional
from sqlalchemy import Boolean, Float, Integer
from sqlalchemy.types import TypeEngine
import logging

logger = logging.getLogger(__name__)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def blank_to_none(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    return str(value).strip()


def _is_none_token(value: str) -> bool:
    return value.lower() == "none"


class OpeId:
    """8-character federal aid ids and their 6-character parent form"""

    @staticmethod
    def pad(value: Optional[str]) -> Optional[str]:
        """Right-pad to 8 characters with zeros (the location suffix is often dropped)"""
        value = blank_to_none(value)
        if value is None or _is_none_token(value):
            return None
        return value.ljust(8, "0")

    @staticmethod
    def to_ope6(value: Optional[str]) -> Optional[str]:
        """Characters 2-6 of the padded id; ids shorter than 6 have no parent form"""
        value = blank_to_none(value)
        if value is None or _is_none_token(value) or len(value) < 6:
            return None
        return OpeId.pad(value)[1:6]


class IpedsId:
    """Federal postsecondary institution ids ("cross")"""

    VETX_CODES = {"-2": False, "-1": False, "0": False, "1": True}

    CALSYS_CODES = {
        "1": "semester",
        "2": "quarter",
        "3": "trimester",
        "4": "four-one-four plan",
        "5": "other academic year",
        "6": "differs by program",
        "7": "continuous",
    }

    @staticmethod
    def pad(value: Optional[str]) -> Optional[str]:
        """Left-pad to 6 digits so ids from every IPEDS-keyed source join"""
        value = blank_to_none(value)
        if value is None or _is_none_token(value):
            return None
        return value.rjust(6, "0")

    @staticmethod
    def vetx(value: Optional[str]) -> Optional[bool]:
        value = blank_to_none(value)
        if value is None:
            return None
        return IpedsId.VETX_CODES.get(value, False)

    @staticmethod
    def calendar(value: Optional[str]) -> Optional[str]:
        value = blank_to_none(value)
        if value is None:
            return None
        return IpedsId.CALSYS_CODES.get(value)

    @staticmethod
    def distance_education(value: Optional[str]) -> Optional[bool]:
        """1 = yes, 2 = no; negative codes are not applicable/not reported"""
        value = blank_to_none(value)
        if value is None:
            return None
        return value == "1"


class Truth:
    """Loose truth tokens used across the upload files"""

    TRUTHS = {"yes", "true", "t", "y", "1", "ye", "tr", "tru"}

    @staticmethod
    def truthy(value: Any) -> Optional[bool]:
        if isinstance(value, bool):
            return value
        if is_blank(value):
            return None
        return str(value).strip().lower() in Truth.TRUTHS


class State:
    """US state and territory abbreviations"""

    STATES = {
        "AK": "Alaska", "AL": "Alabama", "AR": "Arkansas", "AS": "American Samoa",
        "AZ": "Arizona", "CA": "California", "CO": "Colorado", "CT": "Connecticut",
        "DC": "District of Columbia", "DE": "Delaware", "FL": "Florida",
        "FM": "Federated States of Micronesia", "GA": "Georgia", "GU": "Guam",
        "HI": "Hawaii", "IA": "Iowa", "ID": "Idaho", "IL": "Illinois",
        "IN": "Indiana", "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana",
        "MA": "Massachusetts", "MD": "Maryland", "ME": "Maine", "MH": "Marshall Islands",
        "MI": "Michigan", "MN": "Minnesota", "MO": "Missouri", "MP": "Northern Mariana Islands",
        "MS": "Mississippi", "MT": "Montana", "NC": "North Carolina", "ND": "North Dakota",
        "NE": "Nebraska", "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico",
        "NV": "Nevada", "NY": "New York", "OH": "Ohio", "OK": "Oklahoma",
        "OR": "Oregon", "PA": "Pennsylvania", "PR": "Puerto Rico", "PW": "Palau",
        "RI": "Rhode Island", "SC": "South Carolina", "SD": "South Dakota",
        "TN": "Tennessee", "TX": "Texas", "UT": "Utah", "VA": "Virginia",
        "VI": "Virgin Islands", "VT": "Vermont", "WA": "Washington", "WI": "Wisconsin",
        "WV": "West Virginia", "WY": "Wyoming",
    }

    _BY_NAME = {name.lower(): abbr for abbr, name in STATES.items()}

    @staticmethod
    def to_abbreviation(value: Optional[str]) -> Optional[str]:
        """Full names map to their abbreviation; unknown values are kept upper-cased"""
        value = blank_to_none(value)
        if value is None:
            return None
        return State._BY_NAME.get(value.lower(), value.upper())


# ============================================================================
# Typed parsing
# ============================================================================

_NUMERIC_NOISE = re.compile(r"[$,%\s]")


def parse_float(value: Any) -> Optional[float]:
    """Safely parse float value; currency and thousands separators are ignored"""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if is_blank(value):
        return None
    try:
        return float(_NUMERIC_NOISE.sub("", str(value)))
    except (ValueError, TypeError):
        return None


def parse_int(value: Any) -> Optional[int]:
    """Safely parse int value"""
    number = parse_float(value)
    if number is None:
        return None
    return int(number)


def coerce_value(value: Any, column_type: TypeEngine) -> Any:
    """Convert a parsed value to what a staging column of ``column_type`` stores"""
    if isinstance(column_type, Boolean):
        return Truth.truthy(value)
    if isinstance(column_type, Integer):
        return parse_int(value)
    if isinstance(column_type, Float):
        return parse_float(value)
    return blank_to_none(value)


def facility_code(value: Optional[str]) -> Optional[str]:
    value = blank_to_none(value)
    return value.upper() if value else None


# ============================================================================
# Derived fields
# ============================================================================

def derive_ope6(row: Dict[str, Any]) -> Dict[str, Any]:
    """Fill ope6 from the (already padded) ope"""
    row["ope6"] = OpeId.to_ope6(row.get("ope"))
    return row


_NOT_APPROVED_LAW_CODES = (
    "educational institution is not approved",
    "educational institution approved for chapter 31 only",
)

_TYPE_BY_FACILITY_DIGIT = {"1": "public", "2": "for profit", "3": "private"}


def derive_weams(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Institution category and approval for a roster row.

    The category is the first match of flight, foreign, correspondence, ojt;
    otherwise the second digit of the facility code decides between public,
    for profit and private.
    """
    degree = bool(Truth.truthy(row.get("institution_of_higher_learning_indicator")))
    ncd = bool(Truth.truthy(row.get("non_college_degree_indicator")))
    flight_ind = bool(Truth.truthy(row.get("flight_indicator")))
    correspondence_ind = bool(Truth.truthy(row.get("correspondence_indicator")))
    ojt = bool(Truth.truthy(row.get("ojt_indicator")))

    flight = flight_ind and not degree
    correspondence = correspondence_ind and not degree and not flight
    country = (row.get("country") or "").upper()
    code = row.get("facility_code") or ""

    if flight:
        category = "flight"
    elif country and country != "USA":
        category = "foreign"
    elif correspondence:
        category = "correspondence"
    elif ojt:
        category = "ojt"
    else:
        category = _TYPE_BY_FACILITY_DIGIT.get(code[1:2])

    law_code = (row.get("applicable_law_code") or "").lower()
    approved = (
        "aprvd" in (row.get("poo_status") or "").lower()
        and not law_code.startswith(_NOT_APPROVED_LAW_CODES)
        and (degree or ncd or flight_ind or correspondence_ind or ojt)
    )

    row.update(
        type=category,
        flight=flight,
        correspondence=correspondence,
        approved=approved,
    )
    return row


ACCREDITATION_TYPE_KEYWORDS = (
    ("HYBRID", (
        "acupuncture", "anesthesia", "art and design", "chiropractic", "dance",
        "dental", "funeral", "health education", "kinesiology", "legal",
        "liberal education", "massage", "medical", "midwifery", "montessori",
        "music", "naturopathic", "nurse", "nursing", "osteopathic", "pharmacy",
        "podiatric", "psychology", "theatre", "veterinary",
    )),
    ("NATIONAL", (
        "biblical", "career schools", "continuing education", "distance education",
        "independent colleges", "occupational", "rabbinical", "theological",
        "transnational",
    )),
    ("REGIONAL", (
        "higher learning commission", "middle", "new england", "north central",
        "northwest", "southern", "western",
    )),
)


def accreditation_type(agency_name: Optional[str]) -> Optional[str]:
    """Classify an accrediting agency as HYBRID, NATIONAL or REGIONAL"""
    name = (agency_name or "").lower()
    if not name:
        return None
    for label, keywords in ACCREDITATION_TYPE_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return label
    return None


def accreditation_status(value: Optional[str]) -> Optional[str]:
    """Only probation and show cause are kept; every other action is dropped"""
    status = (value or "").lower()
    if "show cause" in status:
        return "show cause"
    if "probation" in status:
        return "probation"
    return None


def derive_accreditation(row: Dict[str, Any]) -> Dict[str, Any]:
    row["cross"] = IpedsId.pad(row.get("campus_ipeds_unitid")) or IpedsId.pad(
        row.get("institution_ipeds_unitid")
    )
    row["ope6"] = OpeId.to_ope6(row.get("ope"))
    row["accreditation_type"] = accreditation_type(row.get("agency_name"))
    row["accreditation_status"] = accreditation_status(row.get("accreditation_status"))
    return row


_DOD_STATUS = re.compile(r"(probation - dod|title iv non-compliant)", re.IGNORECASE)


def derive_mou(row: Dict[str, Any]) -> Dict[str, Any]:
    derive_ope6(row)
    row["dodmou"] = True
    row["dod_status"] = bool(_DOD_STATUS.search(row.get("status") or ""))
    return row


def derive_ipeds_ic(row: Dict[str, Any]) -> Dict[str, Any]:
    """Highest level offered: any bachelor's program makes the school 4-year"""
    if Truth.truthy(row.get("level5")):
        row["va_highest_degree_offered"] = "4-year"
    elif Truth.truthy(row.get("level3")):
        row["va_highest_degree_offered"] = "2-year"
    else:
        row["va_highest_degree_offered"] = None
    return row


def derive_ipeds_ic_py(row: Dict[str, Any]) -> Dict[str, Any]:
    """Program-year charges stand in for academic-year tuition and books"""
    row["tuition_in_state"] = row.get("chg1py3")
    row["tuition_out_of_state"] = row.get("chg1py3")
    row["books"] = row.get("chg5py3")
    return row


COMPLAINT_CATEGORIES = (
    ("financial", "financial"),
    ("quality", "quality"),
    ("refund", "refund"),
    ("marketing", "marketing"),
    ("accreditation", "accreditation"),
    ("degree_requirements", "degree"),
    ("student_loans", "student loan"),
    ("grades", "grade"),
    ("credit_transfer", "transfer of credit"),
    ("job", "job"),
    ("transcript", "transcript"),
    ("other", "other"),
)


def derive_complaint(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    One 0/1 counter per complaint category.

    Only closed complaints that were not closed as invalid are counted.
    """
    derive_ope6(row)
    closed = (row.get("status") or "").lower() == "closed"
    valid = (row.get("closed_reason") or "").lower() != "invalid"
    counted = closed and valid
    issues = (row.get("issues") or "").lower()

    row["counted"] = 1 if counted else 0
    for column, keyword in COMPLAINT_CATEGORIES:
        row[column] = 1 if counted and keyword in issues else 0
    return row
