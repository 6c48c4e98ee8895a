"""
Staging relations, one per upload source.

Each table is wiped and fully reloaded by every accepted upload of its
source; rows are never updated in place.
"""

from sqlalchemy import Column, String, Integer, Float, Boolean, Text
from models.base import Base, StagingMixin


class Weam(StagingMixin, Base):
    """Benefit-approval roster; the only source of canonical rows"""
    __tablename__ = "weams"

    facility_code = Column(String(20), nullable=False, index=True)
    institution = Column(String(255), nullable=False)
    city = Column(String(100))
    state = Column(String(10))
    zip = Column(String(20))
    country = Column(String(100))
    accredited = Column(Boolean)
    bah = Column(Float)
    poe = Column(Boolean)
    yr = Column(Boolean)
    poo_status = Column(String(50))
    applicable_law_code = Column(String(255))
    institution_of_higher_learning_indicator = Column(Boolean)
    ojt_indicator = Column(Boolean)
    correspondence_indicator = Column(Boolean)
    flight_indicator = Column(Boolean)
    non_college_degree_indicator = Column(Boolean)
    type = Column(String(50))
    correspondence = Column(Boolean)
    flight = Column(Boolean)
    approved = Column(Boolean, index=True)


class VaCrosswalk(StagingMixin, Base):
    __tablename__ = "va_crosswalks"

    facility_code = Column(String(20), nullable=False, index=True)
    institution = Column(String(255))
    cross = Column(String(20))
    ope = Column(String(20))
    ope6 = Column(String(10))


class Sva(StagingMixin, Base):
    """Student veteran organization chapters"""
    __tablename__ = "svas"

    institution = Column(String(255))
    cross = Column(String(20), index=True)
    city = Column(String(100))
    state = Column(String(10))
    student_veteran_link = Column(String(255))


class Vsoc(StagingMixin, Base):
    __tablename__ = "vsocs"

    facility_code = Column(String(20), nullable=False, index=True)
    institution = Column(String(255))
    vetsuccess_name = Column(String(255))
    vetsuccess_email = Column(String(255))


class EightKey(StagingMixin, Base):
    __tablename__ = "eight_keys"

    institution = Column(String(255))
    city = Column(String(100))
    state = Column(String(10))
    cross = Column(String(20), index=True)
    ope = Column(String(20))
    ope6 = Column(String(10))


class Accreditation(StagingMixin, Base):
    """
    Accreditation actions per institution or campus.

    ``csv_accreditation_type`` is the file's own category (institutional or
    specialized); ``accreditation_type`` is derived from the agency name.
    """
    __tablename__ = "accreditations"

    institution_name = Column(String(255))
    campus_name = Column(String(255))
    cross = Column(String(20), index=True)
    ope = Column(String(20))
    ope6 = Column(String(10))
    agency_name = Column(String(255))
    accreditation_type = Column(String(20))
    accreditation_status = Column(String(50))
    periods = Column(Text)
    csv_accreditation_type = Column(String(50))


class ArfGibill(StagingMixin, Base):
    __tablename__ = "arf_gibills"

    facility_code = Column(String(20), nullable=False, index=True)
    institution = Column(String(255))
    gibill = Column(Integer)


class P911Tf(StagingMixin, Base):
    __tablename__ = "p911_tfs"

    facility_code = Column(String(20), nullable=False, index=True)
    institution = Column(String(255))
    p911_recipients = Column(Integer)
    p911_tuition_fees = Column(Float)


class P911Yr(StagingMixin, Base):
    __tablename__ = "p911_yrs"

    facility_code = Column(String(20), nullable=False, index=True)
    institution = Column(String(255))
    p911_yr_recipients = Column(Integer)
    p911_yellow_ribbon = Column(Float)


class Mou(StagingMixin, Base):
    """DoD tuition-assistance memoranda of understanding"""
    __tablename__ = "mous"

    ope = Column(String(20))
    ope6 = Column(String(10), index=True)
    institution = Column(String(255))
    status = Column(String(100))
    dodmou = Column(Boolean)
    dod_status = Column(Boolean)


class Scorecard(StagingMixin, Base):
    __tablename__ = "scorecards"

    cross = Column(String(20), index=True)
    ope = Column(String(20))
    ope6 = Column(String(10))
    institution = Column(String(255))
    insturl = Column(String(255))
    pred_degree_awarded = Column(Integer)
    locale = Column(Integer)
    undergrad_enrollment = Column(Integer)
    retention_all_students_ba = Column(Float)
    retention_all_students_otb = Column(Float)
    graduation_rate_all_students = Column(Float)
    salary_all_students = Column(Float)
    repayment_rate_all_students = Column(Float)
    avg_stu_loan_debt = Column(Float)


class IpedsIc(StagingMixin, Base):
    __tablename__ = "ipeds_ics"

    cross = Column(String(20), index=True)
    credit_for_mil_training = Column(Boolean)
    vet_poc = Column(Boolean)
    student_vet_grp_ipeds = Column(Boolean)
    soc_member = Column(Boolean)
    calendar = Column(String(50))
    online_all = Column(Boolean)
    va_highest_degree_offered = Column(String(20))


class IpedsHd(StagingMixin, Base):
    __tablename__ = "ipeds_hds"

    cross = Column(String(20), index=True)
    vet_tuition_policy_url = Column(String(255))


class IpedsIcAy(StagingMixin, Base):
    __tablename__ = "ipeds_ic_ays"

    cross = Column(String(20), index=True)
    tuition_in_state = Column(Float)
    tuition_out_of_state = Column(Float)
    books = Column(Float)


class IpedsIcPy(StagingMixin, Base):
    """Program-year charges; subordinate to the academic-year table"""
    __tablename__ = "ipeds_ic_pies"

    cross = Column(String(20), index=True)
    chg1py3 = Column(Float)
    chg5py3 = Column(Float)
    tuition_in_state = Column(Float)
    tuition_out_of_state = Column(Float)
    books = Column(Float)


class Sec702School(StagingMixin, Base):
    __tablename__ = "sec702_schools"

    facility_code = Column(String(20), nullable=False, index=True)
    sec_702 = Column(Boolean)


class Sec702(StagingMixin, Base):
    """State-wide in-state tuition compliance for public schools"""
    __tablename__ = "sec702s"

    state = Column(String(10), nullable=False, index=True)
    sec_702 = Column(Boolean)


class Settlement(StagingMixin, Base):
    __tablename__ = "settlements"

    institution = Column(String(255))
    cross = Column(String(20), index=True)
    settlement_description = Column(String(255))


class Hcm(StagingMixin, Base):
    """Heightened cash monitoring"""
    __tablename__ = "hcms"

    ope = Column(String(20))
    ope6 = Column(String(10), index=True)
    institution = Column(String(255))
    city = Column(String(100))
    state = Column(String(10))
    hcm_type = Column(String(100))
    hcm_reason = Column(String(255))


class Complaint(StagingMixin, Base):
    """
    Student complaints; every category column is a 0/1 counter so the merge
    can sum them per facility.
    """
    __tablename__ = "complaints"

    facility_code = Column(String(20), index=True)
    ope = Column(String(20))
    ope6 = Column(String(10))
    status = Column(String(50))
    closed_reason = Column(String(100))
    issues = Column(Text)
    counted = Column(Integer, default=0)
    financial = Column(Integer, default=0)
    quality = Column(Integer, default=0)
    refund = Column(Integer, default=0)
    marketing = Column(Integer, default=0)
    accreditation = Column(Integer, default=0)
    degree_requirements = Column(Integer, default=0)
    student_loans = Column(Integer, default=0)
    grades = Column(Integer, default=0)
    credit_transfer = Column(Integer, default=0)
    job = Column(Integer, default=0)
    transcript = Column(Integer, default=0)
    other = Column(Integer, default=0)


class Outcome(StagingMixin, Base):
    __tablename__ = "outcomes"

    facility_code = Column(String(20), nullable=False, index=True)
    institution = Column(String(255))
    retention_rate_veteran_ba = Column(Float)
    retention_rate_veteran_otb = Column(Float)
    persistance_rate_veteran_ba = Column(Float)
    persistance_rate_veteran_otb = Column(Float)
    graduation_rate_veteran = Column(Float)
    transfer_out_rate_veteran = Column(Float)
    transfer_out_rate_all_students = Column(Float)
