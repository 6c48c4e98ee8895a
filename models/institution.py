from sqlalchemy import Column, String, Integer, Float, Boolean, Text
from models.base import Base


def _complaint_counter():
    return Column(Integer)


class CanonicalInstitution(Base):
    """
    One merged row per approved roster institution.

    Rebuilt from scratch by every build. ``caution_flag`` is only ever set to
    TRUE; ``caution_flag_reason`` accumulates distinct, comma-joined reasons.
    """
    __tablename__ = "data_csvs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Roster
    facility_code = Column(String(20), nullable=False, unique=True)
    institution = Column(String(255), nullable=False, index=True)
    city = Column(String(100))
    state = Column(String(10), index=True)
    zip = Column(String(20))
    country = Column(String(100))
    type = Column(String(50))
    correspondence = Column(Boolean)
    flight = Column(Boolean)
    bah = Column(Float)
    poe = Column(Boolean)
    yr = Column(Boolean)
    accredited = Column(Boolean)

    # Crosswalk ids
    cross = Column(String(20), index=True)
    ope = Column(String(20))
    ope6 = Column(String(10), index=True)

    insturl = Column(String(255))
    vet_tuition_policy_url = Column(String(255))
    pred_degree_awarded = Column(Integer)
    locale = Column(Integer)
    gibill = Column(Integer)
    undergrad_enrollment = Column(Integer)
    student_veteran = Column(Boolean)
    student_veteran_link = Column(String(255))
    eight_keys = Column(Boolean)
    dodmou = Column(Boolean)
    sec_702 = Column(Boolean)
    vetsuccess_name = Column(String(255))
    vetsuccess_email = Column(String(255))
    credit_for_mil_training = Column(Boolean)
    vet_poc = Column(Boolean)
    student_vet_grp_ipeds = Column(Boolean)
    soc_member = Column(Boolean)
    va_highest_degree_offered = Column(String(20))

    # Outcomes
    retention_rate_veteran_ba = Column(Float)
    retention_all_students_ba = Column(Float)
    retention_rate_veteran_otb = Column(Float)
    retention_all_students_otb = Column(Float)
    persistance_rate_veteran_ba = Column(Float)
    persistance_rate_veteran_otb = Column(Float)
    graduation_rate_veteran = Column(Float)
    graduation_rate_all_students = Column(Float)
    transfer_out_rate_veteran = Column(Float)
    transfer_out_rate_all_students = Column(Float)
    salary_all_students = Column(Float)
    repayment_rate_all_students = Column(Float)
    avg_stu_loan_debt = Column(Float)

    # Costs
    calendar = Column(String(50))
    tuition_in_state = Column(Float)
    tuition_out_of_state = Column(Float)
    books = Column(Float)
    online_all = Column(Boolean)
    p911_tuition_fees = Column(Float)
    p911_recipients = Column(Integer)
    p911_yellow_ribbon = Column(Float)
    p911_yr_recipients = Column(Integer)

    # Accreditation and cautions
    accreditation_type = Column(String(20))
    accreditation_status = Column(String(50))
    caution_flag = Column(Boolean)
    caution_flag_reason = Column(Text)

    # Complaints by facility
    complaints_facility_code = _complaint_counter()
    complaints_financial_by_fac_code = _complaint_counter()
    complaints_quality_by_fac_code = _complaint_counter()
    complaints_refund_by_fac_code = _complaint_counter()
    complaints_marketing_by_fac_code = _complaint_counter()
    complaints_accreditation_by_fac_code = _complaint_counter()
    complaints_degree_requirements_by_fac_code = _complaint_counter()
    complaints_student_loans_by_fac_code = _complaint_counter()
    complaints_grades_by_fac_code = _complaint_counter()
    complaints_credit_transfer_by_fac_code = _complaint_counter()
    complaints_job_by_fac_code = _complaint_counter()
    complaints_transcript_by_fac_code = _complaint_counter()
    complaints_other_by_fac_code = _complaint_counter()

    # Complaints rolled up to the parent organization (ope6)
    complaints_main_campus_roll_up = _complaint_counter()
    complaints_financial_by_ope_id_do_not_sum = _complaint_counter()
    complaints_quality_by_ope_id_do_not_sum = _complaint_counter()
    complaints_refund_by_ope_id_do_not_sum = _complaint_counter()
    complaints_marketing_by_ope_id_do_not_sum = _complaint_counter()
    complaints_accreditation_by_ope_id_do_not_sum = _complaint_counter()
    complaints_degree_requirements_by_ope_id_do_not_sum = _complaint_counter()
    complaints_student_loans_by_ope_id_do_not_sum = _complaint_counter()
    complaints_grades_by_ope_id_do_not_sum = _complaint_counter()
    complaints_credit_transfer_by_ope_id_do_not_sum = _complaint_counter()
    complaints_jobs_by_ope_id_do_not_sum = _complaint_counter()
    complaints_transcript_by_ope_id_do_not_sum = _complaint_counter()
    complaints_other_by_ope_id_do_not_sum = _complaint_counter()
