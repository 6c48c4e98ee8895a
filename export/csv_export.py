"""
Fixed-layout CSV export of the canonical table.

The column order is read positionally by the VA education dashboards;
append new columns at the end only.
"""

from pathlib import Path
from typing import Any, Dict, List
import pandas as pd
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from models.institution import CanonicalInstitution
import logging

logger = logging.getLogger(__name__)

canonical = CanonicalInstitution.__table__

EXPORT_COLUMNS = [
    "facility_code", "institution", "city", "state", "zip", "country", "type",
    "correspondence", "flight", "bah", "cross", "ope", "insturl",
    "vet_tuition_policy_url", "pred_degree_awarded", "locale", "gibill",
    "undergrad_enrollment", "yr", "student_veteran", "student_veteran_link",
    "poe", "eight_keys", "dodmou", "sec_702", "vetsuccess_name", "vetsuccess_email",
    "credit_for_mil_training", "vet_poc", "student_vet_grp_ipeds",
    "soc_member", "va_highest_degree_offered", "retention_rate_veteran_ba",
    "retention_all_students_ba", "retention_rate_veteran_otb",
    "retention_all_students_otb", "persistance_rate_veteran_ba",
    "persistance_rate_veteran_otb", "graduation_rate_veteran",
    "graduation_rate_all_students", "transfer_out_rate_veteran",
    "transfer_out_rate_all_students", "salary_all_students",
    "repayment_rate_all_students", "avg_stu_loan_debt", "calendar",
    "tuition_in_state", "tuition_out_of_state", "books", "online_all",
    "p911_tuition_fees", "p911_recipients", "p911_yellow_ribbon",
    "p911_yr_recipients", "accredited", "accreditation_type", "accreditation_status",
    "caution_flag", "caution_flag_reason", "complaints_facility_code",
    "complaints_financial_by_fac_code", "complaints_quality_by_fac_code",
    "complaints_refund_by_fac_code", "complaints_marketing_by_fac_code",
    "complaints_accreditation_by_fac_code", "complaints_degree_requirements_by_fac_code",
    "complaints_student_loans_by_fac_code", "complaints_grades_by_fac_code",
    "complaints_credit_transfer_by_fac_code", "complaints_job_by_fac_code",
    "complaints_transcript_by_fac_code", "complaints_other_by_fac_code",
    "complaints_main_campus_roll_up", "complaints_financial_by_ope_id_do_not_sum",
    "complaints_quality_by_ope_id_do_not_sum", "complaints_refund_by_ope_id_do_not_sum",
    "complaints_marketing_by_ope_id_do_not_sum", "complaints_accreditation_by_ope_id_do_not_sum",
    "complaints_degree_requirements_by_ope_id_do_not_sum", "complaints_student_loans_by_ope_id_do_not_sum",
    "complaints_grades_by_ope_id_do_not_sum", "complaints_credit_transfer_by_ope_id_do_not_sum",
    "complaints_jobs_by_ope_id_do_not_sum", "complaints_transcript_by_ope_id_do_not_sum",
    "complaints_other_by_ope_id_do_not_sum",
]


def _render(value: Any) -> Any:
    # Dashboards read an empty cell as "no"
    if value is False:
        return ""
    if value is True:
        return "true"
    return value


def _quote_ope(value: Any) -> Any:
    # Keeps spreadsheets from dropping leading zeros
    return None if pd.isna(value) else f"'{value}'"


def _upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


def rows_to_csv(rows: List[Dict[str, Any]]) -> str:
    """Render canonical rows (already ordered) in the export layout"""
    frame = pd.DataFrame(rows, columns=EXPORT_COLUMNS, dtype=object)
    frame["ope"] = frame["ope"].map(_quote_ope)
    frame["type"] = frame["type"].map(_upper)
    frame = frame.map(_render)
    return frame.to_csv(index=False, na_rep="", lineterminator="\n")


class CsvExporter:
    """Reads the canonical table and renders the dashboard CSV"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def fetch_rows(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(select(canonical).order_by(canonical.c.institution))
        return [dict(row._mapping) for row in result]

    async def to_csv(self) -> str:
        rows = await self.fetch_rows()
        logger.info(f"Exporting {len(rows)} institutions to CSV")
        return rows_to_csv(rows)

    async def write(self, path: str) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(await self.to_csv())
        logger.info(f"Wrote export to {target}")
        return target
