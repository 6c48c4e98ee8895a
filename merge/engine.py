"""
Builds the canonical institution table from the staging relations.
"""

from typing import Optional
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from core.database import restart_identity
from core.exceptions import MergeStepError
from ingestion.uploads import RawUploadStore
from merge import steps
from merge.steps import canonical, is_public
from models.staging import (
    Accreditation, ArfGibill, Complaint, EightKey, Hcm, IpedsHd, IpedsIc, IpedsIcAy,
    IpedsIcPy, Mou, Outcome, P911Tf, P911Yr, Scorecard, Sec702, Sec702School,
    Settlement, Sva, VaCrosswalk, Vsoc, Weam,
)
import logging

logger = logging.getLogger(__name__)

ROSTER_COLUMNS = (
    "facility_code", "institution", "city", "state", "zip", "country", "type",
    "correspondence", "flight", "bah", "poe", "yr", "accredited",
)

ACCREDITATION_TYPE_RANKS = ("HYBRID", "NATIONAL", "REGIONAL")

# Later entries win: show cause overrides probation
ACCREDITATION_STATUS_RANKS = ("probation", "show cause")

DOD_PROBATION_REASON = "DoD Probation For Military Tuition Assistance"
SEC702_REASON = "Does Not Offer Required In-State Tuition Rates"

# staging counter -> (per-facility column, per-ope6 column)
COMPLAINT_COLUMNS = (
    ("financial", "complaints_financial_by_fac_code", "complaints_financial_by_ope_id_do_not_sum"),
    ("quality", "complaints_quality_by_fac_code", "complaints_quality_by_ope_id_do_not_sum"),
    ("refund", "complaints_refund_by_fac_code", "complaints_refund_by_ope_id_do_not_sum"),
    ("marketing", "complaints_marketing_by_fac_code", "complaints_marketing_by_ope_id_do_not_sum"),
    ("accreditation", "complaints_accreditation_by_fac_code", "complaints_accreditation_by_ope_id_do_not_sum"),
    ("degree_requirements", "complaints_degree_requirements_by_fac_code",
     "complaints_degree_requirements_by_ope_id_do_not_sum"),
    ("student_loans", "complaints_student_loans_by_fac_code", "complaints_student_loans_by_ope_id_do_not_sum"),
    ("grades", "complaints_grades_by_fac_code", "complaints_grades_by_ope_id_do_not_sum"),
    ("credit_transfer", "complaints_credit_transfer_by_fac_code", "complaints_credit_transfer_by_ope_id_do_not_sum"),
    ("job", "complaints_job_by_fac_code", "complaints_jobs_by_ope_id_do_not_sum"),
    ("transcript", "complaints_transcript_by_fac_code", "complaints_transcript_by_ope_id_do_not_sum"),
    ("other", "complaints_other_by_fac_code", "complaints_other_by_ope_id_do_not_sum"),
)


class MergeEngine:
    """
    Rebuilds the canonical table from scratch.

    The roster initializes the table; each update step then layers one
    source on top in a fixed order. Every step commits on its own, so a
    failing step leaves the steps before it applied.
    """

    STEPS = (
        "initialize_with_weams",
        "update_with_crosswalk",
        "update_with_sva",
        "update_with_vsoc",
        "update_with_eight_key",
        "update_with_accreditation",
        "update_with_arf_gibill",
        "update_with_p911_tf",
        "update_with_p911_yr",
        "update_with_mou",
        "update_with_scorecard",
        "update_with_ipeds_ic",
        "update_with_ipeds_hd",
        "update_with_ipeds_ic_ay",
        "update_with_ipeds_ic_py",
        "update_with_sec702_school",
        "update_with_sec702",
        "update_with_settlement",
        "update_with_hcm",
        "update_with_complaint",
        "update_with_outcome",
    )

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self._dialect_name: Optional[str] = None

    @property
    def dialect_name(self) -> str:
        if self._dialect_name is None:
            self._dialect_name = self.db.get_bind().dialect.name
        return self._dialect_name

    async def build(self) -> bool:
        """
        Run every step in order.

        Returns:
            False without touching the canonical table when any source is
            missing, True once all steps have been applied
        """
        if not await RawUploadStore(self.db).is_complete():
            logger.warning("Build skipped: not every source has an upload")
            return False

        logger.info("Starting canonical table build")
        for name in self.STEPS:
            await self.run_step(name)

        count = await self.db.scalar(select(func.count()).select_from(canonical))
        logger.info(f"Build complete: {count} institutions")
        return True

    async def run_step(self, name: str) -> None:
        step = getattr(self, name)
        try:
            await step()
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Merge step {name} failed: {e}")
            raise MergeStepError(name, e)
        logger.info(f"Merge step {name} applied")

    async def _execute(self, *statements) -> None:
        for statement in statements:
            await self.db.execute(statement)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def initialize_with_weams(self):
        """Only approved roster institutions ever reach the canonical table"""
        weams = Weam.__table__
        await self.db.execute(delete(canonical))
        await restart_identity(await self.db.connection(), canonical.name)
        await self.db.execute(
            insert(canonical).from_select(
                list(ROSTER_COLUMNS),
                select(*[weams.c[name] for name in ROSTER_COLUMNS])
                .where(weams.c.approved.is_(True))
                .order_by(weams.c.id),
            )
        )

    async def update_with_crosswalk(self):
        await self._execute(steps.copy_columns(VaCrosswalk, ("cross", "ope", "ope6"), "facility_code"))

    async def update_with_sva(self):
        await self._execute(
            steps.copy_columns(
                Sva, ("student_veteran_link",), "cross", extra_values={"student_veteran": True}
            )
        )

    async def update_with_vsoc(self):
        await self._execute(
            steps.copy_columns(Vsoc, ("vetsuccess_name", "vetsuccess_email"), "facility_code")
        )

    async def update_with_eight_key(self):
        await self._execute(steps.set_flag(EightKey, "eight_keys", "cross"))

    async def update_with_accreditation(self):
        """
        Type is the highest of hybrid < national < regional among current
        institutional accreditations; status is then chosen among the rows
        of that type. Any current institutional action raises a caution.
        """
        acc = Accreditation.__table__
        eligible = (
            func.lower(acc.c.periods).like("%current%"),
            func.lower(acc.c.csv_accreditation_type) == "institutional",
        )
        same_type = acc.c.accreditation_type == canonical.c.accreditation_type
        has_status = acc.c.accreditation_status.is_not(None)

        await self._execute(
            steps.ranked_value(Accreditation, "accreditation_type", "cross", ACCREDITATION_TYPE_RANKS, eligible),
            steps.ranked_value(
                Accreditation, "accreditation_status", "cross", ACCREDITATION_STATUS_RANKS,
                (*eligible, same_type),
            ),
            steps.set_caution_flag(Accreditation, "cross", (*eligible, has_status)),
            steps.append_caution_reasons(
                Accreditation, "accreditation_status", "cross", self.dialect_name,
                prefix="Accreditation (", suffix=")", conditions=eligible,
            ),
        )

    async def update_with_arf_gibill(self):
        await self._execute(steps.copy_columns(ArfGibill, ("gibill",), "facility_code"))

    async def update_with_p911_tf(self):
        await self._execute(
            steps.copy_columns(P911Tf, ("p911_recipients", "p911_tuition_fees"), "facility_code")
        )

    async def update_with_p911_yr(self):
        await self._execute(
            steps.copy_columns(P911Yr, ("p911_yr_recipients", "p911_yellow_ribbon"), "facility_code")
        )

    async def update_with_mou(self):
        on_probation = (Mou.__table__.c.dod_status.is_(True),)
        await self._execute(
            steps.copy_columns(Mou, ("dodmou",), "ope6"),
            steps.set_caution_flag(Mou, "ope6", on_probation),
            steps.append_caution_reason(Mou, DOD_PROBATION_REASON, "ope6", on_probation),
        )

    async def update_with_scorecard(self):
        await self._execute(
            steps.copy_columns(
                Scorecard,
                (
                    "insturl", "pred_degree_awarded", "locale", "undergrad_enrollment",
                    "retention_all_students_ba", "retention_all_students_otb",
                    "graduation_rate_all_students", "salary_all_students",
                    "repayment_rate_all_students", "avg_stu_loan_debt",
                ),
                "cross",
            )
        )

    async def update_with_ipeds_ic(self):
        await self._execute(
            steps.copy_columns(
                IpedsIc,
                (
                    "credit_for_mil_training", "vet_poc", "student_vet_grp_ipeds", "soc_member",
                    "calendar", "online_all", "va_highest_degree_offered",
                ),
                "cross",
            )
        )

    async def update_with_ipeds_hd(self):
        await self._execute(steps.copy_columns(IpedsHd, ("vet_tuition_policy_url",), "cross"))

    async def update_with_ipeds_ic_ay(self):
        await self._execute(
            steps.copy_columns(IpedsIcAy, ("tuition_in_state", "tuition_out_of_state", "books"), "cross")
        )

    async def update_with_ipeds_ic_py(self):
        """Program-year charges only fill what the academic-year table left empty"""
        await self._execute(*[
            steps.copy_column_if_null(IpedsIcPy, column, "cross")
            for column in ("tuition_in_state", "tuition_out_of_state", "books")
        ])

    async def update_with_sec702_school(self):
        sec = Sec702School.__table__
        not_compliant = (sec.c.sec_702.is_(False),)
        await self._execute(
            steps.copy_columns(
                Sec702School, ("sec_702",), "facility_code",
                conditions=(sec.c.sec_702.is_not(None),), where=(is_public(),),
            ),
            steps.set_caution_flag(Sec702School, "facility_code", not_compliant, where=(is_public(),)),
            steps.append_caution_reason(
                Sec702School, SEC702_REASON, "facility_code", not_compliant, where=(is_public(),)
            ),
        )

    async def update_with_sec702(self):
        """
        State-wide compliance is subordinate to the per-school table: it only
        fills an empty sec_702, only flags unflagged rows, and never repeats a
        reason the per-school step already added.
        """
        sec = Sec702.__table__
        not_compliant = (sec.c.sec_702.is_(False),)
        reason = canonical.c.caution_flag_reason
        reason_missing = reason.is_(None) | reason.not_like(f"%{SEC702_REASON}%")

        await self._execute(
            steps.copy_column_if_null(Sec702, "sec_702", "state", where=(is_public(),)),
            steps.set_caution_flag(
                Sec702, "state", not_compliant,
                where=(is_public(), canonical.c.caution_flag.is_(None)),
            ),
            steps.append_caution_reason(
                Sec702, SEC702_REASON, "state", not_compliant, where=(is_public(), reason_missing)
            ),
        )

    async def update_with_settlement(self):
        await self._execute(
            steps.set_caution_flag(Settlement, "cross"),
            steps.append_caution_reasons(Settlement, "settlement_description", "cross", self.dialect_name),
        )

    async def update_with_hcm(self):
        await self._execute(
            steps.set_caution_flag(Hcm, "ope6"),
            steps.append_caution_reasons(
                Hcm, "hcm_reason", "ope6", self.dialect_name,
                prefix="Heightened Cash Monitoring (", suffix=")",
            ),
        )

    async def update_with_complaint(self):
        """
        Counts per facility, then sums of those counts across every
        institution sharing the parent ope6.
        """
        cmp = Complaint.__table__
        match = cmp.c.facility_code == canonical.c.facility_code

        def total(column):
            return select(func.sum(cmp.c[column])).where(match).scalar_subquery()

        by_facility = {"complaints_facility_code": total("counted")}
        by_facility.update({fac_column: total(counter) for counter, fac_column, _ in COMPLAINT_COLUMNS})

        peer = canonical.alias("peer")
        same_parent = peer.c.ope6 == canonical.c.ope6

        def rollup(column):
            return select(func.sum(peer.c[column])).where(same_parent).scalar_subquery()

        by_parent = {"complaints_main_campus_roll_up": rollup("complaints_facility_code")}
        by_parent.update({ope_column: rollup(fac_column) for _, fac_column, ope_column in COMPLAINT_COLUMNS})

        await self._execute(
            update(canonical).values(by_facility).where(select(cmp.c.id).where(match).exists()),
            update(canonical).values(by_parent).where(canonical.c.ope6.is_not(None)),
        )

    async def update_with_outcome(self):
        await self._execute(
            steps.copy_columns(
                Outcome,
                (
                    "retention_rate_veteran_ba", "retention_rate_veteran_otb",
                    "persistance_rate_veteran_ba", "persistance_rate_veteran_otb",
                    "graduation_rate_veteran", "transfer_out_rate_veteran",
                    "transfer_out_rate_all_students",
                ),
                "facility_code",
            )
        )
