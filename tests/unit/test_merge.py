"""
Unit tests for individual merge steps
"""

import pytest
from sqlalchemy import select
from core.exceptions import MergeStepError
from merge.engine import DOD_PROBATION_REASON, SEC702_REASON, MergeEngine
from models.institution import CanonicalInstitution
from models.staging import (
    Accreditation, Complaint, IpedsIcAy, IpedsIcPy, Mou, Sec702, Sec702School,
    Settlement, Vsoc, Weam,
)


def _reasons(institution):
    return set((institution.caution_flag_reason or "").split(", ")) - {""}


async def _add(session, *objects):
    session.add_all(objects)
    await session.commit()


async def _institution(session, facility_code):
    session.expire_all()
    result = await session.execute(
        select(CanonicalInstitution).where(CanonicalInstitution.facility_code == facility_code)
    )
    return result.scalar_one()


def _accreditation(cross, agency_type, status=None, periods="01/01/2001 - Current", kind="Institutional"):
    return Accreditation(
        cross=cross, accreditation_type=agency_type, accreditation_status=status,
        periods=periods, csv_accreditation_type=kind,
    )


@pytest.fixture
def engine(db_session):
    return MergeEngine(db_session)


class TestInitialize:
    """Test the roster step"""

    @pytest.mark.asyncio
    async def test_only_approved_rows_are_loaded(self, db_session, engine):
        await _add(
            db_session,
            Weam(facility_code="11000001", institution="A", type="public", approved=True),
            Weam(facility_code="11000002", institution="B", type="public", approved=False),
            Weam(facility_code="12000003", institution="C", type="for profit", approved=True),
        )
        await engine.run_step("initialize_with_weams")

        result = await db_session.execute(select(CanonicalInstitution).order_by(CanonicalInstitution.id))
        rows = result.scalars().all()
        assert [(row.id, row.facility_code) for row in rows] == [(1, "11000001"), (2, "12000003")]

    @pytest.mark.asyncio
    async def test_rebuild_restarts_ids(self, db_session, engine):
        await _add(db_session, Weam(facility_code="11000001", institution="A", approved=True))
        await engine.run_step("initialize_with_weams")
        await engine.run_step("initialize_with_weams")

        assert (await _institution(db_session, "11000001")).id == 1

    @pytest.mark.asyncio
    async def test_failing_step_raises_merge_step_error(self, db_session, engine):
        await _add(
            db_session,
            Weam(facility_code="11000001", institution="A", approved=True),
            Weam(facility_code="11000001", institution="A again", approved=True),
        )
        with pytest.raises(MergeStepError) as exc_info:
            await engine.run_step("initialize_with_weams")
        assert exc_info.value.step_name == "initialize_with_weams"

    @pytest.mark.asyncio
    async def test_build_waits_for_every_source(self, db_session, engine):
        await _add(db_session, CanonicalInstitution(facility_code="11000001", institution="A"))

        assert await engine.build() is False
        assert (await _institution(db_session, "11000001")).institution == "A"


class TestCopies:
    """Test plain column copies"""

    @pytest.mark.asyncio
    async def test_last_staging_row_wins(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A"),
            Vsoc(facility_code="11000001", vetsuccess_name="First"),
            Vsoc(facility_code="11000001", vetsuccess_name="Second"),
        )
        await engine.run_step("update_with_vsoc")

        assert (await _institution(db_session, "11000001")).vetsuccess_name == "Second"

    @pytest.mark.asyncio
    async def test_program_year_charges_only_fill_gaps(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", cross="100001"),
            CanonicalInstitution(facility_code="11000002", institution="B", cross="100002"),
            IpedsIcAy(cross="100001", tuition_in_state=7000.0, tuition_out_of_state=None, books=1500.0),
            IpedsIcPy(cross="100001", tuition_in_state=9999.0, tuition_out_of_state=9999.0, books=999.0),
            IpedsIcPy(cross="100002", tuition_in_state=12000.0, tuition_out_of_state=12000.0, books=800.0),
        )
        await engine.run_step("update_with_ipeds_ic_ay")
        await engine.run_step("update_with_ipeds_ic_py")

        first = await _institution(db_session, "11000001")
        assert (first.tuition_in_state, first.tuition_out_of_state, first.books) == (7000.0, 9999.0, 1500.0)
        second = await _institution(db_session, "11000002")
        assert (second.tuition_in_state, second.books) == (12000.0, 800.0)


class TestAccreditation:
    """Test accreditation ranking"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rows,expected_type,expected_status", [
        ([("HYBRID", None), ("NATIONAL", None)], "NATIONAL", None),
        ([("HYBRID", "probation"), ("REGIONAL", None)], "REGIONAL", None),
        ([("REGIONAL", "probation"), ("REGIONAL", "show cause")], "REGIONAL", "show cause"),
        ([("REGIONAL", "show cause"), ("REGIONAL", "probation")], "REGIONAL", "show cause"),
        ([("NATIONAL", "probation"), ("HYBRID", "show cause")], "NATIONAL", "probation"),
    ])
    async def test_type_then_status(self, db_session, engine, rows, expected_type, expected_status):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", cross="100001"),
            *[_accreditation("100001", agency_type, status) for agency_type, status in rows],
        )
        await engine.run_step("update_with_accreditation")

        institution = await _institution(db_session, "11000001")
        assert institution.accreditation_type == expected_type
        assert institution.accreditation_status == expected_status

    @pytest.mark.asyncio
    @pytest.mark.parametrize("types,expected", [
        (("HYBRID", "NATIONAL", "HYBRID"), "NATIONAL"),
        (("HYBRID", "REGIONAL", "HYBRID"), "REGIONAL"),
        (("NATIONAL", "REGIONAL", "NATIONAL"), "REGIONAL"),
    ])
    async def test_three_conflicting_rows(self, db_session, engine, types, expected):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", cross="100001"),
            *[_accreditation("100001", agency_type) for agency_type in types],
        )
        await engine.run_step("update_with_accreditation")

        assert (await _institution(db_session, "11000001")).accreditation_type == expected

    @pytest.mark.asyncio
    async def test_specialized_and_expired_rows_do_not_rank(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", cross="100001"),
            _accreditation("100001", "HYBRID"),
            _accreditation("100001", "REGIONAL", kind="Specialized"),
            _accreditation("100001", "NATIONAL", periods="01/01/1990 - 12/31/1999"),
        )
        await engine.run_step("update_with_accreditation")

        assert (await _institution(db_session, "11000001")).accreditation_type == "HYBRID"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("statuses", [
        ("probation", "show cause", "probation"),
        ("show cause", "probation", None),
        (None, "probation", "show cause"),
    ])
    async def test_show_cause_overrides_probation(self, db_session, engine, statuses):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", cross="100001"),
            *[_accreditation("100001", "NATIONAL", status) for status in statuses],
        )
        await engine.run_step("update_with_accreditation")

        institution = await _institution(db_session, "11000001")
        assert institution.accreditation_type == "NATIONAL"
        assert institution.accreditation_status == "show cause"

    @pytest.mark.asyncio
    async def test_any_current_action_raises_caution(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", cross="100001"),
            _accreditation("100001", "HYBRID", "probation"),
            _accreditation("100001", "REGIONAL"),
            _accreditation("100001", "REGIONAL", "show cause", periods="01/01/1990 - 12/31/1999"),
            _accreditation("100001", "REGIONAL", "show cause", kind="Specialized"),
        )
        await engine.run_step("update_with_accreditation")

        institution = await _institution(db_session, "11000001")
        assert institution.caution_flag is True
        assert _reasons(institution) == {"Accreditation (probation)"}

    @pytest.mark.asyncio
    async def test_no_actions_leave_caution_unset(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", cross="100001"),
            _accreditation("100001", "REGIONAL"),
        )
        await engine.run_step("update_with_accreditation")

        institution = await _institution(db_session, "11000001")
        assert institution.caution_flag is None
        assert institution.caution_flag_reason is None


class TestCautions:
    """Test caution flags and reasons"""

    @pytest.mark.asyncio
    async def test_dod_probation(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="12000003", institution="C", ope6="02003"),
            CanonicalInstitution(facility_code="11000001", institution="A", ope6="01001"),
            Mou(ope6="02003", dodmou=True, dod_status=True),
            Mou(ope6="01001", dodmou=True, dod_status=False),
        )
        await engine.run_step("update_with_mou")

        on_probation = await _institution(db_session, "12000003")
        assert on_probation.dodmou is True
        assert on_probation.caution_flag is True
        assert on_probation.caution_flag_reason == DOD_PROBATION_REASON

        signed = await _institution(db_session, "11000001")
        assert signed.dodmou is True
        assert signed.caution_flag is None

    @pytest.mark.asyncio
    async def test_in_state_tuition_reason_appears_once(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", type="public", state="TX"),
            CanonicalInstitution(facility_code="11000002", institution="B", type="public", state="TX"),
            CanonicalInstitution(facility_code="13000003", institution="C", type="private", state="TX"),
            Sec702School(facility_code="11000001", sec_702=False),
            Sec702School(facility_code="13000003", sec_702=False),
            Sec702(state="TX", sec_702=False),
        )
        await engine.run_step("update_with_sec702_school")
        await engine.run_step("update_with_sec702")

        school = await _institution(db_session, "11000001")
        assert school.sec_702 is False
        assert school.caution_flag is True
        assert school.caution_flag_reason == SEC702_REASON

        by_state = await _institution(db_session, "11000002")
        assert by_state.sec_702 is False
        assert by_state.caution_flag is True
        assert by_state.caution_flag_reason == SEC702_REASON

        private = await _institution(db_session, "13000003")
        assert private.sec_702 is None
        assert private.caution_flag is None

    @pytest.mark.asyncio
    async def test_school_compliance_wins_over_state(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", type="public", state="TX"),
            Sec702School(facility_code="11000001", sec_702=True),
            Sec702(state="TX", sec_702=False),
        )
        await engine.run_step("update_with_sec702_school")
        await engine.run_step("update_with_sec702")

        assert (await _institution(db_session, "11000001")).sec_702 is True

    @pytest.mark.asyncio
    async def test_settlement_reasons_are_distinct(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(
                facility_code="12000003", institution="C", cross="100003",
                caution_flag=True, caution_flag_reason=DOD_PROBATION_REASON,
            ),
            Settlement(cross="100003", settlement_description="Settlement with FTC"),
            Settlement(cross="100003", settlement_description="Settlement with State AG"),
            Settlement(cross="100003", settlement_description="Settlement with FTC"),
        )
        await engine.run_step("update_with_settlement")

        institution = await _institution(db_session, "12000003")
        assert institution.caution_flag is True
        assert institution.caution_flag_reason == (
            f"{DOD_PROBATION_REASON}, Settlement with FTC, Settlement with State AG"
        )
        assert _reasons(institution) == {
            DOD_PROBATION_REASON, "Settlement with FTC", "Settlement with State AG"
        }
        assert institution.caution_flag_reason.count("Settlement with FTC") == 1


class TestComplaints:
    """Test complaint counts and roll-ups"""

    @pytest.mark.asyncio
    async def test_counts_and_parent_roll_up(self, db_session, engine):
        await _add(
            db_session,
            CanonicalInstitution(facility_code="11000001", institution="A", ope6="01001"),
            CanonicalInstitution(facility_code="11000002", institution="B", ope6="01001"),
            CanonicalInstitution(facility_code="12000003", institution="C", ope6="02003"),
            CanonicalInstitution(facility_code="13000004", institution="D"),
            Complaint(facility_code="11000001", counted=1, financial=1, job=1),
            Complaint(facility_code="11000001", counted=1, financial=1),
            Complaint(facility_code="11000002", counted=1, quality=1),
            Complaint(facility_code="11000002", counted=0),
        )
        await engine.run_step("update_with_complaint")

        main = await _institution(db_session, "11000001")
        assert main.complaints_facility_code == 2
        assert main.complaints_financial_by_fac_code == 2
        assert main.complaints_job_by_fac_code == 1
        assert main.complaints_quality_by_fac_code == 0
        assert main.complaints_main_campus_roll_up == 3
        assert main.complaints_financial_by_ope_id_do_not_sum == 2
        assert main.complaints_quality_by_ope_id_do_not_sum == 1
        assert main.complaints_jobs_by_ope_id_do_not_sum == 1

        branch = await _institution(db_session, "11000002")
        assert branch.complaints_facility_code == 1
        assert branch.complaints_main_campus_roll_up == 3

        untouched = await _institution(db_session, "12000003")
        assert untouched.complaints_facility_code is None
        assert untouched.complaints_main_campus_roll_up is None

        no_parent = await _institution(db_session, "13000004")
        assert no_parent.complaints_main_campus_roll_up is None
