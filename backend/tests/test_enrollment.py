"""
Tests for category assignment, program enrollment and module progress.
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from carelearn.models.enrollment import ModuleProgress, PatientCategory, PatientEnrollment
from carelearn.services.enrollment_service import enrollment_service, expected_end
from carelearn.services.patient_program_service import patient_program_service
from carelearn.services.patient_service import patient_service


@pytest.fixture
async def category(factory):
    return await factory.category("Anxiety")


@pytest.fixture
async def program(factory, category):
    program = await factory.program(category, title="Calm Minds", duration_days=28)
    await factory.module(program, 1)
    await factory.module(program, 2)
    await factory.module(program, 3, is_required=False)
    return program


async def progress_rows(db, enrollment_id):
    result = await db.execute(
        select(ModuleProgress).where(ModuleProgress.enrollment_id == enrollment_id)
    )
    return result.scalars().all()


def test_expected_end():
    assert expected_end(date(2024, 1, 1), 28) == date(2024, 1, 29)
    assert expected_end(date(2024, 1, 1), None) is None


# ── Admin side ───────────────────────────────────────────────────────

async def test_assign_to_category_enrolls_active_programs(db, factory, category, program, patient, admin, ctx_for, today):
    await factory.program(category, title="Retired", is_active=False)
    listeners = []
    ctx = ctx_for(admin, listeners=[listeners.append])

    result = await patient_service.assign_patient_to_category(ctx, patient.id, {"categoryId": category.id})

    assert result.success is True
    assert result.data.programs_enrolled == 1
    assert result.data.category_assignment.category_id == category.id
    assert "/patient/programs" in listeners

    enrollments = (await db.execute(
        select(PatientEnrollment).where(PatientEnrollment.patient_id == patient.id)
    )).scalars().all()
    assert len(enrollments) == 1
    enrollment = enrollments[0]
    assert enrollment.program_id == program.id
    assert enrollment.status == "in_progress"
    assert enrollment.start_date == today
    assert enrollment.expected_end_date == today + timedelta(days=28)
    assert enrollment.category_enrollment_id == result.data.category_assignment.id

    rows = await progress_rows(db, enrollment.id)
    assert len(rows) == 3
    assert {row.status for row in rows} == {"not_started"}


async def test_reassigning_category_replaces_assignment(factory, category, patient, admin, ctx_for):
    other = await factory.category("Depression")
    await patient_service.assign_patient_to_category(ctx_for(admin), patient.id, {"categoryId": category.id})
    await patient_service.assign_patient_to_category(ctx_for(admin), patient.id, {"categoryId": other.id})

    view = (await patient_program_service.get_patient_category(ctx_for(patient))).data
    assert view.category.name == "Depression"


async def test_assign_to_unknown_category(patient, admin, ctx_for):
    result = await patient_service.assign_patient_to_category(
        ctx_for(admin), patient.id, {"categoryId": "5f0c7a1e-0000-4000-8000-000000000000"}
    )
    assert result.status == 404
    assert result.error.message == "Category not found"


async def test_assign_to_program_drops_previous_enrollment(db, factory, category, program, patient, admin, ctx_for, today):
    first = (await enrollment_service.assign_patient_to_program(ctx_for(admin), {
        "patientId": patient.id, "programId": program.id, "startDate": today.isoformat(),
    })).data
    other = await factory.program(category, title="Better Sleep")
    await factory.module(other, 1)

    second = (await enrollment_service.assign_patient_to_program(ctx_for(admin), {
        "patientId": patient.id, "programId": other.id, "startDate": today.isoformat(),
    })).data

    dropped = await db.get(PatientEnrollment, first.id)
    await db.refresh(dropped)
    assert dropped.status == "dropped"
    assert await progress_rows(db, first.id) == []
    assert len(await progress_rows(db, second.id)) == 1

    current = (await enrollment_service.get_patient_current_enrollment(ctx_for(admin), patient.id)).data
    assert current.enrollment.id == second.id
    assert current.enrollment.program_title == "Better Sleep"

    programs = (await enrollment_service.get_patient_enrolled_programs(ctx_for(admin), patient.id)).data
    assert [p.id for p in programs] == [other.id]


async def test_current_enrollment_is_wrapped_when_missing(patient, admin, ctx_for):
    result = await enrollment_service.get_patient_current_enrollment(ctx_for(admin), patient.id)
    assert result.success is True
    assert result.data.enrollment is None


async def test_assign_to_program_validates_ids_before_auth(ctx_for):
    result = await enrollment_service.assign_patient_to_program(ctx_for(), {
        "patientId": "nope", "programId": "nope", "startDate": "2024-01-01",
    })
    assert result.status == 400
    assert set(result.error.field_errors) == {"patientId", "programId"}


# ── Patient side ─────────────────────────────────────────────────────

async def test_patient_category_when_unassigned(patient, ctx_for):
    view = (await patient_program_service.get_patient_category(ctx_for(patient))).data
    assert view.assignment is None
    assert view.category is None


async def test_program_modules_preview_without_enrollment(db, factory, category, program, patient, ctx_for):
    await factory.content(await factory.module(program, 4), 1)
    db.add(PatientCategory(patient_id=patient.id, category_id=category.id))
    await db.commit()

    modules = (await patient_program_service.get_program_modules(ctx_for(patient), program.id)).data

    assert [m.sequence_number for m in modules] == [1, 2, 3, 4]
    assert [m.total_content_items for m in modules] == [0, 0, 0, 1]
    assert all(m.progress is None for m in modules)


async def test_program_modules_outside_own_category(factory, program, patient, ctx_for):
    result = await patient_program_service.get_program_modules(ctx_for(patient), program.id)
    assert result.status == 403
    assert result.error.message == "Access denied. Program is not available to you."

    other = await factory.program(await factory.category("Sleep"))
    await patient_program_service.enroll_in_program(ctx_for(patient), other.id)
    enrolled = await patient_program_service.get_program_modules(ctx_for(patient), other.id)
    assert enrolled.success is True


async def test_self_enrollment_is_idempotent(program, patient, ctx_for):
    first = await patient_program_service.enroll_in_program(ctx_for(patient), program.id)
    second = await patient_program_service.enroll_in_program(ctx_for(patient), program.id)
    assert first.data.id == second.data.id

    modules = (await patient_program_service.get_program_modules(ctx_for(patient), program.id)).data
    assert [m.sequence_number for m in modules] == [1, 2, 3]
    assert all(m.progress.status.value == "not_started" for m in modules)


async def test_inactive_program_cannot_be_joined(factory, category, patient, ctx_for):
    retired = await factory.program(category, is_active=False)
    result = await patient_program_service.enroll_in_program(ctx_for(patient), retired.id)
    assert result.status == 404


async def test_category_programs_carry_enrollment(category, program, patient, admin, ctx_for):
    await patient_service.assign_patient_to_category(ctx_for(admin), patient.id, {"categoryId": category.id})

    programs = (await patient_program_service.get_category_programs(ctx_for(patient))).data

    assert [p.id for p in programs] == [program.id]
    assert programs[0].enrollment.status.value == "in_progress"


async def test_completing_required_modules_completes_enrollment(db, program, patient, ctx_for):
    enrollment = (await patient_program_service.enroll_in_program(ctx_for(patient), program.id)).data
    modules = (await patient_program_service.get_program_modules(ctx_for(patient), program.id)).data
    required = [m for m in modules if m.is_required]

    started = await patient_program_service.update_module_progress(
        ctx_for(patient), {"moduleId": required[0].id, "status": "in_progress"}
    )
    assert started.data.started_at is not None
    assert started.data.completed_at is None

    for module in required:
        await patient_program_service.update_module_progress(
            ctx_for(patient), {"moduleId": module.id, "status": "completed"}
        )

    row = await db.get(PatientEnrollment, enrollment.id)
    await db.refresh(row)
    assert row.status == "completed"
    assert row.completed_date is not None


async def test_progress_cannot_go_back_to_not_started(program, patient, ctx_for):
    result = await patient_program_service.update_module_progress(
        ctx_for(patient), {"moduleId": program.id, "status": "not_started"}
    )
    assert result.status == 400
    assert "status" in result.error.field_errors


async def test_progress_timestamps_follow_status(program, patient, ctx_for):
    await patient_program_service.enroll_in_program(ctx_for(patient), program.id)
    modules = (await patient_program_service.get_program_modules(ctx_for(patient), program.id)).data
    module_id = modules[0].id

    async def move(status):
        result = await patient_program_service.update_module_progress(
            ctx_for(patient), {"moduleId": module_id, "status": status}
        )
        return result.data

    first = await move("in_progress")
    again = await move("in_progress")
    assert again.started_at == first.started_at

    done = await move("completed")
    assert done.completed_at is not None
    assert done.started_at == first.started_at

    reopened = await move("in_progress")
    assert reopened.status.value == "in_progress"
    assert reopened.completed_at is None
    assert reopened.started_at == first.started_at


async def test_module_content_requires_enrollment(factory, program, patient, ctx_for):
    module = await factory.module(program, 4)
    await factory.content(module, 1)

    refused = await patient_program_service.get_module_content(ctx_for(patient), module.id)
    assert refused.status == 403
    assert refused.error.message == "You are not enrolled in this program"

    await patient_program_service.enroll_in_program(ctx_for(patient), program.id)
    items = (await patient_program_service.get_module_content(ctx_for(patient), module.id)).data
    assert [i.title for i in items] == ["Item 1"]
