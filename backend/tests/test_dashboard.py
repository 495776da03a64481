"""
Tests for the admin dashboard aggregates.
"""

from datetime import timedelta

import pytest

from carelearn.clock import utcnow
from carelearn.models.assessment import Assessment, AssessmentAttempt
from carelearn.services.dashboard_service import dashboard_service
from carelearn.services.enrollment_service import enroll_patient
from carelearn.services.patient_service import patient_service


async def test_enrollment_data_has_one_point_per_day(admin, ctx_for, today):
    result = await dashboard_service.get_enrollment_data(ctx_for(admin), days=7)

    assert result.success is True
    dates = [point["date"] for point in result.data.data]
    assert len(dates) == 7
    assert dates[-1] == today.isoformat()
    assert dates[0] == (today - timedelta(days=6)).isoformat()
    assert result.data.categories == []


async def test_enrollment_data_counts_by_category(db, factory, admin, patient, ctx_for, today):
    category = await factory.category("Anxiety")
    program = await factory.program(category)
    await enroll_patient(db, patient.id, program, today)
    await db.commit()

    result = await dashboard_service.get_enrollment_data(ctx_for(admin), days=7)

    assert result.data.categories == ["Anxiety"]
    assert result.data.data[-1] == {"date": today.isoformat(), "Anxiety": 1}
    assert all(point["Anxiety"] == 0 for point in result.data.data[:-1])


async def test_uncategorized_programs_are_grouped(db, factory, admin, patient, ctx_for, today):
    program = await factory.program(None)
    await enroll_patient(db, patient.id, program, today)
    await db.commit()

    result = await dashboard_service.get_enrollment_data(ctx_for(admin), days=1)
    assert result.data.data == [{"date": today.isoformat(), "Uncategorized": 1}]


@pytest.mark.parametrize("days", [0, 366])
async def test_enrollment_window_bounds(admin, ctx_for, days):
    result = await dashboard_service.get_enrollment_data(ctx_for(admin), days=days)
    assert result.status == 400
    assert "days" in result.error.field_errors


async def test_enrollment_data_requires_admin(patient, ctx_for):
    result = await dashboard_service.get_enrollment_data(ctx_for(patient), days=7)
    assert result.status == 403


async def test_dashboard_stats(db, factory, admin, patient, ctx_for):
    await factory.account("patient", is_active=False)
    category = await factory.category()
    program = await factory.program(category)
    await factory.program(category, is_active=False)
    module = await factory.module(program, 1)
    item = await factory.content(module, 1, content_type="assessment")
    assessment = Assessment(content_item_id=item.id, title="Check-in", passing_score=50)
    db.add(assessment)
    await db.flush()
    db.add(AssessmentAttempt(patient_id=patient.id, assessment_id=assessment.id, completed_at=utcnow()))
    db.add(AssessmentAttempt(patient_id=patient.id, assessment_id=assessment.id))
    db.add(AssessmentAttempt(patient_id=patient.id, assessment_id=assessment.id))
    await db.commit()

    stats = (await dashboard_service.get_dashboard_stats(ctx_for(admin))).data

    assert stats.total_patients == 2
    assert stats.active_patients == 1
    assert stats.active_programs == 1
    assert stats.total_modules == 1
    assert stats.completed_assessments == 1
    assert stats.assessment_completion_rate == 33


async def test_recent_patients_and_category_stats(db, factory, admin, patient, ctx_for):
    category = await factory.category("Stress")
    await factory.category("Sleep")
    await patient_service.assign_patient_to_category(ctx_for(admin), patient.id, {"categoryId": category.id})

    recent = (await dashboard_service.get_recent_patients(ctx_for(admin))).data
    assert [(p.name, p.category) for p in recent] == [("Pat Jones", "Stress")]

    stats = (await dashboard_service.get_category_stats(ctx_for(admin))).data
    assert [(s.name, s.patient_count) for s in stats] == [("Sleep", 0), ("Stress", 1)]
