from datetime import date, timedelta
from typing import Optional
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.context import ActionContext
from carelearn.identity import Role
from carelearn.models.enrollment import ModuleProgress, PatientEnrollment
from carelearn.models.program import LearningModule, TreatmentProgram
from carelearn.schemas.enrollment import (
    CurrentEnrollment, EnrollmentCreate, EnrollmentDetails, EnrollmentResponse,
    EnrollmentStatus, PatientProgramSummary, ProgressStatus,
)
from carelearn.services.common import get_or_404, get_patient_or_404, parse_id

ACTIVE_STATUSES = (EnrollmentStatus.IN_PROGRESS.value, EnrollmentStatus.ASSIGNED.value)


def expected_end(start: date, duration_days: Optional[int]) -> Optional[date]:
    if not duration_days:
        return None
    return start + timedelta(days=duration_days)


async def seed_module_progress(db: AsyncSession, enrollment: PatientEnrollment) -> int:
    """Create a not_started progress row for every module of the enrolled program."""
    result = await db.execute(
        select(LearningModule.id).where(LearningModule.program_id == enrollment.program_id)
    )
    module_ids = result.scalars().all()
    for module_id in module_ids:
        db.add(ModuleProgress(
            patient_id=enrollment.patient_id,
            module_id=module_id,
            enrollment_id=enrollment.id,
            status=ProgressStatus.NOT_STARTED.value,
        ))
    await db.flush()
    return len(module_ids)


async def enroll_patient(
    db: AsyncSession,
    patient_id: str,
    program: TreatmentProgram,
    start_date: date,
    enrolled_by: Optional[str] = None,
    category_enrollment_id: Optional[str] = None,
) -> PatientEnrollment:
    enrollment = PatientEnrollment(
        patient_id=patient_id,
        program_id=program.id,
        category_enrollment_id=category_enrollment_id,
        enrolled_by=enrolled_by,
        start_date=start_date,
        expected_end_date=expected_end(start_date, program.duration_days),
        status=EnrollmentStatus.IN_PROGRESS.value,
    )
    db.add(enrollment)
    await db.flush()
    await seed_module_progress(db, enrollment)
    return enrollment


class EnrollmentService:
    @server_action
    async def get_patient_current_enrollment(self, ctx: ActionContext, patient_id: str) -> CurrentEnrollment:
        """Most recent active enrollment, wrapped so an unenrolled patient is still a success."""
        patient_id = parse_id(patient_id, "patientId")
        await authorize_action(ctx, Role.ADMIN)

        result = await ctx.db.execute(
            select(PatientEnrollment, TreatmentProgram.title)
            .join(TreatmentProgram, TreatmentProgram.id == PatientEnrollment.program_id)
            .where(
                PatientEnrollment.patient_id == patient_id,
                PatientEnrollment.status.in_(ACTIVE_STATUSES),
            )
            .order_by(PatientEnrollment.created_at.desc())
            .limit(1)
        )
        row = result.first()
        if row is None:
            return CurrentEnrollment(enrollment=None)

        enrollment, title = row
        return CurrentEnrollment(enrollment=EnrollmentDetails(
            id=enrollment.id,
            patient_id=enrollment.patient_id,
            program_id=enrollment.program_id,
            program_title=title or "Unknown Program",
            start_date=enrollment.start_date,
            expected_end_date=enrollment.expected_end_date,
            status=enrollment.status,
        ))

    @server_action
    async def assign_patient_to_program(self, ctx: ActionContext, data: dict) -> EnrollmentResponse:
        """
        Move a patient onto a program. Any active enrollment is dropped and its
        module progress cleared before the new enrollment is created and seeded.
        """
        payload = EnrollmentCreate.model_validate(data)
        caller = await authorize_action(ctx, Role.ADMIN)
        patient_id = str(payload.patient_id)

        await get_patient_or_404(ctx.db, patient_id)
        program = await get_or_404(ctx.db, TreatmentProgram, str(payload.program_id), "Program")

        result = await ctx.db.execute(
            select(PatientEnrollment).where(
                PatientEnrollment.patient_id == patient_id,
                PatientEnrollment.status.in_(ACTIVE_STATUSES),
            )
        )
        for active in result.scalars().all():
            active.status = EnrollmentStatus.DROPPED.value
            await ctx.db.execute(delete(ModuleProgress).where(ModuleProgress.enrollment_id == active.id))
        await ctx.db.flush()

        enrollment = await enroll_patient(
            ctx.db, patient_id, program, payload.start_date, enrolled_by=caller.identity.id
        )
        await ctx.db.refresh(enrollment)

        ctx.revalidate_path("/admin/patients")
        ctx.revalidate_path(f"/admin/patients/{patient_id}")
        return EnrollmentResponse.model_validate(enrollment)

    @server_action
    async def get_patient_enrolled_programs(self, ctx: ActionContext, patient_id: str) -> list[PatientProgramSummary]:
        patient_id = parse_id(patient_id, "patientId")
        await authorize_action(ctx, Role.ADMIN)
        await get_patient_or_404(ctx.db, patient_id)

        result = await ctx.db.execute(
            select(PatientEnrollment, TreatmentProgram)
            .join(TreatmentProgram, TreatmentProgram.id == PatientEnrollment.program_id)
            .where(
                PatientEnrollment.patient_id == patient_id,
                PatientEnrollment.status != EnrollmentStatus.DROPPED.value,
            )
            .order_by(PatientEnrollment.start_date.desc())
        )
        return [
            PatientProgramSummary(
                id=program.id,
                title=program.title,
                description=program.description,
                duration_days=program.duration_days,
                is_self_paced=program.is_self_paced,
                status=enrollment.status,
                start_date=enrollment.start_date,
                expected_end_date=enrollment.expected_end_date,
                completed_date=enrollment.completed_date,
                enrollment_id=enrollment.id,
            )
            for enrollment, program in result.all()
        ]


enrollment_service = EnrollmentService()
