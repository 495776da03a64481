from typing import Optional
from sqlalchemy import func, select
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.clock import utcnow, utctoday
from carelearn.context import ActionContext
from carelearn.exceptions import ForbiddenError, NotFoundError
from carelearn.identity import Role
from carelearn.models.content import ContentItem
from carelearn.models.enrollment import ModuleProgress, PatientCategory, PatientEnrollment
from carelearn.models.program import LearningModule, ProgramCategory, TreatmentProgram
from carelearn.schemas.content import ContentItemResponse
from carelearn.schemas.enrollment import (
    EnrollmentResponse, EnrollmentStatus, ModuleProgressResponse, ModuleProgressUpdate, ProgressStatus,
)
from carelearn.schemas.module import ModuleResponse
from carelearn.schemas.patient import CategoryAssignmentResponse, PatientCategoryView, PatientCategoryProgram
from carelearn.schemas.program import CategoryResponse
from carelearn.services.common import get_or_404, parse_id
from carelearn.services.enrollment_service import enroll_patient

OWN_CATEGORY = "all"


async def find_enrollment(db, patient_id: str, program_id: str) -> Optional[PatientEnrollment]:
    """The patient's latest enrollment in a program that has not been dropped."""
    result = await db.execute(
        select(PatientEnrollment)
        .where(
            PatientEnrollment.patient_id == patient_id,
            PatientEnrollment.program_id == program_id,
            PatientEnrollment.status != EnrollmentStatus.DROPPED.value,
        )
        .order_by(PatientEnrollment.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _require_enrollment(db, patient_id: str, program_id: str) -> PatientEnrollment:
    enrollment = await find_enrollment(db, patient_id, program_id)
    if enrollment is None:
        raise ForbiddenError("You are not enrolled in this program")
    return enrollment


async def own_category(db, patient_id: str) -> Optional[PatientCategory]:
    result = await db.execute(
        select(PatientCategory)
        .where(PatientCategory.patient_id == patient_id)
        .order_by(PatientCategory.assigned_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


class PatientProgramService:
    @server_action
    async def get_patient_category(self, ctx: ActionContext) -> PatientCategoryView:
        caller = await authorize_action(ctx, Role.PATIENT)

        assignment = await own_category(ctx.db, caller.identity.id)
        if assignment is None:
            return PatientCategoryView()
        category = await ctx.db.get(ProgramCategory, assignment.category_id)
        return PatientCategoryView(
            assignment=CategoryAssignmentResponse.model_validate(assignment),
            category=CategoryResponse.model_validate(category) if category is not None else None,
        )

    @server_action
    async def get_category_programs(self, ctx: ActionContext, category_id: str = OWN_CATEGORY) -> list[PatientCategoryProgram]:
        """
        Active programs of the caller's category, each with the caller's
        enrollment. "all" means whatever category the caller is assigned to.
        """
        if category_id != OWN_CATEGORY:
            category_id = parse_id(category_id, "categoryId")
        caller = await authorize_action(ctx, Role.PATIENT)
        patient_id = caller.identity.id

        assignment = await own_category(ctx.db, patient_id)
        if assignment is None:
            return []
        if category_id != OWN_CATEGORY and category_id != assignment.category_id:
            raise ForbiddenError("Access denied. Category is not assigned to you.")

        result = await ctx.db.execute(
            select(TreatmentProgram)
            .where(
                TreatmentProgram.category_id == assignment.category_id,
                TreatmentProgram.is_active.is_(True),
            )
            .order_by(TreatmentProgram.title)
        )
        programs = result.scalars().all()
        if not programs:
            return []

        result = await ctx.db.execute(
            select(PatientEnrollment).where(
                PatientEnrollment.patient_id == patient_id,
                PatientEnrollment.program_id.in_([p.id for p in programs]),
                PatientEnrollment.status != EnrollmentStatus.DROPPED.value,
            )
        )
        enrollments = {e.program_id: e for e in result.scalars().all()}

        views = []
        for program in programs:
            view = PatientCategoryProgram.model_validate(program)
            enrollment = enrollments.get(program.id)
            if enrollment is not None:
                view.enrollment = EnrollmentResponse.model_validate(enrollment)
            views.append(view)
        return views

    @server_action
    async def get_program_modules(self, ctx: ActionContext, program_id: str) -> list[ModuleResponse]:
        """
        Modules with content counts. Progress is attached only when the caller
        is enrolled; otherwise the list is a preview of an active program in
        the caller's own category.
        """
        program_id = parse_id(program_id, "programId")
        caller = await authorize_action(ctx, Role.PATIENT)
        patient_id = caller.identity.id

        program = await get_or_404(ctx.db, TreatmentProgram, program_id, "Program")
        enrollment = await find_enrollment(ctx.db, patient_id, program_id)
        if enrollment is None:
            assignment = await own_category(ctx.db, patient_id)
            in_scope = assignment is not None and assignment.category_id == program.category_id
            if not (in_scope and program.is_active):
                raise ForbiddenError("Access denied. Program is not available to you.")

        content_count = (
            select(func.count(ContentItem.id))
            .where(ContentItem.module_id == LearningModule.id)
            .correlate(LearningModule)
            .scalar_subquery()
        )
        result = await ctx.db.execute(
            select(LearningModule, content_count)
            .where(LearningModule.program_id == program_id)
            .order_by(LearningModule.sequence_number)
        )
        rows = result.all()

        progress = {}
        if enrollment is not None:
            result = await ctx.db.execute(
                select(ModuleProgress).where(ModuleProgress.enrollment_id == enrollment.id)
            )
            progress = {p.module_id: p for p in result.scalars().all()}

        modules = []
        for module, total in rows:
            response = ModuleResponse.model_validate(module)
            response.total_content_items = total or 0
            if module.id in progress:
                response.progress = ModuleProgressResponse.model_validate(progress[module.id])
            modules.append(response)
        return modules

    @server_action
    async def enroll_in_program(self, ctx: ActionContext, program_id: str) -> EnrollmentResponse:
        """Self-enrollment; an existing enrollment is returned unchanged."""
        program_id = parse_id(program_id, "programId")
        caller = await authorize_action(ctx, Role.PATIENT)
        patient_id = caller.identity.id

        existing = await find_enrollment(ctx.db, patient_id, program_id)
        if existing is not None:
            return EnrollmentResponse.model_validate(existing)

        program = await get_or_404(ctx.db, TreatmentProgram, program_id, "Program")
        if not program.is_active:
            raise NotFoundError("Program")
        enrollment = await enroll_patient(ctx.db, patient_id, program, utctoday(), enrolled_by=patient_id)
        await ctx.db.refresh(enrollment)

        ctx.revalidate_path("/patient")
        ctx.revalidate_path("/patient/programs")
        ctx.revalidate_path(f"/patient/programs/{program_id}")
        return EnrollmentResponse.model_validate(enrollment)

    @server_action
    async def get_module_content(self, ctx: ActionContext, module_id: str) -> list[ContentItemResponse]:
        module_id = parse_id(module_id, "moduleId")
        caller = await authorize_action(ctx, Role.PATIENT)

        module = await get_or_404(ctx.db, LearningModule, module_id, "Module")
        await _require_enrollment(ctx.db, caller.identity.id, module.program_id)

        result = await ctx.db.execute(
            select(ContentItem)
            .where(ContentItem.module_id == module_id)
            .order_by(ContentItem.sequence_number)
        )
        return [ContentItemResponse.model_validate(item) for item in result.scalars().all()]

    @server_action
    async def update_module_progress(self, ctx: ActionContext, data: dict) -> ModuleProgressResponse:
        """
        Record progress on one module. Completing the last outstanding required
        module marks the whole enrollment completed.
        """
        payload = ModuleProgressUpdate.model_validate(data)
        caller = await authorize_action(ctx, Role.PATIENT)
        patient_id = caller.identity.id
        module_id = str(payload.module_id)

        module = await get_or_404(ctx.db, LearningModule, module_id, "Module")
        enrollment = await _require_enrollment(ctx.db, patient_id, module.program_id)

        result = await ctx.db.execute(
            select(ModuleProgress).where(
                ModuleProgress.patient_id == patient_id,
                ModuleProgress.module_id == module_id,
                ModuleProgress.enrollment_id == enrollment.id,
            )
        )
        progress = result.scalars().first()
        if progress is None:
            progress = ModuleProgress(patient_id=patient_id, module_id=module_id, enrollment_id=enrollment.id)
            ctx.db.add(progress)

        now = utcnow()
        progress.status = payload.status.value
        if progress.started_at is None:
            progress.started_at = now
        if payload.status is ProgressStatus.IN_PROGRESS:
            progress.completed_at = None
        else:
            progress.completed_at = now
        await ctx.db.flush()

        if payload.status is ProgressStatus.COMPLETED:
            await self._complete_enrollment_if_done(ctx, enrollment, now)

        await ctx.db.refresh(progress)
        ctx.revalidate_path(f"/patient/programs/{module.program_id}")
        ctx.revalidate_path(f"/patient/programs/{module.program_id}/modules/{module_id}")
        return ModuleProgressResponse.model_validate(progress)

    async def _complete_enrollment_if_done(self, ctx: ActionContext, enrollment: PatientEnrollment, now) -> None:
        result = await ctx.db.execute(
            select(LearningModule.id).where(
                LearningModule.program_id == enrollment.program_id,
                LearningModule.is_required.is_(True),
            )
        )
        required = set(result.scalars().all())
        if not required:
            return

        result = await ctx.db.execute(
            select(ModuleProgress.module_id).where(
                ModuleProgress.enrollment_id == enrollment.id,
                ModuleProgress.status == ProgressStatus.COMPLETED.value,
            )
        )
        if required <= set(result.scalars().all()):
            enrollment.status = EnrollmentStatus.COMPLETED.value
            enrollment.completed_date = now
            await ctx.db.flush()


patient_program_service = PatientProgramService()
