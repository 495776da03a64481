from typing import Optional
from sqlalchemy import delete, or_, select
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.clock import utctoday
from carelearn.context import ActionContext
from carelearn.exceptions import ConflictError, NotFoundError
from carelearn.identity import Role
from carelearn.models.enrollment import PatientCategory
from carelearn.models.program import ProgramCategory, TreatmentProgram
from carelearn.models.user import AuthAccount, User
from carelearn.schemas.patient import (
    CategoryAssign, CategoryAssignmentResponse, CategoryAssignmentResult,
    PatientResponse, PatientSearch, PatientStatusUpdate, PatientUpdate,
)
from carelearn.schemas.program import CategoryResponse
from carelearn.services.common import get_or_404, get_patient_or_404, parse_id
from carelearn.services.enrollment_service import enroll_patient

PATIENTS_PAGE = "/admin/patients"


def _patient_response(patient: User, category: Optional[ProgramCategory] = None) -> PatientResponse:
    response = PatientResponse.model_validate(patient)
    if category is not None:
        response.category = CategoryResponse.model_validate(category)
    return response


def _with_category():
    return (
        select(User, ProgramCategory)
        .outerjoin(PatientCategory, PatientCategory.patient_id == User.id)
        .outerjoin(ProgramCategory, ProgramCategory.id == PatientCategory.category_id)
        .where(User.role == Role.PATIENT.value)
    )


class PatientService:
    @server_action
    async def list_patients(
        self,
        ctx: ActionContext,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[PatientResponse]:
        """Patients newest first, optionally filtered by name/email fragment and category."""
        filters = PatientSearch.model_validate({"search": search, "categoryId": category_id})
        await authorize_action(ctx, Role.ADMIN)

        query = _with_category().order_by(User.created_at.desc())
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            ))
        if filters.category_id:
            query = query.where(PatientCategory.category_id == str(filters.category_id))

        result = await ctx.db.execute(query)
        return [_patient_response(patient, category) for patient, category in result.all()]

    @server_action
    async def get_patient(self, ctx: ActionContext, patient_id: str) -> PatientResponse:
        patient_id = parse_id(patient_id)
        await authorize_action(ctx, Role.ADMIN)

        result = await ctx.db.execute(_with_category().where(User.id == patient_id))
        row = result.first()
        if row is None:
            raise NotFoundError("Patient")
        return _patient_response(*row)

    @server_action
    async def update_patient(self, ctx: ActionContext, patient_id: str, data: dict) -> PatientResponse:
        patient_id = parse_id(patient_id)
        payload = PatientUpdate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)

        patient = await get_patient_or_404(ctx.db, patient_id)
        email = payload.email.lower()
        if email != patient.email:
            taken = await ctx.db.scalar(select(AuthAccount.id).where(AuthAccount.email == email))
            if taken is not None:
                raise ConflictError(
                    "This email address is already registered",
                    {"email": ["This email address is already registered"]},
                )
            account = await ctx.db.get(AuthAccount, patient_id)
            if account is not None:
                account.email = email

        patient.first_name = payload.first_name
        patient.last_name = payload.last_name
        patient.email = email
        patient.is_active = payload.is_active
        patient.date_of_birth = payload.date_of_birth
        patient.gender = payload.gender
        patient.phone = payload.phone
        await ctx.db.flush()
        await ctx.db.refresh(patient)

        ctx.revalidate_path(PATIENTS_PAGE)
        ctx.revalidate_path(f"{PATIENTS_PAGE}/{patient_id}")
        return _patient_response(patient)

    @server_action
    async def update_patient_status(self, ctx: ActionContext, patient_id: str, data: dict) -> PatientResponse:
        patient_id = parse_id(patient_id)
        payload = PatientStatusUpdate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)

        patient = await get_patient_or_404(ctx.db, patient_id)
        patient.is_active = payload.is_active
        await ctx.db.flush()
        await ctx.db.refresh(patient)

        ctx.revalidate_path(PATIENTS_PAGE)
        ctx.revalidate_path(f"{PATIENTS_PAGE}/{patient_id}")
        return _patient_response(patient)

    @server_action
    async def assign_patient_to_category(self, ctx: ActionContext, patient_id: str, data: dict) -> CategoryAssignmentResult:
        """
        Replace the patient's category and enroll them in every active program
        of the new category, seeding not_started progress for each module.
        """
        patient_id = parse_id(patient_id, "patientId")
        payload = CategoryAssign.model_validate(data)
        caller = await authorize_action(ctx, Role.ADMIN)
        category_id = str(payload.category_id)

        await get_patient_or_404(ctx.db, patient_id)
        await get_or_404(ctx.db, ProgramCategory, category_id, "Category")

        await ctx.db.execute(delete(PatientCategory).where(PatientCategory.patient_id == patient_id))
        assignment = PatientCategory(
            patient_id=patient_id,
            category_id=category_id,
            assigned_by=caller.identity.id,
        )
        ctx.db.add(assignment)
        await ctx.db.flush()
        await ctx.db.refresh(assignment)

        result = await ctx.db.execute(
            select(TreatmentProgram).where(
                TreatmentProgram.category_id == category_id,
                TreatmentProgram.is_active.is_(True),
            )
        )
        programs = result.scalars().all()
        start = utctoday()
        for program in programs:
            await enroll_patient(
                ctx.db, patient_id, program, start,
                enrolled_by=caller.identity.id,
                category_enrollment_id=assignment.id,
            )

        for path in (PATIENTS_PAGE, f"{PATIENTS_PAGE}/{patient_id}", "/patient", "/patient/programs", "/patient/assessments"):
            ctx.revalidate_path(path)
        return CategoryAssignmentResult(
            category_assignment=CategoryAssignmentResponse.model_validate(assignment),
            programs_enrolled=len(programs),
        )


patient_service = PatientService()
