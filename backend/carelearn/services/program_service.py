from sqlalchemy import select
from sqlalchemy.orm import aliased
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.context import ActionContext
from carelearn.exceptions import ConflictError, NotFoundError
from carelearn.identity import Role
from carelearn.models.enrollment import PatientEnrollment
from carelearn.models.program import LearningModule, ProgramCategory, TreatmentProgram
from carelearn.models.user import User
from carelearn.schemas.program import (
    CategoryResponse, ProgramCreate, ProgramResponse, ProgramStatusUpdate,
)
from carelearn.services.common import count, display_name, get_or_404, parse_id

PROGRAMS_PAGE = "/admin/programs"


def _program_response(program: TreatmentProgram, category_name=None, first=None, last=None, **extra) -> ProgramResponse:
    response = ProgramResponse.model_validate(program)
    response.category_name = category_name
    response.created_by_name = display_name(first, last)
    for key, value in extra.items():
        setattr(response, key, value)
    return response


def _program_query():
    creator = aliased(User)
    return (
        select(TreatmentProgram, ProgramCategory.name, creator.first_name, creator.last_name)
        .outerjoin(ProgramCategory, ProgramCategory.id == TreatmentProgram.category_id)
        .outerjoin(creator, creator.id == TreatmentProgram.created_by)
    )


class ProgramService:
    @server_action
    async def list_programs(self, ctx: ActionContext) -> list[ProgramResponse]:
        await authorize_action(ctx, Role.ADMIN)
        result = await ctx.db.execute(_program_query().order_by(TreatmentProgram.created_at.desc()))
        return [_program_response(*row) for row in result.all()]

    @server_action
    async def list_categories(self, ctx: ActionContext) -> list[CategoryResponse]:
        await authorize_action(ctx, Role.ADMIN)
        result = await ctx.db.execute(select(ProgramCategory).order_by(ProgramCategory.name))
        return [CategoryResponse.model_validate(c) for c in result.scalars().all()]

    @server_action
    async def get_program(self, ctx: ActionContext, program_id: str) -> ProgramResponse:
        program_id = parse_id(program_id)
        await authorize_action(ctx, Role.ADMIN)

        result = await ctx.db.execute(_program_query().where(TreatmentProgram.id == program_id))
        row = result.first()
        if row is None:
            raise NotFoundError("Program")
        return _program_response(
            *row,
            total_modules=await count(ctx.db, LearningModule.id, LearningModule.program_id == program_id),
            total_enrollments=await count(ctx.db, PatientEnrollment.id, PatientEnrollment.program_id == program_id),
        )

    @server_action
    async def create_program(self, ctx: ActionContext, data: dict) -> ProgramResponse:
        payload = ProgramCreate.model_validate(data)
        caller = await authorize_action(ctx, Role.ADMIN)
        await get_or_404(ctx.db, ProgramCategory, str(payload.category_id), "Category")

        program = TreatmentProgram(
            title=payload.title,
            description=payload.description,
            category_id=str(payload.category_id),
            duration_days=payload.duration_days,
            is_self_paced=payload.is_self_paced,
            created_by=caller.identity.id,
            is_active=True,
        )
        ctx.db.add(program)
        await ctx.db.flush()
        await ctx.db.refresh(program)

        ctx.revalidate_path(PROGRAMS_PAGE)
        return ProgramResponse.model_validate(program)

    @server_action
    async def update_program(self, ctx: ActionContext, program_id: str, data: dict) -> ProgramResponse:
        program_id = parse_id(program_id)
        payload = ProgramCreate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)

        program = await get_or_404(ctx.db, TreatmentProgram, program_id, "Program")
        await get_or_404(ctx.db, ProgramCategory, str(payload.category_id), "Category")
        program.title = payload.title
        program.description = payload.description
        program.category_id = str(payload.category_id)
        program.duration_days = payload.duration_days
        program.is_self_paced = payload.is_self_paced
        await ctx.db.flush()
        await ctx.db.refresh(program)

        ctx.revalidate_path(PROGRAMS_PAGE)
        ctx.revalidate_path(f"{PROGRAMS_PAGE}/{program_id}")
        return ProgramResponse.model_validate(program)

    @server_action
    async def update_program_status(self, ctx: ActionContext, program_id: str, data: dict) -> ProgramResponse:
        program_id = parse_id(program_id)
        payload = ProgramStatusUpdate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)

        program = await get_or_404(ctx.db, TreatmentProgram, program_id, "Program")
        program.is_active = payload.is_active
        await ctx.db.flush()
        await ctx.db.refresh(program)

        ctx.revalidate_path(PROGRAMS_PAGE)
        ctx.revalidate_path(f"{PROGRAMS_PAGE}/{program_id}")
        return ProgramResponse.model_validate(program)

    @server_action
    async def delete_program(self, ctx: ActionContext, program_id: str) -> dict:
        program_id = parse_id(program_id)
        await authorize_action(ctx, Role.ADMIN)

        program = await get_or_404(ctx.db, TreatmentProgram, program_id, "Program")
        if await count(ctx.db, PatientEnrollment.id, PatientEnrollment.program_id == program_id):
            raise ConflictError("Cannot delete program with existing enrollments. Deactivate it instead.")

        await ctx.db.delete(program)
        await ctx.db.flush()

        ctx.revalidate_path(PROGRAMS_PAGE)
        return {"deleted": True, "id": program_id}


program_service = ProgramService()
