from sqlalchemy import func, select, update
from sqlalchemy.orm import aliased
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.context import ActionContext
from carelearn.exceptions import ConflictError, NotFoundError
from carelearn.identity import Role
from carelearn.models.content import ContentItem
from carelearn.models.program import LearningModule, TreatmentProgram
from carelearn.models.user import User
from carelearn.schemas.module import ModuleCreate, ModuleResponse, ModuleSequenceUpdate
from carelearn.services.common import count, display_name, get_or_404, next_sequence, parse_id, renumber


def _modules_page(program_id: str) -> str:
    return f"/admin/programs/{program_id}/modules"


class ModuleService:
    @server_action
    async def list_modules(self, ctx: ActionContext, program_id: str) -> list[ModuleResponse]:
        program_id = parse_id(program_id, "programId")
        await authorize_action(ctx, Role.ADMIN)

        content_count = (
            select(func.count(ContentItem.id))
            .where(ContentItem.module_id == LearningModule.id)
            .correlate(LearningModule)
            .scalar_subquery()
        )
        creator = aliased(User)
        result = await ctx.db.execute(
            select(LearningModule, content_count, creator.first_name, creator.last_name)
            .outerjoin(creator, creator.id == LearningModule.created_by)
            .where(LearningModule.program_id == program_id)
            .order_by(LearningModule.sequence_number)
        )

        modules = []
        for module, total, first, last in result.all():
            response = ModuleResponse.model_validate(module)
            response.total_content_items = total or 0
            response.created_by_name = display_name(first, last)
            modules.append(response)
        return modules

    @server_action
    async def get_module(self, ctx: ActionContext, module_id: str) -> ModuleResponse:
        module_id = parse_id(module_id)
        await authorize_action(ctx, Role.ADMIN)

        module = await get_or_404(ctx.db, LearningModule, module_id, "Module")
        response = ModuleResponse.model_validate(module)
        response.total_content_items = await count(ctx.db, ContentItem.id, ContentItem.module_id == module_id)
        return response

    @server_action
    async def next_module_sequence(self, ctx: ActionContext, program_id: str) -> int:
        program_id = parse_id(program_id, "programId")
        await authorize_action(ctx, Role.ADMIN)
        return await next_sequence(ctx.db, LearningModule.sequence_number, LearningModule.program_id == program_id)

    @server_action
    async def create_module(self, ctx: ActionContext, data: dict) -> ModuleResponse:
        payload = ModuleCreate.model_validate(data)
        caller = await authorize_action(ctx, Role.ADMIN)
        program_id = str(payload.program_id)
        await get_or_404(ctx.db, TreatmentProgram, program_id, "Program")

        module = LearningModule(
            program_id=program_id,
            title=payload.title,
            description=payload.description,
            sequence_number=payload.sequence_number,
            estimated_minutes=payload.estimated_minutes,
            is_required=payload.is_required,
            created_by=caller.identity.id,
        )
        ctx.db.add(module)
        await ctx.db.flush()
        await ctx.db.refresh(module)

        ctx.revalidate_path(_modules_page(program_id))
        return ModuleResponse.model_validate(module)

    @server_action
    async def update_module(self, ctx: ActionContext, module_id: str, data: dict) -> ModuleResponse:
        module_id = parse_id(module_id)
        payload = ModuleCreate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)

        module = await get_or_404(ctx.db, LearningModule, module_id, "Module")
        module.title = payload.title
        module.description = payload.description
        module.sequence_number = payload.sequence_number
        module.estimated_minutes = payload.estimated_minutes
        module.is_required = payload.is_required
        await ctx.db.flush()
        await ctx.db.refresh(module)

        ctx.revalidate_path(_modules_page(module.program_id))
        ctx.revalidate_path(f"{_modules_page(module.program_id)}/{module_id}")
        return ModuleResponse.model_validate(module)

    @server_action
    async def delete_module(self, ctx: ActionContext, module_id: str) -> dict:
        module_id = parse_id(module_id)
        await authorize_action(ctx, Role.ADMIN)

        module = await get_or_404(ctx.db, LearningModule, module_id, "Module")
        if await count(ctx.db, ContentItem.id, ContentItem.module_id == module_id):
            raise ConflictError("Cannot delete module with existing content items. Remove content items first.")

        program_id = module.program_id
        await ctx.db.delete(module)
        await ctx.db.flush()
        await renumber(ctx.db, LearningModule, LearningModule.program_id, program_id)

        ctx.revalidate_path(_modules_page(program_id))
        return {"deleted": True, "id": module_id}

    @server_action
    async def update_module_sequence(self, ctx: ActionContext, module_id: str, data: dict) -> ModuleResponse:
        """
        Move a module to `newSequence`, shifting the modules in between by one
        so the program keeps a gap-free ordering.
        """
        module_id = parse_id(module_id)
        payload = ModuleSequenceUpdate.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)
        program_id = str(payload.program_id)

        module = await get_or_404(ctx.db, LearningModule, module_id, "Module")
        if module.program_id != program_id:
            raise NotFoundError("Module")

        current, target = module.sequence_number, payload.new_sequence
        if current != target:
            if current < target:
                shift = (
                    update(LearningModule)
                    .where(
                        LearningModule.program_id == program_id,
                        LearningModule.sequence_number > current,
                        LearningModule.sequence_number <= target,
                    )
                    .values(sequence_number=LearningModule.sequence_number - 1)
                )
            else:
                shift = (
                    update(LearningModule)
                    .where(
                        LearningModule.program_id == program_id,
                        LearningModule.sequence_number >= target,
                        LearningModule.sequence_number < current,
                    )
                    .values(sequence_number=LearningModule.sequence_number + 1)
                )
            await ctx.db.execute(shift.execution_options(synchronize_session="fetch"))
            module.sequence_number = target
            await ctx.db.flush()
            await ctx.db.refresh(module)

        ctx.revalidate_path(_modules_page(program_id))
        return ModuleResponse.model_validate(module)


module_service = ModuleService()
