from fastapi import APIRouter, Depends
from carelearn.actions import get_action_context, respond
from carelearn.context import ActionContext
from carelearn.services.module_service import module_service
from carelearn.services.program_service import program_service

router = APIRouter()


@router.get("")
async def list_programs(ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await program_service.list_programs(ctx))


@router.get("/categories")
async def list_categories(ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await program_service.list_categories(ctx))


@router.post("")
async def create_program(body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await program_service.create_program(ctx, body))


@router.get("/{program_id}")
async def get_program(program_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await program_service.get_program(ctx, program_id))


@router.put("/{program_id}")
async def update_program(program_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await program_service.update_program(ctx, program_id, body))


@router.patch("/{program_id}/status")
async def update_program_status(program_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await program_service.update_program_status(ctx, program_id, body))


@router.delete("/{program_id}")
async def delete_program(program_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await program_service.delete_program(ctx, program_id))


@router.get("/{program_id}/modules")
async def list_modules(program_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await module_service.list_modules(ctx, program_id))


@router.get("/{program_id}/modules/next-sequence")
async def next_module_sequence(program_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await module_service.next_module_sequence(ctx, program_id))
