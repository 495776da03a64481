from fastapi import APIRouter, Depends
from carelearn.actions import get_action_context, respond
from carelearn.context import ActionContext
from carelearn.services.content_service import content_service
from carelearn.services.module_service import module_service

router = APIRouter()


@router.post("")
async def create_module(body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await module_service.create_module(ctx, body))


@router.get("/{module_id}")
async def get_module(module_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await module_service.get_module(ctx, module_id))


@router.put("/{module_id}")
async def update_module(module_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await module_service.update_module(ctx, module_id, body))


@router.delete("/{module_id}")
async def delete_module(module_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await module_service.delete_module(ctx, module_id))


@router.patch("/{module_id}/sequence")
async def update_module_sequence(module_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    """Body: {"programId": ..., "newSequence": n}"""
    return respond(ctx, await module_service.update_module_sequence(ctx, module_id, body))


@router.get("/{module_id}/content")
async def list_content(module_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await content_service.list_module_content(ctx, module_id))


@router.get("/{module_id}/content/next-sequence")
async def next_content_sequence(module_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await content_service.next_content_sequence(ctx, module_id))


@router.post("/{module_id}/content/reorder")
async def reorder_content(module_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await content_service.reorder_content_items(ctx, module_id))
