from fastapi import APIRouter, Depends
from carelearn.actions import get_action_context, respond
from carelearn.context import ActionContext
from carelearn.services.content_service import content_service

router = APIRouter()


@router.post("/{kind}")
async def create_content(kind: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    """kind is one of text, video, link, document. Assessments have their own endpoint."""
    return respond(ctx, await content_service.create_content(ctx, kind, body))


@router.get("/{content_id}")
async def get_content_item(content_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await content_service.get_content_item(ctx, content_id))


@router.put("/{content_id}")
async def update_content(content_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await content_service.update_content(ctx, content_id, body))


@router.delete("/{content_id}")
async def delete_content_item(content_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await content_service.delete_content_item(ctx, content_id))
