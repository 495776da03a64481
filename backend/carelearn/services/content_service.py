import json
from sqlalchemy import select
from sqlalchemy.orm import aliased
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.context import ActionContext
from carelearn.exceptions import ConflictError, ValidationError
from carelearn.identity import Role
from carelearn.models.content import ContentItem
from carelearn.models.program import LearningModule
from carelearn.models.user import User
from carelearn.schemas.content import (
    CONTENT_SCHEMAS, ContentItemResponse, ContentType, DocumentContentCreate,
    LinkContentCreate, TextContentCreate, VideoContentCreate,
)
from carelearn.services.common import display_name, get_or_404, next_sequence, parse_id, renumber


def _module_page(module_id: str) -> str:
    return f"/admin/programs/*/modules/{module_id}"


def _content_kind(kind) -> ContentType:
    try:
        content_type = ContentType(kind)
    except ValueError:
        content_type = None
    if content_type not in CONTENT_SCHEMAS:
        raise ValidationError({"contentType": [f"Unsupported content type: {kind}"]})
    return content_type


def _serialize_body(payload) -> str:
    """Text content is stored as-is; url-backed kinds as a small JSON document."""
    if isinstance(payload, TextContentCreate):
        return payload.content
    if isinstance(payload, VideoContentCreate):
        body = {"videoUrl": str(payload.video_url), "description": payload.description}
    elif isinstance(payload, LinkContentCreate):
        body = {"linkUrl": str(payload.link_url), "description": payload.description}
    elif isinstance(payload, DocumentContentCreate):
        body = {
            "documentUrl": str(payload.document_url),
            "fileType": payload.file_type,
            "description": payload.description,
        }
    else:
        raise TypeError(f"Unexpected content payload: {type(payload).__name__}")
    return json.dumps(body)


class ContentService:
    @server_action
    async def list_module_content(self, ctx: ActionContext, module_id: str) -> list[ContentItemResponse]:
        module_id = parse_id(module_id, "moduleId")
        await authorize_action(ctx, Role.ADMIN)

        creator = aliased(User)
        result = await ctx.db.execute(
            select(ContentItem, creator.first_name, creator.last_name)
            .outerjoin(creator, creator.id == ContentItem.created_by)
            .where(ContentItem.module_id == module_id)
            .order_by(ContentItem.sequence_number)
        )
        items = []
        for item, first, last in result.all():
            response = ContentItemResponse.model_validate(item)
            response.created_by_name = display_name(first, last)
            items.append(response)
        return items

    @server_action
    async def get_content_item(self, ctx: ActionContext, content_id: str) -> ContentItemResponse:
        content_id = parse_id(content_id)
        await authorize_action(ctx, Role.ADMIN)
        item = await get_or_404(ctx.db, ContentItem, content_id, "Content item")
        return ContentItemResponse.model_validate(item)

    @server_action
    async def next_content_sequence(self, ctx: ActionContext, module_id: str) -> int:
        module_id = parse_id(module_id, "moduleId")
        await authorize_action(ctx, Role.ADMIN)
        return await next_sequence(ctx.db, ContentItem.sequence_number, ContentItem.module_id == module_id)

    @server_action
    async def create_content(self, ctx: ActionContext, kind: str, data: dict) -> ContentItemResponse:
        content_type = _content_kind(kind)
        payload = CONTENT_SCHEMAS[content_type].model_validate(data)
        caller = await authorize_action(ctx, Role.ADMIN)
        module_id = str(payload.module_id)
        await get_or_404(ctx.db, LearningModule, module_id, "Module")

        item = ContentItem(
            module_id=module_id,
            title=payload.title,
            content_type=content_type.value,
            content=_serialize_body(payload),
            sequence_number=payload.sequence_number,
            created_by=caller.identity.id,
        )
        ctx.db.add(item)
        await ctx.db.flush()
        await ctx.db.refresh(item)

        ctx.revalidate_path(_module_page(module_id))
        return ContentItemResponse.model_validate(item)

    @server_action
    async def update_content(self, ctx: ActionContext, content_id: str, data: dict) -> ContentItemResponse:
        content_id = parse_id(content_id)
        await authorize_action(ctx, Role.ADMIN)

        item = await get_or_404(ctx.db, ContentItem, content_id, "Content item")
        if item.content_type == ContentType.ASSESSMENT.value:
            raise ConflictError("Assessment content is edited through its assessment")
        payload = CONTENT_SCHEMAS[ContentType(item.content_type)].model_validate(data)

        item.module_id = str(payload.module_id)
        item.title = payload.title
        item.sequence_number = payload.sequence_number
        item.content = _serialize_body(payload)
        await ctx.db.flush()
        await ctx.db.refresh(item)

        ctx.revalidate_path(_module_page(item.module_id))
        return ContentItemResponse.model_validate(item)

    @server_action
    async def delete_content_item(self, ctx: ActionContext, content_id: str) -> dict:
        content_id = parse_id(content_id)
        await authorize_action(ctx, Role.ADMIN)

        item = await get_or_404(ctx.db, ContentItem, content_id, "Content item")
        if item.content_type == ContentType.ASSESSMENT.value:
            raise ConflictError("Assessment content is removed by deleting its assessment")
        module_id = item.module_id
        await ctx.db.delete(item)
        await ctx.db.flush()

        ctx.revalidate_path(_module_page(module_id))
        return {"deleted": True, "id": content_id}

    @server_action
    async def reorder_content_items(self, ctx: ActionContext, module_id: str) -> dict:
        module_id = parse_id(module_id, "moduleId")
        await authorize_action(ctx, Role.ADMIN)

        total = await renumber(ctx.db, ContentItem, ContentItem.module_id, module_id)
        ctx.revalidate_path(_module_page(module_id))
        return {"module_id": module_id, "total": total}


content_service = ContentService()
