from fastapi import APIRouter, Depends
from carelearn.actions import get_action_context, respond
from carelearn.context import ActionContext
from carelearn.services.assessment_service import assessment_service

router = APIRouter()


@router.post("")
async def create_assessment(body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.create_assessment_content(ctx, body))


@router.get("/{assessment_id}")
async def get_assessment(assessment_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.get_assessment(ctx, assessment_id))


@router.put("/{assessment_id}")
async def update_assessment(assessment_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.update_assessment(ctx, assessment_id, body))


@router.delete("/{assessment_id}")
async def delete_assessment(assessment_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.delete_assessment(ctx, assessment_id))


@router.get("/{assessment_id}/questions/next-sequence")
async def next_question_sequence(assessment_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.next_question_sequence(ctx, assessment_id))


@router.post("/questions")
async def create_question(body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.create_question(ctx, body))


@router.get("/questions/{question_id}")
async def get_question(question_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.get_question(ctx, question_id))


@router.put("/questions/{question_id}")
async def update_question(question_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.update_question(ctx, question_id, body))


@router.delete("/questions/{question_id}")
async def delete_question(question_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await assessment_service.delete_question(ctx, question_id))
