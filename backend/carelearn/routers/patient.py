from fastapi import APIRouter, Depends
from carelearn.actions import get_action_context, respond
from carelearn.context import ActionContext
from carelearn.services.mood_service import mood_service
from carelearn.services.patient_assessment_service import patient_assessment_service
from carelearn.services.patient_program_service import OWN_CATEGORY, patient_program_service

router = APIRouter()


@router.get("/category")
async def my_category(ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_program_service.get_patient_category(ctx))


@router.get("/programs")
async def my_programs(category_id: str = OWN_CATEGORY, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_program_service.get_category_programs(ctx, category_id))


@router.post("/programs/{program_id}/enroll")
async def enroll(program_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_program_service.enroll_in_program(ctx, program_id))


@router.get("/programs/{program_id}/modules")
async def program_modules(program_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_program_service.get_program_modules(ctx, program_id))


@router.get("/modules/{module_id}/content")
async def module_content(module_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_program_service.get_module_content(ctx, module_id))


@router.post("/progress")
async def update_progress(body: dict, ctx: ActionContext = Depends(get_action_context)):
    """Body: {"moduleId": ..., "status": "in_progress" | "completed"}"""
    return respond(ctx, await patient_program_service.update_module_progress(ctx, body))


@router.get("/assessments")
async def my_assessments(category_id: str = OWN_CATEGORY, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_assessment_service.list_assessments(ctx, category_id))


@router.get("/assessments/{assessment_id}")
async def get_assessment(assessment_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_assessment_service.get_assessment(ctx, assessment_id))


@router.post("/assessments/{assessment_id}/submit")
async def submit_assessment(assessment_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    """Body: {"answers": [{"questionId", "questionType", "selectedOptionId"?, "textResponse"?}, ...]}"""
    return respond(ctx, await patient_assessment_service.submit_assessment(ctx, assessment_id, body))


@router.get("/mood")
async def mood_entries(limit: int = 10, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await mood_service.get_mood_entries(ctx, limit))


@router.post("/mood")
async def submit_mood(body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await mood_service.submit_mood_entry(ctx, body))
