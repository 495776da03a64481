from fastapi import APIRouter, Depends
from carelearn.actions import get_action_context, respond
from carelearn.context import ActionContext
from carelearn.services.enrollment_service import enrollment_service

router = APIRouter()


@router.post("")
async def assign_program(body: dict, ctx: ActionContext = Depends(get_action_context)):
    """Body: {"patientId": ..., "programId": ..., "startDate": "YYYY-MM-DD"}"""
    return respond(ctx, await enrollment_service.assign_patient_to_program(ctx, body))
