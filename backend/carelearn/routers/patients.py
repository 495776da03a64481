from typing import Optional
from fastapi import APIRouter, Depends, Query
from carelearn.actions import get_action_context, respond
from carelearn.context import ActionContext
from carelearn.services.auth_service import auth_service
from carelearn.services.enrollment_service import enrollment_service
from carelearn.services.patient_service import patient_service

router = APIRouter()


@router.get("")
async def list_patients(
    search: Optional[str] = Query(None, description="Match on first name, last name or email"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    ctx: ActionContext = Depends(get_action_context),
):
    return respond(ctx, await patient_service.list_patients(ctx, search, category_id))


@router.post("")
async def create_patient(body: dict, ctx: ActionContext = Depends(get_action_context)):
    """Create a patient account; the response carries the temporary password once."""
    return respond(ctx, await auth_service.create_patient_account(ctx, body))


@router.get("/{patient_id}")
async def get_patient(patient_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_service.get_patient(ctx, patient_id))


@router.put("/{patient_id}")
async def update_patient(patient_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_service.update_patient(ctx, patient_id, body))


@router.patch("/{patient_id}/status")
async def update_patient_status(patient_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_service.update_patient_status(ctx, patient_id, body))


@router.post("/{patient_id}/category")
async def assign_category(patient_id: str, body: dict, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await patient_service.assign_patient_to_category(ctx, patient_id, body))


@router.get("/{patient_id}/enrollment")
async def current_enrollment(patient_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await enrollment_service.get_patient_current_enrollment(ctx, patient_id))


@router.get("/{patient_id}/programs")
async def enrolled_programs(patient_id: str, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await enrollment_service.get_patient_enrolled_programs(ctx, patient_id))
