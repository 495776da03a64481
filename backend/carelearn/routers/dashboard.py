from fastapi import APIRouter, Depends
from carelearn.actions import get_action_context, respond
from carelearn.context import ActionContext
from carelearn.services.dashboard_service import dashboard_service

router = APIRouter()


@router.get("/stats")
async def stats(ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await dashboard_service.get_dashboard_stats(ctx))


@router.get("/recent-patients")
async def recent_patients(limit: int = 5, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await dashboard_service.get_recent_patients(ctx, limit))


@router.get("/category-stats")
async def category_stats(ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await dashboard_service.get_category_stats(ctx))


@router.get("/enrollment-data")
async def enrollment_data(days: int = 30, ctx: ActionContext = Depends(get_action_context)):
    return respond(ctx, await dashboard_service.get_enrollment_data(ctx, days))
