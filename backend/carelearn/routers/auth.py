from fastapi import APIRouter, Depends
from carelearn.actions import get_action_context, respond
from carelearn.config import get_settings
from carelearn.context import ActionContext
from carelearn.services.auth_service import auth_service

router = APIRouter()


@router.post("/sign-in")
async def sign_in(body: dict, ctx: ActionContext = Depends(get_action_context)):
    """Exchange email and password for a session. The token is also set as a cookie."""
    result = await auth_service.sign_in(ctx, body)
    response = respond(ctx, result)
    if result.success:
        settings = get_settings()
        response.set_cookie(
            settings.session_cookie_name,
            result.data.access_token,
            max_age=settings.token_expire_seconds,
            httponly=True,
            samesite="lax",
        )
    return response


@router.post("/sign-out")
async def sign_out(ctx: ActionContext = Depends(get_action_context)):
    result = await auth_service.sign_out(ctx)
    response = respond(ctx, result)
    if result.success:
        response.delete_cookie(get_settings().session_cookie_name)
    return response
