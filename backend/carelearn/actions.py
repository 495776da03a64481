"""
Action runner: turns every outcome of a domain action into an ActionResponse.

Services decorate their public coroutines with @server_action. The wrapped
coroutine receives an ActionContext as its first argument after self.
"""

import functools
import logging
from typing import Any, Awaitable, Callable
import pydantic
from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from carelearn.auth import resolve_identity
from carelearn.context import ActionContext
from carelearn.database import get_db
from carelearn.exceptions import RedirectRequired, RequestError, format_field_errors
from carelearn.revalidation import Revalidator
from carelearn.schemas.envelope import ActionResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"
REVALIDATE_HEADER = "X-Revalidate-Paths"


def field_errors_from(exc: pydantic.ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "__root__"]
        field = ".".join(loc) if loc else "_form"
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)
    return errors


def handle_server_error(exc: BaseException) -> ActionResponse:
    """Normalize any exception into a failed envelope without leaking internals."""
    if isinstance(exc, pydantic.ValidationError):
        field_errors = field_errors_from(exc)
        return ActionResponse.fail(format_field_errors(field_errors), 400, field_errors)
    if isinstance(exc, RequestError):
        return ActionResponse.fail(exc.message, exc.status_code, exc.errors)
    return ActionResponse.fail(GENERIC_ERROR_MESSAGE, 500)


def server_action(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[ActionResponse]]:
    @functools.wraps(func)
    async def wrapper(self, ctx: ActionContext, *args, **kwargs) -> ActionResponse:
        try:
            result = await func(self, ctx, *args, **kwargs)
            if isinstance(result, ActionResponse) and not result.success:
                await ctx.db.rollback()
                ctx.revalidator.discard()
                return result
            await ctx.db.commit()
        except (pydantic.ValidationError, RequestError) as exc:
            logger.info("%s rejected: %s", func.__qualname__, exc)
            await _abandon(ctx)
            return handle_server_error(exc)
        except RedirectRequired as exc:
            logger.error("%s attempted a page redirect to %s; actions must return envelopes",
                         func.__qualname__, exc.location)
            await _abandon(ctx)
            return handle_server_error(exc)
        except Exception as exc:
            logger.exception("Error in %s", func.__qualname__)
            await _abandon(ctx)
            return handle_server_error(exc)

        ctx.revalidator.publish()
        if isinstance(result, ActionResponse):
            return result
        return ActionResponse.ok(result)

    return wrapper


async def _abandon(ctx: ActionContext) -> None:
    ctx.revalidator.discard()
    try:
        await ctx.db.rollback()
    except Exception:
        logger.exception("Rollback failed")


# ── HTTP glue ────────────────────────────────────────────────────────

async def get_action_context(request: Request, db: AsyncSession = Depends(get_db)) -> ActionContext:
    """FastAPI dependency building the per-request action context."""
    return ActionContext(db=db, identity=resolve_identity(request), revalidator=Revalidator())


def respond(ctx: ActionContext, result: ActionResponse) -> JSONResponse:
    response = JSONResponse(result.to_payload(), status_code=result.http_status)
    if ctx.revalidator.published:
        response.headers[REVALIDATE_HEADER] = ",".join(ctx.revalidator.published)
    return response
