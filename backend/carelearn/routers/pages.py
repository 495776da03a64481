"""
Navigable endpoints. These use the page-mode guards: a caller who may not see
a page is redirected (303) rather than given an error envelope.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from carelearn.auth import get_user, require_admin, require_patient, role_home
from carelearn.config import get_settings
from carelearn.database import get_db
from carelearn.identity import AuthorizedCaller

router = APIRouter()


def _page(name: str, caller: AuthorizedCaller) -> dict:
    return {
        "page": name,
        "user": {
            "id": caller.profile.id,
            "role": caller.profile.role.value,
            "name": caller.profile.full_name,
        },
    }


@router.get("/")
async def home(request: Request, db: AsyncSession = Depends(get_db)):
    _, profile = await get_user(request, db, require_auth=True)
    if profile is None:
        return RedirectResponse(get_settings().login_path, status_code=303)
    return RedirectResponse(role_home(profile.role), status_code=303)


@router.get("/login")
async def login(request: Request, db: AsyncSession = Depends(get_db)):
    _, profile = await get_user(request, db, require_auth=False)
    if profile is not None:
        return RedirectResponse(role_home(profile.role), status_code=303)
    return {"page": "login"}


@router.get("/admin")
async def admin_home(request: Request, db: AsyncSession = Depends(get_db)):
    return _page("admin", await require_admin(request, db))


@router.get("/patient")
async def patient_home(request: Request, db: AsyncSession = Depends(get_db)):
    return _page("patient", await require_patient(request, db))
