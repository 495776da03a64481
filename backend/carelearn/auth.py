"""
Auth module: token handling, identity resolution, profile loading and the two
role-guard flavours.

Page mode (require_identity / require_role) is for navigable endpoints: a failed
check raises RedirectRequired and the caller lands on another page.

Action mode (authenticate_action / authorize_action) is for domain actions: a
failed check raises UnauthorizedError (401) or ForbiddenError (403), which the
action runner turns into an ActionResponse. Action mode never redirects.
"""

import logging
import time
from typing import Iterable, Optional
from fastapi import Request
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from carelearn.config import get_settings
from carelearn.context import ActionContext
from carelearn.exceptions import ForbiddenError, RedirectRequired, UnauthorizedError
from carelearn.identity import AuthorizedCaller, Identity, Profile, Role
from carelearn.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

PROFILE_FIELDS = (
    "id", "role", "first_name", "last_name", "email", "is_active",
    "date_of_birth", "gender", "phone", "created_at",
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def create_token(identity: Identity) -> str:
    """Create a signed access token for an identity."""
    settings = get_settings()
    payload = {
        "sub": identity.id,
        "email": identity.email,
        "exp": int(time.time()) + settings.token_expire_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[Identity]:
    """Decode and validate a token. Returns None if invalid/expired."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    if not subject:
        return None
    return Identity(id=subject, email=payload.get("email"))


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(get_settings().session_cookie_name)


# ── Session resolver ─────────────────────────────────────────────────

def resolve_identity(request: Request) -> Optional[Identity]:
    """Current caller, or None. A missing or bad session is not an error."""
    token = _extract_token(request)
    if not token:
        return None
    return decode_token(token)


def require_identity(request: Request) -> Identity:
    """Page contexts only: redirect to the login page when there is no session."""
    identity = resolve_identity(request)
    if identity is None:
        raise RedirectRequired(get_settings().login_path)
    return identity


# ── Profile loader ───────────────────────────────────────────────────

async def load_profile(
    db: AsyncSession,
    identity_id: str,
    fields: Optional[Iterable[str]] = None,
) -> Optional[Profile]:
    """
    Fetch the profile row for an identity.

    `fields` narrows the selected columns; id and role are always loaded.
    A missing row, an unusable role value and a store failure all yield None.
    """
    wanted = list(PROFILE_FIELDS) if fields is None else ["id", "role"] + [f for f in fields if f not in ("id", "role")]
    unknown = [f for f in wanted if f not in PROFILE_FIELDS]
    if unknown:
        raise ValueError(f"Unknown profile fields: {', '.join(unknown)}")

    try:
        result = await db.execute(
            select(*[getattr(User, f) for f in wanted]).where(User.id == identity_id)
        )
        row = result.mappings().first()
    except SQLAlchemyError:
        logger.exception("Error fetching user profile for %s", identity_id)
        return None

    if row is None:
        logger.warning("No profile row for identity %s", identity_id)
        return None

    values = dict(row)
    try:
        values["role"] = Role(values["role"])
    except ValueError:
        logger.warning("Profile %s carries unsupported role %r", identity_id, values["role"])
        return None
    return Profile(**values)


def role_home(role: Role) -> str:
    settings = get_settings()
    if role is Role.ADMIN:
        return settings.admin_home_path
    if role is Role.PATIENT:
        return settings.patient_home_path
    raise ValueError(f"Unhandled role: {role!r}")


# ── Page mode ────────────────────────────────────────────────────────

async def get_user(
    request: Request,
    db: AsyncSession,
    require_auth: bool = True,
) -> tuple[Optional[Identity], Optional[Profile]]:
    """Identity and profile in one call; redirects to login only if require_auth."""
    identity = require_identity(request) if require_auth else resolve_identity(request)
    if identity is None:
        return None, None
    return identity, await load_profile(db, identity.id)


async def require_role(request: Request, db: AsyncSession, role: Role) -> AuthorizedCaller:
    """
    Page guard. Returns only when the caller holds `role`; otherwise redirects:
    no session or no profile -> login page, other role -> that role's home.
    """
    identity = require_identity(request)
    profile = await load_profile(db, identity.id)
    if profile is None:
        raise RedirectRequired(get_settings().login_path)
    if profile.role is not role:
        raise RedirectRequired(role_home(profile.role))
    return AuthorizedCaller(identity=identity, profile=profile)


async def require_admin(request: Request, db: AsyncSession) -> AuthorizedCaller:
    return await require_role(request, db, Role.ADMIN)


async def require_patient(request: Request, db: AsyncSession) -> AuthorizedCaller:
    return await require_role(request, db, Role.PATIENT)


# ── Action mode ──────────────────────────────────────────────────────

def authenticate_action(ctx: ActionContext) -> Identity:
    if ctx.identity is None:
        raise UnauthorizedError("Not authenticated")
    return ctx.identity


async def authorize_action(ctx: ActionContext, role: Role) -> AuthorizedCaller:
    """Action guard: 401 without identity, 403 on missing profile or other role."""
    identity = authenticate_action(ctx)
    profile = await load_profile(ctx.db, identity.id)
    if profile is None or profile.role is not role:
        raise ForbiddenError(f"Access denied. {role.label} role required.")
    return AuthorizedCaller(identity=identity, profile=profile)
