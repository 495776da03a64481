"""
Tests for the session resolver, profile loader and both guard modes.
"""

import time

import pytest
from jose import jwt
from sqlalchemy.exc import OperationalError
from starlette.requests import Request

from carelearn.auth import (
    authorize_action, create_token, decode_token, load_profile, require_identity,
    require_role, resolve_identity, role_home,
)
from carelearn.config import get_settings
from carelearn.exceptions import ForbiddenError, RedirectRequired, UnauthorizedError
from carelearn.identity import Identity, Role


# ── Helpers / Fakes ──────────────────────────────────────────────────

def make_request(headers=None, cookies=None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if cookies:
        raw.append((b"cookie", "; ".join(f"{k}={v}" for k, v in cookies.items()).encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw, "query_string": b""})


class BrokenSession:
    """Every query fails like an unreachable database."""

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT users", {}, Exception("could not connect"))


# ── Session resolver ─────────────────────────────────────────────────

def test_resolve_identity_without_token_is_none():
    assert resolve_identity(make_request()) is None


def test_resolve_identity_from_bearer_header():
    token = create_token(Identity(id="abc", email="a@carelearn.app"))
    identity = resolve_identity(make_request(headers={"Authorization": f"Bearer {token}"}))
    assert identity == Identity(id="abc", email="a@carelearn.app")


def test_resolve_identity_from_cookie():
    token = create_token(Identity(id="abc"))
    request = make_request(cookies={get_settings().session_cookie_name: token})
    assert resolve_identity(request).id == "abc"


def test_garbage_and_expired_tokens_resolve_to_none():
    settings = get_settings()
    expired = jwt.encode({"sub": "abc", "exp": int(time.time()) - 10},
                         settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    assert decode_token("not-a-token") is None
    assert decode_token(expired) is None


def test_token_without_subject_is_rejected():
    settings = get_settings()
    token = jwt.encode({"exp": int(time.time()) + 60}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    assert decode_token(token) is None


def test_require_identity_redirects_to_login():
    with pytest.raises(RedirectRequired) as exc:
        require_identity(make_request())
    assert exc.value.location == "/login"


# ── Profile loader ───────────────────────────────────────────────────

async def test_load_profile_twice_is_identical(db, patient):
    first = await load_profile(db, patient.id)
    second = await load_profile(db, patient.id)
    assert first == second
    assert (first.role, first.first_name, first.last_name) == (Role.PATIENT, "Pat", "Jones")


async def test_load_profile_with_field_subset(db, patient):
    profile = await load_profile(db, patient.id, ["first_name"])
    assert profile.role is Role.PATIENT
    assert profile.first_name == "Pat"
    assert profile.email is None


async def test_load_profile_unknown_field_raises(db, patient):
    with pytest.raises(ValueError):
        await load_profile(db, patient.id, ["password"])


async def test_load_profile_missing_row_is_none(db):
    assert await load_profile(db, "00000000-0000-0000-0000-000000000000") is None


async def test_load_profile_store_error_is_none():
    assert await load_profile(BrokenSession(), "abc") is None


async def test_load_profile_unsupported_role_is_none(db, factory):
    identity = await factory.account(role="doctor")
    assert await load_profile(db, identity.id) is None


def test_role_home():
    assert role_home(Role.ADMIN) == "/admin"
    assert role_home(Role.PATIENT) == "/patient"


# ── Action mode ──────────────────────────────────────────────────────

async def test_authorize_action_without_identity_is_401(ctx_for):
    with pytest.raises(UnauthorizedError) as exc:
        await authorize_action(ctx_for(), Role.ADMIN)
    assert exc.value.message == "Not authenticated"


async def test_authorize_action_wrong_role_is_403(ctx_for, patient):
    with pytest.raises(ForbiddenError) as exc:
        await authorize_action(ctx_for(patient), Role.ADMIN)
    assert exc.value.message == "Access denied. Admin role required."


async def test_authorize_action_without_profile_is_403(ctx_for, factory):
    orphan = await factory.account(with_profile=False)
    with pytest.raises(ForbiddenError):
        await authorize_action(ctx_for(orphan), Role.PATIENT)


async def test_authorize_action_returns_caller(ctx_for, admin):
    caller = await authorize_action(ctx_for(admin), Role.ADMIN)
    assert caller.identity == admin
    assert caller.profile.role is Role.ADMIN


# ── Page mode ────────────────────────────────────────────────────────

async def test_require_role_redirects_wrong_role_home(db, patient):
    request = make_request(headers={"Authorization": f"Bearer {create_token(patient)}"})
    with pytest.raises(RedirectRequired) as exc:
        await require_role(request, db, Role.ADMIN)
    assert exc.value.location == "/patient"


async def test_require_role_missing_profile_redirects_to_login(db, factory):
    orphan = await factory.account(with_profile=False)
    request = make_request(headers={"Authorization": f"Bearer {create_token(orphan)}"})
    with pytest.raises(RedirectRequired) as exc:
        await require_role(request, db, Role.PATIENT)
    assert exc.value.location == "/login"


async def test_require_role_success(db, admin):
    request = make_request(headers={"Authorization": f"Bearer {create_token(admin)}"})
    caller = await require_role(request, db, Role.ADMIN)
    assert caller.profile.full_name == "Ada Admin"
