import logging
import secrets
import string
from datetime import date
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from carelearn.actions import server_action
from carelearn.auth import (
    authenticate_action, authorize_action, create_token, hash_password,
    load_profile, verify_password,
)
from carelearn.context import ActionContext
from carelearn.exceptions import ForbiddenError, UnauthorizedError, ValidationError
from carelearn.identity import Identity, Role
from carelearn.models.user import AuthAccount, User
from carelearn.schemas.auth import (
    CreatePatientRequest, CreatePatientResponse, SignInRequest, SignInResponse,
)

logger = logging.getLogger(__name__)

PASSWORD_LENGTH = 12
PASSWORD_CLASSES = (
    string.ascii_lowercase,
    string.ascii_uppercase,
    string.digits,
    "!@#$%^&*()_+",
)


def generate_temp_password(length: int = PASSWORD_LENGTH) -> str:
    """Random password holding at least one character from every class."""
    rng = secrets.SystemRandom()
    chars = [rng.choice(group) for group in PASSWORD_CLASSES]
    pool = "".join(PASSWORD_CLASSES)
    chars += [rng.choice(pool) for _ in range(length - len(chars))]
    rng.shuffle(chars)
    return "".join(chars)


async def check_if_user_exists(db: AsyncSession, email: str) -> bool:
    found = await db.scalar(select(AuthAccount.id).where(AuthAccount.email == email.lower()))
    return found is not None


class AuthService:
    @server_action
    async def sign_in(self, ctx: ActionContext, data: dict) -> SignInResponse:
        credentials = SignInRequest.model_validate(data)
        email = credentials.email.lower()

        account = await ctx.db.scalar(select(AuthAccount).where(AuthAccount.email == email))
        if account is None or not verify_password(credentials.password, account.hashed_password):
            logger.info("Failed sign-in for %s", email)
            raise UnauthorizedError("Invalid email or password")

        profile = await load_profile(ctx.db, account.id, ("first_name", "last_name", "is_active"))
        if profile is None:
            raise ForbiddenError("Unauthorized access - invalid role")
        if not profile.is_active:
            raise ForbiddenError("This account has been deactivated")

        ctx.revalidate_path("/")
        return SignInResponse(
            role=profile.role.value,
            first_name=profile.first_name,
            last_name=profile.last_name,
            access_token=create_token(Identity(id=account.id, email=account.email)),
        )

    @server_action
    async def sign_out(self, ctx: ActionContext) -> dict:
        authenticate_action(ctx)
        return {"signed_out": True}

    @server_action
    async def create_patient_account(self, ctx: ActionContext, data: dict) -> CreatePatientResponse:
        payload = CreatePatientRequest.model_validate(data)
        await authorize_action(ctx, Role.ADMIN)
        email = payload.email.lower()

        if await check_if_user_exists(ctx.db, email):
            raise ValidationError(
                {"email": ["This email address is already registered"]},
                message="This email address is already registered",
            )

        temp_password = generate_temp_password()
        account = AuthAccount(email=email, hashed_password=hash_password(temp_password))
        ctx.db.add(account)
        await ctx.db.flush()

        ctx.db.add(User(
            id=account.id,
            email=email,
            role=Role.PATIENT.value,
            first_name=payload.first_name,
            last_name=payload.last_name,
            date_of_birth=date.fromisoformat(payload.date_of_birth) if payload.date_of_birth else None,
            gender=payload.gender,
            phone=payload.phone,
            is_active=True,
        ))
        await ctx.db.flush()
        logger.info("Created patient account %s", account.id)

        ctx.revalidate_path("/admin/patients")
        return CreatePatientResponse(patient_id=account.id, temp_password=temp_password)


auth_service = AuthService()
