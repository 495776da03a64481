"""
Shared fixtures: a fresh in-memory SQLite database per test, account helpers
and an HTTP client wired to the same database.
"""

import httpx
import pytest
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import carelearn.models  # noqa: F401
from carelearn.auth import create_token, hash_password
from carelearn.context import ActionContext
from carelearn.database import Base, get_db
from carelearn.identity import Identity, Role
from carelearn.models.content import ContentItem
from carelearn.models.program import LearningModule, ProgramCategory, TreatmentProgram
from carelearn.models.user import AuthAccount, User
from carelearn.revalidation import Revalidator

PASSWORD = "secret-pass-1"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ── Helpers / Factories ──────────────────────────────────────────────

class Factory:
    """Inserts committed rows so that action rollbacks never undo test setup."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def account(self, role="patient", email=None, first_name="Test", last_name="User",
                      is_active=True, with_profile=True) -> Identity:
        email = email or f"user{self._next()}@carelearn.app"
        account = AuthAccount(email=email, hashed_password=hash_password(PASSWORD))
        self.db.add(account)
        await self.db.flush()
        if with_profile:
            self.db.add(User(
                id=account.id,
                email=email,
                role=role.value if isinstance(role, Role) else role,
                first_name=first_name,
                last_name=last_name,
                is_active=is_active,
            ))
        await self.db.commit()
        return Identity(id=account.id, email=email)

    async def category(self, name=None) -> ProgramCategory:
        category = ProgramCategory(name=name or f"Category {self._next()}", description="Test category")
        self.db.add(category)
        await self.db.commit()
        return category

    async def program(self, category, title=None, duration_days=30, is_active=True) -> TreatmentProgram:
        program = TreatmentProgram(
            title=title or f"Program {self._next()}",
            description="A program used in tests",
            category_id=category.id if category is not None else None,
            duration_days=duration_days,
            is_self_paced=False,
            is_active=is_active,
        )
        self.db.add(program)
        await self.db.commit()
        return program

    async def module(self, program, sequence_number, is_required=True, title=None) -> LearningModule:
        module = LearningModule(
            program_id=program.id,
            title=title or f"Module {sequence_number}",
            description="A module used in tests",
            sequence_number=sequence_number,
            is_required=is_required,
        )
        self.db.add(module)
        await self.db.commit()
        return module

    async def content(self, module, sequence_number, content_type="text") -> ContentItem:
        item = ContentItem(
            module_id=module.id,
            title=f"Item {sequence_number}",
            content_type=content_type,
            content="Some reading material",
            sequence_number=sequence_number,
        )
        self.db.add(item)
        await self.db.commit()
        return item


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
async def admin(factory):
    return await factory.account(Role.ADMIN, email="admin@carelearn.app", first_name="Ada", last_name="Admin")


@pytest.fixture
async def patient(factory):
    return await factory.account(Role.PATIENT, email="pat@carelearn.app", first_name="Pat", last_name="Jones")


def make_ctx(db, identity=None, listeners=None) -> ActionContext:
    return ActionContext(db=db, identity=identity, revalidator=Revalidator(listeners=listeners or []))


@pytest.fixture
def ctx_for(db):
    def build(identity=None, listeners=None):
        return make_ctx(db, identity, listeners)
    return build


@pytest.fixture
def today() -> date:
    from carelearn.clock import utctoday
    return utctoday()


# ── HTTP ─────────────────────────────────────────────────────────────

@pytest.fixture
async def client(session_factory):
    from carelearn.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def bearer():
    def headers(identity: Identity) -> dict:
        return {"Authorization": f"Bearer {create_token(identity)}"}
    return headers
