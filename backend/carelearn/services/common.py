from typing import Optional, Type, TypeVar
from uuid import UUID
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from carelearn.exceptions import NotFoundError, ValidationError
from carelearn.identity import Role
from carelearn.models.user import User

M = TypeVar("M")


async def get_or_404(db: AsyncSession, model: Type[M], obj_id: str, resource: str) -> M:
    obj = await db.get(model, str(obj_id))
    if obj is None:
        raise NotFoundError(resource)
    return obj


async def get_patient_or_404(db: AsyncSession, patient_id: str) -> User:
    result = await db.execute(
        select(User).where(User.id == str(patient_id), User.role == Role.PATIENT.value)
    )
    patient = result.scalar_one_or_none()
    if patient is None:
        raise NotFoundError("Patient")
    return patient


async def next_sequence(db: AsyncSession, column, *criteria) -> int:
    current = await db.scalar(select(func.max(column)).where(*criteria))
    return (current or 0) + 1


async def count(db: AsyncSession, column, *criteria) -> int:
    return await db.scalar(select(func.count(column)).where(*criteria)) or 0


def display_name(first_name: Optional[str], last_name: Optional[str]) -> Optional[str]:
    if not first_name and not last_name:
        return None
    return " ".join(p for p in (first_name, last_name) if p)


def parse_id(value, field: str = "id") -> str:
    """Normalize a UUID argument or fail validation before touching the store."""
    try:
        return str(UUID(str(value)))
    except (TypeError, ValueError):
        raise ValidationError({field: ["Invalid ID format"]})


async def renumber(db: AsyncSession, model, parent_column, parent_id: str) -> int:
    """Rewrite sequence_number as 1..n within one parent, keeping current order."""
    result = await db.execute(
        select(model).where(parent_column == parent_id).order_by(model.sequence_number)
    )
    rows = result.scalars().all()
    for position, row in enumerate(rows, start=1):
        if row.sequence_number != position:
            row.sequence_number = position
    await db.flush()
    return len(rows)
