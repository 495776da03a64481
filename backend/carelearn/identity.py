from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "admin"
    PATIENT = "patient"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as known to the auth provider."""
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Profile:
    """Role-bearing application record for an identity."""
    id: str
    role: Role
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    is_active: Optional[bool] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


@dataclass(frozen=True)
class AuthorizedCaller:
    identity: Identity
    profile: Profile
