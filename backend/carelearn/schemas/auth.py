import re
from datetime import date
from typing import Optional
from pydantic import EmailStr, Field, field_validator
from carelearn.clock import utctoday
from carelearn.schemas.base import RequestModel, ResponseModel

NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")
PHONE_PATTERN = re.compile(r"^(\+\d{1,3})?[\s.-]?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MIN_PATIENT_AGE = 15
MAX_PATIENT_AGE = 60


def age_on(birth: date, today: date) -> int:
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


class SignInRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=6)


class SignInResponse(ResponseModel):
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    access_token: str
    token_type: str = "bearer"


class CreatePatientRequest(RequestModel):
    email: EmailStr
    first_name: str = Field(alias="firstName", min_length=2, max_length=50)
    last_name: str = Field(alias="lastName", min_length=2, max_length=50)
    date_of_birth: Optional[str] = Field(default=None, alias="dateOfBirth")
    gender: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _supported_provider(cls, value: str) -> str:
        if value.endswith("gmail.test"):
            raise ValueError("This email provider is not supported")
        return value

    @field_validator("first_name", "last_name")
    @classmethod
    def _letters_only(cls, value: str) -> str:
        if not NAME_PATTERN.match(value):
            raise ValueError("Name can only contain letters, spaces, hyphens, and apostrophes")
        return value

    @field_validator("date_of_birth")
    @classmethod
    def _plausible_birth_date(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if not DATE_PATTERN.match(value):
            raise ValueError("Date must be in YYYY-MM-DD format")
        try:
            birth = date.fromisoformat(value)
        except ValueError:
            raise ValueError("Invalid date")
        today = utctoday()
        if birth >= today:
            raise ValueError("Date of birth must be in the past")
        if not MIN_PATIENT_AGE <= age_on(birth, today) <= MAX_PATIENT_AGE:
            raise ValueError(f"Patient must be between {MIN_PATIENT_AGE} and {MAX_PATIENT_AGE} years old")
        return value

    @field_validator("gender")
    @classmethod
    def _known_gender(cls, value: Optional[str]) -> Optional[str]:
        if value and value not in ("male", "female"):
            raise ValueError("Please select a valid gender option")
        return value or None

    @field_validator("phone")
    @classmethod
    def _phone_shape(cls, value: Optional[str]) -> Optional[str]:
        if value and not PHONE_PATTERN.match(value):
            raise ValueError("Please enter a valid phone number")
        return value or None


class CreatePatientResponse(ResponseModel):
    patient_id: str
    temp_password: str
