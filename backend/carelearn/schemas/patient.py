from datetime import date, datetime
from typing import Optional
from uuid import UUID
from pydantic import EmailStr, Field
from carelearn.schemas.base import RequestModel, ResponseModel
from carelearn.schemas.program import CategoryResponse, ProgramResponse
from carelearn.schemas.enrollment import EnrollmentResponse


class PatientUpdate(RequestModel):
    first_name: str = Field(alias="firstName", min_length=2)
    last_name: str = Field(alias="lastName", min_length=2)
    email: EmailStr
    is_active: bool = Field(default=True, alias="isActive")
    date_of_birth: Optional[date] = Field(default=None, alias="dateOfBirth")
    gender: Optional[str] = None
    phone: Optional[str] = None


class PatientStatusUpdate(RequestModel):
    is_active: bool = Field(alias="isActive")


class PatientSearch(RequestModel):
    search: Optional[str] = None
    category_id: Optional[UUID] = Field(default=None, alias="categoryId")


class CategoryAssign(RequestModel):
    category_id: UUID = Field(alias="categoryId")


class PatientResponse(ResponseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    is_active: bool
    created_at: Optional[datetime] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    role: str
    category: Optional[CategoryResponse] = None


class CategoryAssignmentResponse(ResponseModel):
    id: str
    patient_id: str
    category_id: str
    assigned_by: Optional[str] = None
    assigned_at: datetime


class CategoryAssignmentResult(ResponseModel):
    category_assignment: CategoryAssignmentResponse
    programs_enrolled: int


class PatientCategoryView(ResponseModel):
    """Patient-side view of their category; category is None when unassigned."""
    assignment: Optional[CategoryAssignmentResponse] = None
    category: Optional[CategoryResponse] = None


class PatientCategoryProgram(ProgramResponse):
    enrollment: Optional[EnrollmentResponse] = None
