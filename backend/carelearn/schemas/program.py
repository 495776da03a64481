from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import Field
from carelearn.schemas.base import RequestModel, ResponseModel


class CategoryResponse(ResponseModel):
    id: str
    name: str
    description: Optional[str] = None


class ProgramCreate(RequestModel):
    title: str = Field(min_length=3)
    description: str = Field(min_length=10)
    category_id: UUID = Field(alias="categoryId")
    duration_days: Optional[int] = Field(default=None, alias="durationDays", gt=0)
    is_self_paced: bool = Field(default=False, alias="isSelfPaced")


class ProgramStatusUpdate(RequestModel):
    is_active: bool = Field(alias="isActive")


class ProgramResponse(ResponseModel):
    id: str
    title: str
    description: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    duration_days: Optional[int] = None
    is_self_paced: bool
    is_active: bool
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    total_modules: Optional[int] = None
    total_enrollments: Optional[int] = None
