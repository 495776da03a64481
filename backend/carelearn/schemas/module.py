from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import Field
from carelearn.schemas.base import RequestModel, ResponseModel
from carelearn.schemas.enrollment import ModuleProgressResponse


class ModuleCreate(RequestModel):
    title: str = Field(min_length=3)
    description: str = Field(min_length=10)
    program_id: UUID = Field(alias="programId")
    sequence_number: int = Field(alias="sequenceNumber", gt=0)
    estimated_minutes: Optional[int] = Field(default=None, alias="estimatedMinutes", gt=0)
    is_required: bool = Field(default=True, alias="isRequired")


class ModuleSequenceUpdate(RequestModel):
    program_id: UUID = Field(alias="programId")
    new_sequence: int = Field(alias="newSequence", gt=0)


class ModuleResponse(ResponseModel):
    id: str
    program_id: str
    title: str
    description: str
    sequence_number: int
    estimated_minutes: Optional[int] = None
    is_required: bool
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    total_content_items: Optional[int] = None
    progress: Optional[ModuleProgressResponse] = None
