from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import Field, field_validator
from carelearn.schemas.base import RequestModel, ResponseModel


class EnrollmentStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DROPPED = "dropped"


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class EnrollmentCreate(RequestModel):
    patient_id: UUID = Field(alias="patientId")
    program_id: UUID = Field(alias="programId")
    start_date: date = Field(alias="startDate")


class ModuleProgressUpdate(RequestModel):
    module_id: UUID = Field(alias="moduleId")
    status: ProgressStatus

    @field_validator("status")
    @classmethod
    def _forward_only(cls, value: ProgressStatus) -> ProgressStatus:
        if value is ProgressStatus.NOT_STARTED:
            raise ValueError("Status must be in_progress or completed")
        return value


class EnrollmentResponse(ResponseModel):
    id: str
    patient_id: str
    program_id: str
    category_enrollment_id: Optional[str] = None
    enrolled_by: Optional[str] = None
    start_date: date
    expected_end_date: Optional[date] = None
    completed_date: Optional[datetime] = None
    status: EnrollmentStatus
    created_at: Optional[datetime] = None


class EnrollmentDetails(ResponseModel):
    id: str
    patient_id: str
    program_id: str
    program_title: str
    start_date: date
    expected_end_date: Optional[date] = None
    status: EnrollmentStatus


class CurrentEnrollment(ResponseModel):
    enrollment: Optional[EnrollmentDetails] = None


class PatientProgramSummary(ResponseModel):
    id: str
    title: str
    description: Optional[str] = None
    duration_days: Optional[int] = None
    is_self_paced: bool = False
    status: EnrollmentStatus
    start_date: date
    expected_end_date: Optional[date] = None
    completed_date: Optional[datetime] = None
    enrollment_id: str


class ModuleProgressResponse(ResponseModel):
    id: str
    patient_id: str
    module_id: str
    enrollment_id: str
    status: ProgressStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    time_spent_seconds: int = 0
