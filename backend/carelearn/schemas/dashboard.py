from datetime import datetime
from typing import Any, Optional
from pydantic import Field
from carelearn.schemas.base import RequestModel, ResponseModel


class DashboardStats(ResponseModel):
    total_patients: int = 0
    active_patients: int = 0
    active_programs: int = 0
    total_modules: int = 0
    total_enrollments: int = 0
    completed_enrollments: int = 0
    completed_assessments: int = 0
    assessment_completion_rate: int = 0


class CategoryStat(ResponseModel):
    id: str
    name: str
    patient_count: int


class RecentPatient(ResponseModel):
    id: str
    name: str
    email: str
    is_active: bool
    created_at: Optional[datetime] = None
    category: Optional[str] = None


class EnrollmentSeries(ResponseModel):
    """One point per day: {"date": "YYYY-MM-DD", "<category>": count, ...}."""
    data: list[dict[str, Any]]
    categories: list[str]


class EnrollmentDataQuery(RequestModel):
    days: int = Field(default=30, ge=1, le=365)


class RecentPatientsQuery(RequestModel):
    limit: int = Field(default=5, ge=1, le=50)
