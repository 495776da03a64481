from datetime import datetime, time, timedelta, timezone
from sqlalchemy import func, select
from carelearn.actions import server_action
from carelearn.auth import authorize_action
from carelearn.clock import utctoday
from carelearn.context import ActionContext
from carelearn.identity import Role
from carelearn.models.assessment import AssessmentAttempt
from carelearn.models.enrollment import PatientCategory, PatientEnrollment
from carelearn.models.program import LearningModule, ProgramCategory, TreatmentProgram
from carelearn.models.user import User
from carelearn.schemas.dashboard import (
    CategoryStat, DashboardStats, EnrollmentDataQuery, EnrollmentSeries,
    RecentPatient, RecentPatientsQuery,
)
from carelearn.schemas.enrollment import EnrollmentStatus
from carelearn.services.common import count, display_name

UNCATEGORIZED = "Uncategorized"


def _utc_date(value: datetime):
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(timezone.utc).date()


class DashboardService:
    @server_action
    async def get_dashboard_stats(self, ctx: ActionContext) -> DashboardStats:
        await authorize_action(ctx, Role.ADMIN)
        db = ctx.db

        is_patient = User.role == Role.PATIENT.value
        attempts = await count(db, AssessmentAttempt.id)
        completed_assessments = await count(db, AssessmentAttempt.id, AssessmentAttempt.completed_at.is_not(None))

        return DashboardStats(
            total_patients=await count(db, User.id, is_patient),
            active_patients=await count(db, User.id, is_patient, User.is_active.is_(True)),
            active_programs=await count(db, TreatmentProgram.id, TreatmentProgram.is_active.is_(True)),
            total_modules=await count(db, LearningModule.id),
            total_enrollments=await count(db, PatientEnrollment.id),
            completed_enrollments=await count(
                db, PatientEnrollment.id, PatientEnrollment.status == EnrollmentStatus.COMPLETED.value
            ),
            completed_assessments=completed_assessments,
            assessment_completion_rate=round(completed_assessments / attempts * 100) if attempts else 0,
        )

    @server_action
    async def get_recent_patients(self, ctx: ActionContext, limit: int = 5) -> list[RecentPatient]:
        query = RecentPatientsQuery.model_validate({"limit": limit})
        await authorize_action(ctx, Role.ADMIN)

        result = await ctx.db.execute(
            select(User, ProgramCategory.name)
            .outerjoin(PatientCategory, PatientCategory.patient_id == User.id)
            .outerjoin(ProgramCategory, ProgramCategory.id == PatientCategory.category_id)
            .where(User.role == Role.PATIENT.value)
            .order_by(User.created_at.desc())
            .limit(query.limit)
        )
        return [
            RecentPatient(
                id=patient.id,
                name=display_name(patient.first_name, patient.last_name) or patient.email,
                email=patient.email,
                is_active=patient.is_active,
                created_at=patient.created_at,
                category=category_name,
            )
            for patient, category_name in result.all()
        ]

    @server_action
    async def get_category_stats(self, ctx: ActionContext) -> list[CategoryStat]:
        await authorize_action(ctx, Role.ADMIN)

        result = await ctx.db.execute(
            select(ProgramCategory.id, ProgramCategory.name, func.count(PatientCategory.patient_id))
            .outerjoin(PatientCategory, PatientCategory.category_id == ProgramCategory.id)
            .group_by(ProgramCategory.id, ProgramCategory.name)
            .order_by(ProgramCategory.name)
        )
        return [CategoryStat(id=cid, name=name, patient_count=total) for cid, name, total in result.all()]

    @server_action
    async def get_enrollment_data(self, ctx: ActionContext, days: int = 30) -> EnrollmentSeries:
        """
        Enrollments per category per day over the trailing window
        [today - days + 1, today]. Every day of the window gets a point, with
        zero counts for days without enrollments.
        """
        query = EnrollmentDataQuery.model_validate({"days": days})
        await authorize_action(ctx, Role.ADMIN)

        today = utctoday()
        first_day = today - timedelta(days=query.days - 1)
        window_start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)

        result = await ctx.db.execute(
            select(PatientEnrollment.created_at, ProgramCategory.name)
            .join(TreatmentProgram, TreatmentProgram.id == PatientEnrollment.program_id)
            .outerjoin(ProgramCategory, ProgramCategory.id == TreatmentProgram.category_id)
            .where(PatientEnrollment.created_at >= window_start)
            .order_by(PatientEnrollment.created_at)
        )

        counts: dict = {}
        categories: list[str] = []
        for created_at, category_name in result.all():
            day = _utc_date(created_at)
            if day < first_day or day > today:
                continue
            name = category_name or UNCATEGORIZED
            if name not in categories:
                categories.append(name)
            per_day = counts.setdefault(day, {})
            per_day[name] = per_day.get(name, 0) + 1

        data = []
        for offset in range(query.days):
            day = first_day + timedelta(days=offset)
            point = {"date": day.isoformat()}
            for name in categories:
                point[name] = counts.get(day, {}).get(name, 0)
            data.append(point)
        return EnrollmentSeries(data=data, categories=categories)


dashboard_service = DashboardService()
