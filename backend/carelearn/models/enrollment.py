from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from carelearn.clock import utcnow
from carelearn.database import Base, new_uuid


class PatientCategory(Base):
    __tablename__ = "patient_categories"

    id = Column(String(36), primary_key=True, default=new_uuid)
    patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("program_categories.id"), nullable=False)
    assigned_by = Column(String(36), ForeignKey("users.id"))
    assigned_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class PatientEnrollment(Base):
    __tablename__ = "patient_enrollments"

    id = Column(String(36), primary_key=True, default=new_uuid)
    patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    program_id = Column(String(36), ForeignKey("treatment_programs.id"), nullable=False, index=True)
    category_enrollment_id = Column(String(36), ForeignKey("patient_categories.id", ondelete="SET NULL"))
    enrolled_by = Column(String(36), ForeignKey("users.id"))
    start_date = Column(Date, nullable=False)
    expected_end_date = Column(Date)
    completed_date = Column(DateTime(timezone=True))
    status = Column(String(20), nullable=False, default="in_progress")  # assigned | in_progress | completed | dropped
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class ModuleProgress(Base):
    __tablename__ = "module_progress"

    id = Column(String(36), primary_key=True, default=new_uuid)
    patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(String(36), ForeignKey("learning_modules.id", ondelete="CASCADE"), nullable=False)
    enrollment_id = Column(String(36), ForeignKey("patient_enrollments.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="not_started")  # not_started | in_progress | completed
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    time_spent_seconds = Column(Integer, default=0, nullable=False)
