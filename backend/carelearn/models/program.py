from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from carelearn.clock import utcnow
from carelearn.database import Base, new_uuid


class ProgramCategory(Base):
    __tablename__ = "program_categories"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(200), unique=True, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class TreatmentProgram(Base):
    __tablename__ = "treatment_programs"

    id = Column(String(36), primary_key=True, default=new_uuid)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False)
    category_id = Column(String(36), ForeignKey("program_categories.id"), index=True)
    duration_days = Column(Integer)
    is_self_paced = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class LearningModule(Base):
    __tablename__ = "learning_modules"

    id = Column(String(36), primary_key=True, default=new_uuid)
    program_id = Column(String(36), ForeignKey("treatment_programs.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False)
    sequence_number = Column(Integer, nullable=False)
    estimated_minutes = Column(Integer)
    is_required = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
