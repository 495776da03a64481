from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from carelearn.clock import utcnow
from carelearn.database import Base, new_uuid


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(String(36), primary_key=True, default=new_uuid)
    content_item_id = Column(String(36), ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text)
    passing_score = Column(Integer, nullable=False)
    time_limit_minutes = Column(Integer)
    created_by = Column(String(36), ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class AssessmentQuestion(Base):
    __tablename__ = "assessment_questions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    assessment_id = Column(String(36), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(20), nullable=False)  # multiple_choice | true_false | text_response
    sequence_number = Column(Integer, nullable=False)
    points = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class QuestionOption(Base):
    __tablename__ = "question_options"

    id = Column(String(36), primary_key=True, default=new_uuid)
    question_id = Column(String(36), ForeignKey("assessment_questions.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    sequence_number = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class AssessmentAttempt(Base):
    __tablename__ = "patient_assessment_attempts"

    id = Column(String(36), primary_key=True, default=new_uuid)
    patient_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    assessment_id = Column(String(36), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True))
    score = Column(Integer)
    passed = Column(Boolean)


class QuestionResponse(Base):
    __tablename__ = "patient_question_responses"

    id = Column(String(36), primary_key=True, default=new_uuid)
    attempt_id = Column(String(36), ForeignKey("patient_assessment_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(36), ForeignKey("assessment_questions.id", ondelete="CASCADE"), nullable=False)
    selected_option_id = Column(String(36), ForeignKey("question_options.id", ondelete="SET NULL"))
    text_response = Column(Text)
    is_correct = Column(Boolean)  # None for ungraded text responses
    points_earned = Column(Integer, default=0, nullable=False)
