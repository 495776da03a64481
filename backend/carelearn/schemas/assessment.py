from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import Field, field_validator, model_validator
from carelearn.schemas.base import RequestModel, ResponseModel
from carelearn.schemas.content import ContentItemResponse


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    TEXT_RESPONSE = "text_response"

    @property
    def is_choice(self) -> bool:
        return self is not QuestionType.TEXT_RESPONSE


class AssessmentCreate(RequestModel):
    module_id: UUID = Field(alias="moduleId")
    title: str = Field(min_length=3)
    description: str = Field(min_length=10)
    instructions: Optional[str] = None
    passing_score: int = Field(alias="passingScore", ge=1, le=100)
    time_limit_minutes: Optional[int] = Field(default=None, alias="timeLimitMinutes", gt=0)
    sequence_number: int = Field(alias="sequenceNumber", gt=0)


class OptionInput(RequestModel):
    option_text: str = Field(alias="optionText", min_length=1)
    is_correct: bool = Field(default=False, alias="isCorrect")
    sequence_number: int = Field(alias="sequenceNumber", gt=0)


class QuestionCreate(RequestModel):
    assessment_id: UUID = Field(alias="assessmentId")
    question_text: str = Field(alias="questionText", min_length=5)
    question_type: QuestionType = Field(alias="questionType")
    sequence_number: int = Field(alias="sequenceNumber", gt=0)
    points: int = Field(ge=1)
    options: list[OptionInput] = Field(default_factory=list)

    @model_validator(mode="after")
    def _options_match_type(self):
        if not self.question_type.is_choice:
            self.options = []
            return self
        if len(self.options) < 2:
            raise ValueError("Choice questions need at least two options")
        if sum(1 for o in self.options if o.is_correct) != 1:
            raise ValueError("Exactly one option must be marked correct")
        return self


class OptionDetail(ResponseModel):
    id: str
    question_id: str
    option_text: str
    is_correct: Optional[bool] = None
    sequence_number: int


class QuestionDetail(ResponseModel):
    id: str
    assessment_id: str
    question_text: str
    question_type: QuestionType
    sequence_number: int
    points: int
    options: list[OptionDetail] = []


class AssessmentResponse(ResponseModel):
    id: str
    content_item_id: str
    title: str
    description: Optional[str] = None
    passing_score: int
    time_limit_minutes: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssessmentDetail(AssessmentResponse):
    content_item: Optional[ContentItemResponse] = None
    questions: list[QuestionDetail] = []


class AssessmentCreated(ResponseModel):
    content_item_id: str
    assessment_id: str


class AnswerInput(RequestModel):
    question_id: Optional[UUID] = Field(default=None, alias="questionId")
    question_type: QuestionType = Field(alias="questionType")
    selected_option_id: Optional[UUID] = Field(default=None, alias="selectedOptionId")
    text_response: Optional[str] = Field(default=None, alias="textResponse")


class AssessmentSubmission(RequestModel):
    answers: list[AnswerInput] = Field(min_length=1)

    @field_validator("answers")
    @classmethod
    def _one_answer_per_question(cls, answers: list[AnswerInput]) -> list[AnswerInput]:
        seen = set()
        for answer in answers:
            if answer.question_id is None:
                continue
            if answer.question_id in seen:
                raise ValueError("Each question can only be answered once")
            seen.add(answer.question_id)
        return answers


class AttemptResponse(ResponseModel):
    id: str
    patient_id: str
    assessment_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    score: Optional[int] = None
    passed: Optional[bool] = None


class AttemptSummary(ResponseModel):
    id: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    score: Optional[int] = None
    passed: Optional[bool] = None


class PatientAssessmentSummary(ResponseModel):
    id: str
    title: str
    description: Optional[str] = None
    passing_score: int
    time_limit: Optional[int] = None
    content_item_id: str
    module_id: str
    module_name: Optional[str] = None
    program_id: Optional[str] = None
    program_name: Optional[str] = None
    latest_attempt: Optional[AttemptSummary] = None
    completed: bool


class PatientAssessmentList(ResponseModel):
    available: list[PatientAssessmentSummary] = []
    completed: list[PatientAssessmentSummary] = []


class PatientOptionView(ResponseModel):
    """Option as shown to patients; the answer key is never included."""
    id: str
    option_text: str
    sequence_number: int


class PatientQuestionView(ResponseModel):
    id: str
    question_text: str
    question_type: QuestionType
    sequence_number: int
    points: int
    options: list[PatientOptionView] = []


class PatientAssessmentView(ResponseModel):
    id: str
    content_item_id: str
    title: str
    description: Optional[str] = None
    passing_score: int
    time_limit_minutes: Optional[int] = None
    questions: list[PatientQuestionView] = []
