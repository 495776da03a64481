from carelearn.models.user import AuthAccount, User
from carelearn.models.program import ProgramCategory, TreatmentProgram, LearningModule
from carelearn.models.content import ContentItem
from carelearn.models.assessment import (
    Assessment, AssessmentQuestion, QuestionOption, AssessmentAttempt, QuestionResponse,
)
from carelearn.models.enrollment import PatientCategory, PatientEnrollment, ModuleProgress
from carelearn.models.mood import MoodEntry

__all__ = ["AuthAccount", "User", "ProgramCategory", "TreatmentProgram", "LearningModule",
           "ContentItem", "Assessment", "AssessmentQuestion", "QuestionOption",
           "AssessmentAttempt", "QuestionResponse", "PatientCategory", "PatientEnrollment",
           "ModuleProgress", "MoodEntry"]
